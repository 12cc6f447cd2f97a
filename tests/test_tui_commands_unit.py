from types import SimpleNamespace

from core.board.interface.tui_app import COMMAND_HANDLERS, QUICK_ACTION_HANDLERS
from core.board.interface.tui_commands import (
    COMMANDS,
    QUICK_ACTIONS,
    SCORE_EXACT,
    command_score,
    find_command,
    fuzzy_score,
    palette_items,
    quick_action_items,
)


def _model(task=None, selected=(), undo=False, redo=False, root="", query="", project=True):
    return SimpleNamespace(
        selected_task_in_column=lambda: task,
        current_project=lambda: object() if project else None,
        selected_task_ids=set(selected),
        history=SimpleNamespace(can_undo=lambda: undo, can_redo=lambda: redo),
        projection_root=root,
        search_query=query,
    )


def test_every_command_and_quick_action_has_a_handler():
    assert {c.id for c in COMMANDS} == set(COMMAND_HANDLERS)
    assert {a.id for a in QUICK_ACTIONS} == set(QUICK_ACTION_HANDLERS)
    assert len(COMMANDS) == 31
    assert len(QUICK_ACTIONS) == 15


def test_fuzzy_score_tiers():
    assert fuzzy_score("undo", "undo") == SCORE_EXACT
    assert fuzzy_score("un", "undo") > fuzzy_score("nd", "undo") > fuzzy_score("uo", "undo")
    assert fuzzy_score("xyz", "undo") == -1
    assert fuzzy_score("", "undo") == 0


def test_alias_and_description_match():
    assert command_score(find_command("search"), "find") > 0
    assert command_score(find_command("activity-log"), "show the activity") > 0


def test_enabled_commands_rank_before_disabled():
    items = palette_items(_model(), "redo")
    assert items[0].enabled
    disabled = [item for item in items if not item.enabled]
    assert any(item.command.id == "redo" and item.reason == "nothing to redo" for item in disabled)


def test_empty_query_keeps_registry_order_within_groups():
    items = palette_items(_model(task=object(), undo=True), "")
    enabled = [item.command.id for item in items if item.enabled]
    assert enabled[:3] == ["new-task", "new-subtask", "edit-task"]


def test_quick_actions_disabled_without_selection():
    items = quick_action_items(_model(task=object()))
    reasons = {item.action.id: item.reason for item in items}
    assert reasons["bulk-archive"] == "no tasks selected"
    assert reasons["task-info"] == ""
    assert items[-1].enabled is False
