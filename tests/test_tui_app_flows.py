"""End-to-end update flows driven through the in-memory service."""

import pytest

from application.ports import ServiceError
from core.board.interface.tui_app import update
from core.board.interface.tui_models import MOUSE_CLICK, MOUSE_WHEEL_DOWN, ActionResultMsg, BoardLoadedMsg, KeyMsg, MouseMsg
from core.board.interface.tui_modes import (
    ActivityLogMode,
    ConfirmMode,
    NormalMode,
    ProjectPickerMode,
    TaskInfoMode,
)
from core.board.interface.tui_render import board_top, view

from conftest import drain, press


def _column_of(board, task_id):
    return {t.id: t for t in board.service.list_tasks(board.ids.project.id, include_archived=True)}[task_id].column_id


def test_initial_load_selects_first_project(board):
    model = board.model
    assert model.ready is True
    assert model.project_id == board.ids.project.id
    assert [t.title for t in model.column_tasks(board.ids.columns[0])] == ["Build board", "Wire API"]
    assert isinstance(model.mode, NormalMode)


def test_update_leaves_input_model_untouched(board):
    before = board.model
    after, _ = update(before, KeyMsg("j"))
    assert before.selected_task_index(board.ids.columns[0]) == 0
    assert after.selected_task_index(board.ids.columns[0]) == 1


def test_unknown_message_type_raises(board):
    with pytest.raises(TypeError):
        update(board.model, object())


def test_bulk_move_undo_redo(board):
    press(board, "space", "j", "space")
    assert board.model.selected_task_ids == {board.ids.build, board.ids.wire}

    press(board, "]")
    progress = board.ids.columns[1]
    assert _column_of(board, board.ids.build) == progress
    assert _column_of(board, board.ids.wire) == progress
    assert board.model.status == "moved 2 tasks right"
    assert board.model.history.can_undo()

    press(board, "z")
    todo = board.ids.columns[0]
    assert _column_of(board, board.ids.build) == todo
    assert _column_of(board, board.ids.wire) == todo
    assert "undo" in board.model.status
    assert board.model.history.can_redo()

    press(board, "Z")
    assert _column_of(board, board.ids.build) == progress
    assert "redo" in board.model.status
    summaries = [entry.summary for entry in board.model.activity]
    assert summaries[-2:] == ["undo", "redo"]


def test_second_undo_blocked_while_first_in_flight(board):
    press(board, "]")
    model, requests = update(board.model, KeyMsg("z"))
    assert model.pending_history
    model, again = update(model, KeyMsg("z"))
    assert again == []
    assert model.status == "history action in progress"
    model = drain(model, requests, board.ctx)
    assert model.pending_history == 0


def test_undo_refused_while_move_in_flight(board):
    press(board, "]")
    first = board.model.history.undo_stack[-1]

    model, move = update(board.model, KeyMsg("]"))
    assert move[0].get("history_ticket") == model.pending_history
    model, refused = update(model, KeyMsg("z"))
    assert refused == []
    assert model.status == "history action in progress"

    board.model = drain(model, move, board.ctx)
    assert board.model.pending_history == 0
    assert _column_of(board, board.ids.build) == board.ids.columns[2]
    second = board.model.history.undo_stack[-1]
    assert [s.id for s in board.model.history.undo_stack] == [first.id, second.id]

    press(board, "z")
    assert _column_of(board, board.ids.build) == board.ids.columns[1]
    press(board, "z")
    assert _column_of(board, board.ids.build) == board.ids.columns[0]
    assert board.model.history.undo_stack == []
    assert [s.id for s in board.model.history.redo_stack] == [second.id, first.id]


def test_failed_move_releases_only_its_own_ticket(board):
    press(board, "]")
    earlier = board.model.history_ticket
    board.service.fail_with = ServiceError("offline")
    model, move = update(board.model, KeyMsg("]"))
    ticket = model.pending_history
    assert ticket == earlier + 1

    model, _ = update(model, ActionResultMsg(err="late", history_ticket=earlier))
    assert model.pending_history == ticket

    model = drain(model, move, board.ctx)
    assert model.pending_history == 0
    assert model.error == "offline"
    assert len(model.history.undo_stack) == 1


def _slots(board):
    tasks = board.service.list_tasks(board.ids.project.id)
    return sorted((t.id, t.column_id, t.position) for t in tasks)


def test_bulk_move_undo_restores_exact_slots(board):
    before = _slots(board)
    press(board, "space", "j", "space", "]")
    after_move = _slots(board)
    assert after_move != before

    press(board, "z")
    assert _slots(board) == before
    press(board, "Z")
    assert _slots(board) == after_move


def test_archive_confirm_defaults_to_cancel(board):
    press(board, "a")
    assert isinstance(board.model.mode, ConfirmMode)
    press(board, "enter")
    assert isinstance(board.model.mode, NormalMode)
    assert board.model.status == "cancelled"
    assert board.model.task(board.ids.build).is_archived is False


def test_archive_then_restore_last_archived(board):
    press(board, "a", "y")
    assert board.model.status == "task archived"
    assert board.model.task(board.ids.build) is None
    assert board.model.last_archived_task_id == board.ids.build

    press(board, "u")
    assert board.model.status == "task restored"
    assert board.model.task(board.ids.build) is not None


def test_hard_delete_cannot_be_undone(board):
    press(board, "j", "D", "y")
    assert board.model.status == "task deleted"
    press(board, "z")
    assert board.model.status == "last action cannot be undone"
    assert board.model.activity[-1].summary == "undo unavailable"
    assert not board.model.history.can_undo()


def test_task_info_esc_walks_back_stack(board):
    press(board, "i")
    assert isinstance(board.model.mode, TaskInfoMode)
    assert board.model.mode.task_id == board.ids.build

    press(board, "enter")
    assert board.model.mode.task_id == board.ids.child

    press(board, "esc")
    assert board.model.mode.task_id == board.ids.build
    press(board, "esc")
    assert isinstance(board.model.mode, NormalMode)


def test_focus_subtree_and_clear(board):
    press(board, "f")
    assert board.model.projection_root == board.ids.build
    assert [t.id for t in board.model.column_tasks(board.ids.columns[0])] == [board.ids.child]
    press(board, "esc")
    assert board.model.projection_root == ""
    assert board.model.selected_task_in_column().id == board.ids.build


def test_focus_without_children_is_refused(board):
    press(board, "j", "f")
    assert board.model.projection_root == ""
    assert board.model.status == "no child tasks to focus"


def test_missing_projection_root_is_cleared_on_load(board):
    press(board, "f")
    board.service.delete_task(board.ids.build, "hard")
    press(board, "r")
    assert board.model.projection_root == ""
    assert board.model.status == "focus cleared (parent not found)"


def test_activity_log_keeps_memory_log_when_fetch_fails(board):
    press(board, "]")
    local = list(board.model.activity)
    board.service.fail_with = ServiceError("boom")
    press(board, "g")
    assert isinstance(board.model.mode, ActivityLogMode)
    assert board.model.status == "activity log unavailable: boom"
    assert board.model.activity == local


def test_activity_log_replaced_by_persisted_events(board):
    press(board, "g")
    assert board.model.activity
    assert board.model.activity[-1].summary == "create task"


def test_mouse_is_ignored_in_selection_mode(board):
    board.model.options.mouse_selection_mode = True
    model, requests = update(board.model, MouseMsg(MOUSE_WHEEL_DOWN, 0, board_top()))
    assert requests == []
    assert model.selected_task_index(board.ids.columns[0]) == 0
    assert view(model).mouse_capture is False


def test_click_selects_then_opens_task_info(board):
    y = board_top()
    model, _ = update(board.model, MouseMsg(MOUSE_CLICK, 35, y))
    assert model.selected_column == 1
    assert model.selected_task_in_column().id == board.ids.review
    model, _ = update(model, MouseMsg(MOUSE_CLICK, 35, y))
    assert isinstance(model.mode, TaskInfoMode)
    assert model.mode.task_id == board.ids.review


def test_empty_board_opens_project_picker(board):
    model, _ = update(board.model, BoardLoadedMsg(projects=[]))
    assert isinstance(model.mode, ProjectPickerMode)
    model, _ = update(model, KeyMsg("esc"))
    assert model.status == "create a project to continue"


def test_load_failure_sets_error(board):
    model, _ = update(board.model, BoardLoadedMsg(err="disk on fire"))
    assert model.error == "disk on fire"
    assert model.status == "error: disk on fire"


def test_ctrl_c_requests_quit(board):
    _, requests = update(board.model, KeyMsg("ctrl+c"))
    assert [req.kind for req in requests] == ["quit"]
