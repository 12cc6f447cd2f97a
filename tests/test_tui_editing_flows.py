"""Forms, rename, palette and settings flows through update."""

from config import BoardOptions, load_board_options
from core.board.interface.tui_app import init, run_command, update
from core.board.interface.tui_commands import palette_items
from core.board.interface.tui_models import ConfigReloadedMsg, KeyMsg, ResizeMsg
from core.board.interface.tui_modes import (
    AddTaskMode,
    BootstrapSettingsMode,
    CommandPaletteMode,
    EditTaskMode,
    NormalMode,
    ProjectPickerMode,
    QuickActionsMode,
    RenameMode,
    TaskInfoMode,
)
from core.board.interface.tui_forms import FIELD_PRIORITY
from core.board.interface.tui_render import CURSOR_MARK, view

from conftest import drain, press


def _type(board, text):
    return press(board, *["space" if ch == " " else ch for ch in text])


def test_add_task_creates_card_in_current_column(board):
    press(board, "n")
    assert isinstance(board.model.mode, AddTaskMode)
    _type(board, "Fix bug")
    press(board, "enter")
    assert board.model.status == "task created"
    created = board.model.selected_task_in_column()
    assert created.title == "Fix bug"
    assert created.column_id == board.ids.columns[0]


def test_add_task_without_title_closes_form(board):
    press(board, "n", "enter")
    assert isinstance(board.model.mode, NormalMode)
    assert board.model.status == "title required"


def test_invalid_priority_keeps_form_open(board):
    press(board, "n")
    _type(board, "Task")
    press(board, "tab", "tab")
    assert board.model.mode.focus == FIELD_PRIORITY
    _type(board, "urgent")
    press(board, "enter")
    assert isinstance(board.model.mode, AddTaskMode)
    assert board.model.status == "priority must be low|medium|high"


def test_new_task_under_focus_becomes_child(board):
    press(board, "f", "n")
    assert board.model.mode.parent_id == board.ids.build
    _type(board, "Tests")
    press(board, "enter")
    assert board.model.status == "subtask created"
    children = [t for t in board.model.tasks if t.parent_id == board.ids.build]
    assert sorted(t.title for t in children) == ["Column layout", "Tests"]


def test_edit_task_then_undo_restores_fields(board):
    press(board, "e")
    assert isinstance(board.model.mode, EditTaskMode)
    _type(board, " v2")
    press(board, "enter")
    assert board.model.task(board.ids.build).title == "Build board v2"
    assert board.model.history.can_undo()

    press(board, "z")
    assert board.model.task(board.ids.build).title == "Build board"
    assert board.model.status == "undo complete: edit task"


def test_rename_requires_title(board):
    press(board, "R")
    assert isinstance(board.model.mode, RenameMode)
    press(board, *["backspace"] * len("Build board"))
    press(board, "enter")
    assert isinstance(board.model.mode, RenameMode)
    assert board.model.status == "title required"

    _type(board, "Board UI")
    press(board, "enter")
    assert board.model.task(board.ids.build).title == "Board UI"


def test_palette_reports_disabled_commands(board):
    requests = run_command(board.model, "undo")
    assert requests == []
    assert board.model.status == "undo unavailable: nothing to undo"


def test_palette_runs_matching_command(board):
    press(board, ":")
    assert isinstance(board.model.mode, CommandPaletteMode)
    _type(board, "quit")
    _, requests = update(board.model, KeyMsg("enter"))
    assert [req.kind for req in requests] == ["quit"]


def test_palette_selection_stays_visible_while_paging(board):
    board.model, _ = update(board.model, ResizeMsg(100, 14))
    press(board, ":")
    items = palette_items(board.model, "")
    for _ in range(4):
        press(board, "pgdown")
        selected = items[board.model.mode.index]
        assert f"{CURSOR_MARK} {selected.command.id}" in view(board.model).content
    assert board.model.mode.index == len(items) - 1


def test_palette_esc_cancels(board):
    press(board, ":", "esc")
    assert isinstance(board.model.mode, NormalMode)
    assert board.model.status == "cancelled"


def test_quick_actions_first_enabled_item_opens_task_info(board):
    press(board, ".")
    assert isinstance(board.model.mode, QuickActionsMode)
    press(board, "enter")
    assert isinstance(board.model.mode, TaskInfoMode)


def test_bootstrap_blocks_escape_then_moves_to_picker(tmp_path, seeded):
    from core.board.interface.tui_requests import RequestContext

    service, _ = seeded
    ctx = RequestContext(service=service, config_path=tmp_path / "cfg.yaml")
    model, requests = init(BoardOptions(), str(ctx.config_path))
    model = drain(model, requests, ctx)
    assert isinstance(model.mode, BootstrapSettingsMode)

    model, _ = update(model, KeyMsg("esc"))
    assert isinstance(model.mode, BootstrapSettingsMode)
    assert model.status == "display name is required"

    for key in "Ana":
        model, _ = update(model, KeyMsg(key))
    model, requests = update(model, KeyMsg("enter"))
    model = drain(model, requests, ctx)
    assert isinstance(model.mode, ProjectPickerMode)
    assert model.options.display_name == "Ana"
    assert load_board_options(ctx.config_path).display_name == "Ana"


def test_config_reload_failure_is_reported(board):
    model, _ = update(board.model, ConfigReloadedMsg(err="bad yaml"))
    assert model.status == "reload config failed: bad yaml"


def test_highlight_color_saved_to_config(board):
    run_command(board.model, "highlight-color")
    board.model.mode.input.clear()
    _type(board, "#112233")
    press(board, "enter")
    assert board.model.options.highlight_color == "#112233"
    assert load_board_options(board.ctx.config_path).highlight_color == "#112233"
