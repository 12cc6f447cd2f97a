"""Dependency inspector opened from the board, task info and the edit form."""

from core.board.interface.tui_forms import FIELD_DEPENDS_ON
from core.board.interface.tui_modes import (
    INSPECTOR_CONTEXT_FORM,
    INSPECTOR_CONTEXT_TASK_INFO,
    DependencyInspectorMode,
    EditTaskMode,
    NormalMode,
)

from conftest import press


def _select_row(board, task_id):
    """Move the list cursor onto `task_id` (focus must already be on the list)."""
    ids = [row.task_id for row in board.model.mode.rows]
    assert task_id in ids
    press(board, *["j"] * ids.index(task_id))
    assert board.model.mode.rows[board.model.mode.index].task_id == task_id


def test_board_inspector_saves_and_undoes(board):
    ids = board.ids
    press(board, "ctrl+b")
    mode = board.model.mode
    assert isinstance(mode, DependencyInspectorMode)
    assert mode.owner_id == ids.build
    assert not mode.loading
    assert ids.build not in [row.task_id for row in mode.rows]

    press(board, "down")
    _select_row(board, ids.wire)
    press(board, "d")
    press(board, "ctrl+s")

    assert isinstance(board.model.mode, NormalMode)
    assert board.model.task(ids.build).metadata.depends_on == [ids.wire]
    assert board.model.history.can_undo()

    press(board, "z")
    assert board.model.task(ids.build).metadata.depends_on == []


def test_task_info_enter_jumps_to_candidate(board):
    press(board, "i", "b")
    mode = board.model.mode
    assert isinstance(mode, DependencyInspectorMode)
    assert mode.context == INSPECTOR_CONTEXT_TASK_INFO

    press(board, "down")
    _select_row(board, board.ids.review)
    press(board, "enter")
    assert isinstance(board.model.mode, NormalMode)
    assert board.model.selected_task_in_column().id == board.ids.review


def test_form_inspector_toggles_on_enter_and_strips_self(board):
    ids = board.ids
    press(board, "e")
    press(board, *["down"] * FIELD_DEPENDS_ON)
    form = board.model.mode
    assert isinstance(form, EditTaskMode)
    assert form.focus == FIELD_DEPENDS_ON
    press(board, *ids.build)

    press(board, "ctrl+o")
    mode = board.model.mode
    assert isinstance(mode, DependencyInspectorMode)
    assert mode.context == INSPECTOR_CONTEXT_FORM
    assert mode.draft.depends_on == [ids.build]

    press(board, "down")
    _select_row(board, ids.wire)
    press(board, "enter")
    assert isinstance(board.model.mode, DependencyInspectorMode)
    assert board.model.mode.draft.depends_on == [ids.build, ids.wire]

    press(board, "a")
    form = board.model.mode
    assert isinstance(form, EditTaskMode)
    assert form.inputs[FIELD_DEPENDS_ON].value == ids.wire

    press(board, "enter")
    assert board.model.task(ids.build).metadata.depends_on == [ids.wire]


def test_form_inspector_clears_field_holding_only_self(board):
    press(board, "e")
    press(board, *["down"] * FIELD_DEPENDS_ON)
    press(board, *board.ids.build)
    press(board, "ctrl+o", "a")
    form = board.model.mode
    assert isinstance(form, EditTaskMode)
    assert form.inputs[FIELD_DEPENDS_ON].value == "-"
