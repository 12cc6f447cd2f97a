"""Mouse handling: prompt_toolkit events -> MouseMsg, MouseMsg -> board changes."""

from typing import List, Optional

from prompt_toolkit.mouse_events import MouseButton, MouseEvent, MouseEventType

from .tui_models import MOUSE_CLICK, MOUSE_WHEEL_DOWN, MOUSE_WHEEL_UP, MouseMsg, Request
from .tui_modes import TEXT_ENTRY_MODES, NormalMode, ProjectPickerMode
from .tui_navigation import move_index
from .tui_render import card_at, project_picker_row


def mouse_msg_from_event(mouse_event: MouseEvent) -> Optional[MouseMsg]:
    """Translate a body-control mouse event; None for events we ignore."""
    x = mouse_event.position.x
    y = mouse_event.position.y
    if mouse_event.event_type == MouseEventType.SCROLL_UP:
        return MouseMsg(MOUSE_WHEEL_UP, x, y)
    if mouse_event.event_type == MouseEventType.SCROLL_DOWN:
        return MouseMsg(MOUSE_WHEEL_DOWN, x, y)
    if mouse_event.event_type == MouseEventType.MOUSE_UP and mouse_event.button == MouseButton.LEFT:
        return MouseMsg(MOUSE_CLICK, x, y)
    return None


def _handle_project_picker(model, msg: MouseMsg) -> List[Request]:
    from .tui_pickers import select_project

    mode: ProjectPickerMode = model.mode
    total = len(model.projects)
    if msg.action == MOUSE_WHEEL_UP:
        mode.index = move_index(mode.index, -1, total)
    elif msg.action == MOUSE_WHEEL_DOWN:
        mode.index = move_index(mode.index, 1, total)
    elif msg.action == MOUSE_CLICK:
        idx = project_picker_row(model, msg.y)
        if idx < 0:
            return []
        if idx == mode.index:
            return select_project(model, idx)
        mode.index = idx
    return []


def _handle_board(model, msg: MouseMsg) -> List[Request]:
    from .tui_task_info import open_task_info

    if msg.action == MOUSE_WHEEL_UP:
        model.move_task_selection(-1)
        return []
    if msg.action == MOUSE_WHEEL_DOWN:
        model.move_task_selection(1)
        return []
    col_idx, task_idx = card_at(model, msg.x, msg.y)
    if col_idx < 0:
        return []
    column = model.columns[col_idx]
    if task_idx < 0:
        model.selected_column = col_idx
        return []
    if col_idx == model.selected_column and model.selected_task_index(column.id) == task_idx:
        return open_task_info(model)
    model.selected_column = col_idx
    model.selected_task[column.id] = task_idx
    return []


def handle_mouse(model, msg: MouseMsg) -> List[Request]:
    """Route a mouse message; a no-op while native selection owns the mouse."""
    if model.options.mouse_selection_mode or model.show_help:
        return []
    if isinstance(model.mode, ProjectPickerMode):
        return _handle_project_picker(model, msg)
    if isinstance(model.mode, TEXT_ENTRY_MODES):
        return []
    if isinstance(model.mode, NormalMode):
        return _handle_board(model, msg)
    return []


__all__ = ["mouse_msg_from_event", "handle_mouse"]
