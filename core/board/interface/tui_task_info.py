"""Task info panel with its own navigation stack."""

from typing import List, Optional, Tuple

from core import Task, order_tasks_by_hierarchy
from core.board.application.projection import direct_children

from .tui_actions import focus_subtree, move_tasks
from .tui_models import Request
from .tui_modes import (
    INSPECTOR_CONTEXT_TASK_INFO,
    NormalMode,
    TaskInfoFrame,
    TaskInfoMode,
)
from .tui_navigation import clamp_index, move_index


def task_children(model, task_id: str) -> List[Task]:
    return order_tasks_by_hierarchy(direct_children(model.tasks, task_id))


def subtask_progress(children: List[Task]) -> Tuple[int, int]:
    done = sum(1 for child in children if child.state_id == "done")
    return done, len(children)


def open_task_info(model, task: Optional[Task] = None) -> List[Request]:
    task = task or model.selected_task_in_column()
    if task is None:
        model.set_status("no task selected")
        return []
    model.mode = TaskInfoMode(task_id=task.id)
    model.set_status("task info")
    return []


def _push(model, mode: TaskInfoMode, task_id: str) -> None:
    mode.stack.append(TaskInfoFrame(mode.task_id, mode.index))
    mode.task_id = task_id
    mode.index = 0


def _pop_or_close(model, mode: TaskInfoMode) -> None:
    if mode.stack:
        frame = mode.stack.pop()
        mode.task_id = frame.task_id
        mode.index = frame.index
        return
    model.mode = NormalMode()
    model.set_status("task info closed")


def handle_task_info_key(model, key: str) -> List[Request]:
    from .tui_dependency_inspector import open_inspector
    from .tui_editing import open_add_subtask, open_edit_task
    from .tui_pickers import open_resource_picker
    from .tui_thread import open_task_thread

    mode: TaskInfoMode = model.mode
    task = model.task(mode.task_id)
    if task is None:
        model.mode = NormalMode()
        model.set_status("task not found")
        return []
    children = task_children(model, task.id)
    mode.index = clamp_index(mode.index, len(children))

    if key == "esc":
        _pop_or_close(model, mode)
        return []
    if key == "i":
        model.mode = NormalMode()
        model.set_status("task info closed")
        return []
    if key in ("j", "down"):
        mode.index = move_index(mode.index, 1, len(children))
        return []
    if key in ("k", "up"):
        mode.index = move_index(mode.index, -1, len(children))
        return []
    if key == "enter":
        if not children:
            model.set_status("no subtasks")
            return []
        _push(model, mode, children[mode.index].id)
        return []
    if key == "backspace":
        parent = model.task(task.parent_id) if task.parent_id else None
        if parent is None:
            model.set_status("no parent task")
            return []
        _push(model, mode, parent.id)
        return []
    if key == "e":
        return open_edit_task(model, task)
    if key == "s":
        return open_add_subtask(model, task)
    if key == "c":
        return open_task_thread(model, task, previous=mode)
    if key == "b":
        return open_inspector(model, task, context=INSPECTOR_CONTEXT_TASK_INFO, previous=mode)
    if key == "r":
        return open_resource_picker(model, task.id, previous=mode)
    if key in ("[", "]"):
        return move_tasks(model, [task.id], -1 if key == "[" else 1)
    if key == "f":
        requests = focus_subtree(model, task.id)
        if model.projection_root == task.id:
            model.mode = NormalMode()
        return requests
    return []


__all__ = [
    "task_children",
    "subtask_progress",
    "open_task_info",
    "handle_task_info_key",
]
