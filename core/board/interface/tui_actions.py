"""Board actions: moves, deletes, restore, undo/redo, selection and focus.

Handlers receive the model copy owned by the current `update` call, edit it
in place and return the requests to run.
"""

from typing import Dict, List, Optional, Sequence

from application.ports import DELETE_MODE_ARCHIVE, DELETE_MODE_HARD
from core.board.application.history import (
    STEP_ARCHIVE,
    STEP_HARD_DELETE,
    STEP_MOVE,
    STEP_RESTORE,
    HistoryActionSet,
    HistoryStep,
)
from core.board.application.projection import breadcrumb, can_focus

from .tui_models import Request, request
from .tui_modes import (
    CONFIRM_ARCHIVE_PROJECT,
    CONFIRM_DELETE,
    CONFIRM_DELETE_PROJECT,
    CONFIRM_RESTORE,
    ConfirmMode,
    NormalMode,
)
from .tui_requests import (
    DIRECTION_DO,
    DIRECTION_REDO,
    DIRECTION_UNDO,
    REQ_APPLY_STEPS,
    REQ_ARCHIVE_PROJECT,
    REQ_DELETE_PROJECT,
    REQ_LOAD_BOARD,
)


def reload_request(model, focus_task_id: str = "", project_id: str = "") -> Request:
    if focus_task_id:
        model.pending_focus_task_id = focus_task_id
    model.loading = True
    return request(
        REQ_LOAD_BOARD,
        project_id=project_id or model.project_id,
        include_archived=model.show_archived,
    )


def _steps_request(model, action_set: HistoryActionSet, status: str, **extra) -> List[Request]:
    return [
        request(
            REQ_APPLY_STEPS,
            action_set=action_set,
            steps=list(action_set.steps),
            direction=DIRECTION_DO,
            status=status,
            **extra,
        )
    ]


# -------------------------------------------------------------------- move


def _column_order(model, column_id: str) -> List[str]:
    """Ids of the live tasks in a column, in the service's slot order."""
    items = [t for t in model.tasks if t.column_id == column_id and not t.is_archived]
    return [t.id for t in sorted(items, key=lambda t: (t.position, t.created_at, t.id))]


def move_tasks(model, task_ids: Sequence[str], delta: int, bulk: bool = False) -> List[Request]:
    """Move tasks `delta` columns, appending to the end of the target column.

    Slots are tracked as the steps run in order, so each step records where
    its task sits once the earlier steps of the same set have been applied.
    """
    direction = "right" if delta > 0 else "left"
    orders: Dict[str, List[str]] = {}

    def order(column_id: str) -> List[str]:
        if column_id not in orders:
            orders[column_id] = _column_order(model, column_id)
        return orders[column_id]

    steps: List[HistoryStep] = []
    for task_id in dict.fromkeys(task_ids):
        task = model.task(task_id)
        if task is None or task.is_archived:
            continue
        col_idx = model.column_index(task.column_id)
        target = col_idx + delta
        if col_idx < 0 or target < 0 or target >= len(model.columns):
            continue
        to_column = model.columns[target]
        source = order(task.column_id)
        from_position = source.index(task.id)
        source.remove(task.id)
        dest = order(to_column.id)
        steps.append(
            HistoryStep(
                STEP_MOVE,
                task.id,
                from_column_id=task.column_id,
                from_position=from_position,
                to_column_id=to_column.id,
                to_position=len(dest),
            )
        )
        dest.append(task.id)
    if not steps:
        model.set_status("no movable tasks selected")
        return []
    if bulk:
        label = f"bulk move {direction}"
        status = f"moved {len(steps)} tasks {direction}"
        target = f"{len(steps)} tasks"
    else:
        label = "move task"
        status = "task moved"
        target = model.task(steps[0].task_id).title
    action_set = HistoryActionSet.build(label, steps, summary=label, target=target)
    return _steps_request(model, action_set, status, focus_task_id=steps[0].task_id)


def move_selected(model, delta: int) -> List[Request]:
    if model.selected_task_ids:
        return move_tasks(model, model.selected_task_ids_ordered(), delta, bulk=True)
    task = model.selected_task_in_column()
    if task is None:
        model.set_status("no task selected")
        return []
    return move_tasks(model, [task.id], delta)


def bulk_move(model, delta: int) -> List[Request]:
    if not model.selected_task_ids:
        model.set_status("no tasks selected")
        return []
    return move_tasks(model, model.selected_task_ids_ordered(), delta, bulk=True)


# ------------------------------------------------------------------ delete


def _confirm_required(options, mode: str, generic: bool) -> bool:
    if generic and not options.confirm_delete:
        return False
    if mode == DELETE_MODE_HARD:
        return options.confirm_hard_delete
    return options.confirm_archive


def request_delete(
    model,
    mode: str,
    task_ids: Optional[Sequence[str]] = None,
    generic: bool = False,
    confirmed: bool = False,
) -> List[Request]:
    """Archive or hard delete; asks for confirmation when configured to."""
    ids = list(task_ids) if task_ids is not None else model.action_task_ids()
    ids = [task_id for task_id in ids if model.task(task_id) is not None]
    if not ids:
        model.set_status("no task selected")
        return []
    if not confirmed and _confirm_required(model.options, mode, generic):
        verb = "hard delete" if mode == DELETE_MODE_HARD else "archive"
        single = model.task(ids[0])
        model.mode = ConfirmMode(
            kind=CONFIRM_DELETE,
            label=verb if len(ids) == 1 else f"bulk {verb}",
            title=single.title if len(ids) == 1 else f"{len(ids)} selected tasks",
            task_ids=tuple(ids),
            delete_mode=mode,
            previous=model.mode,
        )
        model.set_status("confirm action")
        return []
    return perform_delete(model, ids, mode)


def perform_delete(model, task_ids: Sequence[str], mode: str) -> List[Request]:
    hard = mode == DELETE_MODE_HARD
    kind = STEP_HARD_DELETE if hard else STEP_ARCHIVE
    steps = [HistoryStep(kind, task_id) for task_id in task_ids]
    bulk = len(steps) > 1
    if hard:
        label = "bulk hard delete" if bulk else "hard delete task"
        status = f"deleted {len(steps)} tasks" if bulk else "task deleted"
    else:
        label = "bulk archive" if bulk else "archive task"
        status = f"archived {len(steps)} tasks" if bulk else "task archived"
        model.last_archived_task_id = task_ids[-1]
    target = f"{len(steps)} tasks" if bulk else model.task(task_ids[0]).title
    action_set = HistoryActionSet.build(label, steps, summary=label, target=target)
    return _steps_request(model, action_set, status, clear_task_ids=tuple(task_ids))


def delete_with_default_mode(model) -> List[Request]:
    mode = model.options.default_delete_mode
    if mode not in (DELETE_MODE_ARCHIVE, DELETE_MODE_HARD):
        mode = DELETE_MODE_ARCHIVE
    return request_delete(model, mode, generic=True)


# ----------------------------------------------------------------- restore


def _restore_target(model) -> str:
    task = model.selected_task_in_column()
    if task is not None and task.is_archived:
        return task.id
    return model.last_archived_task_id


def request_restore(model, task_id: str = "", confirmed: bool = False) -> List[Request]:
    task_id = task_id or _restore_target(model)
    task = model.task(task_id) if task_id else None
    if not task_id or (task is not None and not task.is_archived):
        model.set_status("nothing to restore")
        return []
    if not confirmed and model.options.confirm_restore:
        model.mode = ConfirmMode(
            kind=CONFIRM_RESTORE,
            label="restore",
            title=task.title if task else task_id,
            task_ids=(task_id,),
            previous=model.mode,
        )
        model.set_status("confirm action")
        return []
    if model.last_archived_task_id == task_id:
        model.last_archived_task_id = ""
    action_set = HistoryActionSet.build(
        "restore task",
        [HistoryStep(STEP_RESTORE, task_id)],
        summary="restore task",
        target=task.title if task else task_id,
    )
    return _steps_request(model, action_set, "task restored", focus_task_id=task_id)


# ---------------------------------------------------------------- confirm


def _accept_confirm(model, mode: ConfirmMode) -> List[Request]:
    model.mode = mode.previous if mode.previous is not None else NormalMode()
    if mode.kind == CONFIRM_DELETE:
        return request_delete(model, mode.delete_mode, mode.task_ids, confirmed=True)
    if mode.kind == CONFIRM_RESTORE:
        return request_restore(model, mode.task_ids[0] if mode.task_ids else "", confirmed=True)
    if mode.kind == CONFIRM_DELETE_PROJECT:
        model.set_status("deleting project")
        return [request(REQ_DELETE_PROJECT, project_id=mode.project_id)]
    if mode.kind == CONFIRM_ARCHIVE_PROJECT:
        model.set_status("archiving project")
        return [request(REQ_ARCHIVE_PROJECT, project_id=mode.project_id)]
    model.set_status(f"unknown confirm action: {mode.kind}")
    return []


def handle_confirm_key(model, key: str) -> List[Request]:
    mode: ConfirmMode = model.mode
    if key in ("h", "l", "left", "right", "tab", "shift+tab"):
        mode.choice = 1 - mode.choice
        return []
    if key == "y" or (key == "enter" and mode.choice == 0):
        return _accept_confirm(model, mode)
    if key in ("n", "esc") or key == "enter":
        model.mode = mode.previous if mode.previous is not None else NormalMode()
        model.set_status("cancelled")
    return []


# ------------------------------------------------------------- undo / redo


def _history_busy(model) -> bool:
    if model.pending_history:
        model.set_status("history action in progress")
        return True
    return False


def undo(model) -> List[Request]:
    if _history_busy(model):
        return []
    plan = model.history.begin_undo()
    if plan.discarded:
        model.set_status(plan.status)
        model.log_activity("undo unavailable", plan.action_set.label)
        return []
    if not plan.steps:
        model.set_status(plan.status)
        return []
    label = plan.action_set.label
    return [
        request(
            REQ_APPLY_STEPS,
            action_set=plan.action_set,
            steps=plan.steps,
            direction=DIRECTION_UNDO,
            status=f"undo complete: {label}",
        )
    ]


def redo(model) -> List[Request]:
    if _history_busy(model):
        return []
    plan = model.history.begin_redo()
    if not plan.steps:
        model.set_status(plan.status)
        return []
    label = plan.action_set.label
    return [
        request(
            REQ_APPLY_STEPS,
            action_set=plan.action_set,
            steps=plan.steps,
            direction=DIRECTION_REDO,
            status=f"redo complete: {label}",
        )
    ]


# --------------------------------------------------------------- selection


def toggle_selection(model) -> List[Request]:
    task = model.selected_task_in_column()
    if task is None:
        model.set_status("no task selected")
        return []
    if task.id in model.selected_task_ids:
        model.selected_task_ids.discard(task.id)
    else:
        model.selected_task_ids.add(task.id)
    model.set_status(f"{len(model.selected_task_ids)} selected")
    return []


def clear_selection(model) -> List[Request]:
    if not model.selected_task_ids:
        model.set_status("no tasks selected")
        return []
    model.selected_task_ids = set()
    model.set_status("selection cleared")
    return []


# ------------------------------------------------------------------- focus


def focus_subtree(model, task_id: str = "") -> List[Request]:
    """Narrow the board to the direct children of a task.

    A task without children leaves the focus unchanged.
    """
    if not task_id:
        task = model.selected_task_in_column()
        task_id = task.id if task else ""
    if not task_id:
        model.set_status("no task selected")
        return []
    if not can_focus(model.tasks, task_id):
        model.set_status("no child tasks to focus")
        return []
    model.projection_root = task_id
    model.selected_task = {}
    model.clamp_selections()
    model.set_status("focus: " + breadcrumb(model.tasks_by_id(), task_id))
    return []


def clear_focus(model) -> List[Request]:
    if not model.projection_root:
        model.set_status("no focus active")
        return []
    previous_root = model.projection_root
    model.projection_root = ""
    model.clamp_selections()
    model.focus_task(previous_root)
    model.set_status("focus cleared")
    return []


def toggle_archived(model) -> List[Request]:
    model.show_archived = not model.show_archived
    model.set_status("showing archived tasks" if model.show_archived else "hiding archived tasks")
    return [reload_request(model)]


def clear_query(model) -> List[Request]:
    if not model.search_query:
        model.set_status("no active query")
        return []
    model.search_query = ""
    model.clamp_selections()
    model.set_status("query cleared")
    return []


def escape_normal(model) -> List[Request]:
    """Esc in normal mode clears one layer per press."""
    if model.show_help:
        model.show_help = False
    elif model.search_query:
        return clear_query(model)
    elif model.selected_task_ids:
        return clear_selection(model)
    elif model.projection_root:
        return clear_focus(model)
    return []


__all__ = [
    "reload_request",
    "move_tasks",
    "move_selected",
    "bulk_move",
    "request_delete",
    "perform_delete",
    "delete_with_default_mode",
    "request_restore",
    "handle_confirm_key",
    "undo",
    "redo",
    "toggle_selection",
    "clear_selection",
    "focus_subtree",
    "clear_focus",
    "toggle_archived",
    "clear_query",
    "escape_normal",
]
