"""Dependency inspector: stage depends_on / blocked_by edits for one task.

Candidates are loaded once per scope (current project or all projects) and
filtered client-side as the query, state and archived filters change. The
owner snapshot pinned at open time decides which rows are pinned; staged
edits live in the draft until applied.
"""

import copy
from typing import List, Optional

from core import Task
from core.board.application.dependency_candidates import (
    FIELD_BLOCKED_BY,
    FIELD_DEPENDS_ON,
    DependencyDraft,
    build_dependency_candidates,
)
from core.board.application.history import task_field_snapshot, update_input_from_snapshot

from .tui_forms import CLEAR_TOKEN, FIELD_BLOCKED_BY as FORM_BLOCKED_BY, FIELD_DEPENDS_ON as FORM_DEPENDS_ON
from .tui_forms import parse_task_ref_ids
from .tui_models import CandidatesLoadedMsg, Request, request
from .tui_modes import (
    INSPECTOR_CONTEXT_FORM,
    INSPECTOR_CONTEXT_TASK_INFO,
    INSPECTOR_FOCUS_ARCHIVED,
    INSPECTOR_FOCUS_COUNT,
    INSPECTOR_FOCUS_FIELD,
    INSPECTOR_FOCUS_LIST,
    INSPECTOR_FOCUS_QUERY,
    INSPECTOR_FOCUS_SCOPE,
    DependencyInspectorMode,
    EditTaskMode,
    NormalMode,
    TaskFormMode,
)
from .tui_navigation import clamp_index, move_index
from .tui_requests import REQ_LOAD_CANDIDATES, REQ_SAVE_DEPENDENCIES


def _candidates_request(model, mode: DependencyInspectorMode) -> Request:
    mode.loading = True
    return request(
        REQ_LOAD_CANDIDATES,
        owner_id=mode.owner_id,
        project_id=model.project_id,
        cross_project=mode.cross_project,
    )


def open_inspector(
    model,
    task: Task,
    context: str = INSPECTOR_CONTEXT_TASK_INFO,
    previous=None,
    draft: Optional[DependencyDraft] = None,
) -> List[Request]:
    owner = copy.deepcopy(task)
    if draft is not None:
        owner.metadata.depends_on = list(draft.depends_on)
        owner.metadata.blocked_by = list(draft.blocked_by)
    mode = DependencyInspectorMode(
        owner_id=task.id,
        owner=owner,
        draft=draft or DependencyDraft.from_task(task),
        cross_project=model.search_cross_project,
        states=list(model.search_states),
        context=context,
        previous=previous if previous is not None else NormalMode(),
    )
    model.mode = mode
    model.set_status("loading dependency candidates")
    return [_candidates_request(model, mode)]


def open_dependency_inspector(model) -> List[Request]:
    task = model.selected_task_in_column()
    if task is None:
        model.set_status("no task selected")
        return []
    return open_inspector(model, task, previous=model.mode)


def open_inspector_from_form(model, form: TaskFormMode) -> List[Request]:
    """Inspector over the form's unsaved depends_on / blocked_by values."""
    if not isinstance(form, EditTaskMode):
        model.set_status("dependency inspector requires a saved task")
        return []
    task = model.task(form.task_id)
    if task is None:
        model.set_status("task not found")
        return []
    draft = DependencyDraft(
        task.id,
        parse_task_ref_ids(form.inputs[FORM_DEPENDS_ON].value, task.metadata.depends_on),
        parse_task_ref_ids(form.inputs[FORM_BLOCKED_BY].value, task.metadata.blocked_by),
    )
    return open_inspector(model, task, context=INSPECTOR_CONTEXT_FORM, previous=form, draft=draft)


def rebuild_rows(mode: DependencyInspectorMode) -> None:
    if mode.owner is None:
        mode.rows = []
        return
    mode.rows = build_dependency_candidates(
        mode.owner,
        mode.matches,
        mode.known,
        query=mode.query.value,
        states=mode.states,
        include_archived=mode.include_archived,
    )
    mode.index = clamp_index(mode.index, len(mode.rows))


def apply_candidates_loaded(model, msg: CandidatesLoadedMsg) -> List[Request]:
    mode = model.mode
    if not isinstance(mode, DependencyInspectorMode) or mode.owner_id != msg.owner_id:
        return []
    mode.loading = False
    if msg.err:
        model.set_error(msg.err)
        return []
    mode.matches = list(msg.matches)
    mode.known = dict(msg.known)
    rebuild_rows(mode)
    model.set_status(f"{len(mode.rows)} candidates")
    return []


def _toggle(model, mode: DependencyInspectorMode, field_name: str) -> None:
    if not mode.rows:
        model.set_status("no candidate selected")
        return
    row = mode.rows[mode.index]
    added = mode.draft.toggle(field_name, row.task_id)
    if added is None:
        model.set_status("a task cannot depend on itself")
    elif added:
        model.set_status(f"staged {row.task_id} in {field_name}")
    else:
        model.set_status(f"removed {row.task_id} from {field_name}")


def _close(model, mode: DependencyInspectorMode) -> None:
    model.mode = mode.previous if mode.previous is not None else NormalMode()


def _write_form_field(form: TaskFormMode, index: int, values: List[str]) -> None:
    field_input = form.inputs[index]
    if values:
        field_input.set_value(", ".join(values))
    elif field_input.value.strip():
        field_input.set_value(CLEAR_TOKEN)


def apply_inspector(model) -> List[Request]:
    mode: DependencyInspectorMode = model.mode
    depends_on, blocked_by = mode.draft.cleaned()
    if mode.context == INSPECTOR_CONTEXT_FORM and isinstance(mode.previous, TaskFormMode):
        form = mode.previous
        _write_form_field(form, FORM_DEPENDS_ON, depends_on)
        _write_form_field(form, FORM_BLOCKED_BY, blocked_by)
        _close(model, mode)
        model.set_status("dependencies staged in form")
        return []
    task = model.task(mode.owner_id)
    if task is None:
        _close(model, mode)
        model.set_status("task not found")
        return []
    if not mode.draft.differs_from(task):
        _close(model, mode)
        model.set_status("no dependency changes")
        return []
    metadata = task.metadata.copy()
    metadata.depends_on = depends_on
    metadata.blocked_by = blocked_by
    after = task_field_snapshot(task)
    after["metadata"] = metadata
    data = update_input_from_snapshot(task.id, after)
    _close(model, mode)
    model.set_status("saving dependencies")
    return [
        request(
            REQ_SAVE_DEPENDENCIES,
            data=data,
            before=task_field_snapshot(task),
            label="edit dependencies",
        )
    ]


def _jump(model, mode: DependencyInspectorMode) -> List[Request]:
    from .tui_search import jump_to_match

    if not mode.rows:
        return []
    row = mode.rows[mode.index]
    if row.missing:
        model.set_status(f"missing reference: {row.task_id}")
        return []
    return jump_to_match(model, row.match)


def handle_inspector_key(model, key: str) -> List[Request]:
    mode: DependencyInspectorMode = model.mode
    if key == "esc":
        _close(model, mode)
        model.set_status("dependency inspector closed")
        return []
    if key == "ctrl+s":
        return apply_inspector(model)
    if key == "tab":
        mode.focus = (mode.focus + 1) % INSPECTOR_FOCUS_COUNT
        return []
    if key == "shift+tab":
        mode.focus = (mode.focus - 1) % INSPECTOR_FOCUS_COUNT
        return []

    if mode.focus == INSPECTOR_FOCUS_QUERY:
        if key in ("down", "enter"):
            mode.focus = INSPECTOR_FOCUS_LIST
        elif mode.query.handle_key(key):
            rebuild_rows(mode)
        return []
    if mode.focus == INSPECTOR_FOCUS_SCOPE:
        if key in ("space", "enter"):
            mode.cross_project = not mode.cross_project
            model.set_status("scope: all projects" if mode.cross_project else "scope: current project")
            return [_candidates_request(model, mode)]
        return []
    if mode.focus == INSPECTOR_FOCUS_ARCHIVED:
        if key in ("space", "enter"):
            mode.include_archived = not mode.include_archived
            rebuild_rows(mode)
        return []
    if mode.focus == INSPECTOR_FOCUS_FIELD:
        if key in ("space", "enter", "left", "right"):
            mode.active_field = FIELD_BLOCKED_BY if mode.active_field == FIELD_DEPENDS_ON else FIELD_DEPENDS_ON
            model.set_status(f"editing {mode.active_field}")
        return []

    if key in ("j", "down"):
        mode.index = move_index(mode.index, 1, len(mode.rows))
    elif key in ("k", "up"):
        mode.index = move_index(mode.index, -1, len(mode.rows))
    elif key == "d":
        _toggle(model, mode, FIELD_DEPENDS_ON)
    elif key == "b":
        _toggle(model, mode, FIELD_BLOCKED_BY)
    elif key == "space":
        _toggle(model, mode, mode.active_field)
    elif key == "a":
        return apply_inspector(model)
    elif key == "enter":
        if mode.context == INSPECTOR_CONTEXT_FORM:
            _toggle(model, mode, mode.active_field)
        else:
            return _jump(model, mode)
    return []


__all__ = [
    "open_inspector",
    "open_dependency_inspector",
    "open_inspector_from_form",
    "rebuild_rows",
    "apply_candidates_loaded",
    "apply_inspector",
    "handle_inspector_key",
]
