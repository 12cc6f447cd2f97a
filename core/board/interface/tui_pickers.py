"""Project picker and resource picker modes."""

import os
from typing import List

from core.board.application.history import task_field_snapshot, update_input_from_snapshot

from .tui_actions import reload_request
from .tui_models import DirectoryListedMsg, Request, request
from .tui_modes import (
    CONFIRM_ARCHIVE_PROJECT,
    CONFIRM_DELETE_PROJECT,
    ConfirmMode,
    NormalMode,
    ProjectPickerMode,
    ResourcePickerMode,
    TaskFormMode,
)
from .tui_navigation import clamp_index, move_index
from .tui_requests import REQ_ARCHIVE_PROJECT, REQ_ATTACH_RESOURCE, REQ_LIST_DIRECTORY, REQ_RESTORE_PROJECT
from .tui_resources import (
    NO_ROOT_MESSAGE,
    PARENT_ENTRY,
    PathSandboxError,
    ResourceEntry,
    add_resource_ref,
    build_resource_ref,
    filter_entries,
    parent_directory,
)


# ---------------------------------------------------------- project picker


def open_project_picker(model) -> List[Request]:
    model.mode = ProjectPickerMode(index=clamp_index(model.project_index, len(model.projects)))
    model.set_status("select project" if model.projects else "no projects yet; press N to create one")
    return []


def select_project(model, index: int) -> List[Request]:
    if not 0 <= index < len(model.projects):
        return []
    project = model.projects[index]
    model.mode = NormalMode()
    if project.id == model.project_id:
        model.set_status(f"project: {project.name}")
        return []
    model.project_index = index
    model.projection_root = ""
    model.selected_column = 0
    model.selected_task = {}
    model.selected_task_ids = set()
    model.search_query = ""
    model.set_status(f"project: {project.name}")
    return [reload_request(model, project_id=project.id)]


def handle_project_picker_key(model, key: str) -> List[Request]:
    from .tui_editing import open_project_form

    mode: ProjectPickerMode = model.mode
    total = len(model.projects)
    mode.index = clamp_index(mode.index, total)
    if key == "esc":
        if not model.projects:
            model.set_status("create a project to continue")
            return []
        model.mode = NormalMode()
        model.set_status("")
        return []
    if key == "N":
        return open_project_form(model)
    if key in ("j", "down"):
        mode.index = move_index(mode.index, 1, total)
        return []
    if key in ("k", "up"):
        mode.index = move_index(mode.index, -1, total)
        return []
    if not model.projects:
        return []
    project = model.projects[mode.index]
    if key == "enter":
        return select_project(model, mode.index)
    if key == "A":
        if project.is_archived:
            model.set_status("project already archived")
            return []
        if model.options.confirm_archive:
            model.mode = ConfirmMode(
                kind=CONFIRM_ARCHIVE_PROJECT,
                label="archive project",
                title=project.name,
                project_id=project.id,
                previous=mode,
            )
            model.set_status("confirm action")
            return []
        model.set_status("archiving project")
        return [request(REQ_ARCHIVE_PROJECT, project_id=project.id)]
    if key == "U":
        if not project.is_archived:
            model.set_status("project is not archived")
            return []
        model.set_status("restoring project")
        return [request(REQ_RESTORE_PROJECT, project_id=project.id)]
    if key == "X":
        model.mode = ConfirmMode(
            kind=CONFIRM_DELETE_PROJECT,
            label="delete project",
            title=project.name,
            project_id=project.id,
            previous=mode,
        )
        model.set_status("confirm action")
        return []
    return []


# --------------------------------------------------------- resource picker


def _listing_request(mode: ResourcePickerMode, directory: str) -> Request:
    mode.directory = directory
    mode.loading = True
    mode.index = 0
    mode.filter.clear()
    return request(REQ_LIST_DIRECTORY, root=mode.root, directory=directory)


def open_resource_picker(model, task_id: str, previous=None) -> List[Request]:
    root = model.options.project_root(model.project_slug)
    if not root:
        model.set_status(NO_ROOT_MESSAGE)
        return []
    mode = ResourcePickerMode(
        root=root,
        task_id=task_id,
        previous=previous if previous is not None else NormalMode(),
    )
    model.mode = mode
    model.set_status("loading directory")
    return [_listing_request(mode, root)]


def apply_directory_listed(model, msg: DirectoryListedMsg) -> List[Request]:
    mode = model.mode
    if not isinstance(mode, ResourcePickerMode) or mode.directory != msg.directory:
        return []
    mode.loading = False
    if msg.err:
        model.set_error(msg.err)
        return []
    mode.entries = list(msg.entries)
    mode.index = 0
    model.set_status(os.path.relpath(mode.directory, mode.root) if mode.directory != mode.root else "project root")
    return []


def visible_entries(mode: ResourcePickerMode) -> List[ResourceEntry]:
    return filter_entries(mode.entries, mode.filter.value)


def _close(model, mode: ResourcePickerMode) -> None:
    model.mode = mode.previous if mode.previous is not None else NormalMode()


def _go_parent(model, mode: ResourcePickerMode) -> List[Request]:
    if os.path.normpath(mode.directory) == os.path.normpath(mode.root):
        model.set_status("already at project root")
        return []
    try:
        parent = parent_directory(mode.root, mode.directory)
    except PathSandboxError as exc:
        model.set_error(str(exc))
        return []
    return [_listing_request(mode, parent)]


def attach_path(model, mode: ResourcePickerMode, path: str) -> List[Request]:
    """Stage the ref on the originating form, or save it on the task."""
    try:
        ref = build_resource_ref(mode.root, path)
    except PathSandboxError as exc:
        model.set_status(str(exc))
        return []
    if isinstance(mode.previous, TaskFormMode):
        form = mode.previous
        refs = add_resource_ref(form.resource_refs, ref)
        _close(model, mode)
        if len(refs) == len(form.resource_refs):
            model.set_status("resource already attached")
            return []
        form.resource_refs = refs
        model.set_status(f"resource staged: {ref.location}")
        return []
    task = model.task(mode.task_id)
    if task is None:
        _close(model, mode)
        model.set_status("task not found")
        return []
    refs = add_resource_ref(task.metadata.resource_refs, ref)
    if len(refs) == len(task.metadata.resource_refs):
        model.set_status("resource already attached")
        return []
    metadata = task.metadata.copy()
    metadata.resource_refs = refs
    after = task_field_snapshot(task)
    after["metadata"] = metadata
    _close(model, mode)
    model.set_status("attaching resource")
    return [
        request(
            REQ_ATTACH_RESOURCE,
            data=update_input_from_snapshot(task.id, after),
            before=task_field_snapshot(task),
            label="attach resource",
        )
    ]


def _attach_highlighted(model, mode: ResourcePickerMode) -> List[Request]:
    entries = visible_entries(mode)
    if not entries or entries[mode.index].name == PARENT_ENTRY:
        return attach_path(model, mode, mode.directory)
    return attach_path(model, mode, entries[mode.index].path)


def handle_resource_picker_key(model, key: str) -> List[Request]:
    """Typing filters; single-letter commands only act on an empty filter."""
    mode: ResourcePickerMode = model.mode
    entries = visible_entries(mode)
    filtering = bool(mode.filter.value)
    if key == "esc":
        _close(model, mode)
        model.set_status("resource picker closed")
        return []
    if key == "down" or (key == "j" and not filtering):
        mode.index = move_index(mode.index, 1, len(entries))
        return []
    if key == "up" or (key == "k" and not filtering):
        mode.index = move_index(mode.index, -1, len(entries))
        return []
    if key == "ctrl+a" or (key == "a" and not filtering):
        return _attach_highlighted(model, mode)
    if key == "backspace" and not filtering:
        return _go_parent(model, mode)
    if key == "enter":
        if not entries:
            return []
        entry = entries[clamp_index(mode.index, len(entries))]
        if entry.name == PARENT_ENTRY:
            return _go_parent(model, mode)
        if entry.is_dir:
            return [_listing_request(mode, entry.path)]
        return attach_path(model, mode, entry.path)
    if mode.filter.handle_key(key):
        mode.index = clamp_index(mode.index, len(visible_entries(mode)))
    return []


__all__ = [
    "open_project_picker",
    "select_project",
    "handle_project_picker_key",
    "open_resource_picker",
    "apply_directory_listed",
    "visible_entries",
    "attach_path",
    "handle_resource_picker_key",
]
