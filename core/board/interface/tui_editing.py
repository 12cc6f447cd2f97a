"""Form-bearing modes: task add/edit, rename, project form, due and label
pickers, and the small config editors (labels, highlight color, project
root, identity)."""

from typing import List, Optional, Tuple

from config import is_valid_color
from core import Task, child_kind_for
from core.board.application.history import task_field_snapshot
from core.board.application.labels import label_sources_for_task, merge_label_sources, unique_labels

from .tui_forms import (
    DUE_PICKER_CUSTOM,
    DUE_PICKER_OPTIONS,
    FIELD_BLOCKED_BY,
    FIELD_DEPENDS_ON,
    FIELD_DUE,
    FIELD_LABELS,
    FIELD_PRIORITY,
    FormError,
    append_csv_value,
    build_create_input,
    build_project_create_input,
    build_project_update_input,
    build_update_input,
    current_label_token,
    cycle_priority,
    due_picker_value,
    project_form_inputs,
    replace_last_token,
    split_csv,
    task_form_inputs,
)
from .tui_models import Request, request
from .tui_modes import (
    AddTaskMode,
    BootstrapSettingsMode,
    DuePickerMode,
    EditTaskMode,
    HighlightColorMode,
    LabelPickerMode,
    LabelsConfigMode,
    NormalMode,
    PathsRootsMode,
    ProjectFormMode,
    RenameMode,
    TaskFormMode,
)
from .tui_navigation import move_index
from .tui_requests import (
    REQ_CREATE_PROJECT,
    REQ_CREATE_TASK,
    REQ_RENAME_TASK,
    REQ_SAVE_HIGHLIGHT_COLOR,
    REQ_SAVE_IDENTITY,
    REQ_SAVE_LABELS,
    REQ_SAVE_PROJECT_ROOT,
    REQ_UPDATE_PROJECT,
    REQ_UPDATE_TASK,
)
from .tui_resources import PathSandboxError, normalize_project_root_input


def _close(model, status: str = "") -> None:
    model.mode = NormalMode()
    if status:
        model.set_status(status)


# --------------------------------------------------------------- task form


def open_add_task(model, parent: Optional[Task] = None) -> List[Request]:
    """New task in the current column; under `parent` or the focus root."""
    if model.current_project() is None:
        model.set_status("no project selected")
        return []
    column = model.current_column()
    if parent is None and model.projection_root:
        parent = model.task(model.projection_root)
    if parent is not None:
        column_id = parent.column_id if column is None else column.id
        kind = child_kind_for(parent.kind)
    elif column is not None:
        column_id = column.id
        kind = "task"
    else:
        model.set_status("no column available")
        return []
    model.mode = AddTaskMode(
        inputs=task_form_inputs(),
        project_id=model.project_id,
        column_id=column_id,
        parent_id=parent.id if parent else "",
        kind=kind,
    )
    model.set_status(f"new {kind}" if parent else "new task")
    return []


def open_add_subtask(model, parent: Optional[Task] = None) -> List[Request]:
    parent = parent or model.selected_task_in_column()
    if parent is None:
        model.set_status("no task selected")
        return []
    open_add_task(model, parent)
    if isinstance(model.mode, AddTaskMode):
        model.mode.column_id = parent.column_id
    return []


def open_edit_task(model, task: Optional[Task] = None) -> List[Request]:
    task = task or model.selected_task_in_column()
    if task is None:
        model.set_status("no task selected")
        return []
    model.mode = EditTaskMode(
        inputs=task_form_inputs(task),
        task_id=task.id,
        resource_refs=list(task.metadata.resource_refs),
    )
    model.set_status("edit task")
    return []


def _form_context_task(model, form: TaskFormMode) -> Optional[Task]:
    if isinstance(form, EditTaskMode):
        return model.task(form.task_id)
    if isinstance(form, AddTaskMode) and form.parent_id:
        return model.task(form.parent_id)
    return None


def inherited_labels(model, form: TaskFormMode) -> List[str]:
    sources = label_sources_for_task(
        _form_context_task(model, form),
        model.tasks_by_id(),
        model.options.global_labels,
        model.options.labels_for_project(model.project_slug),
    )
    return merge_label_sources(sources)


def label_suggestions(model, form: TaskFormMode) -> List[str]:
    """Inherited and allowed labels matching the partial token being typed."""
    token = current_label_token(form.inputs[FIELD_LABELS].value).lower()
    present = {label.lower() for label in split_csv(form.inputs[FIELD_LABELS].value)}
    pool = unique_labels(inherited_labels(model, form), model.options.allowed_labels(model.project_slug))
    out = []
    for label in pool:
        if label.lower() in present and label.lower() != token:
            continue
        if token and not label.lower().startswith(token):
            continue
        out.append(label)
    return out


def label_picker_options(model, form: TaskFormMode) -> List[Tuple[str, str]]:
    sources = label_sources_for_task(
        _form_context_task(model, form),
        model.tasks_by_id(),
        model.options.global_labels,
        model.options.labels_for_project(model.project_slug),
    )
    options: List[Tuple[str, str]] = []
    seen = set()
    for label, source in sources.tagged():
        if label.lower() not in seen:
            seen.add(label.lower())
            options.append((label, source))
    for label in model.options.allowed_labels(model.project_slug):
        if label.lower() not in seen:
            seen.add(label.lower())
            options.append((label, "allowed"))
    return options


def _submit_task_form(model, form: TaskFormMode) -> List[Request]:
    allowed = model.options.allowed_labels(model.project_slug)
    enforce = model.options.enforce_allowed_labels
    if isinstance(form, AddTaskMode):
        try:
            data = build_create_input(
                form.inputs,
                form.project_id,
                form.column_id,
                parent_id=form.parent_id,
                kind=form.kind,
                allowed_labels=allowed,
                enforce_labels=enforce,
            )
        except FormError as exc:
            if str(exc) == "title required":
                _close(model, str(exc))
            else:
                model.set_status(str(exc))
            return []
        _close(model, "creating task")
        status = "subtask created" if form.parent_id else "task created"
        return [request(REQ_CREATE_TASK, data=data, status=status)]

    task = model.task(form.task_id)
    if task is None:
        _close(model, "task not found")
        return []
    try:
        data = build_update_input(form.inputs, task, form.resource_refs, allowed, enforce)
    except FormError as exc:
        model.set_status(str(exc))
        return []
    _close(model, "saving task")
    return [request(REQ_UPDATE_TASK, data=data, before=task_field_snapshot(task), label="edit task")]


def _accept_label_suggestion(model, form: TaskFormMode) -> bool:
    field_input = form.inputs[FIELD_LABELS]
    if not current_label_token(field_input.value):
        return False
    suggestions = label_suggestions(model, form)
    if not suggestions:
        return False
    field_input.set_value(replace_last_token(field_input.value, suggestions[0]))
    return True


def handle_task_form_key(model, key: str) -> List[Request]:
    from .tui_dependency_inspector import open_inspector_from_form
    from .tui_pickers import open_resource_picker

    form: TaskFormMode = model.mode
    total = len(form.inputs)
    if key == "esc":
        _close(model, "cancelled")
        return []
    if key == "enter":
        return _submit_task_form(model, form)
    if key == "tab":
        if form.focus == FIELD_LABELS and _accept_label_suggestion(model, form):
            return []
        form.focus = (form.focus + 1) % total
        return []
    if key == "shift+tab":
        form.focus = (form.focus - 1) % total
        return []
    if key in ("down", "up"):
        form.focus = (form.focus + (1 if key == "down" else -1)) % total
        return []
    if form.focus == FIELD_PRIORITY and key in ("left", "right"):
        current = form.inputs[FIELD_PRIORITY].value or "medium"
        form.inputs[FIELD_PRIORITY].set_value(cycle_priority(current, 1 if key == "right" else -1))
        return []
    if key == "ctrl+d" and form.focus == FIELD_DUE:
        model.mode = DuePickerMode(form=form)
        model.set_status("pick due date")
        return []
    if key == "ctrl+l" and form.focus == FIELD_LABELS:
        options = label_picker_options(model, form)
        if not options:
            model.set_status("no labels to pick")
            return []
        model.mode = LabelPickerMode(options=options, form=form)
        model.set_status("pick label")
        return []
    if key == "ctrl+o" and form.focus in (FIELD_DEPENDS_ON, FIELD_BLOCKED_BY):
        return open_inspector_from_form(model, form)
    if key == "ctrl+r":
        if not isinstance(form, EditTaskMode):
            model.set_status("save the task before attaching resources")
            return []
        return open_resource_picker(model, form.task_id, previous=form)
    form.inputs[form.focus].handle_key(key)
    return []


# ------------------------------------------------------------ due / labels


def handle_due_picker_key(model, key: str) -> List[Request]:
    mode: DuePickerMode = model.mode
    if key == "esc":
        model.mode = mode.form
        return []
    if key in ("j", "down"):
        mode.index = move_index(mode.index, 1, len(DUE_PICKER_OPTIONS))
    elif key in ("k", "up"):
        mode.index = move_index(mode.index, -1, len(DUE_PICKER_OPTIONS))
    elif key == "enter":
        form = mode.form
        option = DUE_PICKER_OPTIONS[mode.index]
        form.focus = FIELD_DUE
        if option != DUE_PICKER_CUSTOM:
            form.inputs[FIELD_DUE].set_value(due_picker_value(option))
            model.set_status(f"due: {option}")
        else:
            model.set_status("type a due date")
        model.mode = form
    return []


def handle_label_picker_key(model, key: str) -> List[Request]:
    mode: LabelPickerMode = model.mode
    if key == "esc":
        model.mode = mode.form
        return []
    if key in ("j", "down"):
        mode.index = move_index(mode.index, 1, len(mode.options))
    elif key in ("k", "up"):
        mode.index = move_index(mode.index, -1, len(mode.options))
    elif key == "enter" and mode.options:
        label = mode.options[mode.index][0]
        form = mode.form
        field_input = form.inputs[FIELD_LABELS]
        field_input.set_value(append_csv_value(field_input.value, label))
        form.focus = FIELD_LABELS
        model.mode = form
        model.set_status(f"label added: {label}")
    return []


# ------------------------------------------------------------------ rename


def open_rename(model, task: Optional[Task] = None) -> List[Request]:
    task = task or model.selected_task_in_column()
    if task is None:
        model.set_status("no task selected")
        return []
    mode = RenameMode(task_id=task.id)
    mode.input.set_value(task.title)
    model.mode = mode
    model.set_status("rename task")
    return []


def handle_rename_key(model, key: str) -> List[Request]:
    mode: RenameMode = model.mode
    if key == "esc":
        _close(model, "cancelled")
        return []
    if key != "enter":
        mode.input.handle_key(key)
        return []
    title = mode.input.value.strip()
    if not title:
        model.set_status("title required")
        return []
    task = model.task(mode.task_id)
    if task is None:
        _close(model, "task not found")
        return []
    _close(model, "renaming task")
    return [
        request(
            REQ_RENAME_TASK,
            task_id=task.id,
            title=title,
            before=task_field_snapshot(task),
            label="rename task",
        )
    ]


# ------------------------------------------------------------ project form


def open_project_form(model, editing: bool = False) -> List[Request]:
    project = model.current_project() if editing else None
    if editing and project is None:
        model.set_status("no project selected")
        return []
    root = model.options.project_root(project.slug) if project else ""
    model.mode = ProjectFormMode(
        project_id=project.id if project else "",
        inputs=project_form_inputs(project, root),
        previous=model.mode,
    )
    model.set_status("edit project" if project else "new project")
    return []


def handle_project_form_key(model, key: str) -> List[Request]:
    mode: ProjectFormMode = model.mode
    total = len(mode.inputs)
    if key == "esc":
        model.mode = mode.previous if mode.previous is not None else NormalMode()
        model.set_status("cancelled")
        return []
    if key in ("tab", "down"):
        mode.focus = (mode.focus + 1) % total
        return []
    if key in ("shift+tab", "up"):
        mode.focus = (mode.focus - 1) % total
        return []
    if key != "enter":
        mode.inputs[mode.focus].handle_key(key)
        return []
    try:
        root_path = normalize_project_root_input(mode.inputs[-1].value)
        if mode.editing:
            data = build_project_update_input(mode.inputs, mode.project_id)
        else:
            data = build_project_create_input(mode.inputs)
    except (FormError, PathSandboxError) as exc:
        model.set_status(str(exc))
        return []
    _close(model, "saving project")
    if mode.editing:
        return [request(REQ_UPDATE_PROJECT, data=data, root_path=root_path)]
    return [request(REQ_CREATE_PROJECT, data=data, root_path=root_path)]


# ---------------------------------------------------------- config editors


def open_labels_config(model) -> List[Request]:
    if model.current_project() is None:
        model.set_status("no project selected")
        return []
    mode = LabelsConfigMode(slug=model.project_slug)
    mode.global_input.set_value(", ".join(model.options.global_labels))
    mode.project_input.set_value(", ".join(model.options.labels_for_project(model.project_slug)))
    model.mode = mode
    model.set_status("labels config")
    return []


def handle_labels_config_key(model, key: str) -> List[Request]:
    mode: LabelsConfigMode = model.mode
    if key == "esc":
        _close(model, "cancelled")
        return []
    if key in ("tab", "shift+tab", "up", "down"):
        mode.focus = 1 - mode.focus
        return []
    if key != "enter":
        (mode.global_input if mode.focus == 0 else mode.project_input).handle_key(key)
        return []
    if not mode.slug.strip():
        model.set_status("project slug is empty")
        return []
    _close(model, "saving labels")
    return [
        request(
            REQ_SAVE_LABELS,
            slug=mode.slug,
            global_labels=split_csv(mode.global_input.value),
            project_labels=split_csv(mode.project_input.value),
        )
    ]


def open_highlight_color(model) -> List[Request]:
    mode = HighlightColorMode()
    mode.input.set_value(model.options.highlight_color)
    model.mode = mode
    model.set_status("highlight color")
    return []


def handle_highlight_color_key(model, key: str) -> List[Request]:
    mode: HighlightColorMode = model.mode
    if key == "esc":
        _close(model, "cancelled")
        return []
    if key != "enter":
        mode.input.handle_key(key)
        return []
    color = mode.input.value.strip()
    if not is_valid_color(color):
        model.set_status(f"invalid color: {color or '(empty)'}")
        return []
    _close(model, "saving highlight color")
    return [request(REQ_SAVE_HIGHLIGHT_COLOR, color=color)]


def open_paths_roots(model) -> List[Request]:
    if model.current_project() is None:
        model.set_status("no project selected")
        return []
    mode = PathsRootsMode(slug=model.project_slug)
    mode.input.set_value(model.options.project_root(model.project_slug))
    model.mode = mode
    model.set_status("project root")
    return []


def handle_paths_roots_key(model, key: str) -> List[Request]:
    mode: PathsRootsMode = model.mode
    if key == "esc":
        _close(model, "cancelled")
        return []
    if key != "enter":
        mode.input.handle_key(key)
        return []
    if not mode.slug.strip():
        model.set_status("project slug is empty")
        return []
    try:
        root = normalize_project_root_input(mode.input.value)
    except PathSandboxError as exc:
        model.set_status(str(exc))
        return []
    _close(model, "saving project root")
    return [request(REQ_SAVE_PROJECT_ROOT, slug=mode.slug, root=root)]


def open_bootstrap_settings(model) -> List[Request]:
    mode = BootstrapSettingsMode()
    mode.input.set_value(model.options.display_name)
    model.mode = mode
    model.set_status("identity settings")
    return []


def handle_bootstrap_key(model, key: str) -> List[Request]:
    mode: BootstrapSettingsMode = model.mode
    if key == "esc":
        if model.options.needs_bootstrap:
            model.set_status("display name is required")
            return []
        _close(model, "cancelled")
        return []
    if key != "enter":
        mode.input.handle_key(key)
        return []
    name = mode.input.value.strip()
    if not name:
        model.set_status("display name is required")
        return []
    model.set_status("saving settings")
    return [request(REQ_SAVE_IDENTITY, display_name=name)]


__all__ = [
    "open_add_task",
    "open_add_subtask",
    "open_edit_task",
    "inherited_labels",
    "label_suggestions",
    "label_picker_options",
    "handle_task_form_key",
    "handle_due_picker_key",
    "handle_label_picker_key",
    "open_rename",
    "handle_rename_key",
    "open_project_form",
    "handle_project_form_key",
    "open_labels_config",
    "handle_labels_config_key",
    "open_highlight_color",
    "handle_highlight_color_key",
    "open_paths_roots",
    "handle_paths_roots_key",
    "open_bootstrap_settings",
    "handle_bootstrap_key",
]
