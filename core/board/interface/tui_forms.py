"""Form field parsing for task/project forms.

Empty input keeps the current value, "-" clears it. Every parser raises
FormError with the message shown verbatim in the status line.
"""

from datetime import datetime, timedelta, timezone
from typing import Iterable, List, Optional, Sequence

from application.ports import CreateProjectInput, CreateTaskInput, UpdateProjectInput, UpdateTaskInput
from core import PRIORITIES, ProjectMetadata, Task, TaskMetadata
from core.project import Project
from core.task import ResourceRef

from .tui_text_input import TextInput

CLEAR_TOKEN = "-"
DUE_FORMAT_ERROR = "due date must be YYYY-MM-DD, YYYY-MM-DDTHH:MM, RFC3339, or -"
PRIORITY_ERROR = "priority must be low|medium|high"

TASK_FORM_FIELDS = (
    "title",
    "description",
    "priority",
    "due",
    "labels",
    "depends_on",
    "blocked_by",
    "blocked_reason",
)
FIELD_TITLE = 0
FIELD_DESCRIPTION = 1
FIELD_PRIORITY = 2
FIELD_DUE = 3
FIELD_LABELS = 4
FIELD_DEPENDS_ON = 5
FIELD_BLOCKED_BY = 6
FIELD_BLOCKED_REASON = 7

PROJECT_FORM_FIELDS = ("name", "description", "owner", "icon", "color", "homepage", "tags", "root_path")
PROJECT_FIELD_NAME = 0
PROJECT_FIELD_ROOT = 7

_DUE_LAYOUTS = ("%Y-%m-%d %H:%M", "%Y-%m-%dT%H:%M", "%Y-%m-%d")


class FormError(ValueError):
    pass


def parse_due_input(raw: str, current: Optional[datetime] = None) -> Optional[datetime]:
    """Parse a due value into an aware UTC datetime.

    Date-only and minute layouts are read in local time; RFC3339 must carry
    an offset.
    """
    text = (raw or "").strip()
    if not text:
        return current
    if text == CLEAR_TOKEN:
        return None
    for layout in _DUE_LAYOUTS:
        try:
            parsed = datetime.strptime(text, layout)
        except ValueError:
            continue
        return parsed.astimezone(timezone.utc)
    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00").replace("z", "+00:00"))
    except ValueError:
        raise FormError(DUE_FORMAT_ERROR) from None
    if parsed.tzinfo is None:
        raise FormError(DUE_FORMAT_ERROR)
    return parsed.astimezone(timezone.utc)


def format_due_value(due: Optional[datetime]) -> str:
    if due is None:
        return ""
    local = due.astimezone()
    if local.hour == 0 and local.minute == 0:
        return local.strftime("%Y-%m-%d")
    return local.strftime("%Y-%m-%d %H:%M")


def parse_priority(raw: str, current: str = "medium") -> str:
    text = (raw or "").strip().lower()
    if not text:
        return current or "medium"
    if text not in PRIORITIES:
        raise FormError(PRIORITY_ERROR)
    return text


def cycle_priority(current: str, delta: int) -> str:
    value = (current or "").strip().lower()
    idx = PRIORITIES.index(value) if value in PRIORITIES else PRIORITIES.index("medium")
    return PRIORITIES[(idx + delta) % len(PRIORITIES)]


def split_csv(raw: str) -> List[str]:
    return [part.strip() for part in (raw or "").split(",") if part.strip()]


def parse_labels_input(raw: str, current: Sequence[str] = ()) -> List[str]:
    text = (raw or "").strip()
    if not text:
        return list(current)
    if text == CLEAR_TOKEN:
        return []
    out: List[str] = []
    for label in split_csv(text):
        if label not in out:
            out.append(label)
    return out


def parse_task_ref_ids(raw: str, current: Sequence[str] = ()) -> List[str]:
    """CSV of task ids, deduplicated case-insensitively (first spelling kept)."""
    text = (raw or "").strip()
    if not text:
        return list(current)
    if text == CLEAR_TOKEN:
        return []
    out: List[str] = []
    seen = set()
    for ref in split_csv(text):
        if ref.lower() in seen:
            continue
        seen.add(ref.lower())
        out.append(ref)
    return out


def validate_allowed_labels(labels: Iterable[str], allowed: Sequence[str], enforce: bool) -> None:
    if not enforce or not allowed:
        return
    allowed_set = {label.lower() for label in allowed}
    rejected = [label for label in labels if label.lower() not in allowed_set]
    if rejected:
        raise FormError("labels not allowed: " + ", ".join(rejected))


def current_label_token(raw: str) -> str:
    """Partial label after the last comma, used for inline suggestions."""
    return (raw or "").rsplit(",", 1)[-1].strip()


def append_csv_value(raw: str, value: str) -> str:
    """Add `value` to a CSV field unless present (case-insensitive)."""
    items = split_csv(raw)
    if value.lower() in {item.lower() for item in items}:
        return ", ".join(items)
    return ", ".join(items + [value])


def replace_last_token(raw: str, value: str) -> str:
    head = (raw or "").rsplit(",", 1)
    items = split_csv(head[0]) if len(head) == 2 else []
    if value.lower() not in {item.lower() for item in items}:
        items.append(value)
    return ", ".join(items)


# --------------------------------------------------------------- due picker

DUE_PICKER_OPTIONS = ("none", "today", "tomorrow", "next week", "two weeks", "custom")
DUE_PICKER_CUSTOM = "custom"


def due_picker_value(option: str, now: Optional[datetime] = None) -> str:
    """Form text for a due picker option; custom yields an empty string."""
    now = (now or datetime.now()).astimezone()
    day = now.date()
    offsets = {"today": 0, "tomorrow": 1, "next week": 7, "two weeks": 14}
    if option == "none":
        return CLEAR_TOKEN
    if option in offsets:
        return (day + timedelta(days=offsets[option])).strftime("%Y-%m-%d")
    return ""


# ------------------------------------------------------------------ inputs


def task_form_inputs(task: Optional[Task] = None) -> List[TextInput]:
    inputs = [
        TextInput(placeholder="title"),
        TextInput(placeholder="description"),
        TextInput(placeholder="medium"),
        TextInput(placeholder="YYYY-MM-DD or -"),
        TextInput(placeholder="csv labels"),
        TextInput(placeholder="csv task ids"),
        TextInput(placeholder="csv task ids"),
        TextInput(placeholder="reason"),
    ]
    if task is not None:
        inputs[FIELD_TITLE].set_value(task.title)
        inputs[FIELD_DESCRIPTION].set_value(task.description)
        inputs[FIELD_PRIORITY].set_value(task.priority)
        inputs[FIELD_DUE].set_value(format_due_value(task.due_at))
        inputs[FIELD_LABELS].set_value(", ".join(task.labels))
        inputs[FIELD_DEPENDS_ON].set_value(", ".join(task.metadata.depends_on))
        inputs[FIELD_BLOCKED_BY].set_value(", ".join(task.metadata.blocked_by))
        inputs[FIELD_BLOCKED_REASON].set_value(task.metadata.blocked_reason)
    return inputs


def _form_metadata(inputs: List[TextInput], base: TaskMetadata, refs: Sequence[ResourceRef]) -> TaskMetadata:
    metadata = base.copy()
    metadata.depends_on = parse_task_ref_ids(inputs[FIELD_DEPENDS_ON].value, base.depends_on)
    metadata.blocked_by = parse_task_ref_ids(inputs[FIELD_BLOCKED_BY].value, base.blocked_by)
    reason = inputs[FIELD_BLOCKED_REASON].value.strip()
    if reason == CLEAR_TOKEN:
        reason = ""
    metadata.blocked_reason = reason
    metadata.resource_refs = list(refs) if refs else metadata.resource_refs
    return metadata


def build_create_input(
    inputs: List[TextInput],
    project_id: str,
    column_id: str,
    parent_id: str = "",
    kind: str = "task",
    allowed_labels: Sequence[str] = (),
    enforce_labels: bool = False,
) -> CreateTaskInput:
    title = inputs[FIELD_TITLE].value.strip()
    if not title:
        raise FormError("title required")
    labels = parse_labels_input(inputs[FIELD_LABELS].value)
    validate_allowed_labels(labels, allowed_labels, enforce_labels)
    return CreateTaskInput(
        project_id=project_id,
        column_id=column_id,
        title=title,
        parent_id=parent_id,
        kind=kind,
        description=inputs[FIELD_DESCRIPTION].value.strip(),
        priority=parse_priority(inputs[FIELD_PRIORITY].value),
        due_at=parse_due_input(inputs[FIELD_DUE].value),
        labels=labels,
        metadata=_form_metadata(inputs, TaskMetadata(), ()),
    )


def build_update_input(
    inputs: List[TextInput],
    task: Task,
    refs: Sequence[ResourceRef] = (),
    allowed_labels: Sequence[str] = (),
    enforce_labels: bool = False,
) -> UpdateTaskInput:
    title = inputs[FIELD_TITLE].value.strip() or task.title
    description = inputs[FIELD_DESCRIPTION].value.strip()
    if description == CLEAR_TOKEN:
        description = ""
    labels = parse_labels_input(inputs[FIELD_LABELS].value, task.labels)
    validate_allowed_labels(labels, allowed_labels, enforce_labels)
    return UpdateTaskInput(
        task_id=task.id,
        title=title,
        description=description,
        priority=parse_priority(inputs[FIELD_PRIORITY].value, task.priority),
        due_at=parse_due_input(inputs[FIELD_DUE].value, task.due_at),
        labels=labels,
        metadata=_form_metadata(inputs, task.metadata, refs),
    )


def project_form_inputs(project: Optional[Project] = None, root_path: str = "") -> List[TextInput]:
    inputs = [TextInput(placeholder=name) for name in PROJECT_FORM_FIELDS]
    inputs[PROJECT_FIELD_ROOT].placeholder = "absolute path (optional)"
    if project is not None:
        meta = project.metadata
        values = [
            project.name,
            project.description,
            meta.owner,
            meta.icon,
            meta.color,
            meta.homepage,
            ", ".join(meta.tags),
            root_path,
        ]
        for field_input, value in zip(inputs, values):
            field_input.set_value(value)
    else:
        inputs[PROJECT_FIELD_ROOT].set_value(root_path)
    return inputs


def _project_fields(inputs: List[TextInput]):
    name = inputs[PROJECT_FIELD_NAME].value.strip()
    if not name:
        raise FormError("project name required")
    values = [field_input.value.strip() for field_input in inputs]
    metadata = ProjectMetadata(
        owner=values[2],
        icon=values[3],
        color=values[4],
        homepage=values[5],
        tags=parse_labels_input(values[6]),
    )
    return name, values[1], metadata


def build_project_create_input(inputs: List[TextInput]) -> CreateProjectInput:
    name, description, metadata = _project_fields(inputs)
    return CreateProjectInput(name=name, description=description, metadata=metadata)


def build_project_update_input(inputs: List[TextInput], project_id: str) -> UpdateProjectInput:
    name, description, metadata = _project_fields(inputs)
    return UpdateProjectInput(project_id=project_id, name=name, description=description, metadata=metadata)


__all__ = [
    "FormError",
    "CLEAR_TOKEN",
    "DUE_FORMAT_ERROR",
    "PRIORITY_ERROR",
    "TASK_FORM_FIELDS",
    "PROJECT_FORM_FIELDS",
    "DUE_PICKER_OPTIONS",
    "parse_due_input",
    "format_due_value",
    "parse_priority",
    "cycle_priority",
    "split_csv",
    "parse_labels_input",
    "parse_task_ref_ids",
    "validate_allowed_labels",
    "current_label_token",
    "append_csv_value",
    "replace_last_token",
    "due_picker_value",
    "task_form_inputs",
    "build_create_input",
    "build_update_input",
    "project_form_inputs",
    "build_project_create_input",
    "build_project_update_input",
]
