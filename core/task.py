from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple

from .status import canonical_state_id


KIND_BRANCH = "branch"
KIND_PHASE = "phase"
KIND_SUBPHASE = "subphase"
KIND_TASK = "task"
KIND_SUBTASK = "subtask"

WORK_KINDS: Tuple[str, ...] = (KIND_BRANCH, KIND_PHASE, KIND_SUBPHASE, KIND_TASK, KIND_SUBTASK)

SCOPE_PROJECT = "project"

# "" stands for a top-level item (no parent task).
ALLOWED_PARENT_KINDS: Dict[str, Tuple[str, ...]] = {
    KIND_BRANCH: ("",),
    KIND_PHASE: ("", KIND_BRANCH),
    KIND_SUBPHASE: (KIND_PHASE, KIND_SUBPHASE),
    KIND_TASK: ("", KIND_BRANCH, KIND_PHASE, KIND_SUBPHASE),
    KIND_SUBTASK: (KIND_TASK, KIND_SUBTASK),
}

PRIORITY_LOW = "low"
PRIORITY_MEDIUM = "medium"
PRIORITY_HIGH = "high"
PRIORITIES: Tuple[str, ...] = (PRIORITY_LOW, PRIORITY_MEDIUM, PRIORITY_HIGH)

PATH_MODE_RELATIVE = "relative"
PATH_MODE_ABSOLUTE = "absolute"
BASE_ALIAS_PROJECT_ROOT = "project_root"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def normalize_kind(value: str) -> str:
    kind = (value or "").strip().lower()
    if not kind:
        return KIND_TASK
    if kind not in WORK_KINDS:
        raise ValueError(f"Invalid work kind: {value!r}")
    return kind


def scope_for_kind(kind: str) -> str:
    """Scope tag mirroring a work kind."""
    return normalize_kind(kind)


def kind_allows_parent(kind: str, parent_kind: str) -> bool:
    return (parent_kind or "") in ALLOWED_PARENT_KINDS.get(normalize_kind(kind), ())


_CHILD_KIND = {
    KIND_BRANCH: KIND_PHASE,
    KIND_PHASE: KIND_TASK,
    KIND_SUBPHASE: KIND_TASK,
    KIND_TASK: KIND_SUBTASK,
    KIND_SUBTASK: KIND_SUBTASK,
}


def child_kind_for(parent_kind: str) -> str:
    """Kind given to a new child created under `parent_kind`."""
    return _CHILD_KIND.get(normalize_kind(parent_kind), KIND_SUBTASK)


@dataclass
class ResourceRef:
    location: str
    path_mode: str = PATH_MODE_RELATIVE
    base_alias: str = BASE_ALIAS_PROJECT_ROOT
    title: str = ""

    def key(self) -> Tuple[str, str, str]:
        return (self.path_mode, self.base_alias, self.location)


@dataclass
class TaskMetadata:
    depends_on: List[str] = field(default_factory=list)
    blocked_by: List[str] = field(default_factory=list)
    blocked_reason: str = ""
    resource_refs: List[ResourceRef] = field(default_factory=list)

    def copy(self) -> "TaskMetadata":
        return TaskMetadata(
            depends_on=list(self.depends_on),
            blocked_by=list(self.blocked_by),
            blocked_reason=self.blocked_reason,
            resource_refs=[ResourceRef(r.location, r.path_mode, r.base_alias, r.title) for r in self.resource_refs],
        )


@dataclass
class Task:
    id: str
    project_id: str
    column_id: str
    title: str
    position: int = 0
    parent_id: str = ""
    kind: str = KIND_TASK
    scope: str = ""
    lifecycle_state: str = "todo"
    description: str = ""
    priority: str = PRIORITY_MEDIUM
    due_at: Optional[datetime] = None
    labels: List[str] = field(default_factory=list)
    metadata: TaskMetadata = field(default_factory=TaskMetadata)
    created_at: datetime = field(default_factory=utc_now)
    updated_at: Optional[datetime] = None
    archived_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        self.kind = normalize_kind(self.kind)
        if not self.scope:
            self.scope = scope_for_kind(self.kind)
        if self.scope != scope_for_kind(self.kind):
            raise ValueError(f"Scope {self.scope!r} does not match kind {self.kind!r} for task {self.id}")
        if self.kind == KIND_SUBTASK and not self.parent_id:
            raise ValueError(f"Subtask {self.id} requires a parent task")

    @property
    def is_archived(self) -> bool:
        return self.archived_at is not None

    @property
    def state_id(self) -> str:
        return canonical_state_id(self.lifecycle_state, self.is_archived)


def task_sort_key(task: Task) -> Tuple[datetime, int, str]:
    return (task.created_at, task.position, task.id)


def order_tasks_by_hierarchy(tasks: List[Task]) -> List[Task]:
    """Order tasks so every parent precedes its children (depth-first).

    Siblings keep created_at/position/id order; tasks whose parent is not in
    the list are treated as roots.
    """
    by_id = {t.id: t for t in tasks}
    children: Dict[str, List[Task]] = {}
    roots: List[Task] = []
    for task in tasks:
        if task.parent_id and task.parent_id in by_id and task.parent_id != task.id:
            children.setdefault(task.parent_id, []).append(task)
        else:
            roots.append(task)
    out: List[Task] = []
    visited = set()

    def visit(task: Task) -> None:
        if task.id in visited:
            return
        visited.add(task.id)
        out.append(task)
        for child in sorted(children.get(task.id, []), key=task_sort_key):
            visit(child)

    for root in sorted(roots, key=task_sort_key):
        visit(root)
    # Parent cycles in corrupt data: keep the leftovers instead of dropping them.
    for task in sorted(tasks, key=task_sort_key):
        visit(task)
    return out


__all__ = [
    "KIND_BRANCH",
    "KIND_PHASE",
    "KIND_SUBPHASE",
    "KIND_TASK",
    "KIND_SUBTASK",
    "WORK_KINDS",
    "SCOPE_PROJECT",
    "ALLOWED_PARENT_KINDS",
    "PRIORITIES",
    "PRIORITY_LOW",
    "PRIORITY_MEDIUM",
    "PRIORITY_HIGH",
    "PATH_MODE_RELATIVE",
    "PATH_MODE_ABSOLUTE",
    "BASE_ALIAS_PROJECT_ROOT",
    "ResourceRef",
    "TaskMetadata",
    "Task",
    "utc_now",
    "normalize_kind",
    "scope_for_kind",
    "kind_allows_parent",
    "child_kind_for",
    "task_sort_key",
    "order_tasks_by_hierarchy",
]
