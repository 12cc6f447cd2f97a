from .status import CANONICAL_STATES, canonical_state_id, normalize_lifecycle_state
from .task import (
    Task,
    TaskMetadata,
    ResourceRef,
    WORK_KINDS,
    PRIORITIES,
    KIND_BRANCH,
    KIND_PHASE,
    KIND_SUBPHASE,
    KIND_TASK,
    KIND_SUBTASK,
    kind_allows_parent,
    child_kind_for,
    order_tasks_by_hierarchy,
    utc_now,
)
from .project import (
    Project,
    ProjectMetadata,
    Column,
    Comment,
    ChangeEvent,
    DependencyRollup,
    TaskMatch,
    slugify,
)
from .dependency_validator import (
    open_dependencies,
    compute_dependency_rollup,
)

__all__ = [
    "CANONICAL_STATES",
    "canonical_state_id",
    "normalize_lifecycle_state",
    # Work items
    "Task",
    "TaskMetadata",
    "ResourceRef",
    "WORK_KINDS",
    "PRIORITIES",
    "KIND_BRANCH",
    "KIND_PHASE",
    "KIND_SUBPHASE",
    "KIND_TASK",
    "KIND_SUBTASK",
    "kind_allows_parent",
    "child_kind_for",
    "order_tasks_by_hierarchy",
    "utc_now",
    # Projects
    "Project",
    "ProjectMetadata",
    "Column",
    "Comment",
    "ChangeEvent",
    "DependencyRollup",
    "TaskMatch",
    "slugify",
    # Dependencies
    "open_dependencies",
    "compute_dependency_rollup",
]
