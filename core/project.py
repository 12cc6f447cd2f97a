from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from .task import Task, utc_now


# Change event operations
OP_CREATE_TASK = "create_task"
OP_UPDATE_TASK = "update_task"
OP_MOVE_TASK = "move_task"
OP_RENAME_TASK = "rename_task"
OP_ARCHIVE_TASK = "archive_task"
OP_RESTORE_TASK = "restore_task"
OP_DELETE_TASK = "delete_task"
OP_CREATE_COMMENT = "create_comment"

# Comment targets
TARGET_TASK = "task"
TARGET_PROJECT = "project"


@dataclass
class ProjectMetadata:
    owner: str = ""
    icon: str = ""
    color: str = ""
    homepage: str = ""
    tags: List[str] = field(default_factory=list)


@dataclass
class Project:
    id: str
    name: str
    slug: str = ""
    description: str = ""
    metadata: ProjectMetadata = field(default_factory=ProjectMetadata)
    created_at: datetime = field(default_factory=utc_now)
    archived_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        if not self.slug:
            self.slug = slugify(self.name)

    @property
    def is_archived(self) -> bool:
        return self.archived_at is not None


@dataclass
class Column:
    id: str
    project_id: str
    name: str
    position: int = 0
    wip_limit: int = 0
    archived_at: Optional[datetime] = None


@dataclass
class Comment:
    id: str
    project_id: str
    target_type: str
    target_id: str
    body: str
    author: str = ""
    created_at: datetime = field(default_factory=utc_now)


@dataclass
class ChangeEvent:
    """A persisted mutation record for a project (newest-first from the service)."""

    id: str
    project_id: str
    operation: str
    work_item_id: str = ""
    actor: str = ""
    metadata: dict = field(default_factory=dict)
    occurred_at: datetime = field(default_factory=utc_now)


@dataclass
class DependencyRollup:
    total_items: int = 0
    dependency_items: int = 0
    blocked_items: int = 0
    blocked_by_items: int = 0
    unresolved_dependency_edges: int = 0
    dependency_edges: int = 0

    def summary(self) -> str:
        return (
            f"deps: total {self.total_items} • blocked {self.blocked_items} • "
            f"unresolved {self.unresolved_dependency_edges} • edges {self.dependency_edges}"
        )


@dataclass
class TaskMatch:
    """One search hit: the task plus the project it belongs to."""

    project: Project
    task: Task

    @property
    def state_id(self) -> str:
        return self.task.state_id


def slugify(value: str) -> str:
    out = []
    dash = False
    for ch in (value or "").strip().lower():
        if ch.isalnum():
            out.append(ch)
            dash = False
        elif not dash and out:
            out.append("-")
            dash = True
    return "".join(out).strip("-")


__all__ = [
    "OP_CREATE_TASK",
    "OP_UPDATE_TASK",
    "OP_MOVE_TASK",
    "OP_RENAME_TASK",
    "OP_ARCHIVE_TASK",
    "OP_RESTORE_TASK",
    "OP_DELETE_TASK",
    "OP_CREATE_COMMENT",
    "TARGET_TASK",
    "TARGET_PROJECT",
    "ProjectMetadata",
    "Project",
    "Column",
    "Comment",
    "ChangeEvent",
    "DependencyRollup",
    "TaskMatch",
    "slugify",
]
