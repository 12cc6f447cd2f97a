from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Protocol

from core import ChangeEvent, Column, Comment, DependencyRollup, Project, ProjectMetadata, Task, TaskMatch, TaskMetadata


DELETE_MODE_ARCHIVE = "archive"
DELETE_MODE_HARD = "hard"
DELETE_MODES = (DELETE_MODE_ARCHIVE, DELETE_MODE_HARD)


class ServiceError(Exception):
    """Base error raised by a board service implementation."""


class NotFoundError(ServiceError):
    pass


class ValidationError(ServiceError):
    pass


@dataclass
class CreateTaskInput:
    project_id: str
    column_id: str
    title: str
    parent_id: str = ""
    kind: str = "task"
    description: str = ""
    priority: str = "medium"
    due_at: Optional[datetime] = None
    labels: List[str] = field(default_factory=list)
    metadata: TaskMetadata = field(default_factory=TaskMetadata)


@dataclass
class UpdateTaskInput:
    task_id: str
    title: str
    description: str = ""
    priority: str = "medium"
    due_at: Optional[datetime] = None
    labels: List[str] = field(default_factory=list)
    metadata: Optional[TaskMetadata] = None


@dataclass
class CreateProjectInput:
    name: str
    description: str = ""
    metadata: ProjectMetadata = field(default_factory=ProjectMetadata)


@dataclass
class UpdateProjectInput:
    project_id: str
    name: str
    description: str = ""
    metadata: ProjectMetadata = field(default_factory=ProjectMetadata)


@dataclass
class CreateCommentInput:
    project_id: str
    target_type: str
    target_id: str
    body: str
    author: str = ""


@dataclass
class SearchQuery:
    query: str = ""
    project_id: str = ""
    cross_project: bool = False
    include_archived: bool = False
    states: List[str] = field(default_factory=list)
    limit: int = 0


class BoardService(Protocol):
    def list_projects(self, include_archived: bool = False) -> List[Project]:
        ...

    def list_columns(self, project_id: str, include_archived: bool = False) -> List[Column]:
        ...

    def list_tasks(self, project_id: str, include_archived: bool = False) -> List[Task]:
        ...

    def search_task_matches(self, query: SearchQuery) -> List[TaskMatch]:
        ...

    def create_task(self, data: CreateTaskInput) -> Task:
        ...

    def update_task(self, data: UpdateTaskInput) -> Task:
        ...

    def move_task(self, task_id: str, to_column_id: str, position: int) -> Task:
        ...

    def rename_task(self, task_id: str, title: str) -> Task:
        ...

    def delete_task(self, task_id: str, mode: str) -> None:
        ...

    def restore_task(self, task_id: str) -> Task:
        ...

    def create_project(self, data: CreateProjectInput) -> Project:
        ...

    def update_project(self, data: UpdateProjectInput) -> Project:
        ...

    def archive_project(self, project_id: str) -> Project:
        ...

    def restore_project(self, project_id: str) -> Project:
        ...

    def delete_project(self, project_id: str) -> None:
        ...

    def create_comment(self, data: CreateCommentInput) -> Comment:
        ...

    def list_comments_by_target(self, project_id: str, target_type: str, target_id: str) -> List[Comment]:
        ...

    def list_project_change_events(self, project_id: str, limit: int) -> List[ChangeEvent]:
        ...

    def get_project_dependency_rollup(self, project_id: str) -> DependencyRollup:
        ...
