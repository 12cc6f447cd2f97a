import itertools
import logging
import threading
from dataclasses import replace
from typing import Dict, Iterable, List, Optional

from application.ports import (
    DELETE_MODE_ARCHIVE,
    DELETE_MODE_HARD,
    BoardService,
    CreateCommentInput,
    CreateProjectInput,
    CreateTaskInput,
    NotFoundError,
    SearchQuery,
    UpdateProjectInput,
    UpdateTaskInput,
    ValidationError,
)
from core import (
    ChangeEvent,
    Column,
    Comment,
    DependencyRollup,
    Project,
    Task,
    TaskMatch,
    compute_dependency_rollup,
    kind_allows_parent,
    slugify,
    utc_now,
)
from core.project import (
    OP_ARCHIVE_TASK,
    OP_CREATE_COMMENT,
    OP_CREATE_TASK,
    OP_DELETE_TASK,
    OP_MOVE_TASK,
    OP_RENAME_TASK,
    OP_RESTORE_TASK,
    OP_UPDATE_TASK,
)
from core.task import PRIORITIES

logger = logging.getLogger("kanboard.service")

DEFAULT_COLUMNS = ("To Do", "In Progress", "Done")
_STATE_BY_COLUMN = {0: "todo", 1: "progress", 2: "done"}


class InMemoryBoardService(BoardService):
    """Process-local board store.

    Backs the demo launcher and the tests; every mutation records a change
    event so the activity log has persisted history to show.
    """

    def __init__(
        self,
        projects: Iterable[Project] = (),
        columns: Iterable[Column] = (),
        tasks: Iterable[Task] = (),
        actor: str = "",
    ):
        self._lock = threading.RLock()
        self._projects: Dict[str, Project] = {p.id: p for p in projects}
        self._columns: Dict[str, Column] = {c.id: c for c in columns}
        self._tasks: Dict[str, Task] = {t.id: t for t in tasks}
        self._comments: List[Comment] = []
        self._events: List[ChangeEvent] = []
        self._ids = itertools.count(1)
        self.actor = actor
        self.fail_with: Optional[Exception] = None

    def _next_id(self, prefix: str) -> str:
        while True:
            candidate = f"{prefix}-{next(self._ids)}"
            if candidate not in self._tasks and candidate not in self._projects and candidate not in self._columns:
                return candidate

    def _check_failure(self) -> None:
        if self.fail_with is not None:
            raise self.fail_with

    def _record(self, project_id: str, operation: str, work_item_id: str = "", **metadata) -> None:
        self._events.append(
            ChangeEvent(
                id=self._next_id("ev"),
                project_id=project_id,
                operation=operation,
                work_item_id=work_item_id,
                actor=self.actor,
                metadata=metadata,
            )
        )

    def _project(self, project_id: str) -> Project:
        project = self._projects.get(project_id)
        if project is None:
            raise NotFoundError(f"project not found: {project_id}")
        return project

    def _task(self, task_id: str) -> Task:
        task = self._tasks.get(task_id)
        if task is None:
            raise NotFoundError(f"task not found: {task_id}")
        return task

    def _column_tasks(self, column_id: str, exclude: str = "") -> List[Task]:
        items = [t for t in self._tasks.values() if t.column_id == column_id and t.id != exclude and not t.is_archived]
        return sorted(items, key=lambda t: (t.position, t.created_at, t.id))

    def _renumber(self, ordered: List[Task]) -> None:
        for idx, item in enumerate(ordered):
            if item.position != idx:
                self._tasks[item.id] = replace(item, position=idx)

    def _state_for_column(self, column_id: str, current: str) -> str:
        column = self._columns.get(column_id)
        if column is None:
            return current
        return _STATE_BY_COLUMN.get(column.position, current)

    # ------------------------------------------------------------------ reads

    def list_projects(self, include_archived: bool = False) -> List[Project]:
        with self._lock:
            self._check_failure()
            items = [p for p in self._projects.values() if include_archived or not p.is_archived]
            return sorted(items, key=lambda p: (p.created_at, p.id))

    def list_columns(self, project_id: str, include_archived: bool = False) -> List[Column]:
        with self._lock:
            self._check_failure()
            items = [
                c for c in self._columns.values()
                if c.project_id == project_id and (include_archived or c.archived_at is None)
            ]
            return sorted(items, key=lambda c: (c.position, c.id))

    def list_tasks(self, project_id: str, include_archived: bool = False) -> List[Task]:
        with self._lock:
            self._check_failure()
            items = [
                t for t in self._tasks.values()
                if t.project_id == project_id and (include_archived or not t.is_archived)
            ]
            return sorted(items, key=lambda t: (t.created_at, t.position, t.id))

    def search_task_matches(self, query: SearchQuery) -> List[TaskMatch]:
        with self._lock:
            self._check_failure()
            needle = query.query.strip().lower()
            states = {s.strip().lower() for s in query.states if s.strip()}
            matches: List[TaskMatch] = []
            for task in sorted(self._tasks.values(), key=lambda t: (t.created_at, t.position, t.id)):
                if not query.cross_project and query.project_id and task.project_id != query.project_id:
                    continue
                if task.is_archived and not query.include_archived:
                    continue
                project = self._projects.get(task.project_id)
                if project is None:
                    continue
                state = task.state_id
                if states and state not in states and not (state == "archived" and query.include_archived):
                    continue
                if needle:
                    haystack = " ".join([task.id, task.title, task.description, " ".join(task.labels)]).lower()
                    if needle not in haystack:
                        continue
                matches.append(TaskMatch(project=project, task=task))
                if query.limit and len(matches) >= query.limit:
                    break
            return matches

    def list_comments_by_target(self, project_id: str, target_type: str, target_id: str) -> List[Comment]:
        with self._lock:
            self._check_failure()
            return [
                c for c in self._comments
                if c.project_id == project_id and c.target_type == target_type and c.target_id == target_id
            ]

    def list_project_change_events(self, project_id: str, limit: int) -> List[ChangeEvent]:
        with self._lock:
            self._check_failure()
            events = [e for e in reversed(self._events) if e.project_id == project_id]
            if limit > 0:
                events = events[:limit]
            return events

    def get_project_dependency_rollup(self, project_id: str) -> DependencyRollup:
        with self._lock:
            self._check_failure()
            self._project(project_id)
            return compute_dependency_rollup(t for t in self._tasks.values() if t.project_id == project_id)

    # -------------------------------------------------------------- mutations

    def create_task(self, data: CreateTaskInput) -> Task:
        with self._lock:
            self._check_failure()
            self._project(data.project_id)
            if data.column_id not in self._columns:
                raise NotFoundError(f"column not found: {data.column_id}")
            if not data.title.strip():
                raise ValidationError("title is required")
            if data.priority not in PRIORITIES:
                raise ValidationError(f"invalid priority: {data.priority}")
            parent_kind = ""
            if data.parent_id:
                parent_kind = self._task(data.parent_id).kind
            if not kind_allows_parent(data.kind, parent_kind):
                raise ValidationError(f"kind {data.kind} cannot be placed under {parent_kind or 'project root'}")
            task = Task(
                id=self._next_id("t"),
                project_id=data.project_id,
                column_id=data.column_id,
                position=len(self._column_tasks(data.column_id)),
                title=data.title.strip(),
                parent_id=data.parent_id,
                kind=data.kind,
                lifecycle_state=self._state_for_column(data.column_id, "todo"),
                description=data.description,
                priority=data.priority,
                due_at=data.due_at,
                labels=list(data.labels),
                metadata=data.metadata.copy(),
            )
            self._tasks[task.id] = task
            self._record(task.project_id, OP_CREATE_TASK, task.id, title=task.title)
            logger.debug("created task %s", task.id)
            return task

    def update_task(self, data: UpdateTaskInput) -> Task:
        with self._lock:
            self._check_failure()
            task = self._task(data.task_id)
            if data.priority not in PRIORITIES:
                raise ValidationError(f"invalid priority: {data.priority}")
            metadata = data.metadata.copy() if data.metadata is not None else task.metadata
            metadata.depends_on = [ref for ref in metadata.depends_on if ref != task.id]
            metadata.blocked_by = [ref for ref in metadata.blocked_by if ref != task.id]
            updated = replace(
                task,
                title=data.title.strip() or task.title,
                description=data.description,
                priority=data.priority,
                due_at=data.due_at,
                labels=list(data.labels),
                metadata=metadata,
                updated_at=utc_now(),
            )
            self._tasks[task.id] = updated
            self._record(task.project_id, OP_UPDATE_TASK, task.id, title=updated.title)
            return updated

    def move_task(self, task_id: str, to_column_id: str, position: int) -> Task:
        with self._lock:
            self._check_failure()
            task = self._task(task_id)
            column = self._columns.get(to_column_id)
            if column is None or column.project_id != task.project_id:
                raise NotFoundError(f"column not found: {to_column_id}")
            siblings = self._column_tasks(to_column_id, exclude=task.id)
            position = max(0, min(position, len(siblings)))
            moved = replace(
                task,
                column_id=to_column_id,
                position=position,
                lifecycle_state=self._state_for_column(to_column_id, task.lifecycle_state),
                updated_at=utc_now(),
            )
            self._tasks[task.id] = moved
            if task.column_id != to_column_id:
                self._renumber(self._column_tasks(task.column_id))
            self._renumber(siblings[:position] + [moved] + siblings[position:])
            self._record(task.project_id, OP_MOVE_TASK, task.id, title=task.title, to_column=column.name)
            return self._tasks[task.id]

    def rename_task(self, task_id: str, title: str) -> Task:
        with self._lock:
            self._check_failure()
            task = self._task(task_id)
            if not title.strip():
                raise ValidationError("title is required")
            renamed = replace(task, title=title.strip(), updated_at=utc_now())
            self._tasks[task.id] = renamed
            self._record(task.project_id, OP_RENAME_TASK, task.id, title=renamed.title)
            return renamed

    def delete_task(self, task_id: str, mode: str) -> None:
        with self._lock:
            self._check_failure()
            task = self._task(task_id)
            if mode == DELETE_MODE_ARCHIVE:
                self._tasks[task.id] = replace(task, archived_at=utc_now(), updated_at=utc_now())
                self._renumber(self._column_tasks(task.column_id))
                self._record(task.project_id, OP_ARCHIVE_TASK, task.id, title=task.title)
            elif mode == DELETE_MODE_HARD:
                del self._tasks[task.id]
                self._renumber(self._column_tasks(task.column_id))
                self._record(task.project_id, OP_DELETE_TASK, task.id, title=task.title)
            else:
                raise ValidationError(f"invalid delete mode: {mode}")

    def restore_task(self, task_id: str) -> Task:
        with self._lock:
            self._check_failure()
            task = self._task(task_id)
            if not task.is_archived:
                raise ValidationError(f"task is not archived: {task_id}")
            siblings = self._column_tasks(task.column_id, exclude=task.id)
            position = max(0, min(task.position, len(siblings)))
            restored = replace(task, archived_at=None, position=position, updated_at=utc_now())
            self._tasks[task.id] = restored
            self._renumber(siblings[:position] + [restored] + siblings[position:])
            self._record(task.project_id, OP_RESTORE_TASK, task.id, title=task.title)
            return self._tasks[task.id]

    def create_project(self, data: CreateProjectInput) -> Project:
        with self._lock:
            self._check_failure()
            if not data.name.strip():
                raise ValidationError("project name is required")
            project = Project(
                id=self._next_id("p"),
                name=data.name.strip(),
                slug=slugify(data.name),
                description=data.description,
                metadata=data.metadata,
            )
            self._projects[project.id] = project
            for idx, name in enumerate(DEFAULT_COLUMNS):
                column = Column(id=self._next_id("c"), project_id=project.id, name=name, position=idx)
                self._columns[column.id] = column
            return project

    def update_project(self, data: UpdateProjectInput) -> Project:
        with self._lock:
            self._check_failure()
            project = self._project(data.project_id)
            updated = replace(project, name=data.name.strip() or project.name, description=data.description, metadata=data.metadata)
            self._projects[project.id] = updated
            return updated

    def archive_project(self, project_id: str) -> Project:
        with self._lock:
            self._check_failure()
            project = replace(self._project(project_id), archived_at=utc_now())
            self._projects[project_id] = project
            return project

    def restore_project(self, project_id: str) -> Project:
        with self._lock:
            self._check_failure()
            project = replace(self._project(project_id), archived_at=None)
            self._projects[project_id] = project
            return project

    def delete_project(self, project_id: str) -> None:
        with self._lock:
            self._check_failure()
            self._project(project_id)
            del self._projects[project_id]
            self._columns = {k: c for k, c in self._columns.items() if c.project_id != project_id}
            self._tasks = {k: t for k, t in self._tasks.items() if t.project_id != project_id}

    def create_comment(self, data: CreateCommentInput) -> Comment:
        with self._lock:
            self._check_failure()
            self._project(data.project_id)
            if not data.body.strip():
                raise ValidationError("comment body is required")
            comment = Comment(
                id=self._next_id("cm"),
                project_id=data.project_id,
                target_type=data.target_type,
                target_id=data.target_id,
                body=data.body.strip(),
                author=data.author or self.actor,
            )
            self._comments.append(comment)
            self._record(data.project_id, OP_CREATE_COMMENT, data.target_id)
            return comment


def seed_demo_service(actor: str = "") -> InMemoryBoardService:
    """Small hierarchical board for the launcher's --demo flag."""
    service = InMemoryBoardService(actor=actor)
    project = service.create_project(CreateProjectInput(name="Inbox", description="Demo board"))
    columns = service.list_columns(project.id)
    todo, progress = columns[0].id, columns[1].id
    branch = service.create_task(CreateTaskInput(project.id, todo, "Release 1.0", kind="branch"))
    phase = service.create_task(CreateTaskInput(project.id, todo, "Design", kind="phase", parent_id=branch.id, labels=["design"]))
    service.create_task(CreateTaskInput(project.id, todo, "Wireframes", parent_id=phase.id, priority="high"))
    build = service.create_task(CreateTaskInput(project.id, progress, "Build board view", labels=["ui"]))
    service.create_task(CreateTaskInput(project.id, progress, "Column layout", kind="subtask", parent_id=build.id))
    return service


__all__ = ["InMemoryBoardService", "seed_demo_service", "DEFAULT_COLUMNS"]
