"""Board model: the single state value threaded through `update`."""

import copy
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional, Set

from config import BoardOptions
from core import Column, DependencyRollup, Project, Task
from core.board.application.activity import ActivityEntry, append_activity
from core.board.application.history import HistoryManager
from core.board.application.projection import index_tasks, tasks_for_column

from .tui_modes import NormalMode


@dataclass
class BoardModel:
    options: BoardOptions = field(default_factory=BoardOptions)
    config_path: str = ""
    projects: List[Project] = field(default_factory=list)
    project_index: int = 0
    columns: List[Column] = field(default_factory=list)
    tasks: List[Task] = field(default_factory=list)
    rollup: DependencyRollup = field(default_factory=DependencyRollup)
    selected_column: int = 0
    selected_task: Dict[str, int] = field(default_factory=dict)
    selected_task_ids: Set[str] = field(default_factory=set)
    projection_root: str = ""
    show_archived: bool = False
    search_query: str = ""
    search_states: List[str] = field(default_factory=list)
    search_cross_project: bool = False
    search_include_archived: bool = False
    show_help: bool = False
    mode: Any = field(default_factory=NormalMode)
    history: HistoryManager = field(default_factory=HistoryManager)
    activity: List[ActivityEntry] = field(default_factory=list)
    status: str = ""
    error: str = ""
    width: int = 100
    height: int = 30
    loading: bool = False
    ready: bool = False
    pending_focus_task_id: str = ""
    last_archived_task_id: str = ""
    pending_history: int = 0
    history_ticket: int = 0

    def copy(self) -> "BoardModel":
        """Shallow copy with private copies of every mutable container.

        Snapshot lists (projects, columns, tasks) are only ever replaced, so
        they are shared; the mode is deep-copied because handlers edit it.
        """
        return replace(
            self,
            selected_task=dict(self.selected_task),
            selected_task_ids=set(self.selected_task_ids),
            search_states=list(self.search_states),
            mode=copy.deepcopy(self.mode),
            history=self.history.copy(),
            activity=list(self.activity),
        )

    # ------------------------------------------------------------ snapshot

    def current_project(self) -> Optional[Project]:
        if 0 <= self.project_index < len(self.projects):
            return self.projects[self.project_index]
        return None

    @property
    def project_id(self) -> str:
        project = self.current_project()
        return project.id if project else ""

    @property
    def project_slug(self) -> str:
        project = self.current_project()
        return project.slug if project else ""

    def tasks_by_id(self) -> Dict[str, Task]:
        return index_tasks(self.tasks)

    def task(self, task_id: str) -> Optional[Task]:
        for task in self.tasks:
            if task.id == task_id:
                return task
        return None

    def current_column(self) -> Optional[Column]:
        if 0 <= self.selected_column < len(self.columns):
            return self.columns[self.selected_column]
        return None

    def column_index(self, column_id: str) -> int:
        for idx, column in enumerate(self.columns):
            if column.id == column_id:
                return idx
        return -1

    def _matches_query(self, task: Task) -> bool:
        needle = self.search_query.strip().lower()
        if not needle:
            return True
        haystack = " ".join([task.id, task.title, task.description, " ".join(task.labels)]).lower()
        return needle in haystack

    def column_tasks(self, column_id: str) -> List[Task]:
        """Visible cards of one column: projection first, then archived and query filters."""
        cards = tasks_for_column(self.tasks, column_id, self.projection_root, self.options.group_by)
        return [task for task in cards if (self.show_archived or not task.is_archived) and self._matches_query(task)]

    def selected_task_index(self, column_id: str) -> int:
        return self.selected_task.get(column_id, 0)

    def selected_task_in_column(self) -> Optional[Task]:
        column = self.current_column()
        if column is None:
            return None
        items = self.column_tasks(column.id)
        if not items:
            return None
        idx = max(0, min(self.selected_task_index(column.id), len(items) - 1))
        return items[idx]

    def selected_task_ids_ordered(self) -> List[str]:
        """Multi-selection in board order (column, then row)."""
        out: List[str] = []
        for column in self.columns:
            for task in self.column_tasks(column.id):
                if task.id in self.selected_task_ids:
                    out.append(task.id)
        known = {task.id for task in self.tasks}
        for task_id in sorted(self.selected_task_ids):
            if task_id not in out and task_id in known:
                out.append(task_id)
        return out

    def action_task_ids(self) -> List[str]:
        """Multi-selection when present, else the highlighted task."""
        if self.selected_task_ids:
            return self.selected_task_ids_ordered()
        task = self.selected_task_in_column()
        return [task.id] if task else []

    # ----------------------------------------------------------- mutation

    def set_status(self, status: str) -> None:
        self.status = status
        self.error = ""

    def set_error(self, err: str) -> None:
        self.error = err
        self.status = f"error: {err}" if err else ""

    def log_activity(self, summary: str, target: str = "-") -> None:
        self.activity = append_activity(self.activity, ActivityEntry(summary=summary, target=target or "-"))

    def clamp_selections(self) -> None:
        if not self.columns:
            self.selected_column = 0
            return
        self.selected_column = max(0, min(self.selected_column, len(self.columns) - 1))
        for column in self.columns:
            count = len(self.column_tasks(column.id))
            idx = self.selected_task.get(column.id, 0)
            self.selected_task[column.id] = 0 if count == 0 else max(0, min(idx, count - 1))

    def focus_task(self, task_id: str) -> bool:
        """Point the board selection at `task_id` when it is visible."""
        task = self.task(task_id)
        if task is None:
            return False
        col_idx = self.column_index(task.column_id)
        if col_idx < 0:
            return False
        for row, item in enumerate(self.column_tasks(task.column_id)):
            if item.id == task_id:
                self.selected_column = col_idx
                self.selected_task[task.column_id] = row
                return True
        return False

    def prune_selection(self) -> None:
        known = {task.id for task in self.tasks}
        self.selected_task_ids = {task_id for task_id in self.selected_task_ids if task_id in known}

    def move_task_selection(self, delta: int) -> None:
        column = self.current_column()
        if column is None:
            return
        count = len(self.column_tasks(column.id))
        if count == 0:
            self.selected_task[column.id] = 0
            return
        idx = self.selected_task_index(column.id) + delta
        self.selected_task[column.id] = max(0, min(idx, count - 1))

    def move_column_selection(self, delta: int) -> None:
        if not self.columns:
            return
        self.selected_column = max(0, min(self.selected_column + delta, len(self.columns) - 1))


__all__ = ["BoardModel"]
