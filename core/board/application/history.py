"""Undo/redo history over composable action sets.

One user gesture produces one HistoryActionSet (possibly many steps, e.g. a
bulk move). Stacks are capped at MAX_HISTORY_SIZE with oldest-first eviction.
Steps are applied through the board service by the request runner; the
stacks only change once the whole set has been applied successfully.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from application.ports import DELETE_MODE_ARCHIVE, DELETE_MODE_HARD, UpdateTaskInput
from core import Task, TaskMetadata, utc_now

# History configuration
MAX_HISTORY_SIZE = 100

STEP_MOVE = "move"
STEP_ARCHIVE = "archive"
STEP_RESTORE = "restore"
STEP_HARD_DELETE = "hard-delete"
STEP_FIELD_UPDATE = "field-update"

UNDO = "undo"
REDO = "redo"


class HistoryError(Exception):
    pass


@dataclass
class HistoryStep:
    """Single primitive mutation with enough data to invert it."""

    kind: str
    task_id: str
    from_column_id: str = ""
    from_position: int = 0
    to_column_id: str = ""
    to_position: int = 0
    before: Optional[Dict[str, Any]] = None
    after: Optional[Dict[str, Any]] = None

    @property
    def reversible(self) -> bool:
        return self.kind != STEP_HARD_DELETE

    def inverted(self) -> "HistoryStep":
        if self.kind == STEP_MOVE:
            return HistoryStep(
                STEP_MOVE,
                self.task_id,
                from_column_id=self.to_column_id,
                from_position=self.to_position,
                to_column_id=self.from_column_id,
                to_position=self.from_position,
            )
        if self.kind == STEP_ARCHIVE:
            return HistoryStep(STEP_RESTORE, self.task_id)
        if self.kind == STEP_RESTORE:
            return HistoryStep(STEP_ARCHIVE, self.task_id)
        if self.kind == STEP_FIELD_UPDATE:
            return HistoryStep(STEP_FIELD_UPDATE, self.task_id, before=self.after, after=self.before)
        raise HistoryError(f"{self.kind} cannot be inverted")


@dataclass
class HistoryActionSet:
    """Ordered steps created atomically by one gesture."""

    label: str
    steps: List[HistoryStep]
    summary: str = ""
    target: str = ""
    undoable: bool = True
    id: int = 0
    at: datetime = field(default_factory=utc_now)

    @classmethod
    def build(cls, label: str, steps: List[HistoryStep], summary: str = "", target: str = "") -> "HistoryActionSet":
        undoable = all(step.reversible for step in steps)
        return cls(label=label, steps=list(steps), summary=summary, target=target, undoable=undoable)

    def undo_steps(self) -> List[HistoryStep]:
        """Inverted steps in reverse order."""
        if not self.undoable:
            raise HistoryError(f"{self.label} cannot be undone")
        return [step.inverted() for step in reversed(self.steps)]

    def redo_steps(self) -> List[HistoryStep]:
        return list(self.steps)


@dataclass
class HistoryPlan:
    """What undo/redo wants applied; empty steps means nothing to send."""

    direction: str
    action_set: Optional[HistoryActionSet] = None
    steps: List[HistoryStep] = field(default_factory=list)
    status: str = ""
    discarded: bool = False


@dataclass
class HistoryManager:
    """Undo and redo stacks; the top of each stack is the last element."""

    undo_stack: List[HistoryActionSet] = field(default_factory=list)
    redo_stack: List[HistoryActionSet] = field(default_factory=list)
    limit: int = MAX_HISTORY_SIZE
    next_id: int = 0

    def copy(self) -> "HistoryManager":
        return HistoryManager(list(self.undo_stack), list(self.redo_stack), self.limit, self.next_id)

    def can_undo(self) -> bool:
        return bool(self.undo_stack)

    def can_redo(self) -> bool:
        return bool(self.redo_stack)

    def _trim(self) -> None:
        if len(self.undo_stack) > self.limit:
            self.undo_stack = self.undo_stack[-self.limit:]

    def push(self, action_set: HistoryActionSet) -> None:
        """Record a new gesture and drop any redo history."""
        if not action_set.steps:
            return
        self.next_id += 1
        action_set.id = self.next_id
        self.undo_stack.append(action_set)
        self._trim()
        self.redo_stack = []

    def begin_undo(self) -> HistoryPlan:
        if not self.undo_stack:
            return HistoryPlan(UNDO, status="nothing to undo")
        top = self.undo_stack[-1]
        if not top.undoable:
            self.undo_stack.pop()
            return HistoryPlan(UNDO, action_set=top, status="last action cannot be undone", discarded=True)
        return HistoryPlan(UNDO, action_set=top, steps=top.undo_steps())

    def begin_redo(self) -> HistoryPlan:
        if not self.redo_stack:
            return HistoryPlan(REDO, status="nothing to redo")
        top = self.redo_stack[-1]
        return HistoryPlan(REDO, action_set=top, steps=top.redo_steps())

    def complete_undo(self, action_set: HistoryActionSet) -> None:
        """Shift a successfully undone set onto the redo stack."""
        if self.undo_stack and self.undo_stack[-1].id == action_set.id:
            self.undo_stack.pop()
        self.redo_stack.append(action_set)
        if len(self.redo_stack) > self.limit:
            self.redo_stack = self.redo_stack[-self.limit:]

    def complete_redo(self, action_set: HistoryActionSet) -> None:
        """Shift a successfully redone set back onto the undo stack."""
        if self.redo_stack and self.redo_stack[-1].id == action_set.id:
            self.redo_stack.pop()
        self.undo_stack.append(action_set)
        self._trim()


def task_field_snapshot(task: Task) -> Dict[str, Any]:
    """Editable fields of a task, as stored in field-update steps."""
    return {
        "title": task.title,
        "description": task.description,
        "priority": task.priority,
        "due_at": task.due_at,
        "labels": list(task.labels),
        "metadata": task.metadata.copy(),
    }


def update_input_from_snapshot(task_id: str, snapshot: Dict[str, Any]) -> UpdateTaskInput:
    metadata = snapshot.get("metadata")
    return UpdateTaskInput(
        task_id=task_id,
        title=snapshot.get("title", ""),
        description=snapshot.get("description", ""),
        priority=snapshot.get("priority", "medium"),
        due_at=snapshot.get("due_at"),
        labels=list(snapshot.get("labels") or []),
        metadata=copy.deepcopy(metadata) if isinstance(metadata, TaskMetadata) else None,
    )


def apply_step(service, step: HistoryStep) -> None:
    if step.kind == STEP_MOVE:
        service.move_task(step.task_id, step.to_column_id, step.to_position)
    elif step.kind == STEP_ARCHIVE:
        service.delete_task(step.task_id, DELETE_MODE_ARCHIVE)
    elif step.kind == STEP_RESTORE:
        service.restore_task(step.task_id)
    elif step.kind == STEP_HARD_DELETE:
        service.delete_task(step.task_id, DELETE_MODE_HARD)
    elif step.kind == STEP_FIELD_UPDATE:
        service.update_task(update_input_from_snapshot(step.task_id, step.after or {}))
    else:
        raise HistoryError(f"unknown history step kind: {step.kind}")


def apply_steps(service, steps: List[HistoryStep]) -> Tuple[bool, Optional[str], int]:
    """Apply steps in order, stopping at the first failure.

    Returns:
        (success, error_message, applied_count)
    """
    applied = 0
    for step in steps:
        try:
            apply_step(service, step)
        except Exception as exc:
            return False, str(exc) or exc.__class__.__name__, applied
        applied += 1
    return True, None, applied


def rollback_steps(service, applied: List[HistoryStep]) -> Optional[str]:
    """Revert already-applied steps after a failure, newest first.

    Returns an error message when the rollback itself could not finish.
    """
    for step in reversed(applied):
        if not step.reversible:
            return f"{step.kind} cannot be rolled back"
        try:
            apply_step(service, step.inverted())
        except Exception as exc:
            return str(exc) or exc.__class__.__name__
    return None


__all__ = [
    "MAX_HISTORY_SIZE",
    "STEP_MOVE",
    "STEP_ARCHIVE",
    "STEP_RESTORE",
    "STEP_HARD_DELETE",
    "STEP_FIELD_UPDATE",
    "UNDO",
    "REDO",
    "HistoryError",
    "HistoryStep",
    "HistoryActionSet",
    "HistoryPlan",
    "HistoryManager",
    "task_field_snapshot",
    "update_input_from_snapshot",
    "apply_step",
    "apply_steps",
    "rollback_steps",
]
