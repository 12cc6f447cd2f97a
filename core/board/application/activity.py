"""In-memory activity log entries and change-event mapping."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, List

from core import ChangeEvent, utc_now
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

ACTIVITY_LOG_MAX_ITEMS = 200

_SUMMARIES = {
    OP_CREATE_TASK: "create task",
    OP_UPDATE_TASK: "update task",
    OP_MOVE_TASK: "move task",
    OP_RENAME_TASK: "rename task",
    OP_ARCHIVE_TASK: "archive task",
    OP_RESTORE_TASK: "restore task",
    OP_DELETE_TASK: "delete task",
    OP_CREATE_COMMENT: "comment",
}


@dataclass
class ActivityEntry:
    summary: str
    target: str = "-"
    at: datetime = field(default_factory=utc_now)


def append_activity(log: List[ActivityEntry], entry: ActivityEntry, limit: int = ACTIVITY_LOG_MAX_ITEMS) -> List[ActivityEntry]:
    """Return a new log with `entry` appended, evicting oldest entries past `limit`."""
    if not entry.summary.strip():
        return list(log)
    if not entry.target.strip():
        entry = ActivityEntry(entry.summary, "-", entry.at)
    out = list(log) + [entry]
    if len(out) > limit:
        out = out[-limit:]
    return out


def entry_from_change_event(event: ChangeEvent) -> ActivityEntry:
    summary = _SUMMARIES.get(event.operation, "update task")
    target = str(event.metadata.get("title") or "").strip() or event.work_item_id.strip() or "-"
    return ActivityEntry(summary=summary, target=target, at=event.occurred_at)


def entries_from_change_events(events: Iterable[ChangeEvent], limit: int = ACTIVITY_LOG_MAX_ITEMS) -> List[ActivityEntry]:
    """Map newest-first service events to a chronological log."""
    entries = [entry_from_change_event(event) for event in reversed(list(events))]
    if len(entries) > limit:
        entries = entries[-limit:]
    return entries


def format_activity_timestamp(at: datetime) -> str:
    return at.astimezone().strftime("%H:%M:%S")


__all__ = [
    "ACTIVITY_LOG_MAX_ITEMS",
    "ActivityEntry",
    "append_activity",
    "entry_from_change_event",
    "entries_from_change_events",
    "format_activity_timestamp",
]
