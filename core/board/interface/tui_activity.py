"""Activity log mode."""

from typing import List

from core.board.application.activity import ACTIVITY_LOG_MAX_ITEMS, ActivityEntry, entries_from_change_events

from .tui_models import ActivityLoadedMsg, Request, request
from .tui_modes import ActivityLogMode, NormalMode
from .tui_navigation import move_index
from .tui_requests import REQ_LOAD_ACTIVITY


def open_activity_log(model) -> List[Request]:
    model.mode = ActivityLogMode()
    if not model.project_id:
        model.mode.loading = False
        model.set_status("activity log")
        return []
    model.set_status("loading activity")
    return [request(REQ_LOAD_ACTIVITY, project_id=model.project_id, limit=ACTIVITY_LOG_MAX_ITEMS)]


def apply_activity_loaded(model, msg: ActivityLoadedMsg) -> List[Request]:
    """Replace the log with persisted events; keep the in-memory log on failure."""
    mode = model.mode
    if isinstance(mode, ActivityLogMode):
        mode.loading = False
        mode.index = 0
    if msg.err:
        model.set_status(f"activity log unavailable: {msg.err}")
        return []
    model.activity = entries_from_change_events(msg.events)
    model.set_status(f"{len(model.activity)} activity entries")
    return []


def activity_newest_first(model) -> List[ActivityEntry]:
    return list(reversed(model.activity))


def handle_activity_key(model, key: str) -> List[Request]:
    mode: ActivityLogMode = model.mode
    total = len(model.activity)
    if key in ("esc", "q", "g"):
        model.mode = NormalMode()
        model.set_status("activity log closed")
    elif key in ("j", "down"):
        mode.index = move_index(mode.index, 1, total)
    elif key in ("k", "up"):
        mode.index = move_index(mode.index, -1, total)
    elif key == "pgdown":
        mode.index = move_index(mode.index, 10, total)
    elif key == "pgup":
        mode.index = move_index(mode.index, -10, total)
    return []


__all__ = [
    "open_activity_log",
    "apply_activity_loaded",
    "activity_newest_first",
    "handle_activity_key",
]
