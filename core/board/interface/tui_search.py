"""Search form, results list and jump-to-match."""

from typing import List

from application.ports import SearchQuery
from core import TaskMatch
from core.status import is_known_state, normalize_lifecycle_state

from .tui_actions import reload_request
from .tui_forms import split_csv
from .tui_models import Request, SearchResultsMsg, request
from .tui_modes import (
    SEARCH_FIELD_APPLY,
    SEARCH_FIELD_ARCHIVED,
    SEARCH_FIELD_QUERY,
    SEARCH_FIELD_SCOPE,
    SEARCH_FIELD_STATES,
    SEARCH_FIELDS,
    NormalMode,
    SearchMode,
    SearchResultsMode,
)
from .tui_navigation import move_index
from .tui_requests import REQ_SEARCH


def open_search(model, cross_project: bool = None) -> List[Request]:
    mode = SearchMode(
        cross_project=model.search_cross_project if cross_project is None else cross_project,
        include_archived=model.search_include_archived,
    )
    mode.query.set_value(model.search_query)
    mode.states.set_value(", ".join(model.search_states))
    model.mode = mode
    model.set_status("search all projects" if mode.cross_project else "search")
    return []


def reset_filters(model) -> List[Request]:
    model.search_states = list(model.options.search_states)
    model.search_cross_project = model.options.search_cross_project
    model.search_include_archived = model.options.search_include_archived
    model.search_query = ""
    if isinstance(model.mode, SearchMode):
        model.mode.query.clear()
        model.mode.states.set_value(", ".join(model.search_states))
        model.mode.cross_project = model.search_cross_project
        model.mode.include_archived = model.search_include_archived
    model.clamp_selections()
    model.set_status("filters reset")
    return []


def _parse_states(raw: str) -> List[str]:
    states = []
    for token in split_csv(raw):
        if not is_known_state(token):
            raise ValueError(f"unknown state: {token}")
        state = normalize_lifecycle_state(token)
        if state not in states:
            states.append(state)
    return states


def run_search(model) -> List[Request]:
    mode: SearchMode = model.mode
    try:
        states = _parse_states(mode.states.value)
    except ValueError as exc:
        model.set_status(str(exc))
        return []
    model.search_query = mode.query.value.strip()
    model.search_states = states
    model.search_cross_project = mode.cross_project
    model.search_include_archived = mode.include_archived
    model.clamp_selections()
    model.mode = SearchResultsMode()
    model.set_status("searching")
    query = SearchQuery(
        query=model.search_query,
        project_id=model.project_id,
        cross_project=mode.cross_project,
        include_archived=mode.include_archived,
        states=list(states),
    )
    return [request(REQ_SEARCH, query=query)]


def handle_search_key(model, key: str) -> List[Request]:
    mode: SearchMode = model.mode
    if key == "esc":
        model.mode = NormalMode()
        model.set_status("cancelled")
        return []
    if key == "enter":
        return run_search(model)
    if key == "ctrl+p":
        mode.cross_project = not mode.cross_project
        model.set_status("scope: all projects" if mode.cross_project else "scope: current project")
        return []
    if key == "ctrl+a":
        mode.include_archived = not mode.include_archived
        model.set_status("archived: included" if mode.include_archived else "archived: excluded")
        return []
    if key == "ctrl+u":
        mode.query.clear()
        model.set_status("query cleared")
        return []
    if key == "ctrl+r":
        return reset_filters(model)
    if key in ("tab", "down"):
        mode.focus = (mode.focus + 1) % len(SEARCH_FIELDS)
        return []
    if key in ("shift+tab", "up"):
        mode.focus = (mode.focus - 1) % len(SEARCH_FIELDS)
        return []
    if mode.focus == SEARCH_FIELD_QUERY:
        mode.query.handle_key(key)
    elif mode.focus == SEARCH_FIELD_STATES:
        mode.states.handle_key(key)
    elif key == "space":
        if mode.focus == SEARCH_FIELD_SCOPE:
            mode.cross_project = not mode.cross_project
        elif mode.focus == SEARCH_FIELD_ARCHIVED:
            mode.include_archived = not mode.include_archived
        elif mode.focus == SEARCH_FIELD_APPLY:
            return run_search(model)
    return []


def apply_search_results(model, msg: SearchResultsMsg) -> List[Request]:
    if not isinstance(model.mode, SearchResultsMode):
        return []
    model.mode.loading = False
    if msg.err:
        model.set_error(msg.err)
        return []
    model.mode.matches = list(msg.matches)
    model.mode.index = 0
    count = len(msg.matches)
    model.set_status(f"{count} matches" if count else "no matches")
    return []


def jump_to_match(model, match: TaskMatch) -> List[Request]:
    """Close search and point the board at `match`, switching project if needed."""
    task = match.task
    model.mode = NormalMode()
    model.search_query = ""
    model.projection_root = ""
    # cards live on their parent's board level
    if task.parent_id:
        model.projection_root = task.parent_id
    if task.is_archived:
        model.show_archived = True
    if match.project.id != model.project_id:
        model.set_status(f"opening {match.project.name}")
        return [reload_request(model, focus_task_id=task.id, project_id=match.project.id)]
    model.set_status(f"jumped to {task.title}")
    if task.is_archived:
        return [reload_request(model, focus_task_id=task.id)]
    model.clamp_selections()
    if not model.focus_task(task.id):
        model.pending_focus_task_id = task.id
    return []


def handle_search_results_key(model, key: str) -> List[Request]:
    mode: SearchResultsMode = model.mode
    if key in ("esc", "q"):
        model.mode = NormalMode()
        model.set_status("search closed")
        return []
    if key in ("j", "down"):
        mode.index = move_index(mode.index, 1, len(mode.matches))
    elif key in ("k", "up"):
        mode.index = move_index(mode.index, -1, len(mode.matches))
    elif key == "/":
        return open_search(model)
    elif key == "enter" and mode.matches:
        return jump_to_match(model, mode.matches[mode.index])
    return []


__all__ = [
    "open_search",
    "reset_filters",
    "run_search",
    "handle_search_key",
    "apply_search_results",
    "jump_to_match",
    "handle_search_results_key",
]
