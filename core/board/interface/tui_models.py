"""TUI messages, request descriptors and the rendered view."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from prompt_toolkit.layout.controls import FormattedTextControl
from prompt_toolkit.mouse_events import MouseEvent

from core import ChangeEvent, Column, Comment, DependencyRollup, Project, Task, TaskMatch


# ----------------------------------------------------------------- input


@dataclass(frozen=True)
class KeyMsg:
    key: str


MOUSE_WHEEL_UP = "wheel_up"
MOUSE_WHEEL_DOWN = "wheel_down"
MOUSE_CLICK = "click"


@dataclass(frozen=True)
class MouseMsg:
    action: str
    x: int = 0
    y: int = 0


@dataclass(frozen=True)
class ResizeMsg:
    width: int
    height: int


# --------------------------------------------------------------- results


@dataclass
class BoardLoadedMsg:
    projects: List[Project] = field(default_factory=list)
    columns: List[Column] = field(default_factory=list)
    tasks: List[Task] = field(default_factory=list)
    rollup: DependencyRollup = field(default_factory=DependencyRollup)
    project_id: str = ""
    err: str = ""


@dataclass
class ActionResultMsg:
    status: str = ""
    err: str = ""
    reload: bool = False
    focus_task_id: str = ""
    project_id: str = ""
    clear_selection: bool = False
    clear_task_ids: Tuple[str, ...] = ()
    history_push: Any = None
    history_undo: Any = None
    history_redo: Any = None
    activity: Any = None
    options: Any = None
    next_mode: Any = None
    history_ticket: int = 0


@dataclass
class SearchResultsMsg:
    matches: List[TaskMatch] = field(default_factory=list)
    err: str = ""


@dataclass
class ActivityLoadedMsg:
    events: List[ChangeEvent] = field(default_factory=list)
    err: str = ""


@dataclass
class CommentsLoadedMsg:
    target_id: str
    comments: List[Comment] = field(default_factory=list)
    status: str = ""
    err: str = ""


@dataclass
class CandidatesLoadedMsg:
    owner_id: str
    matches: List[TaskMatch] = field(default_factory=list)
    known: Dict[str, TaskMatch] = field(default_factory=dict)
    err: str = ""


@dataclass
class DirectoryListedMsg:
    directory: str
    entries: List[Any] = field(default_factory=list)
    err: str = ""


@dataclass
class ConfigReloadedMsg:
    options: Any = None
    err: str = ""


RESULT_MESSAGES = (
    BoardLoadedMsg,
    ActionResultMsg,
    SearchResultsMsg,
    ActivityLoadedMsg,
    CommentsLoadedMsg,
    CandidatesLoadedMsg,
    DirectoryListedMsg,
    ConfigReloadedMsg,
)


# -------------------------------------------------------------- requests


@dataclass(frozen=True)
class Request:
    """Deferred work for the runner; never executed inside `update`."""

    kind: str
    params: Dict[str, Any] = field(default_factory=dict, compare=False, hash=False)

    def get(self, key: str, default: Any = None) -> Any:
        return self.params.get(key, default)

    def with_params(self, **params: Any) -> "Request":
        return Request(self.kind, {**self.params, **params})


def request(kind: str, **params: Any) -> Request:
    return Request(kind, dict(params))


# ------------------------------------------------------------------ view


@dataclass(frozen=True)
class View:
    content: str
    mouse_capture: bool = True


class InteractiveFormattedTextControl(FormattedTextControl):
    """FormattedTextControl that forwards mouse events to a custom handler."""

    def __init__(self, *args, mouse_handler=None, **kwargs):
        super().__init__(*args, **kwargs)
        self._external_mouse_handler = mouse_handler

    def mouse_handler(self, mouse_event: MouseEvent):
        if self._external_mouse_handler:
            result = self._external_mouse_handler(mouse_event)
            if result is not NotImplemented:
                return result
        return super().mouse_handler(mouse_event)


__all__ = [
    "KeyMsg",
    "MouseMsg",
    "ResizeMsg",
    "MOUSE_WHEEL_UP",
    "MOUSE_WHEEL_DOWN",
    "MOUSE_CLICK",
    "BoardLoadedMsg",
    "ActionResultMsg",
    "SearchResultsMsg",
    "ActivityLoadedMsg",
    "CommentsLoadedMsg",
    "CandidatesLoadedMsg",
    "DirectoryListedMsg",
    "ConfigReloadedMsg",
    "RESULT_MESSAGES",
    "Request",
    "request",
    "View",
    "InteractiveFormattedTextControl",
]
