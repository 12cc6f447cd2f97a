"""Interaction modes as a closed set of dataclasses.

Each mode carries only the sub-state it needs; switching modes replaces the
whole value so nothing leaks between them. Modes that return somewhere on
close keep the mode to return to in `previous`.
"""

from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, List, Optional, Tuple

from core import Task, TaskMatch
from core.task import ResourceRef
from core.board.application.dependency_candidates import FIELD_DEPENDS_ON, DependencyCandidate, DependencyDraft

from .tui_text_input import TextInput


@dataclass
class NormalMode:
    name: ClassVar[str] = "normal"


@dataclass
class TaskFormMode:
    name: ClassVar[str] = "task-form"

    inputs: List[TextInput] = field(default_factory=list)
    focus: int = 0
    resource_refs: List[ResourceRef] = field(default_factory=list)


@dataclass
class AddTaskMode(TaskFormMode):
    name: ClassVar[str] = "add-task"

    project_id: str = ""
    column_id: str = ""
    parent_id: str = ""
    kind: str = "task"


@dataclass
class EditTaskMode(TaskFormMode):
    name: ClassVar[str] = "edit-task"

    task_id: str = ""


@dataclass
class RenameMode:
    name: ClassVar[str] = "rename"

    task_id: str = ""
    input: TextInput = field(default_factory=TextInput)


SEARCH_FIELD_QUERY = 0
SEARCH_FIELD_STATES = 1
SEARCH_FIELD_SCOPE = 2
SEARCH_FIELD_ARCHIVED = 3
SEARCH_FIELD_APPLY = 4
SEARCH_FIELDS = ("query", "states", "scope", "archived", "apply")


@dataclass
class SearchMode:
    name: ClassVar[str] = "search"

    query: TextInput = field(default_factory=TextInput)
    states: TextInput = field(default_factory=TextInput)
    cross_project: bool = False
    include_archived: bool = False
    focus: int = SEARCH_FIELD_QUERY


@dataclass
class SearchResultsMode:
    name: ClassVar[str] = "search-results"

    matches: List[TaskMatch] = field(default_factory=list)
    index: int = 0
    loading: bool = True


@dataclass
class ProjectPickerMode:
    name: ClassVar[str] = "project-picker"

    index: int = 0


@dataclass
class ProjectFormMode:
    name: ClassVar[str] = "project-form"

    project_id: str = ""
    inputs: List[TextInput] = field(default_factory=list)
    focus: int = 0
    previous: Any = None

    @property
    def editing(self) -> bool:
        return bool(self.project_id)


CONFIRM_DELETE = "delete"
CONFIRM_RESTORE = "restore"
CONFIRM_DELETE_PROJECT = "delete-project"
CONFIRM_ARCHIVE_PROJECT = "archive-project"


@dataclass
class ConfirmMode:
    """Pending confirmation: {kind, payload} plus the mode to restore."""

    name: ClassVar[str] = "confirm"

    kind: str = CONFIRM_DELETE
    label: str = ""
    title: str = ""
    task_ids: Tuple[str, ...] = ()
    delete_mode: str = ""
    project_id: str = ""
    choice: int = 1
    previous: Any = None


@dataclass
class CommandPaletteMode:
    name: ClassVar[str] = "command-palette"

    input: TextInput = field(default_factory=TextInput)
    index: int = 0


@dataclass
class QuickActionsMode:
    name: ClassVar[str] = "quick-actions"

    index: int = 0


@dataclass
class TaskInfoFrame:
    task_id: str
    index: int = 0


@dataclass
class TaskInfoMode:
    name: ClassVar[str] = "task-info"

    task_id: str = ""
    index: int = 0
    stack: List[TaskInfoFrame] = field(default_factory=list)


@dataclass
class ThreadMode:
    name: ClassVar[str] = "thread"

    project_id: str = ""
    target_type: str = ""
    target_id: str = ""
    title: str = ""
    comments: list = field(default_factory=list)
    composer: TextInput = field(default_factory=lambda: TextInput(placeholder="write a comment"))
    scroll: int = 0
    loading: bool = True
    previous: Any = None


@dataclass
class DuePickerMode:
    name: ClassVar[str] = "due-picker"

    index: int = 0
    form: Optional[TaskFormMode] = None


@dataclass
class LabelPickerMode:
    name: ClassVar[str] = "label-picker"

    options: List[Tuple[str, str]] = field(default_factory=list)
    index: int = 0
    form: Optional[TaskFormMode] = None


INSPECTOR_CONTEXT_TASK_INFO = "task-info"
INSPECTOR_CONTEXT_FORM = "form"

INSPECTOR_FOCUS_QUERY = 0
INSPECTOR_FOCUS_SCOPE = 1
INSPECTOR_FOCUS_ARCHIVED = 2
INSPECTOR_FOCUS_FIELD = 3
INSPECTOR_FOCUS_LIST = 4
INSPECTOR_FOCUS_COUNT = 5


@dataclass
class DependencyInspectorMode:
    name: ClassVar[str] = "dependency-inspector"

    owner_id: str = ""
    owner: Optional[Task] = None
    draft: Optional[DependencyDraft] = None
    active_field: str = FIELD_DEPENDS_ON
    query: TextInput = field(default_factory=lambda: TextInput(placeholder="filter"))
    cross_project: bool = False
    include_archived: bool = False
    states: List[str] = field(default_factory=list)
    focus: int = INSPECTOR_FOCUS_QUERY
    index: int = 0
    rows: List[DependencyCandidate] = field(default_factory=list)
    matches: List[TaskMatch] = field(default_factory=list)
    known: Dict[str, TaskMatch] = field(default_factory=dict)
    loading: bool = True
    context: str = INSPECTOR_CONTEXT_TASK_INFO
    previous: Any = None


@dataclass
class ActivityLogMode:
    name: ClassVar[str] = "activity-log"

    index: int = 0
    loading: bool = True


@dataclass
class HighlightColorMode:
    name: ClassVar[str] = "highlight-color"

    input: TextInput = field(default_factory=lambda: TextInput(placeholder="#rrggbb"))


@dataclass
class LabelsConfigMode:
    name: ClassVar[str] = "labels-config"

    slug: str = ""
    global_input: TextInput = field(default_factory=lambda: TextInput(placeholder="csv global labels"))
    project_input: TextInput = field(default_factory=lambda: TextInput(placeholder="csv project labels"))
    focus: int = 0


@dataclass
class PathsRootsMode:
    name: ClassVar[str] = "paths-roots"

    slug: str = ""
    input: TextInput = field(default_factory=lambda: TextInput(placeholder="absolute path"))


@dataclass
class ResourcePickerMode:
    name: ClassVar[str] = "resource-picker"

    root: str = ""
    directory: str = ""
    entries: list = field(default_factory=list)
    filter: TextInput = field(default_factory=lambda: TextInput(placeholder="filter"))
    index: int = 0
    loading: bool = True
    task_id: str = ""
    previous: Any = None


@dataclass
class BootstrapSettingsMode:
    name: ClassVar[str] = "bootstrap-settings"

    input: TextInput = field(default_factory=lambda: TextInput(placeholder="display name"))


TEXT_ENTRY_MODES = (
    AddTaskMode,
    EditTaskMode,
    RenameMode,
    SearchMode,
    ProjectFormMode,
    CommandPaletteMode,
    ThreadMode,
    HighlightColorMode,
    LabelsConfigMode,
    PathsRootsMode,
    BootstrapSettingsMode,
)


__all__ = [
    "NormalMode",
    "TaskFormMode",
    "AddTaskMode",
    "EditTaskMode",
    "RenameMode",
    "SearchMode",
    "SEARCH_FIELDS",
    "SEARCH_FIELD_QUERY",
    "SEARCH_FIELD_STATES",
    "SEARCH_FIELD_SCOPE",
    "SEARCH_FIELD_ARCHIVED",
    "SEARCH_FIELD_APPLY",
    "SearchResultsMode",
    "ProjectPickerMode",
    "ProjectFormMode",
    "CONFIRM_DELETE",
    "CONFIRM_RESTORE",
    "CONFIRM_DELETE_PROJECT",
    "CONFIRM_ARCHIVE_PROJECT",
    "ConfirmMode",
    "CommandPaletteMode",
    "QuickActionsMode",
    "TaskInfoFrame",
    "TaskInfoMode",
    "ThreadMode",
    "DuePickerMode",
    "LabelPickerMode",
    "INSPECTOR_CONTEXT_TASK_INFO",
    "INSPECTOR_CONTEXT_FORM",
    "INSPECTOR_FOCUS_QUERY",
    "INSPECTOR_FOCUS_SCOPE",
    "INSPECTOR_FOCUS_ARCHIVED",
    "INSPECTOR_FOCUS_FIELD",
    "INSPECTOR_FOCUS_LIST",
    "INSPECTOR_FOCUS_COUNT",
    "DependencyInspectorMode",
    "ActivityLogMode",
    "HighlightColorMode",
    "LabelsConfigMode",
    "PathsRootsMode",
    "ResourcePickerMode",
    "BootstrapSettingsMode",
    "TEXT_ENTRY_MODES",
]
