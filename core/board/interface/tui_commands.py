"""Command palette and quick-action registries.

Commands are static records; handlers live in tui_app and are looked up by
command id, so this module stays free of state-machine imports.
"""

from dataclasses import dataclass, field
from typing import Callable, List, Optional, Tuple

SCORE_EXACT = 6000
SCORE_PREFIX = 5000
SCORE_SUBSTRING = 4200
SCORE_SUBSEQUENCE = 3000
BONUS_COMMAND = 200
BONUS_ALIAS = 160
BONUS_DESCRIPTION = 80


def _requires_task(model) -> str:
    return "" if model.selected_task_in_column() is not None else "no task selected"


def _requires_project(model) -> str:
    return "" if model.current_project() is not None else "no project selected"


def _requires_selection(model) -> str:
    return "" if model.selected_task_ids else "no tasks selected"


def _requires_undo(model) -> str:
    return "" if model.history.can_undo() else "nothing to undo"


def _requires_redo(model) -> str:
    return "" if model.history.can_redo() else "nothing to redo"


def _requires_focus(model) -> str:
    return "" if model.projection_root else "no focus active"


def _requires_query(model) -> str:
    return "" if model.search_query else "no active query"


def _always(model) -> str:
    return ""


@dataclass(frozen=True)
class Command:
    id: str
    description: str
    aliases: Tuple[str, ...] = ()
    guard: Callable = field(default=_always, compare=False)

    def unavailable_reason(self, model) -> str:
        return self.guard(model)


COMMANDS: Tuple[Command, ...] = (
    Command("new-task", "create a task in the current column", ("add", "nt"), _requires_project),
    Command("new-subtask", "create a subtask under the selected task", ("sub", "nst"), _requires_task),
    Command("edit-task", "edit the selected task", ("edit", "et"), _requires_task),
    Command("new-project", "create a project", ("np",)),
    Command("edit-project", "edit the current project", ("ep",), _requires_project),
    Command("search", "open search", ("find", "/")),
    Command("search-all", "search across all projects", ("sa",)),
    Command("search-project", "search the current project", ("sp",), _requires_project),
    Command("clear-query", "clear the active search query", ("cq",), _requires_query),
    Command("reset-filters", "reset search filters to defaults", ("rf",)),
    Command("toggle-archived", "show or hide archived tasks", ("ta", "archived")),
    Command("focus-subtree", "focus the board on the selected task's children", ("fs", "zoom"), _requires_task),
    Command("focus-clear", "return to the full project board", ("fc",), _requires_focus),
    Command("toggle-select", "toggle the selected task in the multi-selection", ("ts", "select"), _requires_task),
    Command("clear-selection", "clear the multi-selection", ("cs",), _requires_selection),
    Command("bulk-move-left", "move selected tasks one column left", ("bml",), _requires_selection),
    Command("bulk-move-right", "move selected tasks one column right", ("bmr",), _requires_selection),
    Command("bulk-archive", "archive selected tasks", ("ba",), _requires_selection),
    Command("bulk-delete", "hard delete selected tasks", ("bd",), _requires_selection),
    Command("undo", "undo the last action", ("u",), _requires_undo),
    Command("redo", "redo the last undone action", ("r",), _requires_redo),
    Command("reload-config", "reload the configuration file", ("rc",)),
    Command("paths-roots", "set the current project's root directory", ("roots", "pr"), _requires_project),
    Command("labels-config", "edit global and project labels", ("labels", "lc"), _requires_project),
    Command("highlight-color", "change the highlight color", ("color", "hc")),
    Command("bootstrap-settings", "edit identity settings", ("identity", "bs")),
    Command("activity-log", "show the activity log", ("log", "al")),
    Command("dependency-inspector", "edit dependencies of the selected task", ("deps", "di"), _requires_task),
    Command("thread", "open comments for the selected task or project", ("comments", "th"), _requires_project),
    Command("help", "show key bindings", ("?",)),
    Command("quit", "exit the application", ("q", "exit")),
)


def fuzzy_score(query: str, candidate: str) -> int:
    """Score `candidate` against `query`; -1 means no match."""
    query = query.strip().lower()
    candidate = candidate.strip().lower()
    if not query:
        return 0
    if not candidate:
        return -1
    if candidate == query:
        return SCORE_EXACT
    if candidate.startswith(query):
        return SCORE_PREFIX - len(candidate)
    idx = candidate.find(query)
    if idx >= 0:
        return SCORE_SUBSTRING - idx
    first = -1
    last = -1
    gaps = 0
    pos = 0
    for ch in query:
        found = candidate.find(ch, pos)
        if found < 0:
            return -1
        if first < 0:
            first = found
        elif found > last + 1:
            gaps += found - last - 1
        last = found
        pos = found + 1
    extra = len(candidate) - len(query)
    return SCORE_SUBSEQUENCE - first - 3 * gaps - extra


def command_score(command: Command, query: str) -> int:
    if not query.strip():
        return 0
    best = -1
    score = fuzzy_score(query, command.id)
    if score >= 0:
        best = max(best, score + BONUS_COMMAND)
    for alias in command.aliases:
        score = fuzzy_score(query, alias)
        if score >= 0:
            best = max(best, score + BONUS_ALIAS)
    score = fuzzy_score(query, command.description)
    if score >= 0:
        best = max(best, score + BONUS_DESCRIPTION)
    return best


@dataclass
class PaletteItem:
    command: Command
    score: int
    reason: str = ""

    @property
    def enabled(self) -> bool:
        return not self.reason

    def label(self) -> str:
        if self.reason:
            return f"{self.command.id}  (unavailable: {self.reason})"
        return self.command.id


def palette_items(model, query: str, commands: Tuple[Command, ...] = COMMANDS) -> List[PaletteItem]:
    """Matching commands: enabled first, then by score, ties in registry order."""
    ranked = []
    for order, command in enumerate(commands):
        score = command_score(command, query)
        if score < 0:
            continue
        reason = command.unavailable_reason(model)
        ranked.append((0 if not reason else 1, -score, order, PaletteItem(command, score, reason)))
    ranked.sort(key=lambda row: row[:3])
    return [row[3] for row in ranked]


# ---------------------------------------------------------------- quick actions


@dataclass(frozen=True)
class QuickAction:
    id: str
    label: str
    guard: Callable = field(default=_always, compare=False)


QUICK_ACTIONS: Tuple[QuickAction, ...] = (
    QuickAction("task-info", "Task info", _requires_task),
    QuickAction("edit-task", "Edit task", _requires_task),
    QuickAction("move-left", "Move left", _requires_task),
    QuickAction("move-right", "Move right", _requires_task),
    QuickAction("archive-task", "Archive task", _requires_task),
    QuickAction("hard-delete", "Hard delete", _requires_task),
    QuickAction("toggle-selection", "Toggle selection", _requires_task),
    QuickAction("clear-selection", "Clear selection", _requires_selection),
    QuickAction("bulk-move-left", "Bulk move left", _requires_selection),
    QuickAction("bulk-move-right", "Bulk move right", _requires_selection),
    QuickAction("bulk-archive", "Bulk archive", _requires_selection),
    QuickAction("bulk-hard-delete", "Bulk hard delete", _requires_selection),
    QuickAction("undo", "Undo", _requires_undo),
    QuickAction("redo", "Redo", _requires_redo),
    QuickAction("activity-log", "Activity log"),
)


@dataclass
class QuickActionItem:
    action: QuickAction
    reason: str = ""

    @property
    def enabled(self) -> bool:
        return not self.reason

    def label(self) -> str:
        if self.reason:
            return f"{self.action.label} ({self.reason})"
        return self.action.label


def quick_action_items(model) -> List[QuickActionItem]:
    """Quick actions with the enabled ones first, registry order otherwise."""
    items = [QuickActionItem(action, action.guard(model)) for action in QUICK_ACTIONS]
    return [item for item in items if item.enabled] + [item for item in items if not item.enabled]


def find_command(command_id: str) -> Optional[Command]:
    for command in COMMANDS:
        if command.id == command_id:
            return command
    return None


__all__ = [
    "Command",
    "COMMANDS",
    "fuzzy_score",
    "command_score",
    "PaletteItem",
    "palette_items",
    "QuickAction",
    "QUICK_ACTIONS",
    "QuickActionItem",
    "quick_action_items",
    "find_command",
]
