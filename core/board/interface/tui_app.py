"""Board state machine: `init` and the pure `update(model, msg)`.

`update` copies the incoming model, applies one message to the copy and
returns it together with the requests the runtime should execute. It never
performs I/O; results come back later as messages.
"""

import logging
from typing import Callable, Dict, List, Tuple

from application.ports import DELETE_MODE_ARCHIVE, DELETE_MODE_HARD
from config import BoardOptions

from .tui_actions import (
    bulk_move,
    clear_focus,
    clear_query,
    clear_selection,
    delete_with_default_mode,
    escape_normal,
    focus_subtree,
    handle_confirm_key,
    move_selected,
    move_tasks,
    redo,
    reload_request,
    request_delete,
    request_restore,
    toggle_archived,
    toggle_selection,
    undo,
)
from .tui_activity import apply_activity_loaded, handle_activity_key, open_activity_log
from .tui_commands import find_command, palette_items, quick_action_items
from .tui_dependency_inspector import apply_candidates_loaded, handle_inspector_key, open_dependency_inspector
from .tui_editing import (
    handle_bootstrap_key,
    handle_due_picker_key,
    handle_highlight_color_key,
    handle_label_picker_key,
    handle_labels_config_key,
    handle_paths_roots_key,
    handle_project_form_key,
    handle_rename_key,
    handle_task_form_key,
    open_add_subtask,
    open_add_task,
    open_bootstrap_settings,
    open_edit_task,
    open_highlight_color,
    open_labels_config,
    open_paths_roots,
    open_project_form,
    open_rename,
)
from .tui_models import (
    ActionResultMsg,
    ActivityLoadedMsg,
    BoardLoadedMsg,
    CandidatesLoadedMsg,
    CommentsLoadedMsg,
    ConfigReloadedMsg,
    DirectoryListedMsg,
    KeyMsg,
    MouseMsg,
    Request,
    ResizeMsg,
    SearchResultsMsg,
    request,
)
from .tui_modes import (
    ActivityLogMode,
    AddTaskMode,
    BootstrapSettingsMode,
    CommandPaletteMode,
    ConfirmMode,
    DependencyInspectorMode,
    DuePickerMode,
    EditTaskMode,
    HighlightColorMode,
    LabelPickerMode,
    LabelsConfigMode,
    NormalMode,
    PathsRootsMode,
    ProjectFormMode,
    ProjectPickerMode,
    QuickActionsMode,
    RenameMode,
    ResourcePickerMode,
    SearchMode,
    SearchResultsMode,
    TaskInfoMode,
    ThreadMode,
)
from .tui_mouse import handle_mouse
from .tui_navigation import clamp_index, move_index
from .tui_pickers import (
    apply_directory_listed,
    handle_project_picker_key,
    handle_resource_picker_key,
    open_project_picker,
)
from .tui_requests import HISTORY_REQUEST_KINDS, REQ_LOAD_BOARD, REQ_QUIT, REQ_RELOAD_CONFIG
from .tui_search import apply_search_results, handle_search_key, handle_search_results_key, open_search, reset_filters
from .tui_state import BoardModel
from .tui_task_info import handle_task_info_key, open_task_info
from .tui_thread import apply_comments_loaded, handle_thread_key, open_thread

logger = logging.getLogger("kanboard.tui")

NEXT_MODE_PROJECT_PICKER = "project-picker"


def init(options: BoardOptions, config_path: str = "") -> Tuple[BoardModel, List[Request]]:
    """Initial model and the first board load."""
    model = BoardModel(
        options=options,
        config_path=config_path,
        search_states=list(options.search_states),
        search_cross_project=options.search_cross_project,
        search_include_archived=options.search_include_archived,
        loading=True,
    )
    if options.needs_bootstrap:
        open_bootstrap_settings(model)
        model.set_status("set a display name to continue")
    return model, [request(REQ_LOAD_BOARD, project_id="", include_archived=False)]


# ---------------------------------------------------------------- commands


def _quit(model) -> List[Request]:
    return [request(REQ_QUIT)]


def _toggle_help(model) -> List[Request]:
    model.show_help = not model.show_help
    return []


def _reload(model) -> List[Request]:
    model.set_status("reloading")
    return [reload_request(model)]


def _reload_config(model) -> List[Request]:
    model.set_status("reloading config")
    return [request(REQ_RELOAD_CONFIG)]


def _selected_ids(model) -> List[str]:
    return model.selected_task_ids_ordered()


def _highlighted(handler: Callable) -> Callable:
    """Wrap a single-task handler so it acts on the highlighted task."""

    def run(model) -> List[Request]:
        task = model.selected_task_in_column()
        if task is None:
            model.set_status("no task selected")
            return []
        return handler(model, task)

    return run


COMMAND_HANDLERS: Dict[str, Callable] = {
    "new-task": open_add_task,
    "new-subtask": open_add_subtask,
    "edit-task": open_edit_task,
    "new-project": open_project_form,
    "edit-project": lambda model: open_project_form(model, editing=True),
    "search": open_search,
    "search-all": lambda model: open_search(model, cross_project=True),
    "search-project": lambda model: open_search(model, cross_project=False),
    "clear-query": clear_query,
    "reset-filters": reset_filters,
    "toggle-archived": toggle_archived,
    "focus-subtree": focus_subtree,
    "focus-clear": clear_focus,
    "toggle-select": toggle_selection,
    "clear-selection": clear_selection,
    "bulk-move-left": lambda model: bulk_move(model, -1),
    "bulk-move-right": lambda model: bulk_move(model, 1),
    "bulk-archive": lambda model: request_delete(model, DELETE_MODE_ARCHIVE, _selected_ids(model)),
    "bulk-delete": lambda model: request_delete(model, DELETE_MODE_HARD, _selected_ids(model)),
    "undo": undo,
    "redo": redo,
    "reload-config": _reload_config,
    "paths-roots": open_paths_roots,
    "labels-config": open_labels_config,
    "highlight-color": open_highlight_color,
    "bootstrap-settings": open_bootstrap_settings,
    "activity-log": open_activity_log,
    "dependency-inspector": open_dependency_inspector,
    "thread": open_thread,
    "help": _toggle_help,
    "quit": _quit,
}

QUICK_ACTION_HANDLERS: Dict[str, Callable] = {
    "task-info": open_task_info,
    "edit-task": open_edit_task,
    "move-left": _highlighted(lambda model, task: move_tasks(model, [task.id], -1)),
    "move-right": _highlighted(lambda model, task: move_tasks(model, [task.id], 1)),
    "archive-task": _highlighted(lambda model, task: request_delete(model, DELETE_MODE_ARCHIVE, [task.id])),
    "hard-delete": _highlighted(lambda model, task: request_delete(model, DELETE_MODE_HARD, [task.id])),
    "toggle-selection": toggle_selection,
    "clear-selection": clear_selection,
    "bulk-move-left": lambda model: bulk_move(model, -1),
    "bulk-move-right": lambda model: bulk_move(model, 1),
    "bulk-archive": lambda model: request_delete(model, DELETE_MODE_ARCHIVE, _selected_ids(model)),
    "bulk-hard-delete": lambda model: request_delete(model, DELETE_MODE_HARD, _selected_ids(model)),
    "undo": undo,
    "redo": redo,
    "activity-log": open_activity_log,
}


def run_command(model, command_id: str) -> List[Request]:
    """Run a palette command by id, honouring its enablement guard."""
    command = find_command(command_id)
    if command is None:
        model.set_status(f"unknown command: {command_id}")
        return []
    reason = command.unavailable_reason(model)
    if reason:
        model.set_status(f"{command.id} unavailable: {reason}")
        return []
    return COMMAND_HANDLERS[command.id](model)


# ----------------------------------------------------------- normal mode


def _move_column(delta: int) -> Callable:
    def run(model) -> List[Request]:
        model.move_column_selection(delta)
        return []

    return run


def _move_task(delta: int) -> Callable:
    def run(model) -> List[Request]:
        model.move_task_selection(delta)
        return []

    return run


def _open_palette(model) -> List[Request]:
    model.mode = CommandPaletteMode()
    model.set_status("command palette")
    return []


def _open_quick_actions(model) -> List[Request]:
    model.mode = QuickActionsMode()
    model.set_status("quick actions")
    return []


NORMAL_KEYS: Dict[str, Callable] = {
    "q": _quit,
    "?": _toggle_help,
    "r": _reload,
    "h": _move_column(-1),
    "left": _move_column(-1),
    "l": _move_column(1),
    "right": _move_column(1),
    "j": _move_task(1),
    "down": _move_task(1),
    "k": _move_task(-1),
    "up": _move_task(-1),
    "pgdown": _move_task(10),
    "pgup": _move_task(-10),
    "space": toggle_selection,
    "n": open_add_task,
    "s": open_add_subtask,
    "N": open_project_form,
    "M": lambda model: open_project_form(model, editing=True),
    "e": open_edit_task,
    "R": open_rename,
    "i": open_task_info,
    "enter": open_task_info,
    "c": open_thread,
    "/": open_search,
    ":": _open_palette,
    ".": _open_quick_actions,
    "d": delete_with_default_mode,
    "a": lambda model: request_delete(model, DELETE_MODE_ARCHIVE),
    "D": lambda model: request_delete(model, DELETE_MODE_HARD),
    "u": request_restore,
    "[": lambda model: move_selected(model, -1),
    "]": lambda model: move_selected(model, 1),
    "p": open_project_picker,
    "t": toggle_archived,
    "f": focus_subtree,
    "F": clear_focus,
    "g": open_activity_log,
    "z": undo,
    "Z": redo,
    "ctrl+b": open_dependency_inspector,
    "esc": escape_normal,
}


def handle_normal_key(model, key: str) -> List[Request]:
    if model.show_help and key not in ("?", "esc"):
        if key == "q":
            model.show_help = False
        return []
    handler = NORMAL_KEYS.get(key)
    if handler is None:
        return []
    return handler(model)


# --------------------------------------------------------- palette/actions


def handle_palette_key(model, key: str) -> List[Request]:
    mode: CommandPaletteMode = model.mode
    items = palette_items(model, mode.input.value)
    if key == "esc":
        model.mode = NormalMode()
        model.set_status("cancelled")
        return []
    if key in ("down", "ctrl+n", "tab"):
        mode.index = move_index(mode.index, 1, len(items))
        return []
    if key in ("up", "ctrl+p", "shift+tab"):
        mode.index = move_index(mode.index, -1, len(items))
        return []
    if key == "pgdown":
        mode.index = move_index(mode.index, 10, len(items))
        return []
    if key == "pgup":
        mode.index = move_index(mode.index, -10, len(items))
        return []
    if key == "enter":
        if not items:
            model.set_status("no matching command")
            return []
        item = items[clamp_index(mode.index, len(items))]
        if not item.enabled:
            model.set_status(f"{item.command.id} unavailable: {item.reason}")
            return []
        model.mode = NormalMode()
        return COMMAND_HANDLERS[item.command.id](model)
    if mode.input.handle_key(key):
        mode.index = 0
    return []


def handle_quick_actions_key(model, key: str) -> List[Request]:
    mode: QuickActionsMode = model.mode
    items = quick_action_items(model)
    if key in ("esc", "."):
        model.mode = NormalMode()
        model.set_status("cancelled")
        return []
    if key in ("j", "down"):
        mode.index = move_index(mode.index, 1, len(items))
        return []
    if key in ("k", "up"):
        mode.index = move_index(mode.index, -1, len(items))
        return []
    if key != "enter" or not items:
        return []
    item = items[clamp_index(mode.index, len(items))]
    if not item.enabled:
        model.set_status(f"{item.action.label} unavailable: {item.reason}")
        return []
    model.mode = NormalMode()
    return QUICK_ACTION_HANDLERS[item.action.id](model)


MODE_KEY_HANDLERS: Dict[type, Callable] = {
    NormalMode: handle_normal_key,
    AddTaskMode: handle_task_form_key,
    EditTaskMode: handle_task_form_key,
    RenameMode: handle_rename_key,
    SearchMode: handle_search_key,
    SearchResultsMode: handle_search_results_key,
    ProjectPickerMode: handle_project_picker_key,
    ProjectFormMode: handle_project_form_key,
    ConfirmMode: handle_confirm_key,
    CommandPaletteMode: handle_palette_key,
    QuickActionsMode: handle_quick_actions_key,
    TaskInfoMode: handle_task_info_key,
    ThreadMode: handle_thread_key,
    DuePickerMode: handle_due_picker_key,
    LabelPickerMode: handle_label_picker_key,
    DependencyInspectorMode: handle_inspector_key,
    ActivityLogMode: handle_activity_key,
    HighlightColorMode: handle_highlight_color_key,
    LabelsConfigMode: handle_labels_config_key,
    PathsRootsMode: handle_paths_roots_key,
    ResourcePickerMode: handle_resource_picker_key,
    BootstrapSettingsMode: handle_bootstrap_key,
}


def _handle_key(model, msg: KeyMsg) -> List[Request]:
    if msg.key == "ctrl+c":
        return [request(REQ_QUIT)]
    handler = MODE_KEY_HANDLERS.get(type(model.mode))
    if handler is None:
        raise TypeError(f"no key handler for mode {type(model.mode).__name__}")
    return handler(model, msg.key)


# ----------------------------------------------------------------- results


def _apply_board_loaded(model, msg: BoardLoadedMsg) -> List[Request]:
    model.loading = False
    if msg.err:
        model.set_error(msg.err)
        return []
    model.projects = list(msg.projects)
    model.project_index = 0
    for idx, project in enumerate(model.projects):
        if project.id == msg.project_id:
            model.project_index = idx
            break
    model.columns = list(msg.columns)
    model.tasks = list(msg.tasks)
    model.rollup = msg.rollup
    if model.projection_root and model.task(model.projection_root) is None:
        model.projection_root = ""
        model.set_status("focus cleared (parent not found)")
    model.prune_selection()
    model.clamp_selections()
    if model.pending_focus_task_id:
        model.focus_task(model.pending_focus_task_id)
        model.pending_focus_task_id = ""
    model.ready = True
    if isinstance(model.mode, ProjectPickerMode):
        model.mode.index = clamp_index(model.mode.index, len(model.projects))
    elif not model.projects and isinstance(model.mode, NormalMode):
        open_project_picker(model)
    return []


def _apply_action_result(model, msg: ActionResultMsg) -> List[Request]:
    if msg.history_ticket and msg.history_ticket == model.pending_history:
        model.pending_history = 0
    if msg.err:
        model.set_error(msg.err)
    elif msg.status:
        model.set_status(msg.status)
    if msg.history_push is not None:
        model.history.push(msg.history_push)
    if msg.history_undo is not None:
        model.history.complete_undo(msg.history_undo)
    if msg.history_redo is not None:
        model.history.complete_redo(msg.history_redo)
    if msg.activity:
        model.log_activity(*msg.activity)
    if msg.options is not None:
        model.options = msg.options
    if msg.clear_selection:
        model.selected_task_ids = set()
    elif msg.clear_task_ids:
        model.selected_task_ids -= set(msg.clear_task_ids)
    if msg.next_mode == NEXT_MODE_PROJECT_PICKER:
        status = model.status
        open_project_picker(model)
        model.set_status(status)
    project_id = msg.project_id
    if project_id and project_id != model.project_id:
        model.projection_root = ""
        model.selected_task = {}
        model.selected_task_ids = set()
        model.selected_column = 0
    if msg.reload:
        return [reload_request(model, focus_task_id=msg.focus_task_id, project_id=project_id)]
    return []


def _apply_config_reloaded(model, msg: ConfigReloadedMsg) -> List[Request]:
    if msg.err:
        model.set_status(f"reload config failed: {msg.err}")
        return []
    model.options = msg.options
    model.set_status("config reloaded")
    return []


def _apply_key(model, msg: KeyMsg) -> List[Request]:
    return _handle_key(model, msg)


def _apply_resize(model, msg: ResizeMsg) -> List[Request]:
    model.width = max(20, msg.width)
    model.height = max(8, msg.height)
    return []


MESSAGE_HANDLERS: Dict[type, Callable] = {
    KeyMsg: _apply_key,
    MouseMsg: handle_mouse,
    ResizeMsg: _apply_resize,
    BoardLoadedMsg: _apply_board_loaded,
    ActionResultMsg: _apply_action_result,
    SearchResultsMsg: apply_search_results,
    ActivityLoadedMsg: apply_activity_loaded,
    CommentsLoadedMsg: apply_comments_loaded,
    CandidatesLoadedMsg: apply_candidates_loaded,
    DirectoryListedMsg: apply_directory_listed,
    ConfigReloadedMsg: _apply_config_reloaded,
}


def accepts_message(msg) -> bool:
    return type(msg) in MESSAGE_HANDLERS


def _track_history(model, requests) -> List[Request]:
    """Ticket every history-bearing request; undo/redo wait for the latest one."""
    out = []
    for req in requests:
        if req.kind in HISTORY_REQUEST_KINDS:
            model.history_ticket += 1
            model.pending_history = model.history_ticket
            req = req.with_params(history_ticket=model.history_ticket)
        out.append(req)
    return out


def update(model: BoardModel, msg) -> Tuple[BoardModel, List[Request]]:
    """Apply one message; the input model is left untouched.

    Raises:
        TypeError: message of an unknown type
    """
    handler = MESSAGE_HANDLERS.get(type(msg))
    if handler is None:
        raise TypeError(f"unexpected message type: {type(msg).__name__}")
    model = model.copy()
    requests = handler(model, msg) or []
    return model, _track_history(model, requests)


__all__ = [
    "init",
    "update",
    "accepts_message",
    "run_command",
    "COMMAND_HANDLERS",
    "QUICK_ACTION_HANDLERS",
    "NORMAL_KEYS",
    "MODE_KEY_HANDLERS",
    "MESSAGE_HANDLERS",
]
