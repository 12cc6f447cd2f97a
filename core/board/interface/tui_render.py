"""Rendering: BoardModel -> View.

The whole screen is rebuilt as one plain string on every update. Board
geometry helpers are shared with the mouse hit-testing in tui_mouse.
"""

from datetime import datetime, timedelta
from typing import List, Optional, Tuple

from core import Task, utc_now
from core.board.application.activity import format_activity_timestamp
from core.board.application.labels import format_label_source, label_sources_for_task, merge_label_sources
from core.board.application.projection import breadcrumb, breadcrumb_path
from util.display import clip_display, pad_display, wrap_display

from .tui_activity import activity_newest_first
from .tui_commands import palette_items, quick_action_items
from .tui_editing import label_suggestions
from .tui_forms import DUE_PICKER_OPTIONS, FIELD_LABELS, PROJECT_FORM_FIELDS, TASK_FORM_FIELDS, format_due_value
from .tui_models import View
from .tui_modes import (
    SEARCH_FIELD_APPLY,
    SEARCH_FIELD_ARCHIVED,
    SEARCH_FIELD_QUERY,
    SEARCH_FIELD_SCOPE,
    SEARCH_FIELD_STATES,
    INSPECTOR_FOCUS_ARCHIVED,
    INSPECTOR_FOCUS_FIELD,
    INSPECTOR_FOCUS_LIST,
    INSPECTOR_FOCUS_QUERY,
    INSPECTOR_FOCUS_SCOPE,
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
from .tui_navigation import window_bounds
from .tui_pickers import visible_entries
from .tui_task_info import subtask_progress, task_children

HEADER_LINES = 3
COLUMN_HEADER_LINES = 2
FOOTER_LINES = 2
COLUMN_GAP = 2
CURSOR_MARK = "›"
SELECTED_MARK = "*"

HELP_LINES = (
    "Board",
    "  h/l ←/→  column        j/k ↑/↓  task         space  toggle selection",
    "  n new task   s new subtask   e edit   R rename   i/enter task info",
    "  [ ] move left/right   d delete   a archive   D hard delete   u restore",
    "  z undo   Z redo   f focus subtree   F clear focus   t toggle archived",
    "  / search   : command palette   . quick actions   c thread   g activity log",
    "  p projects   N new project   M edit project   ctrl+b dependencies   r reload",
    "  esc clears help, query, selection, focus (one per press)   q quit",
)


# ---------------------------------------------------------------- geometry


def board_top() -> int:
    """Screen row of the first card line."""
    return HEADER_LINES + COLUMN_HEADER_LINES


def board_body_height(model) -> int:
    return max(1, model.height - board_top() - FOOTER_LINES)


def column_width(model) -> int:
    count = max(1, len(model.columns))
    return max(8, (model.width - COLUMN_GAP * (count - 1)) // count)


def column_window(model, column_id: str, total: int) -> Tuple[int, int]:
    return window_bounds(model.selected_task_index(column_id), total, board_body_height(model))


def column_at(model, x: int) -> int:
    """Column index under screen column `x`, or -1 in a gap / past the edge."""
    if not model.columns or x < 0:
        return -1
    width = column_width(model)
    idx, offset = divmod(x, width + COLUMN_GAP)
    if idx >= len(model.columns) or offset >= width:
        return -1
    return idx


def card_at(model, x: int, y: int) -> Tuple[int, int]:
    """(column index, task index) under a click, -1 parts when none."""
    col_idx = column_at(model, x)
    row = y - board_top()
    if col_idx < 0 or row < 0 or row >= board_body_height(model):
        return col_idx, -1
    column = model.columns[col_idx]
    tasks = model.column_tasks(column.id)
    start, end = column_window(model, column.id, len(tasks))
    idx = start + row
    return col_idx, (idx if idx < end else -1)


def project_picker_row(model, y: int) -> int:
    """Project index under screen row `y` in the project picker, or -1."""
    start, end = window_bounds(model.mode.index, len(model.projects), _panel_height(model, 4))
    idx = start + (y - HEADER_LINES - 2)
    return idx if start <= idx < end else -1


# ------------------------------------------------------------------ header


def due_counts(tasks: List[Task], windows: List[int], now: Optional[datetime] = None) -> Tuple[int, int]:
    """(overdue, due within the widest window) over open tasks."""
    now = now or utc_now()
    horizon = now + timedelta(seconds=max(windows) if windows else 0)
    overdue = soon = 0
    for task in tasks:
        if task.due_at is None or task.is_archived or task.state_id == "done":
            continue
        if task.due_at < now:
            overdue += 1
        elif task.due_at <= horizon:
            soon += 1
    return overdue, soon


def _header(model) -> List[str]:
    project = model.current_project()
    title = "kanboard"
    if project is not None:
        title += f" · {project.name}"
        if project.is_archived:
            title += " (archived)"
    parts = [title]
    if model.projection_root:
        parts.append("focus: " + breadcrumb(model.tasks_by_id(), model.projection_root))
    if model.search_query:
        parts.append(f"query: {model.search_query}")
    if model.selected_task_ids:
        parts.append(f"{len(model.selected_task_ids)} selected")
    if model.show_archived:
        parts.append("archived shown")
    if model.loading:
        parts.append("loading…")
    second = [model.rollup.summary()] if project is not None else []
    if project is not None and model.options.show_due_summary:
        overdue, soon = due_counts(model.tasks, model.options.due_soon_windows)
        second.append(f"due: {overdue} overdue • {soon} soon")
    return [
        clip_display("  ".join(parts), model.width),
        clip_display("   ".join(second), model.width),
        "",
    ]


# ------------------------------------------------------------------- board


def card_text(model, task: Task) -> str:
    parts = [task.title]
    opts = model.options
    if task.is_archived:
        parts.append("[archived]")
    if opts.show_priority and task.priority != "medium":
        parts.append(f"!{task.priority}")
    if opts.show_due_date and task.due_at is not None:
        parts.append("due " + task.due_at.astimezone().strftime("%m-%d"))
    if opts.show_labels and task.labels:
        parts.append(" ".join(f"#{label}" for label in task.labels))
    if task.metadata.blocked_by:
        parts.append("⛔")
    children = task_children(model, task.id)
    if children:
        done, total = subtask_progress(children)
        parts.append(f"{done}/{total}")
    return " ".join(parts)


def _column_lines(model, col_idx: int, width: int, height: int) -> List[str]:
    column = model.columns[col_idx]
    tasks = model.column_tasks(column.id)
    active = col_idx == model.selected_column
    cursor = model.selected_task_index(column.id)
    header = f"{column.name} ({len(tasks)})"
    if column.wip_limit:
        header = f"{column.name} ({len(tasks)}/{column.wip_limit})"
    lines = [pad_display(("▸ " if active else "  ") + header, width), pad_display("─" * width, width)]
    start, end = column_window(model, column.id, len(tasks))
    for idx in range(start, end):
        task = tasks[idx]
        mark = CURSOR_MARK if active and idx == cursor else " "
        sel = SELECTED_MARK if task.id in model.selected_task_ids else " "
        lines.append(pad_display(f"{mark}{sel}{card_text(model, task)}", width))
    if not tasks:
        lines.append(pad_display("  (empty)", width))
    while len(lines) < height + COLUMN_HEADER_LINES:
        lines.append(" " * width)
    return lines[: height + COLUMN_HEADER_LINES]


def _board(model) -> List[str]:
    if model.current_project() is None:
        return ["no project selected; press p for projects or N to create one"]
    if not model.columns:
        return ["project has no columns"]
    width = column_width(model)
    height = board_body_height(model)
    columns = [_column_lines(model, idx, width, height) for idx in range(len(model.columns))]
    gap = " " * COLUMN_GAP
    return [gap.join(parts).rstrip() for parts in zip(*columns)]


# ------------------------------------------------------------------ panels


def _field(label: str, value: str, focused: bool, width: int = 16) -> str:
    return f"{CURSOR_MARK if focused else ' '} {pad_display(label + ':', width)} {value}"


def _list_lines(items: List[str], index: int, height: int) -> List[str]:
    start, end = window_bounds(index, len(items), height)
    return [f"{CURSOR_MARK if i == index else ' '} {items[i]}" for i in range(start, end)]


def _panel_height(model, used: int) -> int:
    return max(3, model.height - HEADER_LINES - FOOTER_LINES - used)


def _task_form_panel(model, mode) -> List[str]:
    if isinstance(mode, AddTaskMode):
        title = f"New {mode.kind}" if mode.parent_id else "New task"
    else:
        title = "Edit task"
    lines = [title, ""]
    for idx, name in enumerate(TASK_FORM_FIELDS):
        lines.append(_field(name, mode.inputs[idx].display(idx == mode.focus), idx == mode.focus))
    if mode.focus == FIELD_LABELS:
        suggestions = label_suggestions(model, mode)
        if suggestions:
            lines.append("")
            lines.append("suggestions: " + ", ".join(suggestions[:8]))
    if mode.resource_refs:
        lines.append("")
        lines.append("resources: " + ", ".join(ref.location for ref in mode.resource_refs))
    lines.append("")
    hint = "tab next · enter save · esc cancel · ctrl+d due · ctrl+l labels · ctrl+o deps"
    if isinstance(mode, EditTaskMode):
        hint += " · ctrl+r resource"
    lines.append(hint)
    return lines


def _search_panel(model, mode: SearchMode) -> List[str]:
    scope = "all projects" if mode.cross_project else "current project"
    return [
        "Search",
        "",
        _field("query", mode.query.display(mode.focus == SEARCH_FIELD_QUERY), mode.focus == SEARCH_FIELD_QUERY),
        _field("states", mode.states.display(mode.focus == SEARCH_FIELD_STATES), mode.focus == SEARCH_FIELD_STATES),
        _field("scope", f"[{scope}]", mode.focus == SEARCH_FIELD_SCOPE),
        _field("archived", "[x]" if mode.include_archived else "[ ]", mode.focus == SEARCH_FIELD_ARCHIVED),
        _field("", "[apply]", mode.focus == SEARCH_FIELD_APPLY),
        "",
        "enter search · ctrl+p scope · ctrl+a archived · ctrl+u clear query · ctrl+r reset · esc close",
    ]


def _search_results_panel(model, mode: SearchResultsMode) -> List[str]:
    lines = ["Search results", ""]
    if mode.loading:
        return lines + ["searching…"]
    if not mode.matches:
        return lines + ["no matches"]
    items = [f"{m.project.name} / {m.task.title}  [{m.state_id}]" for m in mode.matches]
    return lines + _list_lines(items, mode.index, _panel_height(model, 3)) + ["", "enter jump · / refine · esc close"]


def _project_picker_panel(model, mode: ProjectPickerMode) -> List[str]:
    lines = ["Projects", ""]
    if not model.projects:
        return lines + ["no projects yet", "", "N new project"]
    items = []
    for project in model.projects:
        tag = "  (archived)" if project.is_archived else ""
        current = "  ●" if project.id == model.project_id else ""
        items.append(f"{project.name}{tag}{current}")
    lines += _list_lines(items, mode.index, _panel_height(model, 4))
    return lines + ["", "enter open · N new · A archive · U restore · X delete · esc close"]


def _project_form_panel(model, mode: ProjectFormMode) -> List[str]:
    lines = ["Edit project" if mode.editing else "New project", ""]
    for idx, name in enumerate(PROJECT_FORM_FIELDS):
        lines.append(_field(name, mode.inputs[idx].display(idx == mode.focus), idx == mode.focus))
    return lines + ["", "tab next · enter save · esc cancel"]


def _confirm_panel(model, mode: ConfirmMode) -> List[str]:
    confirm = "[confirm]" if mode.choice != 0 else f"{CURSOR_MARK}[confirm]"
    cancel = "[cancel]" if mode.choice != 1 else f"{CURSOR_MARK}[cancel]"
    return [
        "Confirm Action",
        "",
        f"{mode.label}: {mode.title}",
        "",
        f"{confirm}  {cancel}",
        "",
        "y confirm · n/esc cancel · h/l choose",
    ]


def _palette_panel(model, mode: CommandPaletteMode) -> List[str]:
    items = palette_items(model, mode.input.value)
    lines = [":" + mode.input.display(True), ""]
    if not items:
        return lines + ["no matching commands"]
    labels = [f"{item.label()}  — {item.command.description}" if item.enabled else item.label() for item in items]
    return lines + _list_lines(labels, mode.index, _panel_height(model, 2))


def _quick_actions_panel(model, mode: QuickActionsMode) -> List[str]:
    items = [item.label() for item in quick_action_items(model)]
    return ["Quick actions", ""] + _list_lines(items, mode.index, _panel_height(model, 2))


def _task_info_panel(model, mode: TaskInfoMode) -> List[str]:
    task = model.task(mode.task_id)
    if task is None:
        return ["task not found"]
    by_id = model.tasks_by_id()
    project = model.current_project()
    lines = [
        breadcrumb_path(project.name if project else "", by_id, task.id),
        "",
        f"id: {task.id}    kind: {task.kind}    state: {task.state_id}    priority: {task.priority}",
        f"due: {format_due_value(task.due_at) or '-'}    labels: {', '.join(task.labels) or '-'}",
    ]
    if task.description:
        lines.append("")
        lines.extend(wrap_display(task.description, max(20, model.width - 2)))
    sources = label_sources_for_task(
        task,
        by_id,
        model.options.global_labels,
        model.options.labels_for_project(model.project_slug),
    )
    effective = merge_label_sources(sources)
    lines.append("")
    lines.append("effective labels: " + (", ".join(effective) or "-"))
    for source, values in (("global", sources.global_labels), ("project", sources.project), ("phase", sources.phase)):
        lines.append("  " + format_label_source(source, values))
    lines.append("")
    lines.append("depends on: " + _dependency_hint(model, task.metadata.depends_on))
    lines.append("blocked by: " + _dependency_hint(model, task.metadata.blocked_by))
    if task.metadata.blocked_reason:
        lines.append(f"blocked reason: {task.metadata.blocked_reason}")
    if task.metadata.resource_refs:
        lines.append("resources: " + ", ".join(ref.location for ref in task.metadata.resource_refs))
    children = task_children(model, task.id)
    done, total = subtask_progress(children)
    lines.append("")
    lines.append(f"subtasks {done}/{total}")
    items = [f"[{child.state_id}] {child.title}" for child in children]
    lines += _list_lines(items, mode.index, max(3, _panel_height(model, len(lines) + 2)))
    depth = f"  (depth {len(mode.stack)})" if mode.stack else ""
    lines.append("")
    lines.append("enter open · backspace parent · e edit · s subtask · c thread · b deps · r resource · esc back" + depth)
    return lines


def _dependency_hint(model, ids: List[str]) -> str:
    if not ids:
        return "-"
    out = []
    for task_id in ids:
        dep = model.task(task_id)
        out.append(f"{task_id} ({dep.state_id})" if dep else f"{task_id} (missing)")
    return ", ".join(out)


def _thread_panel(model, mode: ThreadMode) -> List[str]:
    lines = [f"Thread · {mode.title}", ""]
    body: List[str] = []
    if mode.loading:
        body.append("loading…")
    elif not mode.comments:
        body.append("(no comments yet)")
    for comment in mode.comments:
        author = comment.author or "unknown"
        body.append(f"{author} · {format_activity_timestamp(comment.created_at)}")
        body.extend("  " + line for line in wrap_display(comment.body, max(20, model.width - 4)))
    height = _panel_height(model, 4)
    end = _comment_line_offset(mode, model) if mode.comments else len(body)
    lines += body[max(0, end - height):end]
    return lines + ["", "> " + mode.composer.display(True), "enter post · pgup/pgdown scroll · esc back"]


def _comment_line_offset(mode: ThreadMode, model) -> int:
    offset = 0
    for idx, comment in enumerate(mode.comments):
        offset += 1 + len(wrap_display(comment.body, max(20, model.width - 4)))
        if idx >= mode.scroll:
            break
    return offset


def _due_picker_panel(model, mode: DuePickerMode) -> List[str]:
    return ["Due date", ""] + _list_lines(list(DUE_PICKER_OPTIONS), mode.index, len(DUE_PICKER_OPTIONS))


def _label_picker_panel(model, mode: LabelPickerMode) -> List[str]:
    items = [f"{label}  ({source})" for label, source in mode.options]
    return ["Labels", ""] + _list_lines(items, mode.index, _panel_height(model, 2))


def _inspector_panel(model, mode: DependencyInspectorMode) -> List[str]:
    owner = mode.owner.title if mode.owner else mode.owner_id
    scope = "all projects" if mode.cross_project else "current project"
    lines = [
        f"Dependencies · {owner}",
        "",
        _field("filter", mode.query.display(mode.focus == INSPECTOR_FOCUS_QUERY), mode.focus == INSPECTOR_FOCUS_QUERY),
        _field("scope", f"[{scope}]", mode.focus == INSPECTOR_FOCUS_SCOPE),
        _field("archived", "[x]" if mode.include_archived else "[ ]", mode.focus == INSPECTOR_FOCUS_ARCHIVED),
        _field("field", f"[{mode.active_field}]", mode.focus == INSPECTOR_FOCUS_FIELD),
        "",
    ]
    if mode.loading:
        lines.append("loading…")
    elif not mode.rows:
        lines.append("no candidates")
    else:
        items = []
        for row in mode.rows:
            dep = "D" if mode.draft.has("depends_on", row.task_id) else " "
            blk = "B" if mode.draft.has("blocked_by", row.task_id) else " "
            pin = "pinned " if row.pinned else ""
            where = f"{row.match.project.name} / " if row.match and mode.cross_project else ""
            items.append(f"[{dep}{blk}] {pin}{where}{row.title}  ({row.task_id}, {row.state_id})")
        index = mode.index if mode.focus == INSPECTOR_FOCUS_LIST else -1
        start, end = window_bounds(mode.index, len(items), _panel_height(model, len(lines) + 2))
        lines += [f"{CURSOR_MARK if i == index else ' '} {items[i]}" for i in range(start, end)]
    lines.append("")
    lines.append("tab focus · d depends · b blocks · space toggle · a/ctrl+s apply · enter jump · esc discard")
    return lines


def _activity_panel(model, mode: ActivityLogMode) -> List[str]:
    lines = ["Activity log", ""]
    if mode.loading:
        lines.append("loading…")
    entries = activity_newest_first(model)
    if not entries and not mode.loading:
        return lines + ["no activity yet"]
    items = [f"{format_activity_timestamp(e.at)}  {e.summary}  {e.target}" for e in entries]
    return lines + _list_lines(items, mode.index, _panel_height(model, 3))


def _resource_picker_panel(model, mode: ResourcePickerMode) -> List[str]:
    lines = [f"Attach resource · {mode.directory}", "", "filter: " + mode.filter.display(True), ""]
    if mode.loading:
        return lines + ["loading…"]
    entries = visible_entries(mode)
    if not entries:
        lines.append("(no entries)")
    else:
        lines += _list_lines([entry.display_name for entry in entries], mode.index, _panel_height(model, 6))
    return lines + ["", "enter open/attach · a attach · backspace parent · esc close"]


def _single_input_panel(title: str, label: str, value: str, hint: str) -> List[str]:
    return [title, "", _field(label, value, True), "", hint]


def _mode_panel(model) -> Optional[List[str]]:
    mode = model.mode
    if isinstance(mode, (AddTaskMode, EditTaskMode)):
        return _task_form_panel(model, mode)
    if isinstance(mode, RenameMode):
        return _single_input_panel("Rename task", "title", mode.input.display(True), "enter save · esc cancel")
    if isinstance(mode, SearchMode):
        return _search_panel(model, mode)
    if isinstance(mode, SearchResultsMode):
        return _search_results_panel(model, mode)
    if isinstance(mode, ProjectPickerMode):
        return _project_picker_panel(model, mode)
    if isinstance(mode, ProjectFormMode):
        return _project_form_panel(model, mode)
    if isinstance(mode, ConfirmMode):
        return _confirm_panel(model, mode)
    if isinstance(mode, CommandPaletteMode):
        return _palette_panel(model, mode)
    if isinstance(mode, QuickActionsMode):
        return _quick_actions_panel(model, mode)
    if isinstance(mode, TaskInfoMode):
        return _task_info_panel(model, mode)
    if isinstance(mode, ThreadMode):
        return _thread_panel(model, mode)
    if isinstance(mode, DuePickerMode):
        return _due_picker_panel(model, mode)
    if isinstance(mode, LabelPickerMode):
        return _label_picker_panel(model, mode)
    if isinstance(mode, DependencyInspectorMode):
        return _inspector_panel(model, mode)
    if isinstance(mode, ActivityLogMode):
        return _activity_panel(model, mode)
    if isinstance(mode, HighlightColorMode):
        return _single_input_panel("Highlight color", "color", mode.input.display(True), "#rrggbb or a color name · enter save")
    if isinstance(mode, LabelsConfigMode):
        return [
            f"Labels · {mode.slug}",
            "",
            _field("global", mode.global_input.display(mode.focus == 0), mode.focus == 0),
            _field("project", mode.project_input.display(mode.focus == 1), mode.focus == 1),
            "",
            "tab switch · enter save · esc cancel",
        ]
    if isinstance(mode, PathsRootsMode):
        return _single_input_panel(f"Project root · {mode.slug}", "root", mode.input.display(True), "empty clears · enter save")
    if isinstance(mode, ResourcePickerMode):
        return _resource_picker_panel(model, mode)
    if isinstance(mode, BootstrapSettingsMode):
        return _single_input_panel("Welcome", "display name", mode.input.display(True), "enter save")
    return None


# ------------------------------------------------------------------ footer


def _footer(model) -> List[str]:
    status = model.status
    hint = "? help · : commands · . actions · q quit" if isinstance(model.mode, NormalMode) else f"[{model.mode.name}]"
    return [clip_display(status, model.width), clip_display(hint, model.width)]


def render_lines(model) -> List[str]:
    lines = _header(model)
    if model.show_help:
        body = list(HELP_LINES)
    else:
        body = _mode_panel(model)
        if body is None:
            body = _board(model)
    height = max(1, model.height - HEADER_LINES - FOOTER_LINES)
    body = [clip_display(line, model.width) for line in body[:height]]
    body += [""] * (height - len(body))
    return lines + body + _footer(model)


def view(model) -> View:
    """Render the model; mouse capture follows the selection-mode flag."""
    content = "\n".join(line.rstrip() for line in render_lines(model))
    return View(content=content, mouse_capture=not model.options.mouse_selection_mode)


__all__ = [
    "HEADER_LINES",
    "board_top",
    "board_body_height",
    "column_width",
    "column_at",
    "card_at",
    "project_picker_row",
    "due_counts",
    "card_text",
    "render_lines",
    "view",
]
