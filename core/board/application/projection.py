"""Focus projection over the flat task arena.

Each hierarchy level has its own board view: without a focus root the board
shows top-level work items, with a root it shows that root's direct children
only. Nothing here mutates the task list.
"""

from typing import Dict, Iterable, List, Optional, Set

from core import KIND_SUBTASK, Task, order_tasks_by_hierarchy


BREADCRUMB_SEPARATOR = " / "

GROUP_NONE = "none"
GROUP_PRIORITY = "priority"
GROUP_STATE = "state"
GROUP_BY_VALUES = (GROUP_NONE, GROUP_PRIORITY, GROUP_STATE)

_PRIORITY_RANK = {"high": 0, "medium": 1, "low": 2}
_STATE_RANK = {"todo": 0, "progress": 1, "done": 2, "archived": 3}


def index_tasks(tasks: Iterable[Task]) -> Dict[str, Task]:
    return {task.id: task for task in tasks}


def direct_children(tasks: Iterable[Task], parent_id: str) -> List[Task]:
    if not parent_id:
        return []
    return [task for task in tasks if task.parent_id == parent_id and task.id != parent_id]


def is_top_level(task: Task, tasks_by_id: Dict[str, Task]) -> bool:
    """Top-level board item: not a subtask and no parent in the arena.

    A parent id that does not resolve leaves the task at the top so it is
    never hidden from every view.
    """
    if task.kind == KIND_SUBTASK:
        return False
    return not task.parent_id or task.parent_id not in tasks_by_id


def projected_task_set(tasks: Iterable[Task], root_id: str = "") -> Set[str]:
    """Identifiers visible at the current focus level.

    Args:
        tasks: The loaded snapshot
        root_id: Focus root; empty means the full project board

    Returns:
        Set of task ids; with a root, exactly the root's direct children
        (empty when the root has none or is unknown)
    """
    items = list(tasks)
    by_id = index_tasks(items)
    if not root_id:
        return {task.id for task in items if is_top_level(task, by_id)}
    if root_id not in by_id:
        return set()
    return {task.id for task in direct_children(items, root_id)}


def can_focus(tasks: Iterable[Task], task_id: str) -> bool:
    """True when focusing `task_id` would show a non-empty board."""
    return bool(task_id) and bool(direct_children(list(tasks), task_id))


def ancestor_chain(tasks_by_id: Dict[str, Task], task_id: str) -> List[Task]:
    """Tasks from the top-most ancestor down to `task_id` (inclusive)."""
    chain: List[Task] = []
    visited: Set[str] = set()
    current: Optional[Task] = tasks_by_id.get(task_id)
    while current is not None and current.id not in visited:
        visited.add(current.id)
        chain.append(current)
        current = tasks_by_id.get(current.parent_id) if current.parent_id else None
    chain.reverse()
    return chain


def breadcrumb(tasks_by_id: Dict[str, Task], root_id: str, separator: str = BREADCRUMB_SEPARATOR) -> str:
    if not root_id:
        return ""
    return separator.join(task.title for task in ancestor_chain(tasks_by_id, root_id))


def breadcrumb_path(project_name: str, tasks_by_id: Dict[str, Task], task_id: str) -> str:
    """Full path string anchored at the project name."""
    parts = [project_name] if project_name else []
    parts.extend(task.title for task in ancestor_chain(tasks_by_id, task_id))
    return BREADCRUMB_SEPARATOR.join(parts)


def normalize_group_by(value: str) -> str:
    token = (value or "").strip().lower()
    return token if token in GROUP_BY_VALUES else GROUP_NONE


def group_rank(task: Task, group_by: str) -> int:
    group_by = normalize_group_by(group_by)
    if group_by == GROUP_PRIORITY:
        return _PRIORITY_RANK.get(task.priority, 3)
    if group_by == GROUP_STATE:
        return _STATE_RANK.get(task.state_id, 4)
    return 0


def tasks_for_column(
    tasks: Iterable[Task],
    column_id: str,
    root_id: str = "",
    group_by: str = GROUP_NONE,
) -> List[Task]:
    """Column membership filtered on top of the projection."""
    items = list(tasks)
    visible = projected_task_set(items, root_id)
    selected = [task for task in items if task.column_id == column_id and task.id in visible]
    ordered = order_tasks_by_hierarchy(selected)
    if normalize_group_by(group_by) != GROUP_NONE:
        ordered.sort(key=lambda task: group_rank(task, group_by))
    return ordered


__all__ = [
    "BREADCRUMB_SEPARATOR",
    "GROUP_BY_VALUES",
    "index_tasks",
    "direct_children",
    "is_top_level",
    "projected_task_set",
    "can_focus",
    "ancestor_chain",
    "breadcrumb",
    "breadcrumb_path",
    "normalize_group_by",
    "group_rank",
    "tasks_for_column",
]
