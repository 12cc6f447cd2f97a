"""Dependency rollups over the flat task arena.

Tasks reference each other only by identifier, so every count here resolves
links through an id index. Cycles are legal data and are simply counted as
edges.
"""

from typing import Dict, Iterable, List

from .project import DependencyRollup
from .task import Task


def open_dependencies(task: Task, tasks_by_id: Dict[str, Task]) -> List[str]:
    """Ids in depends_on that are unresolved or not yet done."""
    blocking = []
    for ref in task.metadata.depends_on:
        if ref == task.id:
            continue
        dep = tasks_by_id.get(ref)
        if dep is None or dep.state_id not in ("done", "archived"):
            blocking.append(ref)
    return blocking


def compute_dependency_rollup(tasks: Iterable[Task]) -> DependencyRollup:
    """Count dependency totals for one project's task set.

    A task counts as blocked when it has a blocked_by reference, a blocked
    reason, or a depends_on reference that is not done yet.
    """
    items = list(tasks)
    by_id = {t.id: t for t in items}
    rollup = DependencyRollup(total_items=len(items))
    for task in items:
        depends_on = [ref for ref in task.metadata.depends_on if ref]
        blocked_by = [ref for ref in task.metadata.blocked_by if ref]
        if depends_on:
            rollup.dependency_items += 1
        if blocked_by:
            rollup.blocked_by_items += 1
        rollup.dependency_edges += len(depends_on) + len(blocked_by)
        for ref in depends_on + blocked_by:
            if ref not in by_id:
                rollup.unresolved_dependency_edges += 1
        if blocked_by or task.metadata.blocked_reason.strip() or open_dependencies(task, by_id):
            rollup.blocked_items += 1
    return rollup


__all__ = [
    "open_dependencies",
    "compute_dependency_rollup",
]
