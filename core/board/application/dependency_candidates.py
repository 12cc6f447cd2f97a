"""Candidate rows for the dependency inspector.

Rows are ephemeral: they combine a task match with its derived state id and
are rebuilt every time the inspector reloads. Edits are staged in a
DependencyDraft and only written back on apply.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from core import Task, TaskMatch


FIELD_DEPENDS_ON = "depends_on"
FIELD_BLOCKED_BY = "blocked_by"
DEPENDENCY_FIELDS = (FIELD_DEPENDS_ON, FIELD_BLOCKED_BY)

STATE_MISSING = "missing"


@dataclass
class DependencyCandidate:
    task_id: str
    match: Optional[TaskMatch]
    state_id: str
    pinned: bool = False
    pinned_field: str = ""

    @property
    def missing(self) -> bool:
        return self.match is None

    @property
    def title(self) -> str:
        if self.match is None:
            return "(missing reference)"
        return self.match.task.title


@dataclass
class DependencyDraft:
    """Staged depends_on/blocked_by edits for one owning task."""

    owner_id: str
    depends_on: List[str] = field(default_factory=list)
    blocked_by: List[str] = field(default_factory=list)

    @classmethod
    def from_task(cls, task: Task) -> "DependencyDraft":
        return cls(task.id, list(task.metadata.depends_on), list(task.metadata.blocked_by))

    def values(self, field_name: str) -> List[str]:
        if field_name == FIELD_BLOCKED_BY:
            return self.blocked_by
        return self.depends_on

    def has(self, field_name: str, task_id: str) -> bool:
        return task_id in self.values(field_name)

    def toggle(self, field_name: str, task_id: str) -> Optional[bool]:
        """Stage add/remove of `task_id` in `field_name`.

        Returns True when added, False when removed, None when refused
        (self reference or blank id).
        """
        task_id = (task_id or "").strip()
        if not task_id or task_id == self.owner_id:
            return None
        values = self.values(field_name)
        if task_id in values:
            values.remove(task_id)
            return False
        values.append(task_id)
        return True

    def cleaned(self) -> Tuple[List[str], List[str]]:
        """Both lists with the owner's own id stripped and duplicates dropped."""
        return _strip_ids(self.depends_on, self.owner_id), _strip_ids(self.blocked_by, self.owner_id)

    def differs_from(self, task: Task) -> bool:
        depends_on, blocked_by = self.cleaned()
        return depends_on != list(task.metadata.depends_on) or blocked_by != list(task.metadata.blocked_by)


def _strip_ids(values: Iterable[str], owner_id: str) -> List[str]:
    out: List[str] = []
    seen = set()
    for raw in values:
        value = (raw or "").strip()
        if not value or value == owner_id or value.lower() in seen:
            continue
        seen.add(value.lower())
        out.append(value)
    return out


def candidate_matches_filter(match: TaskMatch, query: str, states: Sequence[str], include_archived: bool) -> bool:
    state = match.state_id
    if state == "archived":
        if not include_archived:
            return False
    elif states and state not in states:
        return False
    needle = (query or "").strip().lower()
    if not needle:
        return True
    task = match.task
    haystack = " ".join([task.id, task.title, task.description, " ".join(task.labels)]).lower()
    return needle in haystack


def build_dependency_candidates(
    owner: Task,
    matches: Iterable[TaskMatch],
    known: Dict[str, TaskMatch],
    query: str = "",
    states: Sequence[str] = (),
    include_archived: bool = False,
) -> List[DependencyCandidate]:
    """Build inspector rows for `owner`.

    Args:
        owner: Task whose relationships are being edited
        matches: Search hits for the current query/scope
        known: Every task match the caller could resolve by id, used to turn
            stored links into rows
        query: Free-text filter applied to unpinned rows
        states: Enabled state ids for unpinned rows (empty means all)
        include_archived: Whether unpinned archived tasks are eligible

    Returns:
        Pinned rows (stored depends_on, then stored blocked_by, each in stored
        order; unresolvable ids as missing-reference rows) followed by the
        remaining matches. The owner never appears.
    """
    rows: List[DependencyCandidate] = []
    seen = {owner.id}
    for field_name in DEPENDENCY_FIELDS:
        for ref in getattr(owner.metadata, field_name):
            ref = (ref or "").strip()
            if not ref or ref in seen:
                continue
            seen.add(ref)
            match = known.get(ref)
            state = match.state_id if match is not None else STATE_MISSING
            rows.append(DependencyCandidate(ref, match, state, pinned=True, pinned_field=field_name))
    for match in matches:
        task_id = match.task.id
        if task_id in seen:
            continue
        if not candidate_matches_filter(match, query, states, include_archived):
            continue
        seen.add(task_id)
        rows.append(DependencyCandidate(task_id, match, match.state_id))
    return rows


__all__ = [
    "FIELD_DEPENDS_ON",
    "FIELD_BLOCKED_BY",
    "DEPENDENCY_FIELDS",
    "STATE_MISSING",
    "DependencyCandidate",
    "DependencyDraft",
    "candidate_matches_filter",
    "build_dependency_candidates",
]
