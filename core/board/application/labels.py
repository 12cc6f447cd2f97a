"""Label inheritance: global, project and nearest-phase label sources."""

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from core import KIND_PHASE, Task


@dataclass
class LabelSources:
    global_labels: List[str] = field(default_factory=list)
    project: List[str] = field(default_factory=list)
    phase: List[str] = field(default_factory=list)

    def tagged(self) -> List[tuple]:
        """(label, source) pairs in precedence order, for pickers."""
        out = []
        for source, labels in (("global", self.global_labels), ("project", self.project), ("phase", self.phase)):
            out.extend((label, source) for label in labels)
        return out


def unique_labels(*groups: Iterable[str]) -> List[str]:
    """Concatenate label groups, dropping case-insensitive duplicates.

    The first occurrence wins and keeps its original casing; blank entries
    are skipped.
    """
    out: List[str] = []
    seen = set()
    for group in groups:
        for raw in group or []:
            label = (raw or "").strip()
            key = label.lower()
            if not label or key in seen:
                continue
            seen.add(key)
            out.append(label)
    return out


def merge_label_sources(sources: LabelSources) -> List[str]:
    return unique_labels(sources.global_labels, sources.project, sources.phase)


def labels_from_nearest_phase(task: Optional[Task], tasks_by_id: Dict[str, Task]) -> List[str]:
    """Labels of the closest phase found walking up from `task` (inclusive).

    Parent links are resolved through the id index; a visited set stops the
    walk on corrupt parent cycles.
    """
    visited = set()
    current = task
    while current is not None and current.id and current.id not in visited:
        visited.add(current.id)
        if current.kind == KIND_PHASE:
            return unique_labels(current.labels)
        if not current.parent_id:
            break
        current = tasks_by_id.get(current.parent_id)
    return []


def label_sources_for_task(
    task: Optional[Task],
    tasks_by_id: Dict[str, Task],
    global_labels: Iterable[str],
    project_labels: Iterable[str],
) -> LabelSources:
    return LabelSources(
        global_labels=unique_labels(global_labels),
        project=unique_labels(project_labels),
        phase=labels_from_nearest_phase(task, tasks_by_id),
    )


def format_label_source(source: str, labels: List[str]) -> str:
    if not labels:
        return f"{source}: -"
    return f"{source}: " + ", ".join(labels)


__all__ = [
    "LabelSources",
    "unique_labels",
    "merge_label_sources",
    "labels_from_nearest_phase",
    "label_sources_for_task",
    "format_label_source",
]
