from core import Task
from core.board.application.labels import (
    LabelSources,
    format_label_source,
    label_sources_for_task,
    merge_label_sources,
    unique_labels,
)
from core.board.application.projection import (
    breadcrumb,
    can_focus,
    index_tasks,
    projected_task_set,
    tasks_for_column,
)


def _tasks():
    return [
        Task(id="b1", project_id="p", column_id="c1", title="Release", kind="branch"),
        Task(id="ph1", project_id="p", column_id="c1", title="Design", kind="phase", parent_id="b1", labels=["PhaseA"]),
        Task(id="t1", project_id="p", column_id="c2", title="Mockups", parent_id="ph1"),
        Task(id="s1", project_id="p", column_id="c2", title="Icons", kind="subtask", parent_id="t1"),
        Task(id="t2", project_id="p", column_id="c1", title="Orphan", parent_id="gone"),
    ]


def test_top_level_projection_hides_children_and_subtasks():
    assert projected_task_set(_tasks()) == {"b1", "t2"}


def test_focused_projection_shows_direct_children_only():
    assert projected_task_set(_tasks(), "ph1") == {"t1"}
    assert projected_task_set(_tasks(), "unknown") == set()


def test_focus_requires_children():
    assert can_focus(_tasks(), "t1") is True
    assert can_focus(_tasks(), "t2") is False


def test_column_membership_respects_projection():
    assert [t.id for t in tasks_for_column(_tasks(), "c1")] == ["b1", "t2"]
    assert [t.id for t in tasks_for_column(_tasks(), "c2", root_id="t1")] == ["s1"]


def test_breadcrumb_walks_ancestors():
    assert breadcrumb(index_tasks(_tasks()), "t1") == "Release / Design / Mockups"


def test_unique_labels_first_spelling_wins():
    assert unique_labels(["Bug"], ["bug", "shared"], ["PhaseA", " "]) == ["Bug", "shared", "PhaseA"]


def test_label_sources_use_nearest_phase():
    tasks = _tasks()
    sources = label_sources_for_task(tasks[3], index_tasks(tasks), ["bug"], ["shared", "Bug"])
    assert sources.phase == ["PhaseA"]
    assert merge_label_sources(sources) == ["bug", "shared", "PhaseA"]
    assert ("PhaseA", "phase") in sources.tagged()


def test_format_label_source_handles_empty():
    assert format_label_source("global", []) == "global: -"
    assert format_label_source("project", ["a", "b"]) == "project: a, b"


def test_merge_label_sources_dedupes_case_insensitively_and_is_idempotent():
    sources = LabelSources(global_labels=["Bug", "shared"], project=["shared"], phase=["PhaseA"])
    merged = merge_label_sources(sources)
    assert merged == ["Bug", "shared", "PhaseA"]
    assert merge_label_sources(LabelSources(global_labels=merged)) == merged
    assert merge_label_sources(LabelSources(global_labels=merged, project=["BUG"], phase=merged)) == merged
