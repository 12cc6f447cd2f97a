from datetime import datetime, timezone

from core import Project, Task, TaskMatch, TaskMetadata
from core.board.application.dependency_candidates import (
    FIELD_BLOCKED_BY,
    FIELD_DEPENDS_ON,
    DependencyDraft,
    build_dependency_candidates,
)

PROJECT = Project(id="p-1", name="Alpha")


def _match(task_id, state="todo", archived=False, title=None):
    task = Task(
        id=task_id,
        project_id=PROJECT.id,
        column_id="c-1",
        title=title or task_id,
        lifecycle_state=state,
        archived_at=datetime(2024, 1, 1, tzinfo=timezone.utc) if archived else None,
    )
    return TaskMatch(project=PROJECT, task=task)


def _owner(depends_on=(), blocked_by=()):
    return Task(
        id="owner",
        project_id=PROJECT.id,
        column_id="c-1",
        title="Owner",
        metadata=TaskMetadata(depends_on=list(depends_on), blocked_by=list(blocked_by)),
    )


def test_pinned_rows_keep_stored_order_and_skip_filters():
    done = _match("t-done", state="done")
    archived = _match("t-arch", archived=True)
    active = _match("t-active", state="progress")
    known = {m.task.id: m for m in (done, archived, active)}
    owner = _owner(depends_on=["owner", "t-done", "t-arch"], blocked_by=["t-active"])

    rows = build_dependency_candidates(owner, list(known.values()), known, states=["todo"], include_archived=False)

    assert [row.task_id for row in rows] == ["t-done", "t-arch", "t-active"]
    assert all(row.pinned for row in rows)
    assert [row.pinned_field for row in rows] == [FIELD_DEPENDS_ON, FIELD_DEPENDS_ON, FIELD_BLOCKED_BY]
    assert rows[1].state_id == "archived"


def test_unresolved_reference_becomes_missing_row():
    rows = build_dependency_candidates(_owner(blocked_by=["t-gone"]), [], {})
    assert rows[0].missing is True
    assert rows[0].state_id == "missing"
    assert rows[0].pinned_field == FIELD_BLOCKED_BY
    assert rows[0].title == "(missing reference)"


def test_unpinned_rows_follow_query_states_and_archived_flag():
    matches = [
        _match("owner"),
        _match("t-1", title="Wire API"),
        _match("t-2", state="done", title="Wire docs"),
        _match("t-3", archived=True, title="Wire old"),
        _match("t-4", title="Unrelated"),
    ]
    rows = build_dependency_candidates(_owner(), matches, {}, query="wire", states=["todo", "done"])
    assert [row.task_id for row in rows] == ["t-1", "t-2"]

    rows = build_dependency_candidates(_owner(), matches, {}, query="wire", states=["todo"], include_archived=True)
    assert [row.task_id for row in rows] == ["t-1", "t-3"]


def test_draft_toggle_refuses_self_and_tracks_changes():
    owner = _owner(depends_on=["t-1"])
    draft = DependencyDraft.from_task(owner)
    assert draft.toggle(FIELD_DEPENDS_ON, "owner") is None
    assert draft.differs_from(owner) is False
    assert draft.toggle(FIELD_BLOCKED_BY, "t-2") is True
    assert draft.toggle(FIELD_DEPENDS_ON, "t-1") is False
    assert draft.cleaned() == ([], ["t-2"])
    assert draft.differs_from(owner) is True
