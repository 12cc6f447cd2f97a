from core import Task, TaskMetadata, compute_dependency_rollup, open_dependencies


def _task(task_id, state="todo", **meta):
    return Task(id=task_id, project_id="p", column_id="c", title=task_id, lifecycle_state=state, metadata=TaskMetadata(**meta))


def test_open_dependencies_skip_done_and_self():
    done = _task("done", state="done")
    owner = _task("owner", depends_on=["owner", "done", "todo", "gone"])
    by_id = {t.id: t for t in (done, owner, _task("todo"))}
    assert open_dependencies(owner, by_id) == ["todo", "gone"]


def test_rollup_counts_cycles_and_unresolved_edges():
    tasks = [
        _task("a", depends_on=["b"]),
        _task("b", depends_on=["a"]),
        _task("c", blocked_by=["missing"]),
        _task("d", state="done"),
        _task("e", depends_on=["d"]),
        _task("f", blocked_reason="waiting on vendor"),
    ]
    rollup = compute_dependency_rollup(tasks)
    assert rollup.total_items == 6
    assert rollup.dependency_items == 3
    assert rollup.blocked_by_items == 1
    assert rollup.dependency_edges == 4
    assert rollup.unresolved_dependency_edges == 1
    assert rollup.blocked_items == 4
    assert rollup.summary() == "deps: total 6 • blocked 4 • unresolved 1 • edges 4"
