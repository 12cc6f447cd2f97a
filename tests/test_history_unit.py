"""Undo/redo history stacks and step application."""

from application.ports import CreateProjectInput, CreateTaskInput
from core.board.application.history import (
    MAX_HISTORY_SIZE,
    STEP_ARCHIVE,
    STEP_HARD_DELETE,
    STEP_MOVE,
    HistoryActionSet,
    HistoryManager,
    HistoryStep,
    apply_steps,
    rollback_steps,
)
from infrastructure.memory_service import InMemoryBoardService


def _move(task_id="t-1"):
    return HistoryStep(STEP_MOVE, task_id, from_column_id="a", from_position=0, to_column_id="b", to_position=3)


def test_undo_steps_are_inverted_in_reverse_order():
    action = HistoryActionSet.build("bulk move right", [_move("t-1"), _move("t-2")])
    undo = action.undo_steps()
    assert [step.task_id for step in undo] == ["t-2", "t-1"]
    assert undo[0].to_column_id == "a"
    assert undo[0].to_position == 0


def test_stacks_only_change_on_completion():
    history = HistoryManager()
    action = HistoryActionSet.build("move task", [_move()])
    history.push(action)

    plan = history.begin_undo()
    assert plan.steps
    assert history.can_undo() and not history.can_redo()

    history.complete_undo(plan.action_set)
    assert not history.can_undo() and history.can_redo()

    history.complete_redo(history.begin_redo().action_set)
    assert history.can_undo() and not history.can_redo()


def test_push_clears_redo_stack():
    history = HistoryManager()
    history.push(HistoryActionSet.build("one", [_move()]))
    history.complete_undo(history.begin_undo().action_set)
    history.push(HistoryActionSet.build("two", [_move()]))
    assert not history.can_redo()


def test_history_is_capped_oldest_first():
    history = HistoryManager()
    for idx in range(MAX_HISTORY_SIZE + 5):
        history.push(HistoryActionSet.build(f"move {idx}", [_move()]))
    assert len(history.undo_stack) == MAX_HISTORY_SIZE
    assert history.undo_stack[0].label == "move 5"


def test_irreversible_top_is_discarded():
    history = HistoryManager()
    history.push(HistoryActionSet.build("archive", [HistoryStep(STEP_ARCHIVE, "t-1")]))
    history.push(HistoryActionSet.build("hard delete", [HistoryStep(STEP_HARD_DELETE, "t-2")]))
    plan = history.begin_undo()
    assert plan.discarded is True
    assert plan.steps == []
    assert plan.status == "last action cannot be undone"
    assert history.undo_stack[-1].label == "archive"


def test_empty_history_reports_status():
    history = HistoryManager()
    assert history.begin_undo().status == "nothing to undo"
    assert history.begin_redo().status == "nothing to redo"


def test_copy_does_not_share_stacks():
    history = HistoryManager()
    history.push(HistoryActionSet.build("one", [_move()]))
    clone = history.copy()
    clone.push(HistoryActionSet.build("two", [_move()]))
    assert len(history.undo_stack) == 1


def test_failed_step_rolls_back_applied_steps():
    service = InMemoryBoardService()
    project = service.create_project(CreateProjectInput(name="Demo"))
    todo, progress, _ = [c.id for c in service.list_columns(project.id)]
    task = service.create_task(CreateTaskInput(project.id, todo, "Only"))
    steps = [
        HistoryStep(STEP_MOVE, task.id, from_column_id=todo, from_position=0, to_column_id=progress, to_position=0),
        HistoryStep(STEP_ARCHIVE, "t-missing"),
    ]
    ok, err, applied = apply_steps(service, steps)
    assert ok is False
    assert "t-missing" in err
    assert applied == 1
    assert rollback_steps(service, steps[:applied]) is None
    assert service.list_tasks(project.id)[0].column_id == todo
