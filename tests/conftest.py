from types import SimpleNamespace

import pytest

from application.ports import CreateProjectInput, CreateTaskInput
from config import BoardOptions
from core import TaskMetadata
from core.board.interface.tui_app import init, update
from core.board.interface.tui_models import KeyMsg
from core.board.interface.tui_requests import REQ_QUIT, RequestContext, execute_request
from infrastructure.memory_service import InMemoryBoardService


def drain(model, requests, ctx):
    """Run requests synchronously, feeding each result back through update."""
    queue = list(requests)
    while queue:
        req = queue.pop(0)
        if req.kind == REQ_QUIT:
            continue
        msg = execute_request(ctx, req)
        model, more = update(model, msg)
        queue.extend(more)
    return model


def press(board, *keys):
    """Send keys one by one, draining the resulting requests after each."""
    for key in keys:
        board.model, requests = update(board.model, KeyMsg(key))
        board.model = drain(board.model, requests, board.ctx)
    return board.model


def seed_service():
    service = InMemoryBoardService(actor="tester")
    project = service.create_project(CreateProjectInput(name="Alpha"))
    todo, progress, done = [c.id for c in service.list_columns(project.id)]
    ids = {}
    ids["build"] = service.create_task(CreateTaskInput(project.id, todo, "Build board", labels=["ui"])).id
    ids["wire"] = service.create_task(CreateTaskInput(project.id, todo, "Wire API")).id
    ids["child"] = service.create_task(
        CreateTaskInput(project.id, todo, "Column layout", kind="subtask", parent_id=ids["build"])
    ).id
    ids["review"] = service.create_task(
        CreateTaskInput(project.id, progress, "Review", metadata=TaskMetadata(depends_on=[ids["wire"]]))
    ).id
    ids["ship"] = service.create_task(CreateTaskInput(project.id, done, "Ship beta")).id
    return service, SimpleNamespace(project=project, columns=(todo, progress, done), **ids)


@pytest.fixture
def seeded():
    return seed_service()


@pytest.fixture
def board(tmp_path, seeded):
    service, ids = seeded
    ctx = RequestContext(service=service, config_path=tmp_path / "kanboard.yaml", actor="tester")
    options = BoardOptions(display_name="tester")
    model, requests = init(options, str(ctx.config_path))
    model = drain(model, requests, ctx)
    return SimpleNamespace(model=model, ctx=ctx, service=service, ids=ids)
