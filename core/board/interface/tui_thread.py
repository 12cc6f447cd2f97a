"""Comment thread for a task or the current project."""

from typing import List, Optional

from application.ports import CreateCommentInput
from core import Task
from core.project import TARGET_PROJECT, TARGET_TASK

from .tui_models import CommentsLoadedMsg, Request, request
from .tui_modes import NormalMode, ThreadMode
from .tui_navigation import clamp_index
from .tui_requests import REQ_CREATE_COMMENT, REQ_LOAD_COMMENTS

THREAD_PAGE = 5


def _open(model, target_type: str, target_id: str, title: str, previous) -> List[Request]:
    model.mode = ThreadMode(
        project_id=model.project_id,
        target_type=target_type,
        target_id=target_id,
        title=title,
        previous=previous,
    )
    model.set_status("loading comments")
    return [
        request(
            REQ_LOAD_COMMENTS,
            project_id=model.project_id,
            target_type=target_type,
            target_id=target_id,
        )
    ]


def open_task_thread(model, task: Task, previous=None) -> List[Request]:
    return _open(model, TARGET_TASK, task.id, task.title, previous)


def open_thread(model) -> List[Request]:
    """Thread for the highlighted task, or for the project when none is."""
    project = model.current_project()
    if project is None:
        model.set_status("no project selected")
        return []
    task = model.selected_task_in_column()
    if task is not None:
        return open_task_thread(model, task)
    return _open(model, TARGET_PROJECT, project.id, project.name, None)


def apply_comments_loaded(model, msg: CommentsLoadedMsg) -> List[Request]:
    mode = model.mode
    if not isinstance(mode, ThreadMode) or mode.target_id != msg.target_id:
        return []
    mode.loading = False
    if msg.err:
        model.set_error(msg.err)
        return []
    mode.comments = list(msg.comments)
    mode.scroll = max(0, len(mode.comments) - 1)
    if msg.status:
        mode.composer.clear()
        model.set_status(msg.status)
    else:
        model.set_status(f"{len(mode.comments)} comments")
    return []


def _close(model, mode: ThreadMode) -> None:
    model.mode = mode.previous if mode.previous is not None else NormalMode()
    model.set_status("thread closed")


def handle_thread_key(model, key: str) -> List[Request]:
    mode: ThreadMode = model.mode
    if key == "esc":
        _close(model, mode)
        return []
    if key == "pgup":
        mode.scroll = clamp_index(mode.scroll - THREAD_PAGE, len(mode.comments))
        return []
    if key == "pgdown":
        mode.scroll = clamp_index(mode.scroll + THREAD_PAGE, len(mode.comments))
        return []
    if key != "enter":
        mode.composer.handle_key(key)
        return []
    body = mode.composer.value.strip()
    if not body:
        model.set_status("comment is empty")
        return []
    model.set_status("posting comment")
    data = CreateCommentInput(
        project_id=mode.project_id,
        target_type=mode.target_type,
        target_id=mode.target_id,
        body=body,
        author=model.options.display_name,
    )
    return [request(REQ_CREATE_COMMENT, data=data)]


__all__ = [
    "open_task_thread",
    "open_thread",
    "apply_comments_loaded",
    "handle_thread_key",
]
