"""Request executor: runs deferred work against the board service.

`update` only describes work as Request values; the runtime (or a test)
hands each one to `execute_request`, which performs the service or
filesystem call and returns the result message to feed back into `update`.
Collaborator failures become messages carrying `err`; nothing raises out.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Optional

import config as board_config
from application.ports import BoardService, CreateCommentInput, SearchQuery
from core.board.application.activity import ACTIVITY_LOG_MAX_ITEMS
from core.board.application.history import (
    STEP_FIELD_UPDATE,
    HistoryActionSet,
    HistoryStep,
    apply_steps,
    rollback_steps,
    task_field_snapshot,
)

from .tui_models import (
    ActionResultMsg,
    ActivityLoadedMsg,
    BoardLoadedMsg,
    CandidatesLoadedMsg,
    CommentsLoadedMsg,
    ConfigReloadedMsg,
    DirectoryListedMsg,
    Request,
    SearchResultsMsg,
)
from .tui_resources import list_directory

logger = logging.getLogger("kanboard.requests")

REQ_LOAD_BOARD = "load_board"
REQ_SEARCH = "search"
REQ_CREATE_TASK = "create_task"
REQ_UPDATE_TASK = "update_task"
REQ_RENAME_TASK = "rename_task"
REQ_APPLY_STEPS = "apply_steps"
REQ_CREATE_PROJECT = "create_project"
REQ_UPDATE_PROJECT = "update_project"
REQ_ARCHIVE_PROJECT = "archive_project"
REQ_RESTORE_PROJECT = "restore_project"
REQ_DELETE_PROJECT = "delete_project"
REQ_LOAD_ACTIVITY = "load_activity"
REQ_LOAD_COMMENTS = "load_comments"
REQ_CREATE_COMMENT = "create_comment"
REQ_LOAD_CANDIDATES = "load_candidates"
REQ_SAVE_DEPENDENCIES = "save_dependencies"
REQ_LIST_DIRECTORY = "list_directory"
REQ_ATTACH_RESOURCE = "attach_resource"
REQ_SAVE_PROJECT_ROOT = "save_project_root"
REQ_SAVE_LABELS = "save_labels"
REQ_SAVE_HIGHLIGHT_COLOR = "save_highlight_color"
REQ_SAVE_IDENTITY = "save_identity"
REQ_RELOAD_CONFIG = "reload_config"
REQ_QUIT = "quit"

DIRECTION_DO = "do"
DIRECTION_UNDO = "undo"
DIRECTION_REDO = "redo"

# Requests whose results can change the undo/redo stacks.
HISTORY_REQUEST_KINDS = frozenset(
    {REQ_APPLY_STEPS, REQ_UPDATE_TASK, REQ_RENAME_TASK, REQ_SAVE_DEPENDENCIES, REQ_ATTACH_RESOURCE}
)


@dataclass
class RequestContext:
    service: BoardService
    config_path: Optional[Path] = None
    actor: str = ""


# ------------------------------------------------------------------ reads


def _load_board(ctx: RequestContext, req: Request) -> BoardLoadedMsg:
    projects = ctx.service.list_projects(include_archived=True)
    project_id = req.get("project_id", "")
    if projects and project_id not in {p.id for p in projects}:
        active = [p for p in projects if not p.is_archived]
        project_id = (active or projects)[0].id
    if not project_id:
        return BoardLoadedMsg(projects=projects)
    include_archived = bool(req.get("include_archived", False))
    return BoardLoadedMsg(
        projects=projects,
        columns=ctx.service.list_columns(project_id),
        tasks=ctx.service.list_tasks(project_id, include_archived=include_archived),
        rollup=ctx.service.get_project_dependency_rollup(project_id),
        project_id=project_id,
    )


def _search(ctx: RequestContext, req: Request) -> SearchResultsMsg:
    return SearchResultsMsg(matches=ctx.service.search_task_matches(req.get("query") or SearchQuery()))


def _load_activity(ctx: RequestContext, req: Request) -> ActivityLoadedMsg:
    limit = int(req.get("limit", ACTIVITY_LOG_MAX_ITEMS))
    return ActivityLoadedMsg(events=ctx.service.list_project_change_events(req.get("project_id", ""), limit))


def _load_comments(ctx: RequestContext, req: Request) -> CommentsLoadedMsg:
    comments = ctx.service.list_comments_by_target(req.get("project_id", ""), req.get("target_type", ""), req.get("target_id", ""))
    return CommentsLoadedMsg(target_id=req.get("target_id", ""), comments=comments)


def _load_candidates(ctx: RequestContext, req: Request) -> CandidatesLoadedMsg:
    """Search hits for the inspector plus an id index over every task.

    Archived/state filtering is left to the candidate builder so pinned rows
    resolve regardless of the active filters.
    """
    matches = ctx.service.search_task_matches(
        SearchQuery(
            query=req.get("query", ""),
            project_id=req.get("project_id", ""),
            cross_project=bool(req.get("cross_project", False)),
            include_archived=True,
        )
    )
    everything = ctx.service.search_task_matches(SearchQuery(cross_project=True, include_archived=True))
    known = {match.task.id: match for match in everything}
    return CandidatesLoadedMsg(owner_id=req.get("owner_id", ""), matches=matches, known=known)


def _list_directory(ctx: RequestContext, req: Request) -> DirectoryListedMsg:
    directory = req.get("directory", "")
    return DirectoryListedMsg(directory=directory, entries=list_directory(req.get("root", ""), directory))


# ------------------------------------------------------------------ mutations


def _create_task(ctx: RequestContext, req: Request) -> ActionResultMsg:
    task = ctx.service.create_task(req.get("data"))
    return ActionResultMsg(
        status=req.get("status", "task created"),
        reload=True,
        focus_task_id=task.id,
        activity=("create task", task.title),
    )


def _field_update_result(req: Request, task, default_status: str, summary: str) -> ActionResultMsg:
    history_push = None
    before = req.get("before")
    if before is not None:
        step = HistoryStep(STEP_FIELD_UPDATE, task.id, before=before, after=task_field_snapshot(task))
        history_push = HistoryActionSet.build(req.get("label", summary), [step], summary=summary, target=task.title)
    return ActionResultMsg(
        status=req.get("status", default_status),
        reload=True,
        focus_task_id=task.id,
        history_push=history_push,
        activity=(summary, task.title),
    )


def _update_task(ctx: RequestContext, req: Request) -> ActionResultMsg:
    task = ctx.service.update_task(req.get("data"))
    return _field_update_result(req, task, "task updated", "edit task")


def _rename_task(ctx: RequestContext, req: Request) -> ActionResultMsg:
    task = ctx.service.rename_task(req.get("task_id", ""), req.get("title", ""))
    return _field_update_result(req, task, "task renamed", "rename task")


def _save_dependencies(ctx: RequestContext, req: Request) -> ActionResultMsg:
    task = ctx.service.update_task(req.get("data"))
    return _field_update_result(req, task, "dependencies updated", "edit dependencies")


def _attach_resource(ctx: RequestContext, req: Request) -> ActionResultMsg:
    task = ctx.service.update_task(req.get("data"))
    return _field_update_result(req, task, "resource attached", "attach resource")


def _apply_steps(ctx: RequestContext, req: Request) -> ActionResultMsg:
    """Apply an action set's steps as one unit.

    On the first failing step the already-applied steps are rolled back and
    the history stacks are left alone.
    """
    action_set: HistoryActionSet = req.get("action_set")
    steps = list(req.get("steps") or [])
    direction = req.get("direction", DIRECTION_DO)
    ok, err, applied = apply_steps(ctx.service, steps)
    if not ok:
        rollback_err = rollback_steps(ctx.service, steps[:applied]) if applied else None
        if rollback_err:
            logger.warning("rollback of %s failed: %s", action_set.label, rollback_err)
            err = f"{err} (rollback failed: {rollback_err})"
        return ActionResultMsg(err=err or "action failed", reload=True)
    result = ActionResultMsg(status=req.get("status", ""), reload=True, focus_task_id=req.get("focus_task_id", ""))
    if direction == DIRECTION_UNDO:
        result.history_undo = action_set
        result.activity = ("undo", action_set.label)
    elif direction == DIRECTION_REDO:
        result.history_redo = action_set
        result.activity = ("redo", action_set.label)
    else:
        result.history_push = action_set
        result.activity = (action_set.summary or action_set.label, action_set.target or "-")
        result.clear_task_ids = tuple(req.get("clear_task_ids", ()))
        result.clear_selection = bool(req.get("clear_selection", False))
    return result


def _create_project(ctx: RequestContext, req: Request) -> ActionResultMsg:
    project = ctx.service.create_project(req.get("data"))
    root_path = req.get("root_path", "")
    if root_path:
        board_config.save_project_root(project.slug, root_path, ctx.config_path)
    return ActionResultMsg(
        status="project created",
        reload=True,
        project_id=project.id,
        options=board_config.load_board_options(ctx.config_path) if root_path else None,
    )


def _update_project(ctx: RequestContext, req: Request) -> ActionResultMsg:
    project = ctx.service.update_project(req.get("data"))
    board_config.save_project_root(project.slug, req.get("root_path", ""), ctx.config_path)
    return ActionResultMsg(
        status="project updated",
        reload=True,
        project_id=project.id,
        options=board_config.load_board_options(ctx.config_path),
    )


def _archive_project(ctx: RequestContext, req: Request) -> ActionResultMsg:
    ctx.service.archive_project(req.get("project_id", ""))
    return ActionResultMsg(status="project archived", reload=True)


def _restore_project(ctx: RequestContext, req: Request) -> ActionResultMsg:
    project = ctx.service.restore_project(req.get("project_id", ""))
    return ActionResultMsg(status="project restored", reload=True, project_id=project.id)


def _delete_project(ctx: RequestContext, req: Request) -> ActionResultMsg:
    ctx.service.delete_project(req.get("project_id", ""))
    return ActionResultMsg(status="project deleted", reload=True)


def _create_comment(ctx: RequestContext, req: Request) -> CommentsLoadedMsg:
    data: CreateCommentInput = req.get("data")
    ctx.service.create_comment(data)
    comments = ctx.service.list_comments_by_target(data.project_id, data.target_type, data.target_id)
    return CommentsLoadedMsg(target_id=data.target_id, comments=comments, status="comment posted")


# ------------------------------------------------------------------ config


def _config_saved(ctx: RequestContext, status: str, next_mode: str = "") -> ActionResultMsg:
    return ActionResultMsg(status=status, options=board_config.load_board_options(ctx.config_path), next_mode=next_mode or None)


def _save_project_root(ctx: RequestContext, req: Request) -> ActionResultMsg:
    board_config.save_project_root(req.get("slug", ""), req.get("root", ""), ctx.config_path)
    return _config_saved(ctx, "project root cleared" if not req.get("root") else "project root saved")


def _save_labels(ctx: RequestContext, req: Request) -> ActionResultMsg:
    board_config.save_allowed_labels(
        req.get("slug", ""),
        list(req.get("global_labels", [])),
        list(req.get("project_labels", [])),
        ctx.config_path,
    )
    return _config_saved(ctx, "labels config saved")


def _save_highlight_color(ctx: RequestContext, req: Request) -> ActionResultMsg:
    board_config.save_highlight_color(req.get("color", ""), ctx.config_path)
    return _config_saved(ctx, "highlight color saved")


def _save_identity(ctx: RequestContext, req: Request) -> ActionResultMsg:
    board_config.save_identity(req.get("display_name", ""), ctx.config_path)
    return _config_saved(ctx, "settings saved", next_mode="project-picker")


def _reload_config(ctx: RequestContext, req: Request) -> ConfigReloadedMsg:
    return ConfigReloadedMsg(options=board_config.load_board_options(ctx.config_path))


_HANDLERS: Dict[str, Callable[[RequestContext, Request], Any]] = {
    REQ_LOAD_BOARD: _load_board,
    REQ_SEARCH: _search,
    REQ_CREATE_TASK: _create_task,
    REQ_UPDATE_TASK: _update_task,
    REQ_RENAME_TASK: _rename_task,
    REQ_APPLY_STEPS: _apply_steps,
    REQ_CREATE_PROJECT: _create_project,
    REQ_UPDATE_PROJECT: _update_project,
    REQ_ARCHIVE_PROJECT: _archive_project,
    REQ_RESTORE_PROJECT: _restore_project,
    REQ_DELETE_PROJECT: _delete_project,
    REQ_LOAD_ACTIVITY: _load_activity,
    REQ_LOAD_COMMENTS: _load_comments,
    REQ_CREATE_COMMENT: _create_comment,
    REQ_LOAD_CANDIDATES: _load_candidates,
    REQ_SAVE_DEPENDENCIES: _save_dependencies,
    REQ_LIST_DIRECTORY: _list_directory,
    REQ_ATTACH_RESOURCE: _attach_resource,
    REQ_SAVE_PROJECT_ROOT: _save_project_root,
    REQ_SAVE_LABELS: _save_labels,
    REQ_SAVE_HIGHLIGHT_COLOR: _save_highlight_color,
    REQ_SAVE_IDENTITY: _save_identity,
    REQ_RELOAD_CONFIG: _reload_config,
}


def _failure_message(req: Request, err: str):
    """Result message of the right type for a failed request."""
    if req.kind == REQ_LOAD_BOARD:
        return BoardLoadedMsg(err=err)
    if req.kind == REQ_SEARCH:
        return SearchResultsMsg(err=err)
    if req.kind == REQ_LOAD_ACTIVITY:
        return ActivityLoadedMsg(err=err)
    if req.kind == REQ_LOAD_COMMENTS:
        return CommentsLoadedMsg(target_id=req.get("target_id", ""), err=err)
    if req.kind == REQ_CREATE_COMMENT:
        data = req.get("data")
        return CommentsLoadedMsg(target_id=getattr(data, "target_id", ""), err=err)
    if req.kind == REQ_LOAD_CANDIDATES:
        return CandidatesLoadedMsg(owner_id=req.get("owner_id", ""), err=err)
    if req.kind == REQ_LIST_DIRECTORY:
        return DirectoryListedMsg(directory=req.get("directory", ""), err=err)
    if req.kind == REQ_RELOAD_CONFIG:
        return ConfigReloadedMsg(err=err)
    return ActionResultMsg(err=err)


def execute_request(ctx: RequestContext, req: Request):
    """Run one request and return its result message (None for quit)."""
    if req.kind == REQ_QUIT:
        return None
    handler = _HANDLERS.get(req.kind)
    if handler is None:
        raise TypeError(f"unknown request kind: {req.kind}")
    try:
        msg = handler(ctx, req)
    except Exception as exc:
        err = str(exc) or exc.__class__.__name__
        logger.warning("%s failed: %s", req.kind, err)
        msg = _failure_message(req, err)
    else:
        logger.debug("%s ok", req.kind)
    if isinstance(msg, ActionResultMsg):
        msg.history_ticket = req.get("history_ticket", 0)
    return msg


__all__ = [
    "RequestContext",
    "execute_request",
    "DIRECTION_DO",
    "DIRECTION_UNDO",
    "DIRECTION_REDO",
    "HISTORY_REQUEST_KINDS",
    "REQ_LOAD_BOARD",
    "REQ_SEARCH",
    "REQ_CREATE_TASK",
    "REQ_UPDATE_TASK",
    "REQ_RENAME_TASK",
    "REQ_APPLY_STEPS",
    "REQ_CREATE_PROJECT",
    "REQ_UPDATE_PROJECT",
    "REQ_ARCHIVE_PROJECT",
    "REQ_RESTORE_PROJECT",
    "REQ_DELETE_PROJECT",
    "REQ_LOAD_ACTIVITY",
    "REQ_LOAD_COMMENTS",
    "REQ_CREATE_COMMENT",
    "REQ_LOAD_CANDIDATES",
    "REQ_SAVE_DEPENDENCIES",
    "REQ_LIST_DIRECTORY",
    "REQ_ATTACH_RESOURCE",
    "REQ_SAVE_PROJECT_ROOT",
    "REQ_SAVE_LABELS",
    "REQ_SAVE_HIGHLIGHT_COLOR",
    "REQ_SAVE_IDENTITY",
    "REQ_RELOAD_CONFIG",
    "REQ_QUIT",
]
