from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from core.status import is_known_state, normalize_lifecycle_state

USER_CONFIG_PATH = Path.home() / ".kanboard_config.yaml"

DEFAULT_SEARCH_STATES = ["todo", "progress", "done"]
DEFAULT_HIGHLIGHT_COLOR = "#7aa2f7"
NAMED_COLORS = (
    "ansiblack", "ansired", "ansigreen", "ansiyellow", "ansiblue", "ansimagenta", "ansicyan", "ansiwhite",
    "black", "red", "green", "yellow", "blue", "magenta", "cyan", "white", "orange", "purple", "gray",
)
_HEX_COLOR = re.compile(r"^#[0-9a-fA-F]{6}$")
_DURATION = re.compile(r"^(\d+)([smhd])$")
_LOG_LEVELS = ("debug", "info", "warning", "error")

logger = logging.getLogger("kanboard.config")


class ConfigError(ValueError):
    pass


@dataclass
class BoardOptions:
    """Runtime options the board reads; built from the YAML user config."""

    default_delete_mode: str = "archive"
    confirm_delete: bool = True
    confirm_archive: bool = True
    confirm_hard_delete: bool = True
    confirm_restore: bool = False
    show_priority: bool = True
    show_due_date: bool = True
    show_labels: bool = True
    show_description: bool = False
    group_by: str = "none"
    search_cross_project: bool = False
    search_include_archived: bool = False
    search_states: List[str] = field(default_factory=lambda: list(DEFAULT_SEARCH_STATES))
    due_soon_windows: List[int] = field(default_factory=lambda: [86400, 3600])
    show_due_summary: bool = True
    highlight_color: str = DEFAULT_HIGHLIGHT_COLOR
    mouse_selection_mode: bool = False
    display_name: str = ""
    project_roots: Dict[str, str] = field(default_factory=dict)
    global_labels: List[str] = field(default_factory=list)
    project_labels: Dict[str, List[str]] = field(default_factory=dict)
    enforce_allowed_labels: bool = False
    log_level: str = "info"
    log_file: str = ""

    @property
    def needs_bootstrap(self) -> bool:
        return not self.display_name.strip()

    def project_root(self, slug: str) -> str:
        return self.project_roots.get((slug or "").strip().lower(), "")

    def labels_for_project(self, slug: str) -> List[str]:
        return list(self.project_labels.get((slug or "").strip().lower(), []))

    def allowed_labels(self, slug: str) -> List[str]:
        """Sorted, lowercased union of global and project allow-lists."""
        out = {label.strip().lower() for label in self.global_labels + self.labels_for_project(slug) if label.strip()}
        return sorted(out)


def _load_config(path: Optional[Path] = None) -> Dict[str, Any]:
    path = path or USER_CONFIG_PATH
    if not path.exists():
        return {}
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except (OSError, yaml.YAMLError) as exc:
        logger.warning("failed to read config %s: %s", path, exc)
        return {}
    return data if isinstance(data, dict) else {}


def _save_config(data: Dict[str, Any], path: Optional[Path] = None) -> None:
    path = path or USER_CONFIG_PATH
    if not data:
        if path.exists():
            path.unlink()
        return
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(yaml.safe_dump(data, allow_unicode=True, sort_keys=True), encoding="utf-8")


def _section(data: Dict[str, Any], name: str) -> Dict[str, Any]:
    value = data.get(name) or {}
    if not isinstance(value, dict):
        raise ConfigError(f"{name} must be a mapping")
    return value


def _bool(section: Dict[str, Any], key: str, default: bool, prefix: str) -> bool:
    value = section.get(key, default)
    if not isinstance(value, bool):
        raise ConfigError(f"invalid {prefix}.{key}: {value!r}")
    return value


def _string_list(value: Any, key: str) -> List[str]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ConfigError(f"{key} must be a list")
    out = []
    for idx, item in enumerate(value):
        text = str(item).strip()
        if not text:
            raise ConfigError(f"{key}[{idx}] is empty")
        out.append(text)
    return out


def normalize_config_labels(values: List[str]) -> List[str]:
    out: List[str] = []
    for raw in values:
        label = (raw or "").strip().lower()
        if label and label not in out:
            out.append(label)
    return out


def parse_duration(raw: str) -> int:
    match = _DURATION.match((raw or "").strip().lower())
    if not match:
        raise ConfigError(f"invalid duration {raw!r}")
    amount = int(match.group(1))
    if amount <= 0:
        raise ConfigError(f"duration must be > 0: {raw!r}")
    return amount * {"s": 1, "m": 60, "h": 3600, "d": 86400}[match.group(2)]


def is_valid_color(value: str) -> bool:
    value = (value or "").strip()
    return bool(_HEX_COLOR.match(value)) or value.lower() in NAMED_COLORS


def options_from_dict(data: Dict[str, Any]) -> BoardOptions:
    """Validate a raw config mapping and build BoardOptions.

    Raises:
        ConfigError: with the offending key path
    """
    opts = BoardOptions()
    delete = _section(data, "delete")
    mode = str(delete.get("default_mode", opts.default_delete_mode)).strip().lower()
    if mode not in ("archive", "hard"):
        raise ConfigError(f"invalid delete.default_mode: {mode!r}")
    opts.default_delete_mode = mode

    confirm = _section(data, "confirm")
    opts.confirm_delete = _bool(confirm, "delete", True, "confirm")
    opts.confirm_archive = _bool(confirm, "archive", True, "confirm")
    opts.confirm_hard_delete = _bool(confirm, "hard_delete", True, "confirm")
    opts.confirm_restore = _bool(confirm, "restore", False, "confirm")

    fields = _section(data, "task_fields")
    opts.show_priority = _bool(fields, "show_priority", True, "task_fields")
    opts.show_due_date = _bool(fields, "show_due_date", True, "task_fields")
    opts.show_labels = _bool(fields, "show_labels", True, "task_fields")
    opts.show_description = _bool(fields, "show_description", False, "task_fields")

    board = _section(data, "board")
    group_by = str(board.get("group_by", "none") or "none").strip().lower()
    if group_by not in ("none", "priority", "state"):
        raise ConfigError(f"invalid board.group_by: {group_by!r}")
    opts.group_by = group_by

    search = _section(data, "search")
    opts.search_cross_project = _bool(search, "cross_project", False, "search")
    opts.search_include_archived = _bool(search, "include_archived", False, "search")
    if "states" in search:
        states = _string_list(search.get("states"), "search.states")
        for idx, state in enumerate(states):
            if not is_known_state(state):
                raise ConfigError(f"search.states[{idx}] references unknown state {state!r}")
        opts.search_states = [normalize_lifecycle_state(s) for s in states] or list(DEFAULT_SEARCH_STATES)

    ui = _section(data, "ui")
    if "due_soon_windows" in ui:
        windows = []
        for idx, raw in enumerate(_string_list(ui.get("due_soon_windows"), "ui.due_soon_windows")):
            try:
                seconds = parse_duration(raw)
            except ConfigError:
                raise ConfigError(f"ui.due_soon_windows[{idx}] invalid duration {raw!r}") from None
            if seconds not in windows:
                windows.append(seconds)
        opts.due_soon_windows = sorted(windows)
    opts.show_due_summary = _bool(ui, "show_due_summary", True, "ui")
    opts.mouse_selection_mode = _bool(ui, "mouse_selection_mode", False, "ui")
    color = str(ui.get("highlight_color", DEFAULT_HIGHLIGHT_COLOR) or DEFAULT_HIGHLIGHT_COLOR).strip()
    if not is_valid_color(color):
        raise ConfigError(f"invalid ui.highlight_color: {color!r}")
    opts.highlight_color = color

    identity = _section(data, "identity")
    opts.display_name = str(identity.get("display_name", "") or "").strip()

    roots = _section(data, "project_roots")
    for slug, root in roots.items():
        key = str(slug).strip().lower()
        if not key:
            raise ConfigError("project_roots contains an empty key")
        if not str(root or "").strip():
            raise ConfigError(f"project_roots.{key} path is empty")
        opts.project_roots[key] = str(root).strip()

    labels = _section(data, "labels")
    opts.global_labels = normalize_config_labels(_string_list(labels.get("global"), "labels.global"))
    projects = labels.get("projects") or {}
    if not isinstance(projects, dict):
        raise ConfigError("labels.projects must be a mapping")
    for slug, values in projects.items():
        key = str(slug).strip().lower()
        if not key:
            raise ConfigError("labels.projects contains an empty project key")
        opts.project_labels[key] = normalize_config_labels(_string_list(values, f"labels.projects.{key}"))
    opts.enforce_allowed_labels = _bool(labels, "enforce_allowed", False, "labels")

    logging_cfg = _section(data, "logging")
    level = str(logging_cfg.get("level", "info") or "info").strip().lower()
    if level == "warn":
        level = "warning"
    if level not in _LOG_LEVELS:
        raise ConfigError(f"invalid logging.level: {level!r}")
    opts.log_level = level
    opts.log_file = str(logging_cfg.get("file", "") or "").strip()
    return opts


def load_board_options(path: Optional[Path] = None) -> BoardOptions:
    return options_from_dict(_load_config(path))


def _update_config(mutator, path: Optional[Path] = None) -> None:
    data = _load_config(path)
    mutator(data)
    _save_config(data, path)


def save_project_root(slug: str, root_path: str, path: Optional[Path] = None) -> None:
    key = (slug or "").strip().lower()
    if not key:
        raise ConfigError("project slug is empty")

    def mutate(data: Dict[str, Any]) -> None:
        roots = dict(data.get("project_roots") or {})
        if root_path.strip():
            roots[key] = root_path.strip()
        else:
            roots.pop(key, None)
        if roots:
            data["project_roots"] = roots
        else:
            data.pop("project_roots", None)

    _update_config(mutate, path)


def save_allowed_labels(slug: str, global_labels: List[str], project_labels: List[str], path: Optional[Path] = None) -> None:
    key = (slug or "").strip().lower()
    if not key:
        raise ConfigError("project slug is empty")

    def mutate(data: Dict[str, Any]) -> None:
        labels = dict(data.get("labels") or {})
        labels["global"] = normalize_config_labels(global_labels)
        projects = dict(labels.get("projects") or {})
        normalized = normalize_config_labels(project_labels)
        if normalized:
            projects[key] = normalized
        else:
            projects.pop(key, None)
        labels["projects"] = projects
        data["labels"] = labels

    _update_config(mutate, path)


def save_highlight_color(color: str, path: Optional[Path] = None) -> None:
    color = (color or "").strip()
    if not is_valid_color(color):
        raise ConfigError(f"invalid highlight color: {color!r}")

    def mutate(data: Dict[str, Any]) -> None:
        ui = dict(data.get("ui") or {})
        ui["highlight_color"] = color
        data["ui"] = ui

    _update_config(mutate, path)


def save_identity(display_name: str, path: Optional[Path] = None) -> None:
    display_name = (display_name or "").strip()
    if not display_name:
        raise ConfigError("display name is required")

    def mutate(data: Dict[str, Any]) -> None:
        identity = dict(data.get("identity") or {})
        identity["display_name"] = display_name
        data["identity"] = identity

    _update_config(mutate, path)
