"""Project-root sandbox for resource attachments.

Every path handed to the picker or stored on a task is resolved against the
project's configured root and refused when it normalizes outside of it. There
is no fallback directory: without a root nothing can be attached.
"""

import os
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import List, Sequence

from core.task import BASE_ALIAS_PROJECT_ROOT, PATH_MODE_RELATIVE, ResourceRef

NO_ROOT_MESSAGE = "resource picker requires a project root; set one in paths/roots"
PARENT_ENTRY = ".."


class PathSandboxError(ValueError):
    pass


@dataclass(frozen=True)
class ResourceEntry:
    name: str
    path: str
    is_dir: bool

    @property
    def display_name(self) -> str:
        return self.name + "/" if self.is_dir and self.name != PARENT_ENTRY else self.name


def normalize_project_root_input(raw: str) -> str:
    """Clean an absolute directory typed into a form; empty stays empty."""
    text = (raw or "").strip()
    if not text:
        return ""
    path = os.path.normpath(os.path.abspath(os.path.expanduser(text)))
    if not os.path.isdir(path):
        raise PathSandboxError("root path must be a directory")
    return path


def _clean_root(root: str) -> str:
    text = (root or "").strip()
    if not text:
        raise PathSandboxError(NO_ROOT_MESSAGE)
    cleaned = os.path.normpath(os.path.abspath(os.path.expanduser(text)))
    if not os.path.isdir(cleaned):
        raise PathSandboxError(f"project root is not a directory: {cleaned}")
    return cleaned


def resolve_within_root(root: str, path: str) -> str:
    """Absolute, cleaned form of `path` (relative paths join the root).

    Raises:
        PathSandboxError: empty or non-directory root, or a path that
            escapes the root after normalization
    """
    cleaned_root = _clean_root(root)
    target = (path or "").strip() or cleaned_root
    if not os.path.isabs(target):
        target = os.path.join(cleaned_root, target)
    target = os.path.normpath(target)
    if os.path.commonpath([cleaned_root, target]) != cleaned_root:
        raise PathSandboxError(f"path escapes project root: {path}")
    return target


def list_directory(root: str, directory: str) -> List[ResourceEntry]:
    """Entries of `directory` (inside `root`), directories first.

    A ".." entry leads to the parent unless `directory` is the root itself.
    """
    cleaned_root = _clean_root(root)
    current = resolve_within_root(cleaned_root, directory)
    entries: List[ResourceEntry] = []
    with os.scandir(current) as it:
        for item in it:
            entries.append(ResourceEntry(item.name, os.path.join(current, item.name), item.is_dir()))
    entries.sort(key=lambda entry: (not entry.is_dir, entry.name.lower()))
    if current != cleaned_root:
        entries.insert(0, ResourceEntry(PARENT_ENTRY, os.path.dirname(current), True))
    return entries


def filter_entries(entries: Sequence[ResourceEntry], query: str) -> List[ResourceEntry]:
    needle = (query or "").strip().lower()
    if not needle:
        return list(entries)
    return [entry for entry in entries if entry.name == PARENT_ENTRY or needle in entry.name.lower()]


def parent_directory(root: str, directory: str) -> str:
    cleaned_root = _clean_root(root)
    current = resolve_within_root(cleaned_root, directory)
    if current == cleaned_root:
        return cleaned_root
    return os.path.dirname(current)


def build_resource_ref(root: str, path: str) -> ResourceRef:
    target = resolve_within_root(root, path)
    relative = os.path.relpath(target, _clean_root(root))
    location = PurePosixPath(*Path(relative).parts).as_posix() if relative != "." else "."
    return ResourceRef(
        location=location,
        path_mode=PATH_MODE_RELATIVE,
        base_alias=BASE_ALIAS_PROJECT_ROOT,
        title=os.path.basename(target) or location,
    )


def add_resource_ref(refs: Sequence[ResourceRef], ref: ResourceRef) -> List[ResourceRef]:
    """New list with `ref` appended unless an equal reference is present."""
    out = list(refs)
    if any(existing.key() == ref.key() for existing in out):
        return out
    out.append(ref)
    return out


__all__ = [
    "NO_ROOT_MESSAGE",
    "PARENT_ENTRY",
    "PathSandboxError",
    "ResourceEntry",
    "normalize_project_root_input",
    "resolve_within_root",
    "list_directory",
    "filter_entries",
    "parent_directory",
    "build_resource_ref",
    "add_resource_ref",
]
