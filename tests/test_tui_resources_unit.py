import os

import pytest

from core.board.interface.tui_resources import (
    NO_ROOT_MESSAGE,
    PARENT_ENTRY,
    PathSandboxError,
    add_resource_ref,
    build_resource_ref,
    filter_entries,
    list_directory,
    normalize_project_root_input,
    parent_directory,
    resolve_within_root,
)


@pytest.fixture
def root(tmp_path):
    (tmp_path / "docs").mkdir()
    (tmp_path / "docs" / "notes.md").write_text("x", encoding="utf-8")
    (tmp_path / "README.md").write_text("x", encoding="utf-8")
    return str(tmp_path)


def test_relative_paths_resolve_inside_root(root):
    assert resolve_within_root(root, "docs/notes.md") == os.path.join(root, "docs", "notes.md")


def test_escaping_paths_are_refused(root):
    with pytest.raises(PathSandboxError):
        resolve_within_root(root, "../outside.txt")
    with pytest.raises(PathSandboxError):
        resolve_within_root(root, "/etc/passwd")


def test_empty_root_has_no_fallback():
    with pytest.raises(PathSandboxError) as exc:
        resolve_within_root("", "anything")
    assert str(exc.value) == NO_ROOT_MESSAGE


def test_listing_puts_directories_first_and_parent_below_root(root):
    names = [entry.name for entry in list_directory(root, root)]
    assert names == ["docs", "README.md"]
    nested = list_directory(root, os.path.join(root, "docs"))
    assert nested[0].name == PARENT_ENTRY
    assert [e.name for e in filter_entries(nested, "NOTES")] == [PARENT_ENTRY, "notes.md"]


def test_resource_ref_is_root_relative_posix(root):
    ref = build_resource_ref(root, os.path.join(root, "docs", "notes.md"))
    assert ref.location == "docs/notes.md"
    assert ref.title == "notes.md"
    assert add_resource_ref([ref], build_resource_ref(root, "docs/notes.md")) == [ref]


def test_project_root_input_must_be_directory(root):
    assert normalize_project_root_input("") == ""
    assert normalize_project_root_input(root) == os.path.normpath(root)
    with pytest.raises(PathSandboxError):
        normalize_project_root_input(os.path.join(root, "README.md"))


def test_non_directory_root_is_refused(root):
    with pytest.raises(PathSandboxError, match="not a directory"):
        resolve_within_root(os.path.join(root, "README.md"), "anything")


def test_parent_directory_stops_at_root(root):
    assert parent_directory(root, os.path.join(root, "docs")) == os.path.normpath(root)
    assert parent_directory(root, root) == os.path.normpath(root)
    with pytest.raises(PathSandboxError):
        parent_directory(root, os.path.dirname(root))
