import pytest
import yaml

from config import (
    ConfigError,
    load_board_options,
    options_from_dict,
    parse_duration,
    save_allowed_labels,
    save_identity,
    save_project_root,
)


def test_defaults_from_empty_mapping():
    opts = options_from_dict({})
    assert opts.default_delete_mode == "archive"
    assert opts.confirm_archive is True
    assert opts.confirm_restore is False
    assert opts.search_states == ["todo", "progress", "done"]
    assert opts.needs_bootstrap is True


def test_invalid_values_name_the_key():
    with pytest.raises(ConfigError, match="delete.default_mode"):
        options_from_dict({"delete": {"default_mode": "shred"}})
    with pytest.raises(ConfigError, match="confirm.archive"):
        options_from_dict({"confirm": {"archive": "yes"}})
    with pytest.raises(ConfigError, match=r"search.states\[1\]"):
        options_from_dict({"search": {"states": ["todo", "blocked"]}})
    with pytest.raises(ConfigError, match="ui.highlight_color"):
        options_from_dict({"ui": {"highlight_color": "#12"}})


def test_due_windows_are_parsed_deduplicated_and_sorted():
    opts = options_from_dict({"ui": {"due_soon_windows": ["1d", "2h", "120m"]}})
    assert opts.due_soon_windows == [7200, 86400]
    assert parse_duration("30s") == 30
    with pytest.raises(ConfigError):
        parse_duration("0h")


def test_labels_are_lowercased_and_allowed_union_sorted():
    opts = options_from_dict({"labels": {"global": ["Bug", "bug", "UI"], "projects": {"Alpha": ["api"]}}})
    assert opts.global_labels == ["bug", "ui"]
    assert opts.allowed_labels("alpha") == ["api", "bug", "ui"]


def test_save_helpers_round_trip(tmp_path):
    path = tmp_path / "kanboard.yaml"
    save_identity("  Ana ", path)
    save_project_root("Alpha", str(tmp_path), path)
    save_allowed_labels("alpha", ["Bug"], ["API"], path)

    opts = load_board_options(path)
    assert opts.display_name == "Ana"
    assert opts.project_root("ALPHA") == str(tmp_path)
    assert opts.labels_for_project("alpha") == ["api"]

    save_project_root("alpha", "", path)
    assert "project_roots" not in yaml.safe_load(path.read_text(encoding="utf-8"))


def test_save_identity_requires_name(tmp_path):
    with pytest.raises(ConfigError):
        save_identity("  ", tmp_path / "kanboard.yaml")
