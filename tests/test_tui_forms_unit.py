from datetime import datetime, timedelta, timezone

import pytest

from core import Task
from core.board.interface.tui_forms import (
    DUE_FORMAT_ERROR,
    FormError,
    append_csv_value,
    cycle_priority,
    parse_due_input,
    parse_labels_input,
    parse_priority,
    parse_task_ref_ids,
    replace_last_token,
    validate_allowed_labels,
)
from core.board.interface.tui_render import due_counts


NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def test_due_input_blank_keeps_current_and_dash_clears():
    assert parse_due_input("", NOW) == NOW
    assert parse_due_input("-", NOW) is None


def test_due_input_rfc3339_is_normalized_to_utc():
    parsed = parse_due_input("2024-05-02T10:00:00+02:00")
    assert parsed == datetime(2024, 5, 2, 8, 0, tzinfo=timezone.utc)
    assert parse_due_input("2024-05-02").tzinfo is timezone.utc


def test_due_input_rejects_garbage():
    with pytest.raises(FormError) as exc:
        parse_due_input("next tuesday")
    assert str(exc.value) == DUE_FORMAT_ERROR


def test_priority_parsing_and_cycling():
    assert parse_priority("", "high") == "high"
    assert parse_priority("LOW") == "low"
    with pytest.raises(FormError):
        parse_priority("urgent")
    assert cycle_priority("high", 1) == "low"
    assert cycle_priority("bogus", 0) == "medium"


def test_csv_fields_keep_first_spelling():
    assert parse_labels_input("ui, api, ui") == ["ui", "api"]
    assert parse_labels_input("", ["keep"]) == ["keep"]
    assert parse_task_ref_ids("T-1, t-1, t-2") == ["T-1", "t-2"]
    assert parse_task_ref_ids("-", ["t-9"]) == []


def test_allowed_labels_enforced_only_when_requested():
    validate_allowed_labels(["bug", "x"], ["bug"], enforce=False)
    validate_allowed_labels(["BUG"], ["bug"], enforce=True)
    with pytest.raises(FormError, match="labels not allowed: x"):
        validate_allowed_labels(["bug", "x"], ["bug"], enforce=True)


def test_label_suggestion_helpers():
    assert append_csv_value("ui, api", "UI") == "ui, api"
    assert append_csv_value("ui", "api") == "ui, api"
    assert replace_last_token("ui, ap", "api") == "ui, api"


def test_due_counts_skip_done_and_archived():
    def task(task_id, delta, **kwargs):
        return Task(id=task_id, project_id="p", column_id="c", title=task_id, due_at=NOW + delta, **kwargs)

    tasks = [
        task("late", timedelta(hours=-1)),
        task("soon", timedelta(minutes=30)),
        task("later", timedelta(days=3)),
        task("done", timedelta(hours=-2), lifecycle_state="done"),
        task("gone", timedelta(hours=-2), archived_at=NOW),
    ]
    assert due_counts(tasks, [3600, 86400], now=NOW) == (1, 1)
