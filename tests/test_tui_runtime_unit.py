from types import SimpleNamespace

import pytest

from core.board.interface.tui_app import MESSAGE_HANDLERS, accepts_message
from core.board.interface.tui_models import KeyMsg
from core.board.interface.tui_runtime import BoardRuntime, normalize_key


def _runtime(model):
    """BoardRuntime without a terminal: fake app and executor."""
    runtime = BoardRuntime.__new__(BoardRuntime)
    runtime.model = model
    runtime.submitted = []
    runtime.app = SimpleNamespace(invalidate=lambda: None, exit=lambda: None, style=None)
    runtime._executor = SimpleNamespace(submit=lambda fn, req: runtime.submitted.append(req))
    runtime._style_color = model.options.highlight_color
    return runtime


def test_normalize_key_names():
    assert normalize_key("c-m") == "enter"
    assert normalize_key("escape") == "esc"
    assert normalize_key("c-b") == "ctrl+b"
    assert normalize_key("s-tab") == "shift+tab"
    assert normalize_key("x") == "x"


def test_unknown_message_is_dropped(board):
    runtime = _runtime(board.model)
    assert accepts_message(object()) is False
    runtime.dispatch(object())
    assert runtime.model is board.model
    assert runtime.submitted == []


def test_known_message_updates_and_submits(board):
    runtime = _runtime(board.model)
    runtime.dispatch(KeyMsg("r"))
    assert runtime.model is not board.model
    assert [req.kind for req in runtime.submitted] == ["load_board"]


def test_handler_type_error_is_not_swallowed(board, monkeypatch):
    def broken(model, msg):
        raise TypeError("handler bug")

    monkeypatch.setitem(MESSAGE_HANDLERS, KeyMsg, broken)
    runtime = _runtime(board.model)
    with pytest.raises(TypeError, match="handler bug"):
        runtime.dispatch(KeyMsg("j"))
