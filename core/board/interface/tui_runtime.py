"""prompt_toolkit runtime: feeds key/mouse/result messages through `update`.

The runtime owns the only mutable reference to the board model. Requests
returned by `update` run on a single worker thread so that results arrive
in submission order; each result is handed back to the event loop and
dispatched like any other message.
"""

import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Optional

from prompt_toolkit.application import Application
from prompt_toolkit.filters import Condition
from prompt_toolkit.formatted_text import FormattedText
from prompt_toolkit.key_binding import KeyBindings
from prompt_toolkit.keys import Keys
from prompt_toolkit.layout import HSplit, Layout, Window
from prompt_toolkit.styles import Style

from config import DEFAULT_HIGHLIGHT_COLOR, BoardOptions

from .tui_app import accepts_message, init, update
from .tui_models import KeyMsg, Request, ResizeMsg, View, InteractiveFormattedTextControl
from .tui_mouse import mouse_msg_from_event
from .tui_render import CURSOR_MARK, HEADER_LINES, view
from .tui_requests import REQ_QUIT, RequestContext, execute_request

logger = logging.getLogger("kanboard.tui")

KEY_ALIASES = {
    "c-m": "enter",
    "c-j": "enter",
    "c-i": "tab",
    "c-h": "backspace",
    "s-tab": "shift+tab",
    "pageup": "pgup",
    "pagedown": "pgdown",
    "escape": "esc",
    " ": "space",
}

SPECIAL_KEYS = (
    "up",
    "down",
    "left",
    "right",
    "home",
    "end",
    "delete",
    "pageup",
    "pagedown",
    "escape",
    "s-tab",
)

CONTROL_KEYS = tuple(f"c-{ch}" for ch in "abcdefghijklmnopqrstuvwxyz")


def normalize_key(key: str) -> str:
    """Map a prompt_toolkit key name to the board's key vocabulary."""
    if key in KEY_ALIASES:
        return KEY_ALIASES[key]
    if key.startswith("c-") and len(key) == 3:
        return f"ctrl+{key[2]}"
    return key


def build_style(highlight_color: str) -> Style:
    color = highlight_color or DEFAULT_HIGHLIGHT_COLOR
    return Style.from_dict(
        {
            "": "#d7dfe6",
            "header": f"{color} bold",
            "cursor": f"{color} bold",
            "status": "#97a0a9",
            "error": "#e06c75 bold",
        }
    )


def formatted_view(rendered: View, error: str = "") -> FormattedText:
    """Style header lines, cursor marks and the status line of a rendered view."""
    lines = rendered.content.split("\n")
    fragments = []
    for idx, line in enumerate(lines):
        if idx < HEADER_LINES:
            fragments.append(("class:header" if idx == 0 else "", line))
        elif idx == len(lines) - 2:
            fragments.append(("class:error" if error else "class:status", line))
        else:
            parts = line.split(CURSOR_MARK)
            for pos, part in enumerate(parts):
                if pos:
                    fragments.append(("class:cursor", CURSOR_MARK))
                fragments.append(("", part))
        if idx < len(lines) - 1:
            fragments.append(("", "\n"))
    return FormattedText(fragments)


class BoardRuntime:
    """Event loop glue around the pure board state machine."""

    def __init__(self, ctx: RequestContext, options: BoardOptions):
        self.ctx = ctx
        self.model, initial = init(options, str(ctx.config_path or ""))
        self._initial: List[Request] = initial
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="kanboard-req")
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._last_view = view(self.model)
        self._style_color = ""

        self.body_control = InteractiveFormattedTextControl(
            self._render,
            show_cursor=False,
            focusable=True,
            mouse_handler=self._handle_mouse,
        )
        root = HSplit([Window(content=self.body_control, always_hide_cursor=True, wrap_lines=False)])
        self.app = Application(
            layout=Layout(root),
            key_bindings=self._build_key_bindings(),
            style=build_style(options.highlight_color),
            full_screen=True,
            mouse_support=Condition(lambda: self._last_view.mouse_capture),
        )
        self.app.ttimeoutlen = 0.05

    # ------------------------------------------------------------- bindings

    def _build_key_bindings(self) -> KeyBindings:
        kb = KeyBindings()
        kb.timeout = 0

        def handler(event):
            key = event.key_sequence[0].key
            key = key.value if isinstance(key, Keys) else event.data
            self.dispatch(KeyMsg(normalize_key(key)))

        kb.add(Keys.Any)(handler)
        for name in SPECIAL_KEYS + CONTROL_KEYS:
            kb.add(name, eager=True)(handler)
        return kb

    # ------------------------------------------------------------- dispatch

    def dispatch(self, msg) -> None:
        if not accepts_message(msg):
            logger.error("dropped message of unknown type %s", type(msg).__name__)
            return
        self.model, requests = update(self.model, msg)
        self._submit(requests)
        if self.model.options.highlight_color != self._style_color:
            self._style_color = self.model.options.highlight_color
            self.app.style = build_style(self._style_color)
        self.app.invalidate()

    def _submit(self, requests: List[Request]) -> None:
        for req in requests:
            if req.kind == REQ_QUIT:
                logger.info("quit requested")
                self.app.exit()
                return
            logger.debug("submit %s", req.kind)
            self._executor.submit(self._run_request, req)

    def _run_request(self, req: Request) -> None:
        msg = execute_request(self.ctx, req)
        if msg is None or self._loop is None:
            return
        self._loop.call_soon_threadsafe(self.dispatch, msg)

    # --------------------------------------------------------------- render

    def _check_size(self) -> None:
        try:
            size = self.app.output.get_size()
        except OSError:
            return
        if size.columns != self.model.width or size.rows != self.model.height:
            self.model, _ = update(self.model, ResizeMsg(size.columns, size.rows))

    def _render(self) -> FormattedText:
        self._check_size()
        self._last_view = view(self.model)
        return formatted_view(self._last_view, self.model.error)

    def _handle_mouse(self, mouse_event):
        if not self._last_view.mouse_capture:
            return NotImplemented
        msg = mouse_msg_from_event(mouse_event)
        if msg is None:
            return NotImplemented
        self.dispatch(msg)
        return None

    # ------------------------------------------------------------------ run

    def _pre_run(self) -> None:
        self._loop = asyncio.get_running_loop()
        self._submit(self._initial)
        self._initial = []

    def run(self) -> None:
        logger.info("board starting")
        try:
            self.app.run(pre_run=self._pre_run)
        finally:
            self._executor.shutdown(wait=False)
            logger.info("board stopped")


def run_board(ctx: RequestContext, options: BoardOptions, runtime_factory: Callable = BoardRuntime) -> int:
    runtime_factory(ctx, options).run()
    return 0


__all__ = ["normalize_key", "build_style", "formatted_view", "BoardRuntime", "run_board"]
