"""prompt_toolkit driver for the browser state machines.

Rich content is rendered to ANSI strings, then wrapped with prompt_toolkit's
ANSI() for display in a full-screen FormattedTextControl. Every key press is
turned into an ``Action``, fed to the phase reducer, and the screen is
redrawn from the new state.
"""

from __future__ import annotations

import sys
from collections.abc import Callable
from io import StringIO
from typing import Any

from prompt_toolkit.application import Application
from prompt_toolkit.application import get_app
from prompt_toolkit.formatted_text import ANSI
from prompt_toolkit.key_binding import KeyBindings
from prompt_toolkit.layout.containers import Window
from prompt_toolkit.layout.controls import FormattedTextControl
from prompt_toolkit.layout.layout import Layout
from rich.console import Console
from rich.text import Text

from ..errors import TerminalUnavailableError
from .state import Action
from .state import Status

_COMMON_KEYS: dict[str, Action] = {
    "up": Action.UP,
    "k": Action.UP,
    "down": Action.DOWN,
    "j": Action.DOWN,
    " ": Action.TOGGLE,
    "enter": Action.CONFIRM,
    "escape": Action.CANCEL,
    "c-c": Action.CANCEL,
}

REVIEW_KEYS: dict[str, Action] = {
    **_COMMON_KEYS,
    "a": Action.SELECT_ALL,
    "A": Action.SELECT_ALL,
    "n": Action.DESELECT_ALL,
    "N": Action.DESELECT_ALL,
}

BROWSE_KEYS: dict[str, Action] = {
    **_COMMON_KEYS,
    "right": Action.EXPAND,
    "l": Action.EXPAND,
    "left": Action.COLLAPSE,
    "h": Action.COLLAPSE,
}

Reducer = Callable[[Any, Action], Any]
Renderer = Callable[[Any], Text]


def ensure_terminal() -> None:
    """Raise TerminalUnavailableError unless both stdin and stdout are TTYs."""
    for name, stream in (("stdin", sys.stdin), ("stdout", sys.stdout)):
        try:
            interactive = stream is not None and stream.isatty()
        except (AttributeError, ValueError):
            interactive = False
        if not interactive:
            raise TerminalUnavailableError(f"{name} is not a terminal")


def render_to_ansi(renderable: Text, width: int) -> str:
    """Render a Rich object to an ANSI string."""
    buffer = StringIO()
    console = Console(file=buffer, width=width, force_terminal=True, color_system="truecolor")
    console.print(renderable, end="")
    return buffer.getvalue()


class TerminalSession:
    """Runs one browser phase in the terminal until it is confirmed or cancelled."""

    def __init__(self, state: Any, reducer: Reducer, renderer: Renderer, key_map: dict[str, Action]):
        self.state = state
        self._reducer = reducer
        self._renderer = renderer
        self._key_map = key_map

    def _dispatch(self, action: Action, event) -> None:
        self.state = self._reducer(self.state, action)
        if self.state.status is not Status.ACTIVE:
            event.app.exit(result=self.state)

    def _bindings(self) -> KeyBindings:
        kb = KeyBindings()
        for key, action in self._key_map.items():

            def handler(event, action=action):
                self._dispatch(action, event)

            kb.add(key, eager=key == "escape")(handler)
        return kb

    def _content(self):
        width = get_app().output.get_size().columns
        return ANSI(render_to_ansi(self._renderer(self.state), width))

    def run(self) -> Any:
        """Block until the phase finishes and return the final state.

        Raises:
            TerminalUnavailableError: If the terminal cannot be used
        """
        ensure_terminal()
        control = FormattedTextControl(self._content, focusable=True, show_cursor=False)
        try:
            app = Application(
                layout=Layout(Window(control, wrap_lines=False)),
                key_bindings=self._bindings(),
                full_screen=True,
            )
            app.ttimeoutlen = 0.05
            return app.run()
        except (OSError, EOFError) as e:
            raise TerminalUnavailableError(str(e) or type(e).__name__) from e


def run_in_terminal(state: Any, reducer: Reducer, renderer: Renderer, key_map: dict[str, Action]) -> Any:
    return TerminalSession(state, reducer, renderer, key_map).run()
