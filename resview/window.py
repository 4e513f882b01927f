"""Native application window and its event wiring."""

from __future__ import annotations

import logging
from typing import Any

import numpy as np

from resview.input import (
    KEY_LEFT_CONTROL,
    KEY_LEFT_SHIFT,
    MOUSE_BUTTON_LEFT,
    MOUSE_BUTTON_MIDDLE,
    MOUSE_BUTTON_RIGHT,
    Action,
    InputState,
)

logger = logging.getLogger(__name__)

# pyglet key symbols (X11 keysyms) and mouse button bits.
_PYGLET_LSHIFT = 0xFFE1
_PYGLET_RSHIFT = 0xFFE2
_PYGLET_LCTRL = 0xFFE3
_PYGLET_RCTRL = 0xFFE4
_PYGLET_LALT = 0xFFE9
_PYGLET_RALT = 0xFFEA
_PYGLET_ESCAPE = 0xFF1B
_PYGLET_ENTER = 0xFF0D
_PYGLET_TAB = 0xFF09
_PYGLET_BACKSPACE = 0xFF08

_PYGLET_MOUSE_LEFT = 1
_PYGLET_MOUSE_MIDDLE = 2
_PYGLET_MOUSE_RIGHT = 4

_KEY_CODES = {
    _PYGLET_LSHIFT: KEY_LEFT_SHIFT,
    _PYGLET_LCTRL: KEY_LEFT_CONTROL,
    _PYGLET_LALT: 342,
    _PYGLET_RSHIFT: 344,
    _PYGLET_RCTRL: 345,
    _PYGLET_RALT: 346,
    _PYGLET_ESCAPE: 256,
    _PYGLET_ENTER: 257,
    _PYGLET_TAB: 258,
    _PYGLET_BACKSPACE: 259,
}

_BUTTON_CODES = {
    _PYGLET_MOUSE_LEFT: MOUSE_BUTTON_LEFT,
    _PYGLET_MOUSE_MIDDLE: MOUSE_BUTTON_MIDDLE,
    _PYGLET_MOUSE_RIGHT: MOUSE_BUTTON_RIGHT,
}


def _key_code(symbol: int) -> int:
    """Map a pyglet key symbol to the key code used by InputState."""
    if symbol in _KEY_CODES:
        return _KEY_CODES[symbol]
    if ord("a") <= symbol <= ord("z"):
        return symbol - ord("a") + ord("A")
    return symbol


class _EventTranslator:
    """pyglet event handlers feeding an InputState, with y measured from the top."""

    def __init__(self, window: Window, input_state: InputState) -> None:
        self._window = window
        self._input = input_state

    def on_key_press(self, symbol: int, modifiers: int) -> None:
        self._input.on_key(_key_code(symbol), Action.PRESS)

    def on_key_release(self, symbol: int, modifiers: int) -> None:
        self._input.on_key(_key_code(symbol), Action.RELEASE)

    def _button(self, button: int, action: Action) -> None:
        code = _BUTTON_CODES.get(button)
        if code is not None:
            self._input.on_mouse_button(code, action)

    def on_mouse_press(self, x: int, y: int, button: int, modifiers: int) -> None:
        self._button(button, Action.PRESS)

    def on_mouse_release(self, x: int, y: int, button: int, modifiers: int) -> None:
        self._button(button, Action.RELEASE)

    def on_mouse_motion(self, x: int, y: int, dx: int, dy: int) -> None:
        self._input.on_cursor_pos(x, self._window.height - y)

    def on_mouse_drag(self, x: int, y: int, dx: int, dy: int, buttons: int, modifiers: int) -> None:
        self._input.on_cursor_pos(x, self._window.height - y)

    def on_mouse_scroll(self, x: int, y: int, scroll_x: float, scroll_y: float) -> None:
        self._input.on_scroll(scroll_x, scroll_y)

    def on_resize(self, width: int, height: int) -> None:
        self._window.resize(width, height)

    def on_close(self) -> bool:
        self._window._close_requested = True
        return True


class Window:
    """Resizable window with an OpenGL context and input callbacks."""

    def __init__(self, title: str, width: int, height: int) -> None:
        self.title = title
        self.width = int(width)
        self.height = int(height)
        self._native: Any = None
        self._close_requested = False

    @property
    def dimensions(self) -> tuple[int, int]:
        return self.width, self.height

    def initialize(self, input_state: InputState) -> None:
        """Open the window, make its context current and route input to ``input_state``."""
        import pyglet

        config = pyglet.gl.Config(
            double_buffer=True,
            depth_size=24,
            major_version=4,
            minor_version=1,
            forward_compatible=True,
        )
        self._native = pyglet.window.Window(
            width=self.width,
            height=self.height,
            caption=self.title,
            resizable=True,
            vsync=False,
            config=config,
        )
        self._close_requested = False
        input_state.refresh()
        input_state.position = np.zeros(2)
        self._native.push_handlers(_EventTranslator(self, input_state))
        self._native.switch_to()

    def _require_native(self) -> Any:
        if self._native is None:
            raise RuntimeError("window has not been initialized")
        return self._native

    def should_close(self) -> bool:
        """True once the user asked to close, or when no window is open."""
        return self._native is None or self._close_requested

    def poll(self) -> None:
        self._require_native().dispatch_events()

    def swap_buffers(self) -> None:
        self._require_native().flip()

    def resize(self, width: int, height: int) -> None:
        if width < 0 or height < 0:
            raise ValueError("window size cannot be negative")
        self.width = int(width)
        self.height = int(height)

    def close(self) -> None:
        if self._native is not None:
            self._native.close()
            self._native = None