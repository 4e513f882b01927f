"""Keyboard and mouse state collected from window callbacks."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum

import numpy as np

MOUSE_BUTTON_LEFT = 0
MOUSE_BUTTON_RIGHT = 1
MOUSE_BUTTON_MIDDLE = 2

KEY_LEFT_SHIFT = 340
KEY_LEFT_CONTROL = 341


class Action(IntEnum):
    """State reported for a key or mouse button."""

    RELEASE = 0
    PRESS = 1
    REPEAT = 2


def _zeros() -> np.ndarray:
    return np.zeros(2)


@dataclass(eq=False)
class InputState:
    """Latest key, button, cursor and scroll state for one frame."""

    scroll: np.ndarray = field(default_factory=_zeros)
    position: np.ndarray = field(default_factory=_zeros)
    delta: np.ndarray = field(default_factory=_zeros)
    key_states: dict[int, Action] = field(default_factory=dict)
    button_states: dict[int, Action] = field(default_factory=dict)

    def on_key(self, key: int, action: int) -> None:
        self.key_states[key] = Action(action)

    def on_mouse_button(self, button: int, action: int) -> None:
        self.button_states[button] = Action(action)

    def on_scroll(self, xoffset: float, yoffset: float) -> None:
        self.scroll = np.array([xoffset, yoffset], dtype=float)

    def on_cursor_pos(self, xpos: float, ypos: float) -> None:
        new_position = np.array([xpos, ypos], dtype=float)
        self.delta = new_position - self.position
        self.position = new_position

    def is_key_down(self, key: int) -> bool:
        """True while the key is pressed or auto-repeating."""
        return self.key_states.get(key, Action.RELEASE) in (Action.PRESS, Action.REPEAT)

    def is_button_down(self, button: int) -> bool:
        return self.button_states.get(button, Action.RELEASE) == Action.PRESS

    def refresh(self) -> None:
        """Clear the per-frame scroll and cursor movement."""
        self.scroll = _zeros()
        self.delta = _zeros()