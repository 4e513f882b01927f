"""Viewport camera navigation driven by mouse and keyboard."""

from __future__ import annotations

import numpy as np

from resview.input import KEY_LEFT_CONTROL, KEY_LEFT_SHIFT, MOUSE_BUTTON_MIDDLE, InputState
from resview.scene import Camera

_WORLD_UP = np.array([0.0, 1.0, 0.0])
_PAN_DIVISOR = 200.0
_ORBIT_DIVISOR = 500.0
_SCROLL_DOLLY_DIVISOR = 20.0
_SCROLL_ZOOM_DIVISOR = 1000.0
_DOLLY_EXPONENT = 1.7
_MIN_ZOOM = 0.000001
_MAX_ZOOM = 1000000.0


def _normalize(vector: np.ndarray) -> np.ndarray:
    length = np.linalg.norm(vector)
    return vector / length if length > 0.0 else vector


def update_camera(camera: Camera, input_state: InputState) -> None:
    """Apply one frame of orbit, pan, dolly and scroll-zoom to ``camera``."""
    forward = _normalize(camera.target - camera.position)
    right = _normalize(np.cross(_WORLD_UP, forward))
    up = _normalize(np.cross(forward, right))
    dx, dy = input_state.delta

    if input_state.is_button_down(MOUSE_BUTTON_MIDDLE):
        if input_state.is_key_down(KEY_LEFT_SHIFT):
            offset = (right * dx + up * dy) / _PAN_DIVISOR
            camera.position = camera.position + offset
            camera.target = camera.target + offset
        elif input_state.is_key_down(KEY_LEFT_CONTROL):
            magnifier = np.linalg.norm(camera.target - camera.position) ** _DOLLY_EXPONENT
            offset = (right * dx + forward * dy) / _PAN_DIVISOR * magnifier
            camera.position = camera.position + offset
            camera.target = camera.target + offset
        else:
            camera.rotate_around(-dx / _ORBIT_DIVISOR, _WORLD_UP, camera.target)
            camera.rotate_around(dy / _ORBIT_DIVISOR, right, camera.target)
            rotation = camera.rotation.copy()
            rotation[[0, 2]] = np.clip(rotation[[0, 2]], -np.pi, np.pi)
            camera.rotation = rotation

    scroll_y = input_state.scroll[1]
    camera.position = camera.position + (camera.position - camera.target) * (
        -scroll_y / _SCROLL_DOLLY_DIVISOR
    )
    camera.zoom_factor = float(
        np.clip(camera.zoom_factor - scroll_y / _SCROLL_ZOOM_DIVISOR, _MIN_ZOOM, _MAX_ZOOM)
    )