import numpy as np
import pytest

from resview.camera_control import update_camera
from resview.input import (
    KEY_LEFT_CONTROL,
    KEY_LEFT_SHIFT,
    MOUSE_BUTTON_MIDDLE,
    Action,
    InputState,
)
from resview.scene import Camera


def _dragging(dx, dy, key=None):
    state = InputState()
    state.on_mouse_button(MOUSE_BUTTON_MIDDLE, Action.PRESS)
    if key is not None:
        state.on_key(key, Action.PRESS)
    state.on_cursor_pos(dx, dy)
    return state


def test_idle_input_leaves_camera_unchanged():
    camera = Camera()
    position = camera.position.copy()
    update_camera(camera, InputState())
    np.testing.assert_allclose(camera.position, position)
    assert camera.zoom_factor == 1.0


def test_movement_without_button_does_nothing():
    camera = Camera()
    position = camera.position.copy()
    state = InputState()
    state.on_cursor_pos(30.0, 40.0)
    update_camera(camera, state)
    np.testing.assert_allclose(camera.position, position)


def test_orbit_keeps_distance_and_target():
    camera = Camera()
    distance = np.linalg.norm(camera.position - camera.target)
    start = camera.position.copy()
    update_camera(camera, _dragging(40.0, 25.0))
    assert np.linalg.norm(camera.position - camera.target) == pytest.approx(distance)
    np.testing.assert_allclose(camera.target, np.zeros(3))
    assert not np.allclose(camera.position, start)


def test_shift_pans_position_and_target_together():
    camera = Camera()
    offset_before = camera.position - camera.target
    update_camera(camera, _dragging(50.0, -20.0, KEY_LEFT_SHIFT))
    np.testing.assert_allclose(camera.position - camera.target, offset_before)
    assert np.linalg.norm(camera.target) > 0


def test_shift_pan_is_perpendicular_to_view():
    camera = Camera()
    forward = camera.target - camera.position
    update_camera(camera, _dragging(10.0, 15.0, KEY_LEFT_SHIFT))
    assert float(np.dot(camera.target, forward)) == pytest.approx(0.0, abs=1e-12)


def test_control_moves_position_and_target_together():
    camera = Camera()
    offset_before = camera.position - camera.target
    update_camera(camera, _dragging(0.0, 30.0, KEY_LEFT_CONTROL))
    np.testing.assert_allclose(camera.position - camera.target, offset_before)
    forward = -offset_before / np.linalg.norm(offset_before)
    assert float(np.dot(camera.target, forward)) > 0


def test_scroll_moves_closer_along_view_axis():
    camera = Camera()
    direction = camera.position / np.linalg.norm(camera.position)
    distance = np.linalg.norm(camera.position)
    state = InputState()
    state.on_scroll(0.0, 1.0)
    update_camera(camera, state)
    assert np.linalg.norm(camera.position) < distance
    np.testing.assert_allclose(camera.position / np.linalg.norm(camera.position), direction)
    assert camera.zoom_factor < 1.0


def test_zoom_factor_is_clamped():
    camera = Camera()
    state = InputState()
    state.on_scroll(0.0, 5000.0)
    update_camera(camera, state)
    assert camera.zoom_factor == pytest.approx(0.000001)


def test_rotation_is_clamped():
    camera = Camera()
    camera.rotation = np.array([10.0, 0.5, -10.0])
    update_camera(camera, _dragging(1.0, 1.0))
    assert -np.pi <= camera.rotation[0] <= np.pi
    assert -np.pi <= camera.rotation[2] <= np.pi
    assert camera.rotation[1] == 0.5