"""First-person camera and the matrix helpers it relies on."""

from __future__ import annotations

import math
from collections.abc import Sequence

import numpy as np

_PITCH_LIMIT = 89.0
_UP_LOCK_DEGREES = 5.0


def _vec3(value: Sequence[float]) -> np.ndarray:
    return np.asarray(value, dtype=float).reshape(3)


def _normalize(vector: np.ndarray) -> np.ndarray:
    length = float(np.linalg.norm(vector))
    if length == 0.0:
        raise ValueError("cannot normalise a zero-length vector")
    return vector / length


def perspective(field_of_view: float, aspect: float, near: float, far: float) -> np.ndarray:
    """Right-handed perspective projection; ``field_of_view`` is in radians."""
    if aspect == 0:
        raise ValueError("aspect ratio must be non-zero")
    if near == far:
        raise ValueError("near and far planes must differ")
    focal = 1.0 / math.tan(field_of_view / 2.0)
    matrix = np.zeros((4, 4))
    matrix[0, 0] = focal / aspect
    matrix[1, 1] = focal
    matrix[2, 2] = -(far + near) / (far - near)
    matrix[2, 3] = -(2.0 * far * near) / (far - near)
    matrix[3, 2] = -1.0
    return matrix


def orthographic(
    left: float, right: float, bottom: float, top: float, near: float, far: float
) -> np.ndarray:
    """Right-handed orthographic projection onto the unit cube."""
    if left == right or bottom == top or near == far:
        raise ValueError("orthographic volume must have non-zero extent")
    matrix = np.identity(4)
    matrix[0, 0] = 2.0 / (right - left)
    matrix[1, 1] = 2.0 / (top - bottom)
    matrix[2, 2] = -2.0 / (far - near)
    matrix[0, 3] = -(right + left) / (right - left)
    matrix[1, 3] = -(top + bottom) / (top - bottom)
    matrix[2, 3] = -(far + near) / (far - near)
    return matrix


def look_at(
    eye: Sequence[float], center: Sequence[float], up: Sequence[float]
) -> np.ndarray:
    """View matrix looking from ``eye`` towards ``center``."""
    eye_v = _vec3(eye)
    forward = _normalize(_vec3(center) - eye_v)
    side = _normalize(np.cross(forward, _vec3(up)))
    upward = np.cross(side, forward)
    matrix = np.identity(4)
    matrix[0, :3] = side
    matrix[1, :3] = upward
    matrix[2, :3] = -forward
    matrix[0, 3] = -float(np.dot(side, eye_v))
    matrix[1, 3] = -float(np.dot(upward, eye_v))
    matrix[2, 3] = float(np.dot(forward, eye_v))
    return matrix


def rotate_vector(vector: Sequence[float], angle: float, axis: Sequence[float]) -> np.ndarray:
    """Rotate ``vector`` by ``angle`` radians about ``axis``."""
    v = _vec3(vector)
    k = _normalize(_vec3(axis))
    cos_a = math.cos(angle)
    sin_a = math.sin(angle)
    return v * cos_a + np.cross(k, v) * sin_a + k * float(np.dot(k, v)) * (1.0 - cos_a)


def angle_between(first: Sequence[float], second: Sequence[float]) -> float:
    """Angle in radians between two unit vectors."""
    cosine = float(np.dot(_vec3(first), _vec3(second)))
    return math.acos(min(max(cosine, -1.0), 1.0))


class Camera:
    """A free-look camera driven by mouse positions."""

    def __init__(
        self, width: int, height: int, position: Sequence[float] = (0.0, 0.0, 0.0)
    ) -> None:
        self.width = int(width)
        self.height = int(height)
        self.position = _vec3(position).copy()
        self.up = np.array([0.0, 1.0, 0.0])
        self.orientation = np.array([0.0, 0.0, -1.0])
        self.camera_matrix = np.identity(4)
        self.view_matrix = np.identity(4)
        self.projection_matrix = np.identity(4)
        self.sensitivity = 0.1
        self.input_locked = False
        self._last_x = 0.0
        self._last_y = 0.0
        self._rotate_x = 0.0
        self._rotate_y = 0.0
        self._first_mouse = True

    @property
    def yaw(self) -> float:
        """Accumulated horizontal rotation in degrees."""
        return self._rotate_x

    @property
    def pitch(self) -> float:
        """Accumulated vertical rotation in degrees, clamped to +/-89."""
        return self._rotate_y

    def update_matrix(self, field_of_view: float, near_plane: float, far_plane: float) -> None:
        """Recompute projection, view and combined matrices; the field of view is in degrees."""
        aspect = float(self.width // self.height)
        self.projection_matrix = perspective(
            math.radians(field_of_view), aspect, near_plane, far_plane
        )
        self.view_matrix = look_at(self.position, self.position + self.orientation, self.up)
        self.camera_matrix = self.projection_matrix @ self.view_matrix

    def move_camera(self, mouse_x: float, mouse_y: float) -> None:
        """Turn the camera by the mouse's distance from the window centre."""
        if self.input_locked:
            return
        rotation_x = self.sensitivity * (mouse_y - self.height // 2) / self.height
        rotation_y = self.sensitivity * (mouse_x - self.width // 2) / self.width

        pitch_axis = _normalize(np.cross(self.orientation, self.up))
        candidate = rotate_vector(self.orientation, math.radians(-rotation_x), pitch_axis)
        limit = math.radians(_UP_LOCK_DEGREES)
        near_pole = (
            angle_between(candidate, self.up) <= limit
            or angle_between(candidate, -self.up) <= limit
        )
        if not near_pole:
            self.orientation = candidate
        self.orientation = rotate_vector(self.orientation, math.radians(-rotation_y), self.up)

    def update_orientation(self, x_position: float, y_position: float) -> None:
        """Apply a cursor movement to yaw and pitch and rebuild the orientation."""
        if self.input_locked:
            self._first_mouse = True
            return
        if self._first_mouse:
            self._last_x = x_position
            self._last_y = y_position
            self._first_mouse = False

        x_offset = (x_position - self._last_x) * self.sensitivity
        y_offset = (self._last_y - y_position) * self.sensitivity
        self._last_x = x_position
        self._last_y = y_position

        self._rotate_x += x_offset
        self._rotate_y = min(max(self._rotate_y + y_offset, -_PITCH_LIMIT), _PITCH_LIMIT)

        yaw = math.radians(self._rotate_x)
        pitch = math.radians(self._rotate_y)
        self.orientation = _normalize(
            np.array([math.cos(yaw) * math.cos(pitch), math.sin(pitch), math.sin(yaw)])
        )