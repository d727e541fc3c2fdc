"""Cube-mapped sky drawn around the camera."""

from __future__ import annotations

import math
from collections.abc import Sequence

import numpy as np

from .camera import look_at, perspective

SKYBOX_VERTICES: tuple[float, ...] = (
    -1.0, -1.0, 1.0,
    1.0, -1.0, 1.0,
    1.0, -1.0, -1.0,
    -1.0, -1.0, -1.0,
    -1.0, 1.0, 1.0,
    1.0, 1.0, 1.0,
    1.0, 1.0, -1.0,
    -1.0, 1.0, -1.0,
)

SKYBOX_INDICES: tuple[int, ...] = (
    1, 2, 6,
    6, 5, 1,
    0, 4, 7,
    7, 3, 0,
    4, 5, 6,
    6, 7, 4,
    0, 3, 2,
    2, 1, 0,
    0, 1, 5,
    5, 4, 0,
    3, 7, 6,
    6, 2, 3,
)

FACE_IMAGES: tuple[str, ...] = (
    "Right.imgbuf",
    "Left.imgbuf",
    "Top.imgbuf",
    "Bottom.imgbuf",
    "Front.imgbuf",
    "Back.imgbuf",
)

IMAGE_DIMENSIONS = 1024


class Skybox:
    """A sky cube with its own projection settings."""

    def __init__(
        self, width: int, height: int, near: float, far: float, field_of_view: float
    ) -> None:
        if height == 0:
            raise ValueError("window height must be non-zero")
        self.width = int(width)
        self.height = int(height)
        self.near = float(near)
        self.far = float(far)
        self.field_of_view = float(field_of_view)
        self.image_dimensions = IMAGE_DIMENSIONS
        self.vertices = SKYBOX_VERTICES
        self.indices = SKYBOX_INDICES
        self.face_images = FACE_IMAGES

    def view_matrix(
        self,
        position: Sequence[float],
        orientation: Sequence[float],
        up: Sequence[float],
    ) -> np.ndarray:
        """The camera's view with its translation removed."""
        eye = np.asarray(position, dtype=float)
        view = look_at(eye, eye + np.asarray(orientation, dtype=float), up)
        result = np.identity(4)
        result[:3, :3] = view[:3, :3]
        return result

    def projection_matrix(self) -> np.ndarray:
        """Perspective projection for the sky; the field of view is in degrees."""
        return perspective(
            math.radians(self.field_of_view), self.width / self.height, self.near, self.far
        )