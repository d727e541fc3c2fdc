"""Screen-space interface elements: frames, images and text labels."""

from __future__ import annotations

import math
from collections.abc import Sequence

import numpy as np

from .camera import orthographic

Vec2 = tuple[float, float]
Vec3 = tuple[float, float, float]

IMAGE_TEXTURE_SIZE = 1024


def normalise_colour(colour: Sequence[float]) -> Vec3:
    """Convert 0-255 colour channels to 0-1."""
    r, g, b = colour
    return (r / 255.0, g / 255.0, b / 255.0)


def _vec2(value: Sequence[float]) -> Vec2:
    x, y = value
    return (float(x), float(y))


class Frame:
    """A rectangle drawn in window coordinates."""

    def __init__(
        self,
        position: Sequence[float],
        scale: Sequence[float],
        width: int,
        height: int,
        colour: Sequence[float],
        rotation: float = 0.0,
    ) -> None:
        self.position = _vec2(position)
        self.scale = _vec2(scale)
        self.window_width = float(width)
        self.window_height = float(height)
        self.colour = normalise_colour(colour)
        self.rotation = float(rotation)
        self.corner_active = False
        self.radius = 0.0
        self.transparency_active = False
        self.transparency = 0.0
        self.override_rendering = False

    def add_transparency(self, transparency: float) -> None:
        """Blend the frame with the given alpha."""
        self.transparency_active = True
        self.transparency = float(transparency)

    def add_corners(self, radius: float) -> None:
        """Round the frame's corners."""
        self.corner_active = True
        self.radius = float(radius)

    def model_matrix(self) -> np.ndarray:
        """Translation, then rotation about z (degrees), then scale."""
        translation = np.identity(4)
        translation[0, 3], translation[1, 3] = self.position
        angle = math.radians(self.rotation)
        rotation = np.identity(4)
        rotation[0, 0] = math.cos(angle)
        rotation[0, 1] = -math.sin(angle)
        rotation[1, 0] = math.sin(angle)
        rotation[1, 1] = math.cos(angle)
        scaling = np.diag([self.scale[0], self.scale[1], 1.0, 1.0])
        return translation @ rotation @ scaling

    def projection_matrix(self) -> np.ndarray:
        """Orthographic projection with the origin at the window's top-left."""
        return orthographic(0.0, self.window_width, self.window_height, 0.0, -1.0, 1.0)

    def uniforms(self) -> dict[str, object]:
        """Uniform values the frame shader is drawn with."""
        values: dict[str, object] = {
            "IsImage": 0.0,
            "Corner": 0.0,
            "model": self.model_matrix(),
            "projection": self.projection_matrix(),
            "spriteColor": self.colour,
        }
        if self.corner_active:
            values["u_position"] = self.position
            values["u_size"] = self.scale
            values["u_radius"] = self.radius
            values["Corner"] = 1.0
            values["u_resolution"] = (self.window_width, self.window_height)
        if self.override_rendering:
            values["IsImage"] = 1.0
        if self.transparency_active:
            values["IsTransparancy"] = 1.0
            values["Transparency"] = self.transparency
        return values


class Image(Frame):
    """A frame textured with an RGBA image buffer."""

    def __init__(
        self,
        image_buffer: bytes,
        position: Sequence[float],
        scale: Sequence[float],
        width: int,
        height: int,
        rotation: float = 0.0,
    ) -> None:
        super().__init__(position, scale, width, height, (0.0, 0.0, 0.0), rotation)
        self.override_rendering = True
        self.image_buffer = bytes(image_buffer)
        self.texture_width = IMAGE_TEXTURE_SIZE
        self.texture_height = IMAGE_TEXTURE_SIZE
        self.texture_unit = 0


class Label:
    """A line of text drawn at a screen position."""

    def __init__(
        self,
        text: str,
        position: Sequence[float],
        scale: float,
        colour: Sequence[float],
    ) -> None:
        self.text = text
        self.position = _vec2(position)
        self.scale = float(scale)
        r, g, b = colour
        self.colour: Vec3 = (float(r), float(g), float(b))

    @property
    def rgba(self) -> tuple[float, float, float, float]:
        """Text colour with full opacity."""
        return (*self.colour, 1.0)

    def set_text(self, text: str) -> None:
        """Replace the label's text."""
        self.text = text