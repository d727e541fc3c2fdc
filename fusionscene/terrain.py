"""Height-mapped terrain and the flat water grid drawn beside it."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass

import numpy as np

from .model import quat_to_mat4, scale, translate

Vec2 = tuple[float, float]
Vec3 = tuple[float, float, float]
NoiseFunction = Callable[[float, float, float], float]

TERRAIN_MAP = 256
TERRAIN_SCALE = 0.05
TERRAIN_HEIGHT_MULTIPLIER = 15.0
TERRAIN_PERSISTENCE = 0.5
TERRAIN_LACUNARITY = 2.0
TERRAIN_OCTAVES = 4
TERRAIN_UV_REPEAT = 10.0
PLAYER_EYE_HEIGHT = 4.5
TERRAIN_TRANSLATION: Vec3 = (100.0, 7.0, -40.0)
TERRAIN_ROTATION = (0.0, 0.0, 0.0, 1.0)
TERRAIN_SCALE_FACTORS: Vec3 = (1.0, 1.0, 1.0)
_UP: Vec3 = (0.0, 1.0, 0.0)

WATER_GRID_SIZE = 1024
WATER_GRID_SPACING = 0.1
WATER_VERTEX_STRIDE = 8


@dataclass(frozen=True)
class TerrainVertex:
    """One terrain vertex: position, normal and texture coordinate."""

    position: Vec3
    normal: Vec3
    uv: Vec2


def generate_height_map(
    noise: NoiseFunction,
    size: int = TERRAIN_MAP,
    scale: float = TERRAIN_SCALE,
    octaves: int = TERRAIN_OCTAVES,
    persistence: float = TERRAIN_PERSISTENCE,
    lacunarity: float = TERRAIN_LACUNARITY,
    height_multiplier: float = TERRAIN_HEIGHT_MULTIPLIER,
) -> np.ndarray:
    """Fractal height map built from a 3D noise function sampled on the y=0 plane."""
    if size <= 0:
        raise ValueError("height map size must be positive")
    heights = np.empty((size, size))
    for x in range(size):
        for z in range(size):
            value = 0.0
            amplitude = 1.0
            frequency = 1.0
            for _ in range(octaves):
                value += amplitude * noise(x * scale * frequency, 0.0, z * scale * frequency)
                amplitude *= persistence
                frequency *= lacunarity
            heights[x, z] = (value + 1.0) / 2.0 * height_multiplier
    return heights


def terrain_model_matrix() -> np.ndarray:
    """Model matrix that places the terrain in the world."""
    translation = translate(np.identity(4), TERRAIN_TRANSLATION)
    rotation = quat_to_mat4(TERRAIN_ROTATION)
    scaling = scale(np.identity(4), TERRAIN_SCALE_FACTORS)
    return translation @ rotation @ scaling


def water_grid(
    size: int = WATER_GRID_SIZE, spacing: float = WATER_GRID_SPACING
) -> tuple[np.ndarray, np.ndarray]:
    """Vertices (position, normal, uv per row) and triangle indices of a flat water grid.

    Indices are produced for every grid cell; only the first ``(size-1)**2 * 6``
    of them are drawn.
    """
    if size < 2:
        raise ValueError("water grid needs at least two points per side")
    xs, zs = np.meshgrid(np.arange(size), np.arange(size), indexing="ij")
    xs = xs.ravel()
    zs = zs.ravel()
    vertices = np.zeros((size * size, WATER_VERTEX_STRIDE))
    vertices[:, 0] = xs * spacing
    vertices[:, 2] = zs * spacing
    vertices[:, 4] = 1.0
    vertices[:, 6] = xs / (size - 1)
    vertices[:, 7] = zs / (size - 1)

    top_left = (xs * size + zs).astype(np.uint32)
    top_right = top_left + 1
    bottom_left = top_left + size
    bottom_right = bottom_left + 1
    indices = np.stack(
        [top_left, bottom_left, top_right, top_right, bottom_left, bottom_right], axis=1
    ).ravel()
    return vertices, indices


def water_draw_count(size: int = WATER_GRID_SIZE) -> int:
    """Number of water indices that are drawn."""
    return (size - 1) * (size - 1) * 6


class Terrain:
    """A square height map turned into a triangle mesh."""

    def __init__(self, height_map) -> None:
        heights = np.asarray(height_map, dtype=float)
        if heights.ndim != 2 or heights.shape[0] != heights.shape[1] or heights.shape[0] == 0:
            raise ValueError("height map must be a non-empty square grid")
        self.height_map = heights
        self.size = heights.shape[0]
        self.model_matrix = terrain_model_matrix()

    def mesh(self) -> tuple[list[TerrainVertex], list[int]]:
        """Vertices in x-major order and two triangles per grid cell."""
        size = self.size
        vertices = [
            TerrainVertex(
                position=(float(x), float(self.height_map[x, z]), float(z)),
                normal=_UP,
                uv=(x / size * TERRAIN_UV_REPEAT, z / size * TERRAIN_UV_REPEAT),
            )
            for x in range(size)
            for z in range(size)
        ]
        indices: list[int] = []
        for x in range(size - 1):
            for z in range(size - 1):
                top_left = x * size + z
                top_right = (x + 1) * size + z
                bottom_left = x * size + z + 1
                bottom_right = (x + 1) * size + z + 1
                indices.extend(
                    (top_left, bottom_left, top_right, top_right, bottom_left, bottom_right)
                )
        return vertices, indices

    def next_player_position(self, position: Sequence[float]) -> Vec3:
        """Vertical offset that rests the player's eye above the ground under ``position``."""
        x, _, z = position
        row = abs(int(x))
        column = abs(int(z))
        if row >= self.size or column >= self.size:
            raise ValueError(f"position ({x}, {z}) lies outside the terrain")
        return (0.0, -float(self.height_map[row, column]) + PLAYER_EYE_HEIGHT, 0.0)