"""Placed models and level scenes: their transforms and shader inputs."""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np

from .camera import Camera, look_at, orthographic
from .gltf import GltfMesh

Vec3 = tuple[float, float, float]
Quat = tuple[float, float, float, float]

SHADOW_MAP_SIZE = 2048
SHADOW_EXTENT = 10.0
SHADOW_CLAMP_COLOUR = (1.0, 1.0, 1.0, 1.0)
SCENE_COLOUR: Vec3 = (0.0, 1.0, 0.0)
MODEL_COLOUR: Vec3 = (1.0, 0.0, 0.0)
SCENE_TEXTURE_UNIT = 0
SHADOW_MAP_UNIT = 1
_ZERO3: Vec3 = (0.0, 0.0, 0.0)
_ZERO_QUAT: Quat = (0.0, 0.0, 0.0, 0.0)


def _vec3(value: Sequence[float]) -> Vec3:
    x, y, z = value
    return (float(x), float(y), float(z))


def _quat(value: Sequence[float]) -> Quat:
    w, x, y, z = value
    return (float(w), float(x), float(y), float(z))


def _mat4(value) -> np.ndarray:
    matrix = np.asarray(value, dtype=float)
    if matrix.shape != (4, 4):
        raise ValueError(f"expected a 4x4 matrix, got shape {matrix.shape}")
    return matrix.copy()


def translate(matrix, offset: Sequence[float]) -> np.ndarray:
    """``matrix`` followed by a translation by ``offset`` (applied first to points)."""
    translation = np.identity(4)
    translation[:3, 3] = _vec3(offset)
    return _mat4(matrix) @ translation


def scale(matrix, factors: Sequence[float]) -> np.ndarray:
    """``matrix`` followed by a per-axis scale."""
    sx, sy, sz = _vec3(factors)
    return _mat4(matrix) @ np.diag([sx, sy, sz, 1.0])


def quat_to_mat4(quaternion: Sequence[float]) -> np.ndarray:
    """Rotation matrix of a quaternion given as ``(w, x, y, z)``; it is not normalised."""
    w, x, y, z = _quat(quaternion)
    matrix = np.identity(4)
    matrix[0, 0] = 1.0 - 2.0 * (y * y + z * z)
    matrix[0, 1] = 2.0 * (x * y - w * z)
    matrix[0, 2] = 2.0 * (x * z + w * y)
    matrix[1, 0] = 2.0 * (x * y + w * z)
    matrix[1, 1] = 1.0 - 2.0 * (x * x + z * z)
    matrix[1, 2] = 2.0 * (y * z - w * x)
    matrix[2, 0] = 2.0 * (x * z - w * y)
    matrix[2, 1] = 2.0 * (y * z + w * x)
    matrix[2, 2] = 1.0 - 2.0 * (x * x + y * y)
    return matrix


def light_projection(
    light_position: Sequence[float], near_plane: float, far_plane: float
) -> np.ndarray:
    """Orthographic light-space matrix looking from the light towards the origin."""
    projection = orthographic(
        -SHADOW_EXTENT, SHADOW_EXTENT, -SHADOW_EXTENT, SHADOW_EXTENT, near_plane, far_plane
    )
    view = look_at(_vec3(light_position), _ZERO3, (0.0, 1.0, 0.0))
    return projection @ view


class Model:
    """A mesh placed in the world by translation, rotation and scale."""

    def __init__(
        self,
        mesh: GltfMesh,
        translation: Sequence[float],
        rotation: Sequence[float],
        scale_factors: Sequence[float],
    ) -> None:
        if not mesh.vertices or not mesh.indices:
            raise ValueError("model mesh has no vertices or no indices")
        self.mesh_vertices = list(mesh.vertices)
        self.vertices = list(mesh.positions)
        self.indices = list(mesh.indices)
        self.position = _vec3(translation)
        self.rotation = _quat(rotation)
        self.scale_factors = _vec3(scale_factors)
        self.translation_matrix = translate(np.identity(4), self.position)
        self.rotation_matrix = quat_to_mat4(self.rotation)
        self.scale_matrix = scale(np.identity(4), self.scale_factors)

    def update_matrix(
        self,
        position: Sequence[float] = _ZERO3,
        rotation: Sequence[float] = _ZERO_QUAT,
        scale_factors: Sequence[float] = _ZERO3,
    ) -> None:
        """Apply the non-zero parts; translation and scale compound, rotation is replaced."""
        position_v = _vec3(position)
        rotation_q = _quat(rotation)
        scale_v = _vec3(scale_factors)
        if position_v != _ZERO3:
            self.position = position_v
            self.translation_matrix = translate(self.translation_matrix, position_v)
        if rotation_q != _ZERO_QUAT:
            self.rotation = rotation_q
            self.rotation_matrix = quat_to_mat4(rotation_q)
        if scale_v != _ZERO3:
            self.scale_factors = scale_v
            self.scale_matrix = scale(self.scale_matrix, scale_v)


class Scene:
    """A level partition placed by ready-made transform matrices."""

    def __init__(self, partition: GltfMesh, translation, rotation, scale_factors) -> None:
        if not partition.vertices or not partition.indices:
            raise ValueError("scene partition has no vertices or no indices")
        self.partition_vertices = list(partition.vertices)
        self.vertices = list(partition.positions)
        self.indices = list(partition.indices)
        self.mesh_matrix = _mat4(partition.matrix)
        self.translation_matrix = _mat4(translation)
        self.rotation_matrix = _mat4(rotation)
        self.scale_matrix = _mat4(scale_factors)
        self.light_projection = np.identity(4)
        self.shadow_map_width = SHADOW_MAP_SIZE
        self.shadow_map_height = SHADOW_MAP_SIZE

    def shader_uniforms(self, camera: Camera) -> dict[str, object]:
        """Uniform values the scene is drawn with from ``camera``."""
        return {
            "LightProjection": self.light_projection,
            "CameraMatrix": camera.camera_matrix,
            "CameraPosition": _vec3(camera.position),
            "Colour": SCENE_COLOUR,
            "Translation": self.translation_matrix,
            "Rotation": self.rotation_matrix,
            "Scale": self.scale_matrix,
            "SceneTexture": SCENE_TEXTURE_UNIT,
            "ShadowMap": SHADOW_MAP_UNIT,
        }