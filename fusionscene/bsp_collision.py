"""Ray, sphere and box traces against the brushes of a BSP level."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from enum import IntEnum
from pathlib import Path
from typing import Union

import numpy as np

from .bsp_format import Brush, BspError, BspFile, read_bsp

logger = logging.getLogger(__name__)

MAX_STEP_HEIGHT = 22.0
EPSILON = 0.03125
SOLID_CONTENTS = 1
GROUNDED_SLIDE_NORMAL_Y = 0.1
GROUNDED_BRUSH_NORMAL_Y = 0.2
_MAX_SLIDES = 64
_DEFAULT_NORMAL = (0.0, 1.0, 0.0)

Vec3 = tuple[float, float, float]


class TraceType(IntEnum):
    RAY = 0
    SPHERE = 1
    BOX = 2


def _vec3(value: Sequence[float]) -> np.ndarray:
    return np.asarray(value, dtype=float).reshape(3)


def _as_tuple(vector: np.ndarray) -> Vec3:
    return (float(vector[0]), float(vector[1]), float(vector[2]))


class BspCollision:
    """Collision queries over a BSP level, in engine coordinates (y up)."""

    def __init__(self, bsp: BspFile) -> None:
        self._nodes = list(bsp.nodes)
        self._leafs = list(bsp.leafs)
        self._brushes = list(bsp.brushes)
        self._brush_sides = list(bsp.brush_sides)
        self._textures = list(bsp.textures)
        self._leaf_brushes = list(bsp.leaf_brushes)
        self._normals = [
            np.array((plane.normal[0], plane.normal[2], -plane.normal[1]), dtype=float)
            for plane in bsp.planes
        ]
        self._distances = [float(plane.distance) for plane in bsp.planes]

        self.grounded = False
        self.collided = False
        self.try_step = False
        self.trace_type = TraceType.RAY
        self._trace_ratio = 1.0
        self._trace_radius = 0.0
        self._normal = np.zeros(3)
        self._extents = np.zeros(3)
        self._trace_mins = np.zeros(3)
        self._trace_maxs = np.zeros(3)

    def find_leaf(self, point: Sequence[float]) -> int:
        """Index of the leaf that holds ``point``."""
        if not self._nodes:
            raise BspError("BSP has no nodes")
        position = _vec3(point)
        index = 0
        while index >= 0:
            node = self._nodes[index]
            distance = float(np.dot(self._normals[node.plane_index], position))
            distance -= self._distances[node.plane_index]
            index = node.front if distance >= 0 else node.back
        return ~index

    def trace(self, start: Sequence[float], end: Sequence[float]) -> Vec3:
        """Move from ``start`` towards ``end``, sliding along whatever is hit."""
        return _as_tuple(self._trace(_vec3(start), _vec3(end)))

    def trace_ray(self, start: Sequence[float], end: Sequence[float]) -> Vec3:
        """Trace a point along the segment."""
        self.trace_type = TraceType.RAY
        return self.trace(start, end)

    def trace_sphere(
        self, start: Sequence[float], end: Sequence[float], radius: float
    ) -> Vec3:
        """Trace a sphere of ``radius``, stepping up ledges where it can."""
        self.trace_type = TraceType.SPHERE
        self.collided = False
        self.try_step = False
        self.grounded = False
        self._trace_radius = float(radius)
        end_v = _vec3(end)
        position = self._trace(_vec3(start), end_v)
        if self.collided and self.try_step:
            position = self._check_next_position(position, end_v)
        return _as_tuple(position)

    def trace_box(
        self,
        start: Sequence[float],
        end: Sequence[float],
        minimum: Sequence[float],
        maximum: Sequence[float],
    ) -> Vec3:
        """Trace an axis-aligned box, stepping up ledges where it can."""
        self._set_box(minimum, maximum)
        self.collided = False
        self.try_step = False
        self.grounded = False
        end_v = _vec3(end)
        position = self._trace(_vec3(start), end_v)
        if self.collided and self.try_step:
            position = self._check_next_position(position, end_v)
        return _as_tuple(position)

    def trace_box_hit(
        self,
        start: Sequence[float],
        end: Sequence[float],
        minimum: Sequence[float],
        maximum: Sequence[float],
    ) -> bool:
        """Whether a box moved along the segment touches anything solid."""
        self._set_box(minimum, maximum)
        self.collided = False
        self._trace(_vec3(start), _vec3(end))
        return self.collided

    def check_next_position(self, start: Sequence[float], end: Sequence[float]) -> Vec3:
        """Try the move one unit higher at a time, up to the step height."""
        return _as_tuple(self._check_next_position(_vec3(start), _vec3(end)))

    def collision_normal(self) -> Vec3:
        """Normal of the last surface hit; only tracked for ray traces."""
        if self.trace_type == TraceType.RAY:
            return _as_tuple(self._normal)
        logger.warning("Collision normal is only kept for ray traces; returning default normal.")
        return _DEFAULT_NORMAL

    def _set_box(self, minimum: Sequence[float], maximum: Sequence[float]) -> None:
        self.trace_type = TraceType.BOX
        self._trace_mins = _vec3(minimum)
        self._trace_maxs = _vec3(maximum)
        self._extents = np.maximum(-self._trace_mins, self._trace_maxs)

    def _check_next_position(self, start: np.ndarray, end: np.ndarray) -> np.ndarray:
        height = 1.0
        while height < MAX_STEP_HEIGHT:
            self.collided = False
            self.try_step = False
            step_start = np.array((start[0], start[1] + height, start[2]))
            step_end = np.array((end[0], start[1] + height, end[2]))
            position = self._trace(step_start, step_end)
            if not self.collided:
                return position
            height += 1.0
        return start

    def _trace(self, start: np.ndarray, end: np.ndarray) -> np.ndarray:
        if not self._nodes:
            raise BspError("BSP has no nodes")
        slid = False
        for _ in range(_MAX_SLIDES):
            self._trace_ratio = 1.0
            self._check_node(0, 0.0, 1.0, start, end)
            if self._trace_ratio == 1.0:
                break
            slid = True
            position = start + (end - start) * self._trace_ratio
            distance = float(np.dot(end - position, self._normal))
            start, end = position, end - self._normal * distance
        else:
            end = start
        if slid and self._normal[1] > GROUNDED_SLIDE_NORMAL_Y:
            self.grounded = True
        return end

    def _plane_normal(self, plane_index: int) -> np.ndarray:
        normal = self._normals[plane_index]
        length = float(np.linalg.norm(normal))
        if length > 0.0 and length != 1.0:
            normal = normal / length
            self._normals[plane_index] = normal
        return normal

    def _check_node(
        self,
        node_index: int,
        start_ratio: float,
        end_ratio: float,
        start: np.ndarray,
        end: np.ndarray,
    ) -> None:
        if node_index < 0:
            leaf = self._leafs[-(node_index + 1)]
            first = leaf.first_leaf_brush
            for brush_index in self._leaf_brushes[first:first + leaf.num_leaf_brushes]:
                brush = self._brushes[brush_index]
                if (
                    brush.num_sides > 0
                    and self._textures[brush.texture_index].contents & SOLID_CONTENTS
                ):
                    self._check_brush(brush, start, end)
            return

        node = self._nodes[node_index]
        normal = self._plane_normal(node.plane_index)
        plane_distance = self._distances[node.plane_index]
        start_distance = float(np.dot(start, normal)) - plane_distance
        end_distance = float(np.dot(end, normal)) - plane_distance

        offset = 0.0
        if self.trace_type == TraceType.SPHERE:
            offset = self._trace_radius
        elif self.trace_type == TraceType.BOX:
            offset = float(np.sum(np.abs(self._extents * normal)))

        if start_distance >= offset and end_distance >= offset:
            self._check_node(node.front, start_distance, end_distance, start, end)
            return
        if start_distance < -offset and end_distance < -offset:
            self._check_node(node.back, start_distance, end_distance, start, end)
            return

        ratio, ratio2, side = 1.0, 0.0, node.front
        if start_distance < end_distance:
            side = node.back
            inverse = 1.0 / (start_distance - end_distance)
            ratio = (start_distance - offset - EPSILON) * inverse
            ratio2 = (start_distance + offset + EPSILON) * inverse
        elif start_distance > end_distance:
            inverse = 1.0 / (start_distance - end_distance)
            ratio = (start_distance + offset + EPSILON) * inverse
            ratio2 = (start_distance - offset - EPSILON) * inverse
        ratio = min(max(ratio, 0.0), 1.0)
        ratio2 = min(max(ratio2, 0.0), 1.0)

        middle_ratio = start_ratio + (end_ratio - start_ratio) * ratio
        middle = start + (end - start) * ratio
        self._check_node(side, start_ratio, middle_ratio, start, middle)

        middle_ratio = start_ratio + (end_ratio - start_ratio) * ratio2
        middle = start + (end - start) * ratio2
        other = node.front if side == node.back else node.back
        self._check_node(other, middle_ratio, end_ratio, middle, end)

    def _check_brush(self, brush: Brush, start: np.ndarray, end: np.ndarray) -> None:
        start_ratio = -1.0
        end_ratio = 1.0
        starts_out = False

        for side in self._brush_sides[brush.first_side:brush.first_side + brush.num_sides]:
            normal = self._normals[side.plane_index]
            plane_distance = self._distances[side.plane_index]

            if self.trace_type == TraceType.BOX:
                corner = np.where(normal < 0, self._trace_maxs, self._trace_mins)
                start_distance = float(np.dot(start + corner, normal)) - plane_distance
                end_distance = float(np.dot(end + corner, normal)) - plane_distance
            else:
                offset = self._trace_radius if self.trace_type == TraceType.SPHERE else 0.0
                start_distance = float(np.dot(start, normal)) - (plane_distance + offset)
                end_distance = float(np.dot(end, normal)) - (plane_distance + offset)

            if start_distance > 0:
                starts_out = True
                if end_distance > 0:
                    return
            if start_distance <= 0 and end_distance <= 0:
                continue

            if start_distance > end_distance:
                ratio = (start_distance - EPSILON) / (start_distance - end_distance)
                if ratio > start_ratio:
                    start_ratio = ratio
                    self.collided = True
                    self._normal = normal.copy()
                    moves_sideways = start[0] != end[0] or start[2] != end[2]
                    if moves_sideways and normal[1] != 1:
                        self.try_step = True
                    if normal[1] > GROUNDED_BRUSH_NORMAL_Y:
                        self.grounded = True
            else:
                ratio = (start_distance + EPSILON) / (start_distance - end_distance)
                end_ratio = min(end_ratio, ratio)

        if not starts_out:
            return
        if start_ratio < end_ratio and -1 < start_ratio < self._trace_ratio:
            self._trace_ratio = max(start_ratio, 0.0)


def load_collision(path: Union[str, Path]) -> BspCollision:
    """Read a BSP file and prepare it for collision queries."""
    return BspCollision(read_bsp(path))