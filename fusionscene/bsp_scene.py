"""Render-side view of a BSP level: face buffers, visibility and spawning."""

from __future__ import annotations

import random
from collections.abc import Sequence
from pathlib import Path
from typing import Optional, Union

from .bsp_format import MAX_TEXTURES, BspError, BspFile
from .lighting import Lighting

Vec3 = tuple[float, float, float]

FACE_PATCH = 2
FACE_BILLBOARD = 4
_SKIPPED_FACE_TYPES = frozenset({FACE_PATCH, FACE_BILLBOARD})
_TEXTURE_EXTENSIONS = (".tga", ".jpg")
_LIGHT_COLOUR = (1.0, 0.0, 0.0)
_LIGHT_BRIGHTNESS = 0.5


def _to_engine(position: Sequence[float]) -> Vec3:
    x, y, z = position
    return (float(x), float(z), -float(y))


class BspScene:
    """A loaded BSP level prepared for drawing."""

    def __init__(self, bsp: BspFile) -> None:
        self.bsp = bsp
        self.vertex_positions: list[Vec3] = [_to_engine(v.position) for v in bsp.vertices]
        self.spawn_positions: list[Vec3] = bsp.spawn_positions
        self.light_positions: list[Vec3] = bsp.light_positions
        self.lighting = Lighting()
        for position in self.light_positions:
            self.lighting.create_light(_LIGHT_COLOUR, position, _LIGHT_BRIGHTNESS)

    def is_cluster_visible(self, current: int, test: int) -> bool:
        """Whether cluster ``test`` can be seen from cluster ``current``."""
        vis = self.bsp.vis_data
        if vis is None or current < 0:
            return True
        byte = vis.bitsets[current * vis.bytes_per_cluster + test // 8]
        return bool(byte & (1 << (test & 7)))

    def face_vertex_buffer(self, index: int) -> list[float]:
        """Interleaved position, texture and lightmap coordinates of one face."""
        face = self.bsp.faces[index]
        end = face.start_vertex + face.num_vertices
        if face.start_vertex < 0 or end > len(self.bsp.vertices):
            raise BspError(f"face {index} refers to vertices outside the file")
        buffer: list[float] = []
        for number in range(face.start_vertex, end):
            vertex = self.bsp.vertices[number]
            buffer.extend(self.vertex_positions[number])
            buffer.extend(vertex.texture_coord)
            buffer.extend(vertex.lightmap_coord)
        return buffer

    def face_indices(self, index: int) -> list[int]:
        """Mesh indices of one face."""
        face = self.bsp.faces[index]
        end = face.start_index + face.num_indices
        if face.start_index < 0 or end > len(self.bsp.indices):
            raise BspError(f"face {index} refers to indices outside the file")
        return self.bsp.indices[face.start_index:end]

    def texture_files(self, location: Union[str, Path]) -> list[str]:
        """Texture names with the extension of the file found under ``location``."""
        if len(self.bsp.textures) > MAX_TEXTURES:
            raise BspError(f"more than {MAX_TEXTURES} textures")
        base = Path(location)
        names = []
        for texture in self.bsp.textures:
            name = texture.name
            for extension in _TEXTURE_EXTENSIONS:
                if (base / (name + extension)).exists():
                    name += extension
                    break
            names.append(name)
        return names

    def visible_faces(self, camera_position: Sequence[float]) -> list[int]:
        """Indices of faces to draw from ``camera_position``, in drawing order."""
        leaf_index = self.bsp.find_leaf(_to_engine(camera_position))
        cluster = self.bsp.leafs[leaf_index].cluster
        drawn: set[int] = set()
        order: list[int] = []
        for leaf in reversed(self.bsp.leafs):
            if not self.is_cluster_visible(cluster, leaf.cluster):
                continue
            first = leaf.first_leaf_face
            for face_index in reversed(self.bsp.leaf_faces[first:first + leaf.num_leaf_faces]):
                if self.bsp.faces[face_index].face_type in _SKIPPED_FACE_TYPES:
                    continue
                if face_index not in drawn:
                    drawn.add(face_index)
                    order.append(face_index)
        return order

    def spawn_player(self, rng: Optional[random.Random] = None) -> Vec3:
        """A randomly chosen spawn position."""
        if not self.spawn_positions:
            raise BspError("level has no spawn positions")
        chooser = rng if rng is not None else random
        return chooser.choice(self.spawn_positions)