"""Reading of IBSP (version 0x2E) level files into plain records."""

from __future__ import annotations

import logging
import re
import struct
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import IntEnum
from pathlib import Path
from typing import ClassVar, Optional, Union

logger = logging.getLogger(__name__)

BSP_VERSION = 0x2E
FACE_POLYGON = 1
MAX_TEXTURES = 1000
LIGHTMAP_SIZE = 128

Vec3 = tuple[float, float, float]


class BspError(ValueError):
    """Raised when BSP data is malformed or of an unsupported version."""


class LumpType(IntEnum):
    ENTITIES = 0
    TEXTURES = 1
    PLANES = 2
    NODES = 3
    LEAFS = 4
    LEAF_FACES = 5
    LEAF_BRUSHES = 6
    MODELS = 7
    BRUSHES = 8
    BRUSH_SIDES = 9
    VERTICES = 10
    INDICES = 11
    SHADERS = 12
    FACES = 13
    LIGHTMAPS = 14
    LIGHT_VOLUMES = 15
    VIS_DATA = 16


@dataclass(frozen=True)
class Lump:
    offset: int
    length: int


@dataclass(frozen=True)
class Plane:
    LAYOUT: ClassVar[struct.Struct] = struct.Struct("<4f")
    normal: Vec3
    distance: float

    @classmethod
    def _from_values(cls, v: tuple) -> "Plane":
        return cls(tuple(v[0:3]), v[3])


@dataclass(frozen=True)
class Node:
    LAYOUT: ClassVar[struct.Struct] = struct.Struct("<9i")
    plane_index: int
    front: int
    back: int
    min_bounds: tuple[int, int, int]
    max_bounds: tuple[int, int, int]

    @classmethod
    def _from_values(cls, v: tuple) -> "Node":
        return cls(v[0], v[1], v[2], tuple(v[3:6]), tuple(v[6:9]))


@dataclass(frozen=True)
class Leaf:
    LAYOUT: ClassVar[struct.Struct] = struct.Struct("<12i")
    cluster: int
    area: int
    min_bounds: tuple[int, int, int]
    max_bounds: tuple[int, int, int]
    first_leaf_face: int
    num_leaf_faces: int
    first_leaf_brush: int
    num_leaf_brushes: int

    @classmethod
    def _from_values(cls, v: tuple) -> "Leaf":
        return cls(v[0], v[1], tuple(v[2:5]), tuple(v[5:8]), v[8], v[9], v[10], v[11])


@dataclass(frozen=True)
class Brush:
    LAYOUT: ClassVar[struct.Struct] = struct.Struct("<3i")
    first_side: int
    num_sides: int
    texture_index: int

    @classmethod
    def _from_values(cls, v: tuple) -> "Brush":
        return cls(*v)


@dataclass(frozen=True)
class BrushSide:
    LAYOUT: ClassVar[struct.Struct] = struct.Struct("<2i")
    plane_index: int
    texture_index: int

    @classmethod
    def _from_values(cls, v: tuple) -> "BrushSide":
        return cls(*v)


@dataclass(frozen=True)
class Texture:
    LAYOUT: ClassVar[struct.Struct] = struct.Struct("<64s2i")
    name: str
    flags: int
    contents: int

    @classmethod
    def _from_values(cls, v: tuple) -> "Texture":
        return cls(v[0].split(b"\0", 1)[0].decode("latin-1"), v[1], v[2])


@dataclass(frozen=True)
class Vertex:
    LAYOUT: ClassVar[struct.Struct] = struct.Struct("<10f4B")
    position: Vec3
    texture_coord: tuple[float, float]
    lightmap_coord: tuple[float, float]
    normal: Vec3
    colour: tuple[int, int, int, int]

    @classmethod
    def _from_values(cls, v: tuple) -> "Vertex":
        return cls(tuple(v[0:3]), tuple(v[3:5]), tuple(v[5:7]), tuple(v[7:10]), tuple(v[10:14]))


@dataclass(frozen=True)
class Face:
    LAYOUT: ClassVar[struct.Struct] = struct.Struct("<12i12f2i")
    texture_id: int
    effect: int
    face_type: int
    start_vertex: int
    num_vertices: int
    start_index: int
    num_indices: int
    lightmap_id: int
    lightmap_corner: tuple[int, int]
    lightmap_size: tuple[int, int]
    lightmap_origin: Vec3
    lightmap_vectors: tuple[Vec3, Vec3]
    normal: Vec3
    size: tuple[int, int]

    @classmethod
    def _from_values(cls, v: tuple) -> "Face":
        return cls(
            *v[0:8],
            tuple(v[8:10]),
            tuple(v[10:12]),
            tuple(v[12:15]),
            (tuple(v[15:18]), tuple(v[18:21])),
            tuple(v[21:24]),
            tuple(v[24:26]),
        )


@dataclass(frozen=True)
class Lightmap:
    LAYOUT: ClassVar[struct.Struct] = struct.Struct(f"<{LIGHTMAP_SIZE * LIGHTMAP_SIZE * 3}s")
    pixels: bytes

    @classmethod
    def _from_values(cls, v: tuple) -> "Lightmap":
        return cls(v[0])


@dataclass(frozen=True)
class VisData:
    num_clusters: int
    bytes_per_cluster: int
    bitsets: bytes


@dataclass
class BspFile:
    """The contents of a BSP file, in the file's own coordinates."""

    magic: bytes
    version: int
    lumps: tuple[Lump, ...]
    entities: str
    textures: list[Texture] = field(default_factory=list)
    planes: list[Plane] = field(default_factory=list)
    nodes: list[Node] = field(default_factory=list)
    leafs: list[Leaf] = field(default_factory=list)
    leaf_faces: list[int] = field(default_factory=list)
    leaf_brushes: list[int] = field(default_factory=list)
    brushes: list[Brush] = field(default_factory=list)
    brush_sides: list[BrushSide] = field(default_factory=list)
    vertices: list[Vertex] = field(default_factory=list)
    indices: list[int] = field(default_factory=list)
    faces: list[Face] = field(default_factory=list)
    lightmaps: list[Lightmap] = field(default_factory=list)
    vis_data: Optional[VisData] = None

    @property
    def spawn_positions(self) -> list[Vec3]:
        return parse_spawn_positions(self.entities)

    @property
    def light_positions(self) -> list[Vec3]:
        return parse_light_positions(self.entities)

    def find_leaf(self, point: Sequence[float]) -> int:
        """Walk the node tree and return the index of the leaf holding ``point``."""
        if not self.nodes:
            raise BspError("BSP has no nodes")
        x, y, z = point
        index = 0
        while index >= 0:
            node = self.nodes[index]
            plane = self.planes[node.plane_index]
            nx, ny, nz = plane.normal
            distance = nx * x + ny * y + nz * z - plane.distance
            index = node.front if distance >= 0 else node.back
        return ~index


_FLOAT_RE = re.compile(r"[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?")
_ENTITY_RE = re.compile(r"\{[^}]*\}")
_LIGHT_CLASS_RE = re.compile(r'"classname"\s+"light"')
_ORIGIN_RE = re.compile(r'"origin"\s*"([^"]+)"')
_SPAWN_CLASSES = ('"classname" "info_player_deathmatch"', '"classname" "info_player_start"')


def _scan_floats(text: str, count: int) -> Optional[tuple[float, ...]]:
    values = []
    position = 0
    for _ in range(count):
        while position < len(text) and text[position].isspace():
            position += 1
        match = _FLOAT_RE.match(text, position)
        if match is None:
            return None
        values.append(float(match.group()))
        position = match.end()
    return tuple(values)


def swizzle_origin(x: float, y: float, z: float) -> Vec3:
    """Convert an entity origin to engine space: whole |z| becomes y, minus whole |y| becomes z."""
    new_y = int(abs(z))
    new_z = int(abs(y))
    return (float(x), float(new_y), -float(new_z))


def parse_spawn_positions(entity_text: str) -> list[Vec3]:
    """Origins of player-start and deathmatch spawn entities."""
    positions: list[Vec3] = []
    position = 0
    while (position := entity_text.find("{", position)) != -1:
        end = entity_text.find("}", position)
        if end == -1:
            break
        block = entity_text[position:end]
        if any(name in block for name in _SPAWN_CLASSES):
            origin_key = block.find('"origin"')
            if origin_key != -1:
                first = block.find('"', origin_key + 8)
                if first != -1:
                    second = block.find('"', first + 1)
                    if second != -1:
                        origin = block[first + 1 : second]
                        values = _scan_floats(origin, 3)
                        if values is None:
                            logger.warning("Failed to parse origin on: %s", origin)
                        else:
                            positions.append(swizzle_origin(*values))
        position = end + 1
    return positions


def parse_light_positions(entity_text: str) -> list[Vec3]:
    """Origins of entities whose classname is exactly ``light``."""
    positions: list[Vec3] = []
    for match in _ENTITY_RE.finditer(entity_text):
        block = match.group()
        if not _LIGHT_CLASS_RE.search(block):
            continue
        origin = _ORIGIN_RE.search(block)
        if origin is None:
            continue
        values = _scan_floats(origin.group(1), 3)
        if values is None:
            logger.warning("Failed to parse light origin: %s", origin.group(1))
            continue
        positions.append(swizzle_origin(*values))
    return positions


def _lump_bytes(data: bytes, lump: Lump, kind: LumpType) -> bytes:
    end = lump.offset + lump.length
    if lump.offset < 0 or lump.length < 0 or end > len(data):
        raise BspError(f"lump {kind.name} lies outside the file")
    return data[lump.offset:end]


def _records(chunk: bytes, record_type):
    size = record_type.LAYOUT.size
    usable = len(chunk) - len(chunk) % size
    return [record_type._from_values(v) for v in record_type.LAYOUT.iter_unpack(chunk[:usable])]


def _ints(chunk: bytes) -> list[int]:
    usable = len(chunk) - len(chunk) % 4
    return [value for (value,) in struct.iter_unpack("<i", chunk[:usable])]


def parse_bsp(data: bytes) -> BspFile:
    """Parse the bytes of an IBSP file."""
    header_size = 8 + 8 * len(LumpType)
    if len(data) < header_size:
        raise BspError("data too short for a BSP header")
    magic, version = struct.unpack_from("<4si", data, 0)
    if version != BSP_VERSION:
        raise BspError(f"unsupported BSP version {version:#x}; not an IBSP")
    lumps = tuple(
        Lump(*struct.unpack_from("<2i", data, 8 + 8 * kind)) for kind in LumpType
    )

    def chunk(kind: LumpType) -> bytes:
        return _lump_bytes(data, lumps[kind], kind)

    vis_data = None
    vis_chunk = chunk(LumpType.VIS_DATA)
    if lumps[LumpType.VIS_DATA].length:
        if len(vis_chunk) < 8:
            raise BspError("visibility lump too short")
        clusters, per_cluster = struct.unpack_from("<2i", vis_chunk, 0)
        size = clusters * per_cluster
        if size < 0 or 8 + size > len(vis_chunk):
            raise BspError("visibility bit sets exceed their lump")
        vis_data = VisData(clusters, per_cluster, bytes(vis_chunk[8 : 8 + size]))

    return BspFile(
        magic=magic,
        version=version,
        lumps=lumps,
        entities=chunk(LumpType.ENTITIES).split(b"\0", 1)[0].decode("latin-1"),
        textures=_records(chunk(LumpType.TEXTURES), Texture),
        planes=_records(chunk(LumpType.PLANES), Plane),
        nodes=_records(chunk(LumpType.NODES), Node),
        leafs=_records(chunk(LumpType.LEAFS), Leaf),
        leaf_faces=_ints(chunk(LumpType.LEAF_FACES)),
        leaf_brushes=_ints(chunk(LumpType.LEAF_BRUSHES)),
        brushes=_records(chunk(LumpType.BRUSHES), Brush),
        brush_sides=_records(chunk(LumpType.BRUSH_SIDES), BrushSide),
        vertices=_records(chunk(LumpType.VERTICES), Vertex),
        indices=_ints(chunk(LumpType.INDICES)),
        faces=_records(chunk(LumpType.FACES), Face),
        lightmaps=_records(chunk(LumpType.LIGHTMAPS), Lightmap),
        vis_data=vis_data,
    )


def read_bsp(path: Union[str, Path]) -> BspFile:
    """Read and parse a BSP file from disk."""
    return parse_bsp(Path(path).read_bytes())