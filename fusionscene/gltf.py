"""Reading of glTF meshes and level partitions from a document and its binary buffer."""

from __future__ import annotations

import struct
from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

import numpy as np

Vec2 = tuple[float, float]
Vec3 = tuple[float, float, float]

COMPONENT_UNSIGNED_INT = 5125
COMPONENT_UNSIGNED_SHORT = 5123
COMPONENT_SHORT = 5122

_INDEX_FORMATS = {
    COMPONENT_UNSIGNED_INT: "I",
    COMPONENT_UNSIGNED_SHORT: "H",
    COMPONENT_SHORT: "h",
}
_COMPONENTS_PER_TYPE = {"SCALAR": 1, "VEC2": 2, "VEC3": 3, "VEC4": 4}
_DEFAULT_INDEX_VIEW = 0
_DEFAULT_FLOAT_VIEW = 1
_VERTEX_COLOUR: Vec3 = (1.0, 0.0, 0.0)


class GltfError(ValueError):
    """Raised when a glTF document or its buffer is malformed."""


@dataclass(frozen=True)
class SceneVertex:
    """One vertex as laid out for the scene shaders."""

    position: Vec3
    normal: Vec3
    colour: Vec3
    texture_uv: Vec2


@dataclass
class GltfMesh:
    """Vertices and indices taken from a glTF document."""

    vertices: list[SceneVertex] = field(default_factory=list)
    indices: list[int] = field(default_factory=list)
    positions: list[float] = field(default_factory=list)
    matrix: np.ndarray = field(default_factory=lambda: np.identity(4))


def _get(container: Any, key: Any, what: str) -> Any:
    try:
        return container[key]
    except (KeyError, IndexError, TypeError) as error:
        raise GltfError(f"missing {what}: {key!r}") from error


def _grouped(values: Sequence[float], size: int) -> list[tuple[float, ...]]:
    if len(values) % size:
        raise GltfError(f"{len(values)} values do not divide into groups of {size}")
    items = iter(values)
    return [tuple(float(v) for v in group) for group in zip(*[items] * size)]


def group_vec3(values: Sequence[float]) -> list[Vec3]:
    """Group a flat list of floats into 3-component vectors."""
    return _grouped(values, 3)  # type: ignore[return-value]


def group_vec2(values: Sequence[float]) -> list[Vec2]:
    """Group a flat list of floats into 2-component vectors."""
    return _grouped(values, 2)  # type: ignore[return-value]


def _data_start(document: Mapping[str, Any], accessor: Mapping[str, Any], default_view: int) -> int:
    view_index = accessor.get("bufferView", default_view)
    views = _get(document, "bufferViews", "document key")
    view = _get(views, view_index, "buffer view")
    return int(_get(view, "byteOffset", "buffer view key")) + int(accessor.get("byteOffset", 0))


def _unpack(data: bytes, fmt: str, count: int, start: int) -> tuple:
    layout = struct.Struct(f"<{count}{fmt}")
    if start < 0 or start + layout.size > len(data):
        raise GltfError("accessor reads past the end of the buffer")
    return layout.unpack_from(data, start)


def read_indices(
    document: Mapping[str, Any], data: bytes, accessor: Mapping[str, Any]
) -> list[int]:
    """Index values of an accessor as unsigned 32-bit integers; unknown types give none."""
    count = int(_get(accessor, "count", "accessor key"))
    component_type = int(_get(accessor, "componentType", "accessor key"))
    start = _data_start(document, accessor, _DEFAULT_INDEX_VIEW)
    fmt = _INDEX_FORMATS.get(component_type)
    if fmt is None:
        return []
    return [value & 0xFFFFFFFF for value in _unpack(data, fmt, count, start)]


def read_floats(
    document: Mapping[str, Any], data: bytes, accessor: Mapping[str, Any]
) -> list[float]:
    """All float components of an accessor, flattened."""
    count = int(_get(accessor, "count", "accessor key"))
    kind = _get(accessor, "type", "accessor key")
    start = _data_start(document, accessor, _DEFAULT_FLOAT_VIEW)
    components = _COMPONENTS_PER_TYPE.get(kind)
    if components is None:
        raise GltfError(f"unsupported accessor type {kind!r}")
    return list(_unpack(data, "f", count * components, start))


def _quat_matrix(w: float, x: float, y: float, z: float) -> np.ndarray:
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


def node_matrix(node: Mapping[str, Any]) -> np.ndarray:
    """The node's ``matrix`` applied after its translation, rotation and scale."""
    translation = np.identity(4)
    if "translation" in node:
        translation[:3, 3] = [float(v) for v in node["translation"][:3]]
    rotation = np.identity(4)
    if "rotation" in node:
        x, y, z, w = (float(v) for v in node["rotation"][:4])
        rotation = _quat_matrix(w, x, y, z)
    scaling = np.identity(4)
    if "scale" in node:
        sx, sy, sz = (float(v) for v in node["scale"][:3])
        scaling = np.diag([sx, sy, sz, 1.0])
    table = np.identity(4)
    if "matrix" in node:
        values = [float(v) for v in node["matrix"]]
        if len(values) != 16:
            raise GltfError(f"node matrix has {len(values)} values, expected 16")
        table = np.array(values).reshape(4, 4).T
    return table @ (translation @ rotation @ scaling)


def _mesh_data(
    document: Mapping[str, Any], data: bytes, mesh_index: int
) -> tuple[list[SceneVertex], list[int], list[float]]:
    mesh = _get(_get(document, "meshes", "document key"), mesh_index, "mesh")
    primitive = _get(_get(mesh, "primitives", "mesh key"), 0, "primitive")
    attributes = _get(primitive, "attributes", "primitive key")
    accessors = _get(document, "accessors", "document key")

    def accessor(index: Any) -> Mapping[str, Any]:
        return _get(accessors, index, "accessor")

    positions = read_floats(document, data, accessor(_get(attributes, "POSITION", "attribute")))
    normals = read_floats(document, data, accessor(_get(attributes, "NORMAL", "attribute")))
    uvs = read_floats(document, data, accessor(_get(attributes, "TEXCOORD_0", "attribute")))
    indices = read_indices(document, data, accessor(_get(primitive, "indices", "primitive key")))

    try:
        vertices = [
            SceneVertex(position, normal, _VERTEX_COLOUR, uv)
            for position, normal, uv in zip(
                group_vec3(positions), group_vec3(normals), group_vec2(uvs), strict=True
            )
        ]
    except ValueError as error:
        if isinstance(error, GltfError):
            raise
        raise GltfError("vertex attributes have different lengths") from error
    return vertices, indices, positions


def _walk(nodes: Sequence[Mapping[str, Any]], index: int, seen: set[int]) -> Iterator[Mapping[str, Any]]:
    if index in seen:
        raise GltfError(f"node {index} is part of a cycle")
    seen.add(index)
    node = _get(nodes, index, "node")
    yield node
    for child in node.get("children", ()):
        yield from _walk(nodes, int(child), seen)
    seen.discard(index)


def load_mesh(document: Mapping[str, Any], data: bytes) -> GltfMesh:
    """Walk the node tree from node 0 and gather its meshes.

    Vertices of every mesh visited accumulate; indices and flat positions are
    those of the last mesh visited.
    """
    result = GltfMesh()
    nodes = _get(document, "nodes", "document key")
    for node in _walk(nodes, 0, set()):
        if "mesh" in node:
            vertices, indices, positions = _mesh_data(document, data, int(node["mesh"]))
            result.vertices.extend(vertices)
            result.indices = indices
            result.positions = positions
    return result


def load_partition(document: Mapping[str, Any], data: bytes) -> GltfMesh:
    """Mesh 0 of the document, with the transform of node 0."""
    nodes = _get(document, "nodes", "document key")
    matrix = node_matrix(_get(nodes, 0, "node"))
    vertices, indices, positions = _mesh_data(document, data, 0)
    return GltfMesh(vertices=vertices, indices=indices, positions=positions, matrix=matrix)