import struct

import pytest

from fusionscene.bsp_collision import BspCollision, TraceType, load_collision
from fusionscene.bsp_format import (
    BSP_VERSION,
    Brush,
    BrushSide,
    BspError,
    BspFile,
    Leaf,
    LumpType,
    Node,
    Plane,
    Texture,
)

BOUNDS = (0, 0, 0)


def floor_bsp(contents=1, normal=(0.0, 0.0, 1.0)):
    """A single floor plane at engine y=0; the solid brush lies below it."""
    return BspFile(
        magic=b"IBSP",
        version=BSP_VERSION,
        lumps=(),
        entities="",
        textures=[Texture("textures/floor", 0, contents)],
        planes=[Plane(normal, 0.0)],
        nodes=[Node(0, -1, -2, BOUNDS, BOUNDS)],
        leafs=[
            Leaf(0, 0, BOUNDS, BOUNDS, 0, 0, 0, 0),
            Leaf(1, 0, BOUNDS, BOUNDS, 0, 0, 0, 1),
        ],
        leaf_brushes=[0],
        brushes=[Brush(0, 1, 0)],
        brush_sides=[BrushSide(0, 0)],
    )


def floor_bytes(version=BSP_VERSION):
    chunks = {
        LumpType.TEXTURES: Texture.LAYOUT.pack(b"floor", 0, 1),
        LumpType.PLANES: Plane.LAYOUT.pack(0.0, 0.0, 1.0, 0.0),
        LumpType.NODES: Node.LAYOUT.pack(0, -1, -2, 0, 0, 0, 0, 0, 0),
        LumpType.LEAFS: Leaf.LAYOUT.pack(0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0)
        + Leaf.LAYOUT.pack(1, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 1),
        LumpType.LEAF_BRUSHES: struct.pack("<i", 0),
        LumpType.BRUSHES: Brush.LAYOUT.pack(0, 1, 0),
        LumpType.BRUSH_SIDES: BrushSide.LAYOUT.pack(0, 0),
    }
    header_size = 8 + 8 * len(LumpType)
    body = b""
    lumps = []
    for kind in LumpType:
        chunk = chunks.get(kind, b"")
        lumps.append(struct.pack("<2i", header_size + len(body), len(chunk)))
        body += chunk
    return struct.pack("<4si", b"IBSP", version) + b"".join(lumps) + body


def test_ray_that_misses_reaches_end():
    collision = BspCollision(floor_bsp())
    assert collision.trace_ray((0.0, 10.0, 0.0), (5.0, 20.0, 0.0)) == (5.0, 20.0, 0.0)
    assert collision.collided is False


def test_ray_through_floor_slides_along_it():
    collision = BspCollision(floor_bsp())
    result = collision.trace_ray((0.0, 10.0, 0.0), (10.0, -10.0, 0.0))
    assert result[0] == pytest.approx(10.0)
    assert result[1] == pytest.approx(10.0)
    assert result[2] == pytest.approx(0.0)
    assert collision.collided is True
    assert collision.grounded is True


def test_ray_straight_down_stays_above_floor():
    collision = BspCollision(floor_bsp())
    result = collision.trace_ray((0.0, 10.0, 0.0), (0.0, -10.0, 0.0))
    assert result[1] >= 0.0
    assert result[0] == pytest.approx(0.0)


def test_ray_collision_normal_is_floor_normal():
    collision = BspCollision(floor_bsp())
    collision.trace_ray((0.0, 10.0, 0.0), (0.0, -10.0, 0.0))
    assert collision.collision_normal() == pytest.approx((0.0, 1.0, 0.0))
    assert collision.trace_type == TraceType.RAY


def test_collision_normal_for_box_trace_is_default(caplog):
    collision = BspCollision(floor_bsp())
    collision.trace_box((0.0, 10.0, 0.0), (0.0, 20.0, 0.0), (-1, -1, -1), (1, 1, 1))
    with caplog.at_level("WARNING"):
        assert collision.collision_normal() == (0.0, 1.0, 0.0)
    assert any("ray" in record.message for record in caplog.records)


def test_sphere_through_floor_slides():
    collision = BspCollision(floor_bsp())
    result = collision.trace_sphere((0.0, 10.0, 0.0), (10.0, -10.0, 0.0), 1.0)
    assert result == pytest.approx((10.0, 10.0, 0.0))
    assert collision.collided is True


def test_sphere_stays_a_radius_above_floor():
    collision = BspCollision(floor_bsp())
    result = collision.trace_sphere((0.0, 10.0, 0.0), (0.0, 0.5, 0.0), 1.0)
    assert result[1] >= 1.0


def test_box_through_floor_keeps_height():
    collision = BspCollision(floor_bsp())
    result = collision.trace_box(
        (0.0, 10.0, 0.0), (10.0, -10.0, 0.0), (-1.0, -1.0, -1.0), (1.0, 1.0, 1.0)
    )
    assert result[0] == pytest.approx(10.0)
    assert result[1] == pytest.approx(10.0)


def test_box_in_open_space_reaches_end():
    collision = BspCollision(floor_bsp())
    result = collision.trace_box(
        (0.0, 10.0, 0.0), (4.0, 12.0, 3.0), (-1.0, -1.0, -1.0), (1.0, 1.0, 1.0)
    )
    assert result == (4.0, 12.0, 3.0)
    assert collision.collided is False


def test_trace_box_hit():
    collision = BspCollision(floor_bsp())
    box = ((-1.0, -1.0, -1.0), (1.0, 1.0, 1.0))
    assert collision.trace_box_hit((0.0, 10.0, 0.0), (0.0, -10.0, 0.0), *box) is True
    assert collision.trace_box_hit((0.0, 10.0, 0.0), (0.0, 20.0, 0.0), *box) is False


def test_non_solid_brush_is_ignored():
    collision = BspCollision(floor_bsp(contents=0))
    assert collision.trace_ray((0.0, 10.0, 0.0), (0.0, -10.0, 0.0)) == (0.0, -10.0, 0.0)
    assert collision.collided is False


def test_find_leaf_on_each_side():
    collision = BspCollision(floor_bsp())
    assert collision.find_leaf((0.0, 5.0, 0.0)) == 0
    assert collision.find_leaf((0.0, -5.0, 0.0)) == 1


def test_check_next_position_steps_up_one_unit():
    collision = BspCollision(floor_bsp())
    collision.trace_box((0.0, 10.0, 0.0), (0.0, 10.0, 0.0), (-1, -1, -1), (1, 1, 1))
    result = collision.check_next_position((0.0, 10.0, 0.0), (5.0, 10.0, 0.0))
    assert result == (5.0, 11.0, 0.0)


def test_unnormalised_plane_gives_same_result():
    unit = BspCollision(floor_bsp())
    scaled = BspCollision(floor_bsp(normal=(0.0, 0.0, 2.0)))
    start, end = (0.0, 10.0, 0.0), (10.0, -10.0, 0.0)
    assert scaled.trace_ray(start, end) == pytest.approx(unit.trace_ray(start, end))


def test_load_collision_from_file(tmp_path):
    path = tmp_path / "floor.bsp"
    path.write_bytes(floor_bytes())
    collision = load_collision(path)
    assert collision.find_leaf((0.0, -5.0, 0.0)) == 1
    assert collision.trace_box_hit(
        (0.0, 10.0, 0.0), (0.0, -10.0, 0.0), (-1, -1, -1), (1, 1, 1)
    ) is True


def test_load_collision_rejects_wrong_version(tmp_path):
    path = tmp_path / "bad.bsp"
    path.write_bytes(floor_bytes(version=0x2F))
    with pytest.raises(BspError):
        load_collision(path)


def test_trace_without_nodes_raises():
    bsp = floor_bsp()
    bsp.nodes = []
    collision = BspCollision(bsp)
    with pytest.raises(BspError):
        collision.trace_ray((0.0, 0.0, 0.0), (1.0, 0.0, 0.0))