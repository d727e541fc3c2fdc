import random

import pytest

from fusionscene.bsp_format import (
    BspError,
    BspFile,
    Face,
    Leaf,
    Node,
    Plane,
    Texture,
    Vertex,
    VisData,
)
from fusionscene.bsp_scene import BspScene

SPAWN_TEXT = '{\n"classname" "info_player_start"\n"origin" "10 20 30"\n}\n'


def make_face(face_type=1, start_vertex=0, num_vertices=0, start_index=0, num_indices=0):
    return Face(
        0, 0, face_type, start_vertex, num_vertices, start_index, num_indices, -1,
        (0, 0), (0, 0), (0.0, 0.0, 0.0), ((0.0, 0.0, 0.0), (0.0, 0.0, 0.0)),
        (0.0, 0.0, 1.0), (0, 0),
    )


def make_bsp(vis=True, entities=SPAWN_TEXT):
    vertices = [
        Vertex((1.0, 2.0, 3.0), (0.5, 0.25), (0.1, 0.2), (0.0, 0.0, 1.0), (255, 255, 255, 255)),
        Vertex((4.0, 5.0, 6.0), (1.0, 0.0), (0.3, 0.4), (0.0, 0.0, 1.0), (255, 255, 255, 255)),
    ]
    return BspFile(
        magic=b"IBSP",
        version=0x2E,
        lumps=(),
        entities=entities,
        textures=[Texture("textures/wall", 0, 1), Texture("sky", 0, 1), Texture("gone", 0, 1)],
        planes=[Plane((1.0, 0.0, 0.0), 0.0)],
        nodes=[Node(0, -1, -2, (0, 0, 0), (0, 0, 0))],
        leafs=[
            Leaf(0, 0, (0, 0, 0), (0, 0, 0), 0, 2, 0, 0),
            Leaf(1, 0, (0, 0, 0), (0, 0, 0), 2, 2, 0, 0),
        ],
        leaf_faces=[0, 1, 1, 2],
        vertices=vertices,
        indices=[0, 1, 2, 2, 1, 0],
        faces=[
            make_face(start_vertex=0, num_vertices=2, start_index=0, num_indices=3),
            make_face(start_vertex=1, num_vertices=1, start_index=3, num_indices=3),
            make_face(face_type=2),
        ],
        vis_data=VisData(2, 1, bytes([0b11, 0b10])) if vis else None,
    )


def test_face_vertex_buffer_swizzles_positions():
    scene = BspScene(make_bsp())
    buffer = scene.face_vertex_buffer(0)
    assert len(buffer) == 14
    assert buffer[:7] == [1.0, 3.0, -2.0, 0.5, 0.25, 0.1, 0.2]


def test_face_vertex_buffer_out_of_range():
    bsp = make_bsp()
    bsp.faces[0] = make_face(start_vertex=1, num_vertices=5)
    with pytest.raises(BspError):
        BspScene(bsp).face_vertex_buffer(0)


def test_face_indices():
    scene = BspScene(make_bsp())
    assert scene.face_indices(1) == [2, 1, 0]


def test_cluster_visibility_bits():
    scene = BspScene(make_bsp())
    assert scene.is_cluster_visible(0, 1) is True
    assert scene.is_cluster_visible(1, 0) is False
    assert scene.is_cluster_visible(-1, 0) is True


def test_without_vis_data_everything_visible():
    scene = BspScene(make_bsp(vis=False))
    assert scene.is_cluster_visible(1, 0) is True


def test_visible_faces_from_cluster_zero():
    scene = BspScene(make_bsp())
    faces = scene.visible_faces((5.0, 0.0, 0.0))
    assert faces == [1, 0]
    assert 2 not in faces


def test_visible_faces_from_cluster_one_hides_other_cluster():
    scene = BspScene(make_bsp())
    assert scene.visible_faces((-5.0, 0.0, 0.0)) == [1]


def test_visible_faces_no_duplicates_without_vis():
    faces = BspScene(make_bsp(vis=False)).visible_faces((-5.0, 0.0, 0.0))
    assert sorted(faces) == [0, 1]


def test_texture_files(tmp_path):
    (tmp_path / "textures").mkdir()
    (tmp_path / "textures" / "wall.tga").write_bytes(b"")
    (tmp_path / "sky.jpg").write_bytes(b"")
    names = BspScene(make_bsp()).texture_files(tmp_path)
    assert names == ["textures/wall.tga", "sky.jpg", "gone"]


def test_spawn_player_picks_a_spawn():
    scene = BspScene(make_bsp())
    spawn = scene.spawn_player(random.Random(0))
    assert spawn in scene.spawn_positions
    assert spawn == (10.0, 30.0, -20.0)


def test_spawn_player_without_spawns():
    scene = BspScene(make_bsp(entities=""))
    with pytest.raises(BspError):
        scene.spawn_player(random.Random(0))


def test_lighting_matches_light_positions():
    scene = BspScene(make_bsp())
    assert len(scene.lighting.world_lights) == len(scene.light_positions)