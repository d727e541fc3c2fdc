import numpy as np
import pytest

from fusionscene.interface import Frame, Image, Label, normalise_colour


def make_frame(**kwargs):
    params = dict(position=(100, 50), scale=(20, 10), width=800, height=600,
                  colour=(255, 0, 51), rotation=0.0)
    params.update(kwargs)
    return Frame(**params)


def test_normalise_colour():
    assert normalise_colour((255, 0, 51)) == pytest.approx((1.0, 0.0, 0.2))


def test_frame_colour_is_normalised():
    assert make_frame().colour == normalise_colour((255, 0, 51))


def test_projection_maps_window_corners():
    projection = make_frame().projection_matrix()
    top_left = projection @ np.array([0.0, 0.0, 0.0, 1.0])
    bottom_right = projection @ np.array([800.0, 600.0, 0.0, 1.0])
    assert np.allclose(top_left[:2], [-1.0, 1.0])
    assert np.allclose(bottom_right[:2], [1.0, -1.0])


def test_model_matrix_scales_then_translates():
    model = make_frame().model_matrix()
    corner = model @ np.array([0.5, 0.5, 0.0, 1.0])
    assert np.allclose(corner[:2], [100 + 10, 50 + 5])


def test_model_matrix_rotation_preserves_length():
    frame = make_frame(rotation=90.0, scale=(1, 1), position=(0, 0))
    moved = frame.model_matrix() @ np.array([1.0, 0.0, 0.0, 1.0])
    assert np.allclose(moved[:3], [0.0, 1.0, 0.0])


def test_plain_uniforms():
    uniforms = make_frame().uniforms()
    assert uniforms["IsImage"] == 0.0
    assert uniforms["Corner"] == 0.0
    assert "IsTransparancy" not in uniforms
    assert np.allclose(uniforms["model"], make_frame().model_matrix())


def test_corner_and_transparency_uniforms():
    frame = make_frame()
    frame.add_corners(4.0)
    frame.add_transparency(0.5)
    uniforms = frame.uniforms()
    assert uniforms["Corner"] == 1.0
    assert uniforms["u_radius"] == 4.0
    assert uniforms["u_resolution"] == (800.0, 600.0)
    assert uniforms["u_size"] == (20.0, 10.0)
    assert uniforms["IsTransparancy"] == 1.0
    assert uniforms["Transparency"] == 0.5


def test_image_renders_as_image():
    image = Image(b"\x00" * 16, (10, 10), (5, 5), 800, 600)
    uniforms = image.uniforms()
    assert uniforms["IsImage"] == 1.0
    assert uniforms["spriteColor"] == (0.0, 0.0, 0.0)
    assert image.texture_width == 1024
    assert image.image_buffer == b"\x00" * 16


def test_label_set_text():
    label = Label("Health", (10, 20), 2.0, (1, 0.5, 0))
    label.set_text("Ammo")
    assert label.text == "Ammo"
    assert label.rgba == (1.0, 0.5, 0.0, 1.0)
    assert label.position == (10.0, 20.0)