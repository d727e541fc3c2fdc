"""Point lights and the shader uniforms that describe them."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

Vec3 = tuple[float, float, float]

DEFAULT_ORIENTATION: Vec3 = (0.0, -1.0, 0.0)
LIGHT_GLOSS = 0.75
BSP_LIGHT_COLOUR: Vec3 = (1.0, 1.0, 1.0)


def _vec3(value: Sequence[float]) -> Vec3:
    x, y, z = value
    return (float(x), float(y), float(z))


@dataclass(frozen=True)
class LightBlock:
    """One light in the world."""

    colour: Vec3
    position: Vec3
    orientation: Vec3
    brightness: float


@dataclass
class Lighting:
    """A collection of world lights."""

    world_lights: list[LightBlock] = field(default_factory=list)

    def create_light(
        self,
        colour: Sequence[float],
        position: Sequence[float],
        brightness: float,
        orientation: Sequence[float] = DEFAULT_ORIENTATION,
    ) -> LightBlock:
        """Add a light and return it."""
        light = LightBlock(
            colour=_vec3(colour),
            position=_vec3(position),
            orientation=_vec3(orientation),
            brightness=float(brightness),
        )
        self.world_lights.append(light)
        return light

    def model_uniforms(
        self, camera_position: Sequence[float], ambience_strength: float
    ) -> dict[str, object]:
        """Uniform values a model shader needs for these lights; empty when there are none."""
        uniforms: dict[str, object] = {}
        if not self.world_lights:
            return uniforms
        uniforms["CameraPosition"] = _vec3(camera_position)
        uniforms["LightInstances"] = float(len(self.world_lights))
        uniforms["AmbienceStrength"] = float(ambience_strength)
        for index, light in enumerate(self.world_lights):
            uniforms[f"Orientation[{index}]"] = light.orientation
            uniforms[f"LightSource[{index}]"] = light.position
            uniforms[f"LightColour[{index}]"] = light.colour
            uniforms[f"Brightness[{index}]"] = light.brightness
            uniforms[f"LightGloss[{index}]"] = LIGHT_GLOSS
        return uniforms


def bsp_light_uniforms(
    light_positions: Sequence[Sequence[float]], camera_position: Sequence[float]
) -> dict[str, object]:
    """Uniform values for the lights of a BSP level; empty when there are none."""
    uniforms: dict[str, object] = {}
    if not light_positions:
        return uniforms
    uniforms["CameraPosition"] = _vec3(camera_position)
    uniforms["LightMaxIndex"] = len(light_positions)
    for index, position in enumerate(light_positions):
        uniforms[f"LightPosition[{index}]"] = _vec3(position)
        uniforms[f"LightColour[{index}]"] = BSP_LIGHT_COLOUR
    return uniforms