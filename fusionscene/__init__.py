"""Cameras, BSP maps and collision, glTF meshes, terrain, interface and weapon state for a first-person engine."""

__version__ = "0.1.0"

__all__ = [
    "bsp_collision",
    "bsp_format",
    "bsp_scene",
    "camera",
    "gltf",
    "interface",
    "lighting",
    "model",
    "network",
    "skybox",
    "terrain",
    "viewport",
]