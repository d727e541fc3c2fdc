"""The first-person weapon view: ammunition, firing and weapon sway."""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)

Vec3 = tuple[float, float, float]

SWAY_AMOUNT = 0.03
BOBBING_SPEED = 10.0
BOBBING_AMOUNT = 0.05
MOVING_SPEED = 0.1
WEAPON_REST_OFFSET: Vec3 = (0.0, -0.5, -0.25)


@dataclass
class WeaponInfo:
    """Ammunition and timing of one weapon."""

    max_ammo: int
    current_ammo: int
    reload_delay: float
    fire_delay: float


def _first(entry: Mapping[str, Any], key: str, index: int) -> Any:
    try:
        return entry[key][0]
    except (KeyError, IndexError, TypeError) as error:
        raise ValueError(f"viewport {index} lacks a value for {key!r}") from error


def load_weapons(config: Mapping[str, Any]) -> dict[int, WeaponInfo]:
    """Weapons described by the ``Viewports`` list of a viewport configuration."""
    weapons: dict[int, WeaponInfo] = {}
    for index, entry in enumerate(config.get("Viewports", [])):
        max_ammo = int(_first(entry, "MaxAmmo", index))
        weapons[index] = WeaponInfo(
            max_ammo=max_ammo,
            current_ammo=max_ammo,
            reload_delay=float(_first(entry, "ReloadDelay", index)),
            fire_delay=float(_first(entry, "ShootDelay", index)),
        )
    return weapons


def weapon_sway(time: float, player_speed: float) -> tuple[float, float]:
    """Sideways sway and forward bob of the weapon while the player moves."""
    if abs(player_speed) > MOVING_SPEED:
        return (
            math.cos(time * BOBBING_SPEED) * SWAY_AMOUNT,
            math.sin(time * BOBBING_SPEED) * BOBBING_AMOUNT,
        )
    return (0.0, 0.0)


class Viewport:
    """State of the weapons held in front of the camera."""

    def __init__(self, config: Mapping[str, Any]) -> None:
        self.weapons = load_weapons(config)
        self.weapon_index = 0
        self.fire_weapon = False
        self.weapon_delay = float("-inf")
        self.input_locked = False
        self.offset: Vec3 = WEAPON_REST_OFFSET
        self._old_position: Vec3 = (0.0, 0.0, 0.0)

    @property
    def weapon(self) -> WeaponInfo:
        """The weapon currently held."""
        try:
            return self.weapons[self.weapon_index]
        except KeyError as error:
            raise ValueError(f"no weapon at index {self.weapon_index}") from error

    def fire(self, now: float) -> bool:
        """Pull the trigger at time ``now``; return whether a round was spent."""
        if self.input_locked:
            return False
        weapon = self.weapon
        self.fire_weapon = False
        if weapon.current_ammo <= 0:
            weapon.current_ammo = 0
            logger.info("No more ammo")
            return False
        weapon.current_ammo -= 1
        logger.info("Fired with %d bullets.", weapon.current_ammo)
        if now - self.weapon_delay >= weapon.reload_delay:
            self.fire_weapon = True
            self.weapon_delay = now
        return True

    def weapon_offset(
        self, camera_position: Sequence[float], time: float, player_speed: float
    ) -> Vec3:
        """Weapon translation; it only changes when the camera has moved."""
        x, y, z = camera_position
        position = (float(x), float(y), float(z))
        if position != self._old_position:
            sway, bob = weapon_sway(time, player_speed)
            rest_x, rest_y, rest_z = WEAPON_REST_OFFSET
            self.offset = (rest_x, sway + rest_y, bob + rest_z)
            self._old_position = position
        return self.offset