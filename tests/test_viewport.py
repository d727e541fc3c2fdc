import pytest

from fusionscene.viewport import (
    SWAY_AMOUNT,
    WEAPON_REST_OFFSET,
    Viewport,
    WeaponInfo,
    load_weapons,
    weapon_sway,
)


def _config():
    return {
        "Viewports": [
            {"MaxAmmo": [2], "ShootDelay": [0.2], "ReloadDelay": [1.5]},
            {"MaxAmmo": [30], "ShootDelay": [0.05], "ReloadDelay": [0.5]},
        ]
    }


def test_load_weapons_reads_first_values():
    weapons = load_weapons(_config())
    assert weapons[0] == WeaponInfo(max_ammo=2, current_ammo=2, reload_delay=1.5, fire_delay=0.2)
    assert weapons[1].max_ammo == 30
    assert sorted(weapons) == [0, 1]


def test_load_weapons_without_viewports_is_empty():
    assert load_weapons({}) == {}


def test_load_weapons_missing_key_raises():
    with pytest.raises(ValueError):
        load_weapons({"Viewports": [{"MaxAmmo": [3]}]})


def test_weapon_sway_still_player():
    assert weapon_sway(1.234, 0.0) == (0.0, 0.0)


def test_weapon_sway_moving_at_time_zero():
    sway, bob = weapon_sway(0.0, 1.0)
    assert sway == pytest.approx(SWAY_AMOUNT)
    assert bob == pytest.approx(0.0)


def test_fire_spends_ammo_until_empty():
    viewport = Viewport(_config())
    assert viewport.fire(0.0) is True
    assert viewport.fire(0.1) is True
    assert viewport.weapon.current_ammo == 0
    assert viewport.fire(5.0) is False
    assert viewport.weapon.current_ammo == 0


def test_fire_respects_reload_delay():
    viewport = Viewport(_config())
    viewport.fire(10.0)
    assert viewport.fire_weapon is True
    assert viewport.weapon_delay == 10.0
    viewport.fire(10.5)
    assert viewport.fire_weapon is False
    assert viewport.weapon_delay == 10.0


def test_fire_ignored_while_locked():
    viewport = Viewport(_config())
    viewport.input_locked = True
    assert viewport.fire(0.0) is False
    assert viewport.weapon.current_ammo == 2


def test_fire_without_weapons_raises():
    with pytest.raises(ValueError):
        Viewport({}).fire(0.0)


def test_weapon_offset_starts_at_rest_and_holds_when_still():
    viewport = Viewport(_config())
    assert viewport.weapon_offset((0.0, 0.0, 0.0), 0.0, 5.0) == WEAPON_REST_OFFSET


def test_weapon_offset_changes_only_on_movement():
    viewport = Viewport(_config())
    moved = viewport.weapon_offset((1.0, 0.0, 0.0), 0.0, 1.0)
    assert moved[0] == 0.0
    assert moved[1] == pytest.approx(SWAY_AMOUNT + WEAPON_REST_OFFSET[1])
    assert moved[2] == pytest.approx(WEAPON_REST_OFFSET[2])
    held = viewport.weapon_offset((1.0, 0.0, 0.0), 0.3, 1.0)
    assert held == moved