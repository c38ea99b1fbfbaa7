from __future__ import annotations

import pytest

from planetgen.config import BOUNDS, FaultType, PlanetConfig


def test_defaults_are_within_bounds() -> None:
    cfg = PlanetConfig()
    for name, (lo, hi) in BOUNDS.items():
        v = getattr(cfg, name)
        assert lo <= v <= hi, name


def test_out_of_range_values_are_clamped() -> None:
    cfg = PlanetConfig(
        resolution=10_000,
        plate_count=1,
        jitter=-3.0,
        sea_level=7.0,
        evaporation_rate=2.0,
        subdivision_level=-4,
    )
    assert cfg.resolution == 4096
    assert cfg.plate_count == 2
    assert cfg.jitter == 0.0
    assert cfg.sea_level == 1.0
    assert cfg.evaporation_rate == 1.0
    assert cfg.subdivision_level == 0


def test_garbage_and_non_finite_values_fall_back_to_defaults() -> None:
    cfg = PlanetConfig(
        jitter="lots", sea_level=float("nan"), height_scale=float("inf"), resolution=None
    )
    assert cfg.jitter == 0.5
    assert cfg.sea_level == 0.5
    assert cfg.height_scale == 2.0
    assert cfg.resolution == 256


def test_int_fields_are_rounded() -> None:
    cfg = PlanetConfig(smooth_passes=3.6, resolution="128")
    assert cfg.smooth_passes == 4
    assert cfg.resolution == 128


def test_fault_type_parsing() -> None:
    assert PlanetConfig(fault_type="Trench").fault_type is FaultType.TRENCH
    assert PlanetConfig(fault_type=FaultType.MIXED).fault_type is FaultType.MIXED
    assert PlanetConfig(fault_type="volcano").fault_type is FaultType.RIDGE


def test_seed_handling() -> None:
    assert PlanetConfig().seed is None
    assert PlanetConfig(seed=-7).seed == 7
    assert PlanetConfig(seed="abc").seed is None


def test_presets() -> None:
    cfg = PlanetConfig.preset("balanced", seed=3)
    assert cfg.fault_type is FaultType.MIXED
    assert cfg.sea_level == pytest.approx(0.53)
    assert cfg.erosion_iterations == 80_000
    assert cfg.seed == 3

    with pytest.raises(ValueError):
        PlanetConfig.preset("nope")


def test_config_is_frozen() -> None:
    cfg = PlanetConfig()
    with pytest.raises(Exception):
        cfg.resolution = 64  # type: ignore[misc]
