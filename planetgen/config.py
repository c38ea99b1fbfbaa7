"""Generation settings.

Out-of-range values are clamped to safe bounds instead of rejected: the
generator is a creative tool, a best-effort planet is preferred over an error.
"""

from __future__ import annotations

import math
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator


class FaultType(str, Enum):
    RIDGE = "ridge"
    TRENCH = "trench"
    SHEAR = "shear"
    MIXED = "mixed"


# (min, max) for every numeric setting.
BOUNDS: dict[str, tuple[float, float]] = {
    "resolution": (16, 4096),
    "plate_count": (2, 400),
    "plate_size_variance": (0.0, 1.0),
    "jitter": (0.0, 1.0),
    "plate_delta": (0.0, 2.0),
    "ocean_floor": (0.0, 1.0),
    "erosion_iterations": (0, 2_000_000),
    "erosion_rate": (0.001, 2.0),
    "deposition_rate": (0.0, 1.0),
    "evaporation_rate": (0.0, 1.0),
    "inertia": (0.0, 0.99),
    "gravity": (0.0, 20.0),
    "smooth_passes": (0, 40),
    "sea_level": (0.0, 1.0),
    "river_depth": (0.0, 0.2),
    "lake_threshold": (0.0, 0.5),
    "water_threshold": (0.0, 1.0),
    "radius": (0.1, 1000.0),
    "height_scale": (0.0, 80.0),
    "subdivision_level": (0, 512),
    "ice_cap_threshold": (0.0, 1.0),
}

_INT_FIELDS = {
    "resolution",
    "plate_count",
    "erosion_iterations",
    "smooth_passes",
    "subdivision_level",
}


class PlanetConfig(BaseModel):
    """All knobs of a single planet generation run."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    # Tectonics
    resolution: int = Field(default=256, description="Height field side length")
    plate_count: int = Field(default=10, description="Number of tectonic plates")
    plate_size_variance: float = Field(
        default=0.0, description="Spread of per-plate size bias around 1.0"
    )
    desymmetrize_tiling: bool = Field(
        default=False, description="Skew plates by row to break seam symmetry"
    )
    jitter: float = Field(default=0.5, description="Continental edge falloff")
    plate_delta: float = Field(default=1.25, description="Continental uplift gain")
    ocean_floor: float = Field(default=0.2, description="Oceanic base elevation")
    fault_type: FaultType = Field(
        default=FaultType.RIDGE, description="Boundary behaviour between plates"
    )

    # Erosion
    erosion_iterations: int = Field(default=50_000, description="Droplet count")
    erosion_rate: float = Field(default=0.3, description="Erosion strength")
    deposition_rate: float = Field(default=0.1, description="Deposition strength")
    evaporation_rate: float = Field(
        default=0.02, description="Water lost per droplet step"
    )
    inertia: float = Field(default=0.05, description="Droplet direction inertia")
    gravity: float = Field(default=4.0, description="Droplet acceleration")

    # Smoothing and hydrology
    smooth_passes: int = Field(default=0, description="3x3 box blur passes")
    sea_level: float = Field(default=0.5, description="Normalized sea level")
    river_depth: float = Field(default=0.015, description="River carving depth")
    lake_threshold: float = Field(
        default=0.003, description="Minimum fill depth that counts as lake"
    )
    water_threshold: float = Field(
        default=0.05, description="Water intensity above which a point is wet"
    )

    # Meshing
    radius: float = Field(default=10.0, description="Planet base radius")
    height_scale: float = Field(default=2.0, description="Relief exaggeration")
    subdivision_level: int = Field(default=6, description="Icosphere detail")
    ice_cap_threshold: float = Field(
        default=0.12, description="Polar band covered by ice"
    )

    seed: int | None = Field(
        default=None, description="PRNG seed; None draws a fresh one per run"
    )

    @field_validator(*BOUNDS.keys(), mode="before")
    @classmethod
    def _clamp_numeric(cls, value: Any, info: ValidationInfo) -> Any:
        name = str(info.field_name)
        default = cls.model_fields[name].default
        lo, hi = BOUNDS[name]

        try:
            v = float(value)
        except (TypeError, ValueError):
            v = float(default)
        if not math.isfinite(v):
            v = float(default)
        v = min(max(v, float(lo)), float(hi))

        if name in _INT_FIELDS:
            return int(round(v))
        return v

    @field_validator("fault_type", mode="before")
    @classmethod
    def _known_fault_type(cls, value: Any) -> FaultType:
        if isinstance(value, FaultType):
            return value
        try:
            return FaultType(str(value).strip().lower())
        except ValueError:
            return FaultType.RIDGE

    @field_validator("seed", mode="before")
    @classmethod
    def _seed(cls, value: Any) -> int | None:
        if value is None:
            return None
        try:
            return abs(int(value))
        except (TypeError, ValueError, OverflowError):
            return None

    @classmethod
    def preset(cls, name: str, **overrides: Any) -> "PlanetConfig":
        """Build a config from one of the named presets."""

        key = str(name).strip().lower()
        if key not in PRESETS:
            raise ValueError(f"unknown preset: {name}")
        values = dict(PRESETS[key])
        values.update(overrides)
        return cls.model_validate(values)


_BASE_PRESET: dict[str, Any] = {
    "resolution": 384,
    "plate_count": 16,
    "jitter": 0.6,
    "erosion_iterations": 80_000,
    "erosion_rate": 0.36,
    "evaporation_rate": 0.5,
    "radius": 10.0,
    "height_scale": 18.2,
    "sea_level": 0.53,
    "smooth_passes": 20,
    "subdivision_level": 60,
    "ice_cap_threshold": 0.15,
    "plate_delta": 1.25,
    "fault_type": "ridge",
}

PRESETS: dict[str, dict[str, Any]] = {
    "fast": dict(_BASE_PRESET),
    "balanced": {**_BASE_PRESET, "ice_cap_threshold": 0.12, "fault_type": "mixed"},
    "high": dict(_BASE_PRESET),
}
