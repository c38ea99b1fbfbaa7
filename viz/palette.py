from __future__ import annotations

import numpy as np

from planetgen.mesh import PlanetMesh

DEEP = np.array([0.01, 0.04, 0.12], dtype=np.float64)
SHALLOW = np.array([0.04, 0.20, 0.40], dtype=np.float64)
GRASS = np.array([0.12, 0.44, 0.18], dtype=np.float64)
ROCK = np.array([0.38, 0.32, 0.26], dtype=np.float64)
SNOW = np.array([1.0, 1.0, 1.0], dtype=np.float64)


def _smoothstep(edge0: float, edge1: float, x: np.ndarray) -> np.ndarray:
    edge0 = float(edge0)
    edge1 = float(edge1)
    if edge1 <= edge0:
        return np.zeros_like(x, dtype=np.float64)
    t = (np.asarray(x, dtype=np.float64) - edge0) / (edge1 - edge0)
    t = np.clip(t, 0.0, 1.0)
    return t * t * (3.0 - 2.0 * t)


def _mix(a: np.ndarray, b: np.ndarray, t: np.ndarray) -> np.ndarray:
    return a + (b - a) * np.asarray(t, dtype=np.float64)[..., None]


def planet_colors(
    height: np.ndarray,
    water: np.ndarray,
    *,
    sea_level: float,
    ice: np.ndarray | None = None,
) -> np.ndarray:
    """RGB in 0..1 for normalized heights, banded relative to sea level.

    Works on any shape (grid or per-vertex); returns shape + (3,).
    Fresh water darkens toward the wet color by its intensity.
    """

    h = np.asarray(height, dtype=np.float64)
    w = np.clip(np.asarray(water, dtype=np.float64), 0.0, 1.0)
    if w.shape != h.shape:
        raise ValueError("water must have the same shape as height")

    sea = float(sea_level)
    lowland = sea + 0.08
    midland = sea + 0.25
    highland = sea + 0.45

    rgb = np.empty(h.shape + (3,), dtype=np.float64)

    ocean = h < sea
    low = (~ocean) & (h < lowland)
    mid = (~ocean) & (~low) & (h < midland)
    high = (~ocean) & (~low) & (~mid) & (h < highland)
    peak = h >= highland

    rgb[ocean] = _mix(DEEP, SHALLOW, _smoothstep(sea - 0.05, sea, h))[ocean]
    rgb[low] = _mix(SHALLOW, GRASS, _smoothstep(sea, lowland, h))[low]
    rgb[mid] = _mix(GRASS, ROCK, _smoothstep(lowland, midland, h))[mid]
    rgb[high] = _mix(ROCK, SNOW, _smoothstep(midland, highland, h) * 0.7)[high]
    rgb[peak] = SNOW

    snow = _smoothstep(highland - 0.02, highland + 0.1, h)
    if ice is not None:
        pole = np.asarray(ice, dtype=np.float64)
        if pole.shape != h.shape:
            raise ValueError("ice must have the same shape as height")
        snow = np.maximum(snow, pole * 0.8)
    rgb = _mix(rgb, SNOW, snow)

    wet = _mix(SHALLOW, DEEP, np.full(h.shape, 0.6))
    wf = np.where(ocean, 1.0, w)
    rgb = rgb * (1.0 - wf[..., None]) + wet * wf[..., None]
    return np.clip(rgb, 0.0, 1.0)


def mesh_colors(mesh: PlanetMesh) -> np.ndarray:
    return planet_colors(
        mesh.heights, mesh.water, sea_level=mesh.sea_level, ice=mesh.ice
    )
