from __future__ import annotations

import numpy as np
import pytest

from planetgen.mesh import build_planet_mesh
from viz.palette import DEEP, SHALLOW, SNOW, mesh_colors, planet_colors


def test_planet_colors_shape_and_range() -> None:
    h = np.linspace(0.0, 1.0, 20).reshape(4, 5)
    rgb = planet_colors(h, np.zeros_like(h), sea_level=0.5)
    assert rgb.shape == (4, 5, 3)
    assert float(rgb.min()) >= 0.0
    assert float(rgb.max()) <= 1.0


def test_ocean_is_fully_wet() -> None:
    h = np.array([0.1, 0.2])
    rgb = planet_colors(h, np.zeros_like(h), sea_level=0.5)
    wet = SHALLOW + (DEEP - SHALLOW) * 0.6
    assert np.allclose(rgb, wet[None, :])


def test_peaks_are_snow_and_fresh_water_darkens_land() -> None:
    h = np.array([0.99, 0.6])
    dry = planet_colors(h, np.zeros_like(h), sea_level=0.5)
    assert np.allclose(dry[0], SNOW)

    wet = planet_colors(h, np.array([0.0, 1.0]), sea_level=0.5)
    assert float(wet[1].sum()) < float(dry[1].sum())


def test_ice_whitens() -> None:
    h = np.array([0.6])
    plain = planet_colors(h, np.zeros(1), sea_level=0.5)
    icy = planet_colors(h, np.zeros(1), sea_level=0.5, ice=np.ones(1))
    assert float(icy.sum()) > float(plain.sum())


def test_planet_colors_shape_mismatch() -> None:
    with pytest.raises(ValueError):
        planet_colors(np.zeros(3), np.zeros(4), sea_level=0.5)
    with pytest.raises(ValueError):
        planet_colors(np.zeros(3), np.zeros(3), sea_level=0.5, ice=np.zeros(2))


def test_mesh_colors_per_vertex() -> None:
    h = np.random.default_rng(0).random((16, 16))
    mesh = build_planet_mesh(h, np.zeros_like(h), detail=2)
    rgb = mesh_colors(mesh)
    assert rgb.shape == (mesh.vertex_count, 3)
