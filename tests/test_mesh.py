from __future__ import annotations

import numpy as np
import pytest

from planetgen.mesh import (
    build_freshwater_mesh,
    build_planet_mesh,
    ensure_finite_positions,
    icosphere,
    icosphere_vertex_count,
    vertex_normals,
    weld_vertices,
)


def test_icosphere_shapes() -> None:
    p, f = icosphere(0)
    assert p.shape == (60, 3)
    assert f.shape == (20, 3)
    assert np.allclose(np.linalg.norm(p, axis=1), 1.0)

    p, f = icosphere(2)
    assert f.shape == (20 * 9, 3)


@pytest.mark.parametrize("detail", [0, 1, 3, 7])
def test_welded_icosphere_vertex_count(detail: int) -> None:
    p, f = icosphere(detail)
    welded = weld_vertices(p, f)
    assert welded.positions.shape[0] == icosphere_vertex_count(detail)
    assert welded.faces.shape == f.shape


def test_weld_maps_every_vertex_within_tolerance() -> None:
    p, f = icosphere(4)
    welded = weld_vertices(p, f, tolerance=1e-4)
    assert welded.positions.shape[0] <= p.shape[0]
    moved = np.abs(p - welded.positions[welded.index_map])
    assert float(moved.max()) <= 1e-4


def test_weld_keeps_first_vertex_attributes() -> None:
    p = np.array(
        [[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [0.0, 0.0, 0.00001], [0.0, 1.0, 0.0]]
    )
    f = np.array([[0, 1, 3], [2, 3, 1]])
    welded = weld_vertices(p, f, attributes={"id": np.arange(4)})
    assert welded.positions.shape[0] == 3
    assert welded.attributes["id"].tolist() == [0, 1, 3]
    assert welded.index_map.tolist() == [0, 1, 0, 2]
    assert welded.faces.tolist() == [[0, 1, 2], [0, 2, 1]]


def test_weld_validation() -> None:
    p = np.zeros((3, 3))
    f = np.array([[0, 1, 2]])
    with pytest.raises(ValueError):
        weld_vertices(p, f, tolerance=0.0)
    with pytest.raises(ValueError):
        weld_vertices(p, f, attributes={"x": np.zeros(2)})
    with pytest.raises(ValueError):
        icosphere(-1)


def test_ensure_finite_positions() -> None:
    p = np.array([[1.0, 2.0, 3.0], [np.nan, 1.0, np.inf]])
    out = ensure_finite_positions(p, fallback_radius=10.0)
    assert bool(np.all(np.isfinite(out)))
    assert out[0].tolist() == [10.0, 0.0, 0.0]
    assert out[1].tolist() == [0.0, 1.0, 0.0]

    clean = np.ones((2, 3))
    assert np.array_equal(ensure_finite_positions(clean, fallback_radius=1.0), clean)


def test_vertex_normals_fallbacks() -> None:
    p = np.array([[0.0, 2.0, 0.0], [0.0, 0.0, 0.0]])
    n = vertex_normals(p, np.zeros((0, 3), dtype=np.int64))
    assert n[0].tolist() == [0.0, 1.0, 0.0]
    assert n[1].tolist() == [1.0, 0.0, 0.0]


def test_planet_mesh_normals_point_outward() -> None:
    h = np.random.default_rng(0).random((32, 32))
    mesh = build_planet_mesh(h, np.zeros_like(h), detail=5, height_scale=0.5)
    assert mesh.vertex_count == icosphere_vertex_count(5)
    assert bool(np.all(np.isfinite(mesh.positions)))
    dots = np.sum(mesh.normals * mesh.positions, axis=1)
    assert bool(np.all(dots > 0.0))
    assert np.allclose(np.linalg.norm(mesh.normals, axis=1), 1.0)


def test_planet_mesh_radius_follows_height() -> None:
    h = np.full((16, 16), 0.5)
    mesh = build_planet_mesh(h, np.zeros_like(h), radius=10.0, sea_level=0.5, detail=3)
    r = np.linalg.norm(mesh.positions, axis=1)
    assert np.allclose(r, 10.0, atol=1e-4)


def test_planet_mesh_water_and_land_masks() -> None:
    low = np.full((16, 16), 0.2)
    mesh = build_planet_mesh(low, np.zeros_like(low), sea_level=0.5, detail=3)
    assert bool(np.all(mesh.is_water))
    assert not bool(np.any(mesh.is_land))

    high = np.full((16, 16), 0.8)
    wet = np.zeros_like(high)
    mesh = build_planet_mesh(high, wet, sea_level=0.5, detail=3, ice_cap=0.0)
    assert not bool(np.any(mesh.is_water))
    assert bool(np.all(mesh.is_land))

    mesh = build_planet_mesh(high, np.ones_like(high), sea_level=0.5, detail=3)
    assert bool(np.all(mesh.is_water))


def test_planet_mesh_ice_caps() -> None:
    h = np.full((16, 16), 0.8)
    mesh = build_planet_mesh(h, np.zeros_like(h), detail=6, ice_cap=0.2)
    y = np.abs(mesh.positions[:, 1] / np.linalg.norm(mesh.positions, axis=1))
    assert float(mesh.ice.min()) >= 0.0
    assert float(mesh.ice.max()) <= 1.0
    assert bool(np.all(mesh.ice[y < 0.8 - 1e-9] == 0.0))
    assert float(mesh.ice[np.argmax(y)]) > 0.5


def test_freshwater_mesh_sits_above_terrain() -> None:
    rng = np.random.default_rng(4)
    h = rng.random((16, 16))
    w = rng.random((16, 16))
    terrain = build_planet_mesh(h, w, detail=3)
    fresh = build_freshwater_mesh(h, w, detail=3)
    assert fresh.vertex_count == terrain.vertex_count
    rt = np.linalg.norm(terrain.positions, axis=1)
    rf = np.linalg.norm(fresh.positions, axis=1)
    assert bool(np.all(rf > rt))
