from __future__ import annotations

import numpy as np
import pytest

from planetgen.sampler import (
    sample_bilinear,
    sample_triplanar,
    triplanar_weights,
    unit_directions,
)


def test_sample_bilinear_corners_and_center() -> None:
    f = np.arange(12, dtype=np.float64).reshape(3, 4)
    # v = 1 is the first row.
    assert float(sample_bilinear(f, 0.0, 1.0)) == 0.0
    assert float(sample_bilinear(f, 1.0, 0.0)) == 11.0
    assert float(sample_bilinear(f, 0.5, 0.5)) == pytest.approx(5.5)


def test_sample_bilinear_clamps_and_rejects_non_finite() -> None:
    f = np.arange(12, dtype=np.float64).reshape(3, 4)
    assert float(sample_bilinear(f, 4.0, -3.0)) == 11.0
    assert float(sample_bilinear(f, np.nan, 0.5)) == 0.0


def test_unit_directions_flags_invalid_rows() -> None:
    d = np.array([[3.0, 0.0, 4.0], [0.0, 0.0, 0.0], [np.nan, 1.0, 0.0]])
    unit, valid = unit_directions(d)
    assert valid.tolist() == [True, False, False]
    assert unit[0].tolist() == pytest.approx([0.6, 0.0, 0.8])
    assert unit[1].tolist() == [0.0, 0.0, 0.0]


def test_triplanar_weights_sum_to_one() -> None:
    unit, _ = unit_directions(np.random.default_rng(0).normal(size=(50, 3)))
    w = triplanar_weights(unit)
    assert np.allclose(np.sum(w, axis=1), 1.0, atol=1e-5)
    assert float(w.min()) >= 0.0


def test_sample_triplanar_constant_field() -> None:
    h = np.full((8, 8), 0.4)
    w = np.full((8, 8), 0.25)
    dirs = np.random.default_rng(1).normal(size=(100, 3))
    hs, ws = sample_triplanar(h, w, dirs)
    assert hs.shape == (100,)
    assert np.allclose(hs, 0.4, atol=1e-5)
    assert np.allclose(ws, 0.25, atol=1e-5)


def test_sample_triplanar_single_direction_matches_batch() -> None:
    rng = np.random.default_rng(2)
    h = rng.random((16, 16))
    w = rng.random((16, 16))
    d = np.array([0.3, -0.5, 0.8])
    hs, ws = sample_triplanar(h, w, d)
    assert hs.shape == ()
    hb, wb = sample_triplanar(h, w, d[None, :])
    assert float(hs) == float(hb[0])
    assert float(ws) == float(wb[0])


def test_sample_triplanar_ignores_direction_length() -> None:
    h = np.random.default_rng(3).random((16, 16))
    d = np.array([0.1, 0.7, -0.2])
    a, _ = sample_triplanar(h, h, d)
    b, _ = sample_triplanar(h, h, d * 25.0)
    assert float(a) == pytest.approx(float(b))


def test_sample_triplanar_invalid_directions_return_zero() -> None:
    h = np.full((4, 4), 0.9)
    hs, ws = sample_triplanar(h, h, np.array([[0.0, 0.0, 0.0], [np.inf, 0.0, 1.0]]))
    assert hs.tolist() == [0.0, 0.0]
    assert ws.tolist() == [0.0, 0.0]


def test_sample_triplanar_validation() -> None:
    with pytest.raises(ValueError):
        sample_triplanar(np.zeros((4, 4)), np.zeros((4, 5)), np.ones(3))
    with pytest.raises(ValueError):
        sample_triplanar(np.zeros((4, 4)), np.zeros((4, 4)), np.ones(2))
