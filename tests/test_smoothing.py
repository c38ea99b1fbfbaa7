from __future__ import annotations

import numpy as np
import pytest

from planetgen.smoothing import normalize01, sanitize_field, smooth_field


def test_smooth_constant_field_is_unchanged() -> None:
    h = np.full((12, 12), 0.37)
    out = smooth_field(h, passes=5)
    assert np.allclose(out, 0.37)


def test_smooth_zero_passes_copies() -> None:
    h = np.arange(16, dtype=np.float64).reshape(4, 4)
    out = smooth_field(h, passes=0)
    assert np.array_equal(out, h)
    assert out is not h


def test_smooth_wraps_x() -> None:
    h = np.zeros((5, 6))
    h[2, 0] = 9.0
    out = smooth_field(h, passes=1)
    # The spike bleeds into the last column across the seam.
    assert out[2, 5] == pytest.approx(1.0)
    assert out[2, 1] == pytest.approx(1.0)
    assert out[2, 3] == 0.0


def test_smooth_preserves_mass_on_interior_spike() -> None:
    h = np.zeros((9, 9))
    h[4, 4] = 9.0
    out = smooth_field(h, passes=1)
    assert float(np.sum(out)) == pytest.approx(9.0)
    assert out[4, 4] == pytest.approx(1.0)


def test_smooth_reduces_variance() -> None:
    rng = np.random.default_rng(0)
    h = rng.random((32, 32))
    out = smooth_field(h, passes=3)
    assert float(np.var(out)) < float(np.var(h))


def test_smooth_validation() -> None:
    with pytest.raises(ValueError):
        smooth_field(np.zeros(4), passes=1)
    with pytest.raises(ValueError):
        smooth_field(np.zeros((4, 4)), passes=-1)


def test_normalize01_range() -> None:
    h = np.array([[2.0, 4.0], [6.0, 10.0]])
    out = normalize01(h)
    assert float(out.min()) == 0.0
    assert float(out.max()) == 1.0


def test_normalize01_flat_field_is_zero() -> None:
    out = normalize01(np.full((3, 3), 5.0))
    assert np.array_equal(out, np.zeros((3, 3)))


def test_sanitize_field() -> None:
    h = np.array([np.nan, np.inf, -np.inf, 9.0, -9.0, 0.5])
    out = sanitize_field(h)
    assert out.tolist() == [0.0, 0.0, 0.0, 5.0, -5.0, 0.5]
