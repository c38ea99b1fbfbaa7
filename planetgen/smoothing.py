from __future__ import annotations

import numpy as np


def sanitize_field(
    height: np.ndarray, *, lo: float = -5.0, hi: float = 5.0
) -> np.ndarray:
    """Replace non-finite values with 0 and clamp to [lo, hi]."""

    h = np.asarray(height, dtype=np.float64)
    out = np.where(np.isfinite(h), h, 0.0)
    return np.clip(out, float(lo), float(hi))


def normalize01(height: np.ndarray, *, min_range: float = 1e-5) -> np.ndarray:
    """Min/max normalize to [0, 1]. Flat fields map to zeros."""

    h = sanitize_field(height, lo=-np.inf, hi=np.inf)
    if h.size == 0:
        return h.copy()
    hmin = float(np.min(h))
    hmax = float(np.max(h))
    rng = max(hmax - hmin, float(min_range))
    return (h - hmin) / rng


def smooth_field(height: np.ndarray, *, passes: int = 1) -> np.ndarray:
    """Apply `passes` 3x3 box blurs. x wraps around, y is edge-clamped.

    Every pass reads the previous buffer and writes a new one, so the result
    does not depend on traversal order.
    """

    h = np.asarray(height, dtype=np.float64)
    if h.ndim != 2:
        raise ValueError("height must be a 2D array")

    passes = int(passes)
    if passes < 0:
        raise ValueError("passes must be >= 0")

    out = h.copy()
    if out.size == 0:
        return out

    for _ in range(passes):
        p = np.pad(out, ((1, 1), (0, 0)), mode="edge")
        rows = p[:-2, :] + p[1:-1, :] + p[2:, :]
        out = (np.roll(rows, 1, axis=1) + rows + np.roll(rows, -1, axis=1)) / 9.0

    return out
