from __future__ import annotations

import numpy as np


def sample_bilinear(field: np.ndarray, u: np.ndarray, v: np.ndarray) -> np.ndarray:
    """Bilinear lookup at normalized (u, v); v = 1 is the first row.

    Coordinates are clamped to [0, 1]. Non-finite coordinates or samples
    return 0.
    """

    f = np.asarray(field, dtype=np.float64)
    if f.ndim != 2 or f.size == 0:
        raise ValueError("field must be a non-empty 2D array")

    u = np.asarray(u, dtype=np.float64)
    v = np.asarray(v, dtype=np.float64)
    ok = np.isfinite(u) & np.isfinite(v)
    u = np.where(ok, np.clip(u, 0.0, 1.0), 0.0)
    v = np.where(ok, np.clip(v, 0.0, 1.0), 0.0)

    H, W = f.shape
    fx = u * (W - 1)
    fy = (1.0 - v) * (H - 1)
    x0 = np.floor(fx).astype(np.int64)
    y0 = np.floor(fy).astype(np.int64)
    x1 = np.minimum(W - 1, x0 + 1)
    y1 = np.minimum(H - 1, y0 + 1)
    tx = fx - x0
    ty = fy - y0

    a = f[y0, x0] * (1.0 - tx) + f[y0, x1] * tx
    b = f[y1, x0] * (1.0 - tx) + f[y1, x1] * tx
    out = a * (1.0 - ty) + b * ty
    return np.where(ok & np.isfinite(out), out, 0.0)


def unit_directions(directions: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    """Normalize (N, 3) directions. Returns (unit, valid).

    Zero-length or non-finite rows are flagged invalid and set to zeros.
    """

    d = np.asarray(directions, dtype=np.float64).reshape(-1, 3)
    with np.errstate(invalid="ignore", over="ignore"):
        n = np.sqrt(np.sum(d * d, axis=1))
    valid = np.isfinite(n) & (n > 0.0) & np.all(np.isfinite(d), axis=1)
    safe = np.where(valid, n, 1.0)
    unit = np.where(valid[:, None], d / safe[:, None], 0.0)
    return unit, valid


def triplanar_weights(unit: np.ndarray) -> np.ndarray:
    """Barycentric blend weights |d| / (|x| + |y| + |z|)."""

    ad = np.abs(np.asarray(unit, dtype=np.float64).reshape(-1, 3))
    s = np.sum(ad, axis=1, keepdims=True) + 1e-6
    return ad / s


def triplanar_uvs(unit: np.ndarray) -> tuple[tuple[np.ndarray, np.ndarray], ...]:
    """The three planar projections: (z, y), (x, z) and (x, y) mapped to [0, 1]."""

    d = np.asarray(unit, dtype=np.float64).reshape(-1, 3)
    x = d[:, 0] * 0.5 + 0.5
    y = d[:, 1] * 0.5 + 0.5
    z = d[:, 2] * 0.5 + 0.5
    return (z, y), (x, z), (x, y)


def sample_triplanar(
    height: np.ndarray,
    water: np.ndarray,
    directions: np.ndarray,
) -> tuple[np.ndarray, np.ndarray]:
    """Sample (height, water) for unit directions without cube-map seams.

    Accepts a single 3-vector (returns 0-d arrays) or an (N, 3) array.
    The three planar lookups are blended by the direction's absolute
    components, so the result is continuous over the whole sphere.
    """

    h = np.asarray(height, dtype=np.float64)
    w = np.asarray(water, dtype=np.float64)
    if h.shape != w.shape:
        raise ValueError("height and water must have the same shape")

    d = np.asarray(directions, dtype=np.float64)
    single = d.ndim == 1
    if d.shape[-1] != 3:
        raise ValueError("directions must have 3 components")

    unit, valid = unit_directions(d)
    weights = triplanar_weights(unit)

    hs = np.zeros(unit.shape[0], dtype=np.float64)
    ws = np.zeros(unit.shape[0], dtype=np.float64)
    for k, (u, v) in enumerate(triplanar_uvs(unit)):
        hs += sample_bilinear(h, u, v) * weights[:, k]
        ws += sample_bilinear(w, u, v) * weights[:, k]

    hs = np.where(valid, hs, 0.0)
    ws = np.where(valid, ws, 0.0)
    if single:
        return hs.reshape(()), ws.reshape(())
    return hs, ws
