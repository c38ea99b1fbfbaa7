"""Drainage network, lakes and river carving.

The height field is treated as a cylinder: x wraps around, y does not. The
outer ring of cells (first/last row and column) is the global drainage sink.
"""

from __future__ import annotations

import heapq
from dataclasses import dataclass

import numpy as np
import structlog

from planetgen.errors import DrainageCycleError

logger = structlog.get_logger(__name__)

# (dy, dx)
_OFFSETS = (
    (-1, -1),
    (-1, 0),
    (-1, 1),
    (0, -1),
    (0, 1),
    (1, -1),
    (1, 0),
    (1, 1),
)


@dataclass(frozen=True)
class DrainageResult:
    filled: np.ndarray
    order: np.ndarray
    targets: np.ndarray
    accumulation: np.ndarray


@dataclass(frozen=True)
class HydrologyResult:
    height: np.ndarray
    water: np.ndarray
    drainage: DrainageResult


def neighbor_table(height: int, width: int) -> np.ndarray:
    """Flat indices of the 8 neighbours of every cell, -1 off the grid.

    Shape (height * width, 8). Columns wrap, rows do not.
    """

    H = int(height)
    W = int(width)
    ys = np.repeat(np.arange(H, dtype=np.int64), W)
    xs = np.tile(np.arange(W, dtype=np.int64), H)

    table = np.full((H * W, len(_OFFSETS)), -1, dtype=np.int64)
    for k, (dy, dx) in enumerate(_OFFSETS):
        ny = ys + dy
        nx = (xs + dx) % max(W, 1)
        ok = (ny >= 0) & (ny < H)
        table[ok, k] = ny[ok] * W + nx[ok]
    return table


def border_mask(height: int, width: int) -> np.ndarray:
    m = np.zeros((int(height), int(width)), dtype=bool)
    if m.size == 0:
        return m
    m[0, :] = True
    m[-1, :] = True
    m[:, 0] = True
    m[:, -1] = True
    return m


def priority_flood(height: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    """Fill depressions from the border inward.

    Returns (filled, order): the depression-filled surface and the flat cell
    indices in the order they left the queue. Popped values never decrease, so
    `order` is sorted by filled height with a deterministic tie-break.
    """

    h = np.asarray(height, dtype=np.float64)
    if h.ndim != 2:
        raise ValueError("height must be a 2D array")

    H, W = h.shape
    if H == 0 or W == 0:
        return h.copy(), np.zeros(0, dtype=np.int64)

    flat = h.reshape(-1).tolist()
    filled = list(flat)
    visited = bytearray(H * W)
    nbrs = neighbor_table(H, W).tolist()

    heap: list[tuple[float, int]] = []
    for idx in np.flatnonzero(border_mask(H, W)).tolist():
        visited[idx] = 1
        heapq.heappush(heap, (flat[idx], idx))

    order: list[int] = []
    while heap:
        v, idx = heapq.heappop(heap)
        order.append(idx)
        for j in nbrs[idx]:
            if j < 0 or visited[j]:
                continue
            visited[j] = 1
            hv = flat[j]
            fv = hv if hv >= v else v
            filled[j] = fv
            heapq.heappush(heap, (fv, j))

    return (
        np.asarray(filled, dtype=np.float64).reshape(H, W),
        np.asarray(order, dtype=np.int64),
    )


def flow_targets(filled: np.ndarray, order: np.ndarray) -> np.ndarray:
    """Assign each cell the neighbour its water drains to.

    Candidates are neighbours that left the flood queue before the cell; the
    lowest filled height wins, ties go to the earliest popped. Border cells
    are sinks (-1). Returns flat indices with the shape of `filled`.
    """

    f = np.asarray(filled, dtype=np.float64)
    if f.ndim != 2:
        raise ValueError("filled must be a 2D array")
    H, W = f.shape
    n = int(H * W)

    o = np.asarray(order, dtype=np.int64)
    if o.shape != (n,):
        raise ValueError("order must list every cell exactly once")

    rank = np.empty(n, dtype=np.int64)
    rank[o] = np.arange(n, dtype=np.int64)

    ff = f.reshape(-1)
    table = neighbor_table(H, W)

    best = np.full(n, -1, dtype=np.int64)
    best_h = np.full(n, np.inf, dtype=np.float64)
    best_rank = np.full(n, n, dtype=np.int64)

    for k in range(table.shape[1]):
        j = table[:, k]
        valid = j >= 0
        jj = np.where(valid, j, 0)
        rj = rank[jj]
        hj = ff[jj]
        earlier = valid & (rj < rank)
        better = earlier & ((hj < best_h) | ((hj == best_h) & (rj < best_rank)))
        best[better] = jj[better]
        best_h[better] = hj[better]
        best_rank[better] = rj[better]

    best[border_mask(H, W).reshape(-1)] = -1
    return best.reshape(H, W)


def flow_accumulation(targets: np.ndarray, order: np.ndarray) -> np.ndarray:
    """Count the cells draining through every cell (itself included)."""

    t = np.asarray(targets, dtype=np.int64)
    if t.ndim != 2:
        raise ValueError("targets must be a 2D array")

    tf = t.reshape(-1).tolist()
    acc = [1.0] * len(tf)
    # Reverse pop order: every cell is finished before its target.
    for idx in reversed(np.asarray(order, dtype=np.int64).tolist()):
        j = tf[idx]
        if j >= 0:
            acc[j] += acc[idx]
    return np.asarray(acc, dtype=np.float64).reshape(t.shape)


def trace_to_sink(targets: np.ndarray, start: int) -> list[int]:
    """Follow flow targets from a flat cell index down to its sink."""

    tf = np.asarray(targets, dtype=np.int64).reshape(-1)
    n = int(tf.size)
    idx = int(start)
    if idx < 0 or idx >= n:
        raise ValueError("start is outside the grid")

    path = [idx]
    while int(tf[idx]) >= 0:
        idx = int(tf[idx])
        path.append(idx)
        if len(path) > n:
            raise DrainageCycleError(f"flow path from {start} does not terminate")
    return path


def water_intensity(
    height: np.ndarray,
    filled: np.ndarray,
    accumulation: np.ndarray,
    *,
    sea_level: float,
    lake_threshold: float = 0.003,
    river_threshold: float = 0.1,
    lake_gain: float = 12.0,
    flow_exponent: float = 0.5,
) -> np.ndarray:
    """Lake/river coverage in [0, 1].

    Lakes are cells sitting more than lake_threshold below the filled surface.
    Rivers are cells above sea level whose compressed normalized flow exceeds
    river_threshold. The result is the max of both.
    """

    h = np.asarray(height, dtype=np.float64)
    f = np.asarray(filled, dtype=np.float64)
    a = np.asarray(accumulation, dtype=np.float64)
    if f.shape != h.shape or a.shape != h.shape:
        raise ValueError("filled and accumulation must match height shape")

    lake_depth = np.clip(f - h, 0.0, np.inf)
    lake = np.where(
        lake_depth > float(lake_threshold),
        np.minimum(1.0, lake_depth * float(lake_gain)),
        0.0,
    )

    amax = float(np.max(a)) if a.size else 0.0
    inv = 1.0 / amax if amax > 0.0 else 0.0
    flow = np.power(np.clip(a * inv, 0.0, 1.0), float(flow_exponent))
    river = np.where(
        (flow > float(river_threshold)) & (f > float(sea_level)), flow, 0.0
    )

    water = np.maximum(lake, river)
    water = np.where(np.isfinite(water), water, 0.0)
    return np.clip(water, 0.0, 1.0)


def resolve_hydrology(
    height: np.ndarray,
    *,
    sea_level: float,
    river_depth: float = 0.015,
    lake_threshold: float = 0.003,
) -> HydrologyResult:
    """Build the drainage network, classify water and carve channels.

    Returns the carved height field (a new array), the water intensity field
    and the intermediate drainage record.
    """

    h = np.asarray(height, dtype=np.float64)
    if h.ndim != 2:
        raise ValueError("height must be a 2D array")

    filled, order = priority_flood(h)
    targets = flow_targets(filled, order)
    acc = flow_accumulation(targets, order)

    water = water_intensity(
        h,
        filled,
        acc,
        sea_level=float(sea_level),
        lake_threshold=float(lake_threshold),
    )
    carved = np.maximum(0.0, h - float(river_depth) * water)

    logger.debug(
        "hydrology resolved",
        cells=int(h.size),
        lake_cells=int(np.count_nonzero((filled - h) > float(lake_threshold))),
        wet_cells=int(np.count_nonzero(water > 0.0)),
        max_flow=float(np.max(acc)) if acc.size else 0.0,
    )
    return HydrologyResult(
        height=carved,
        water=water,
        drainage=DrainageResult(
            filled=filled, order=order, targets=targets, accumulation=acc
        ),
    )
