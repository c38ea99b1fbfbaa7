from __future__ import annotations

import math

import numpy as np
import structlog

from planetgen.smoothing import sanitize_field

logger = structlog.get_logger(__name__)


def _simulate_droplet(
    data: list[float],
    size: int,
    x: float,
    y: float,
    *,
    inertia: float,
    gravity: float,
    evaporation: float,
    erosion_rate: float,
    deposition_rate: float,
    capacity_factor: float,
    min_slope: float,
    max_steps: int,
) -> int:
    """Run one droplet over the flat height list. Returns the steps taken."""

    dir_x = 0.0
    dir_y = 0.0
    speed = 1.0
    water = 1.0
    sediment = 0.0
    last = size - 1

    steps = 0
    for _ in range(max_steps):
        node_x = math.floor(x)
        node_y = math.floor(y)

        wx = node_x % size
        cy = min(max(node_y, 0), last)
        row = cy * size
        i = row + wx

        h0 = data[i]
        gx = data[row + (node_x + 1) % size] - data[row + (node_x - 1) % size]
        gy = (
            data[min(last, node_y + 1) * size + wx]
            - data[max(0, node_y - 1) * size + wx]
        )
        if not (math.isfinite(gx) and math.isfinite(gy)):
            break

        # High inertia keeps the previous heading.
        dir_x = dir_x * inertia - gx * (1.0 - inertia)
        dir_y = dir_y * inertia - gy * (1.0 - inertia)
        length = math.sqrt(dir_x * dir_x + dir_y * dir_y)
        if length > 0.0:
            dir_x /= length
            dir_y /= length

        x += dir_x
        y += dir_y
        if not (math.isfinite(x) and math.isfinite(y)):
            break
        if y < 0.0 or y >= last:
            break
        steps += 1

        j = min(max(math.floor(y), 0), last) * size + math.floor(x) % size
        drop = h0 - data[j]

        capacity = max(drop, min_slope) * speed * water * capacity_factor

        if drop < 0.0:
            # Uphill: fill the pit behind us, at most up to the new height.
            amount = min(sediment, -drop)
            sediment -= amount
            data[i] += amount
        elif sediment > capacity:
            amount = (sediment - capacity) * deposition_rate
            sediment -= amount
            data[i] += amount
        else:
            amount = min((capacity - sediment) * erosion_rate, drop)
            sediment += amount
            data[i] -= amount

        speed = math.sqrt(max(0.0, speed * speed + drop * gravity))
        water *= 1.0 - evaporation

        if water < 0.01 or speed < 1e-6:
            break

    return steps


def droplet_erosion(
    height: np.ndarray,
    *,
    iterations: int,
    rng: np.random.Generator,
    inertia: float = 0.05,
    gravity: float = 4.0,
    evaporation: float = 0.01,
    erosion_rate: float = 0.3,
    deposition_rate: float = 0.1,
    capacity_factor: float = 4.0,
    min_slope: float = 0.01,
    max_steps: int = 30,
) -> np.ndarray:
    """Particle-based hydraulic erosion on a square height field.

    Each droplet starts at a random position and follows the local gradient,
    eroding while it carries less sediment than its capacity and depositing
    otherwise. x wraps around (cylinder), droplets leaving the y range die.

    The input is not modified; the eroded field is returned.
    """

    h = np.asarray(height, dtype=np.float64)
    if h.ndim != 2 or h.shape[0] != h.shape[1]:
        raise ValueError("height must be a square 2D array")

    iterations = int(iterations)
    if iterations < 0:
        raise ValueError("iterations must be >= 0")
    max_steps = int(max_steps)
    if max_steps < 0:
        raise ValueError("max_steps must be >= 0")

    inertia = float(np.clip(float(inertia), 0.0, 1.0))
    evaporation = float(np.clip(float(evaporation), 0.0, 1.0))
    gravity = float(gravity)
    erosion_rate = float(erosion_rate)
    deposition_rate = float(deposition_rate)
    capacity_factor = float(capacity_factor)
    min_slope = float(min_slope)

    size = int(h.shape[0])
    if size < 2 or iterations == 0:
        return sanitize_field(h)

    data = sanitize_field(h).reshape(-1).tolist()
    starts = rng.random((iterations, 2)) * (size - 1)

    total_steps = 0
    for sx, sy in starts.tolist():
        total_steps += _simulate_droplet(
            data,
            size,
            sx,
            sy,
            inertia=inertia,
            gravity=gravity,
            evaporation=evaporation,
            erosion_rate=erosion_rate,
            deposition_rate=deposition_rate,
            capacity_factor=capacity_factor,
            min_slope=min_slope,
            max_steps=max_steps,
        )

    logger.debug(
        "droplet erosion finished",
        droplets=iterations,
        steps=total_steps,
        size=size,
    )
    out = np.asarray(data, dtype=np.float64).reshape(size, size)
    return sanitize_field(out)
