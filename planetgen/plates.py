from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np
import structlog

from planetgen.config import FaultType

logger = structlog.get_logger(__name__)

CONTINENTAL = 1
OCEANIC = -1


@dataclass(frozen=True)
class PlateSeed:
    x: int
    y: int
    uplift: float
    kind: int
    size_bias: float
    skew: float

    @property
    def continental(self) -> bool:
        return self.kind > 0


def scatter_plates(
    size: int,
    plate_count: int,
    *,
    rng: np.random.Generator,
    size_variance: float = 0.0,
    desymmetrize: bool = False,
) -> list[PlateSeed]:
    """Draw plate seeds on a size x size grid.

    About 40% of the plates are continental. The skew is only drawn when
    desymmetrize is set, so toggling it changes the random stream.
    """

    size = int(size)
    plate_count = int(plate_count)
    if size <= 0:
        raise ValueError("size must be >= 1")
    if plate_count <= 0:
        raise ValueError("plate_count must be >= 1")
    variance = max(0.0, float(size_variance))

    plates: list[PlateSeed] = []
    for _ in range(plate_count):
        x = int(math.floor(rng.random() * size))
        y = int(math.floor(rng.random() * size))
        uplift = float(rng.random() * 0.5 + 0.5)
        kind = CONTINENTAL if rng.random() > 0.6 else OCEANIC
        size_bias = max(0.25, 1.0 + (float(rng.random()) * 2.0 - 1.0) * variance)
        skew = 0.0
        if desymmetrize:
            skew = (float(rng.random()) * 2.0 - 1.0) * variance * 0.5 * size
        plates.append(
            PlateSeed(
                x=x, y=y, uplift=uplift, kind=kind, size_bias=size_bias, skew=skew
            )
        )
    return plates


def fault_mode(plate: PlateSeed, fault_type: FaultType | str) -> FaultType:
    """Resolve the boundary behaviour of a plate ("mixed" hashes per plate)."""

    mode = FaultType(fault_type)
    if mode is not FaultType.MIXED:
        return mode
    noise = abs(math.sin((plate.x + plate.y + plate.uplift) * 12.9898))
    if noise < 0.33:
        return FaultType.RIDGE
    if noise < 0.66:
        return FaultType.TRENCH
    return FaultType.SHEAR


def _boundary_gain(plate: PlateSeed, mode: FaultType) -> float:
    if mode is FaultType.TRENCH:
        return -0.7
    if mode is FaultType.SHEAR:
        return 0.2 * float(np.sign(plate.kind))
    return 1.0


def nearest_plates(
    size: int, plates: list[PlateSeed], *, desymmetrize: bool = False
) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Return (nearest_index, d1, d2) per cell.

    Distances are divided by each plate's size bias. x wraps around the grid,
    y does not.
    """

    size = int(size)
    ys = np.arange(size, dtype=np.float64)[:, None]
    xs = np.arange(size, dtype=np.float64)[None, :]

    d1 = np.full((size, size), np.inf, dtype=np.float64)
    d2 = np.full((size, size), np.inf, dtype=np.float64)
    nearest = np.zeros((size, size), dtype=np.int32)

    for i, plate in enumerate(plates):
        if desymmetrize:
            px = float(plate.x) + plate.skew * (ys / size)
        else:
            px = np.full_like(ys, float(plate.x))
        px = np.mod(px, size)

        adx = np.abs(xs - px)
        dx = np.minimum(adx, size - adx)
        dy = ys - float(plate.y)
        d = np.sqrt(dx * dx + dy * dy) / plate.size_bias

        closer = d < d1
        second = (~closer) & (d < d2)
        d2 = np.where(closer, d1, np.where(second, d, d2))
        d1 = np.where(closer, d, d1)
        nearest[closer] = i

    return nearest, d1, d2


def plate_field(
    size: int,
    *,
    plate_count: int,
    rng: np.random.Generator,
    jitter: float = 0.5,
    fault_type: FaultType | str = FaultType.RIDGE,
    size_variance: float = 0.0,
    desymmetrize: bool = False,
    plate_delta: float = 1.0,
    ocean_floor: float = 0.2,
    plates: list[PlateSeed] | None = None,
) -> np.ndarray:
    """Voronoi-style tectonic height field in [0, 1].

    Continental plates form plateaus that fall off toward their edges, oceanic
    plates form shallow basins. Plate boundaries are found from the ratio of
    nearest to second-nearest plate distance (edge ~ 1 at a boundary, ~ 0 deep
    inside a plate) and shaped by fault_type.
    """

    size = int(size)
    jitter = float(jitter)
    plate_delta = float(plate_delta)
    ocean_floor = float(ocean_floor)

    if plates is None:
        plates = scatter_plates(
            size,
            plate_count,
            rng=rng,
            size_variance=size_variance,
            desymmetrize=desymmetrize,
        )

    nearest, d1, d2 = nearest_plates(size, plates, desymmetrize=desymmetrize)
    edge = d1 / (d2 + 0.001)

    uplift = np.array([p.uplift for p in plates], dtype=np.float64)[nearest]
    kind = np.array([p.kind for p in plates], dtype=np.int32)[nearest]
    gain = np.array(
        [_boundary_gain(p, fault_mode(p, fault_type)) for p in plates],
        dtype=np.float64,
    )[nearest]

    height = np.where(
        kind > 0,
        uplift * plate_delta - edge * jitter,
        ocean_floor - 0.08 + edge * 0.05,
    )
    height = height + np.power(edge, 5) * uplift * gain

    logger.debug(
        "plate field synthesized",
        size=size,
        plates=len(plates),
        continental=sum(1 for p in plates if p.continental),
        fault_type=FaultType(fault_type).value,
    )
    return np.clip(height, 0.0, 1.0)
