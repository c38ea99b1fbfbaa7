from __future__ import annotations

import sys
import time

import numpy as np

from planetgen.config import PlanetConfig
from planetgen.erosion import droplet_erosion
from planetgen.hydrology import resolve_hydrology
from planetgen.mesh import build_planet_mesh
from planetgen.pipeline import GenerationTask
from planetgen.plates import plate_field
from planetgen.smoothing import normalize01, smooth_field


def _timeit(label: str, fn) -> float:
    t0 = time.perf_counter()
    fn()
    t1 = time.perf_counter()
    ms = (t1 - t0) * 1000.0
    print(f"{label}: {ms:.2f} ms")
    return ms


def main() -> None:
    """Quick CPU benchmark of every stage and of a full preset run.

    Pass a preset name (fast, balanced, high) as the first argument to time
    that preset end to end; the default is a reduced 256^2 run.
    """

    size = 256
    rng = np.random.default_rng(0)
    state: dict[str, np.ndarray] = {}

    def plates() -> None:
        state["h"] = plate_field(size, plate_count=9, rng=rng, jitter=0.6, plate_delta=1.25)

    def erosion() -> None:
        state["h"] = droplet_erosion(state["h"], iterations=20_000, rng=rng)

    def smoothing() -> None:
        state["h"] = smooth_field(normalize01(state["h"]), passes=20)

    def hydrology() -> None:
        result = resolve_hydrology(state["h"], sea_level=0.53)
        state["h"] = result.height
        state["w"] = result.water

    def meshing() -> None:
        build_planet_mesh(state["h"], state["w"], detail=40, sea_level=0.53)

    _timeit(f"Plates {size}x{size}, 9 plates", plates)
    _timeit("Erosion 20k droplets", erosion)
    _timeit("Normalize + 20 smooth passes", smoothing)
    _timeit("Hydrology (priority flood)", hydrology)
    _timeit("Mesh detail=40", meshing)

    if len(sys.argv) > 1:
        cfg = PlanetConfig.preset(sys.argv[1], seed=0)
    else:
        cfg = PlanetConfig(resolution=size, plate_count=9, erosion_iterations=20_000, seed=0)
    task = GenerationTask(cfg)
    _timeit("Full pipeline", task.run)
    for phase, secs in task.timings.items():
        print(f"  {phase.value}: {secs * 1000.0:.2f} ms")


if __name__ == "__main__":
    main()
