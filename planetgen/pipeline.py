"""Resumable generation pipeline.

A GenerationTask advances one phase per `step()` call so a host (UI loop,
server, notebook) can repaint or report progress between phases:

    PLATES -> EROSION -> SMOOTHING -> HYDROLOGY -> MESHING -> DONE

A phase is never interrupted; cancellation is checked before each phase. The
task owns its buffers and only publishes an immutable PlanetSurface once it
reaches DONE, so point queries never observe a half-built field.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

import numpy as np
import structlog

from planetgen.config import PlanetConfig
from planetgen.erosion import droplet_erosion
from planetgen.errors import GenerationCancelledError, SurfaceNotReadyError
from planetgen.hydrology import DrainageResult, resolve_hydrology
from planetgen.mesh import PlanetMesh, build_freshwater_mesh, build_planet_mesh
from planetgen.plates import PlateSeed, plate_field, scatter_plates
from planetgen.sampler import sample_triplanar
from planetgen.smoothing import normalize01, smooth_field

logger = structlog.get_logger(__name__)


class Phase(str, Enum):
    PLATES = "plates"
    EROSION = "erosion"
    SMOOTHING = "smoothing"
    HYDROLOGY = "hydrology"
    MESHING = "meshing"
    DONE = "done"
    CANCELLED = "cancelled"

    @property
    def terminal(self) -> bool:
        return self in (Phase.DONE, Phase.CANCELLED)


_NEXT: dict[Phase, Phase] = {
    Phase.PLATES: Phase.EROSION,
    Phase.EROSION: Phase.SMOOTHING,
    Phase.SMOOTHING: Phase.HYDROLOGY,
    Phase.HYDROLOGY: Phase.MESHING,
    Phase.MESHING: Phase.DONE,
}

WORK_PHASES: tuple[Phase, ...] = tuple(_NEXT.keys())


class CancellationToken:
    def __init__(self) -> None:
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled


@dataclass(frozen=True)
class WaterState:
    height: float
    water_height: float
    water_intensity: float
    is_water: bool


@dataclass(frozen=True)
class PlanetSurface:
    """Finished, read-only fields of one generation run."""

    height: np.ndarray
    water: np.ndarray
    config: PlanetConfig
    seed: int

    def height_at(self, direction: Any) -> float:
        h, _ = sample_triplanar(self.height, self.water, np.asarray(direction))
        return float(h)

    def water_at(self, direction: Any) -> WaterState:
        h, w = sample_triplanar(self.height, self.water, np.asarray(direction))
        height = float(h)
        intensity = float(np.clip(float(w), 0.0, 1.0))
        # Water surface sits halfway down the carved bank.
        water_height = height + intensity * self.config.river_depth * 0.5
        return WaterState(
            height=height,
            water_height=water_height,
            water_intensity=intensity,
            is_water=intensity > self.config.water_threshold,
        )


def _fresh_seed() -> int:
    return int(np.random.SeedSequence().entropy % (2**63))


def _freeze(a: np.ndarray) -> np.ndarray:
    out = np.array(a, dtype=np.float64, copy=True)
    out.setflags(write=False)
    return out


class GenerationTask:
    def __init__(
        self,
        config: PlanetConfig,
        *,
        token: CancellationToken | None = None,
        on_complete: Callable[["GenerationTask", PlanetSurface], None] | None = None,
    ) -> None:
        self.config = config
        self.seed = int(config.seed) if config.seed is not None else _fresh_seed()
        self.token = token if token is not None else CancellationToken()
        self.phase = Phase.PLATES
        self.timings: dict[Phase, float] = {}

        self.plates: list[PlateSeed] = []
        self.drainage: DrainageResult | None = None
        self.mesh: PlanetMesh | None = None
        self.freshwater: PlanetMesh | None = None
        self.surface: PlanetSurface | None = None

        self._rng = np.random.default_rng(self.seed)
        self._height: np.ndarray | None = None
        self._water: np.ndarray | None = None
        self._on_complete = on_complete
        self._log = logger.bind(seed=self.seed, resolution=config.resolution)

    @property
    def done(self) -> bool:
        return self.phase.terminal

    @property
    def progress(self) -> float:
        """Fraction of work phases finished (1.0 once DONE)."""
        if self.phase is Phase.DONE:
            return 1.0
        finished = sum(1 for p in WORK_PHASES if p in self.timings)
        return finished / len(WORK_PHASES)

    def cancel(self) -> None:
        self.token.cancel()

    def step(self) -> Phase:
        """Run the current phase to completion and return the next one."""

        if self.phase.terminal:
            return self.phase
        if self.token.cancelled:
            self._log.info("generation cancelled", before=self.phase.value)
            self.phase = Phase.CANCELLED
            self._height = None
            self._water = None
            return self.phase

        phase = self.phase
        t0 = time.perf_counter()
        getattr(self, f"_run_{phase.value}")()
        elapsed = time.perf_counter() - t0

        self.timings[phase] = elapsed
        self._log.info("phase finished", phase=phase.value, ms=round(elapsed * 1e3, 2))

        self.phase = _NEXT[phase]
        if self.phase is Phase.DONE:
            self._publish()
        return self.phase

    def phases(self) -> Iterator[Phase]:
        """Yield after every phase so the caller can hand control back."""

        while not self.phase.terminal:
            yield self.step()

    def run(self) -> PlanetMesh:
        for _ in self.phases():
            pass
        if self.phase is Phase.CANCELLED or self.mesh is None:
            raise GenerationCancelledError("generation was cancelled")
        return self.mesh

    def _run_plates(self) -> None:
        cfg = self.config
        self.plates = scatter_plates(
            cfg.resolution,
            cfg.plate_count,
            rng=self._rng,
            size_variance=cfg.plate_size_variance,
            desymmetrize=cfg.desymmetrize_tiling,
        )
        self._height = plate_field(
            cfg.resolution,
            plate_count=cfg.plate_count,
            rng=self._rng,
            jitter=cfg.jitter,
            fault_type=cfg.fault_type,
            size_variance=cfg.plate_size_variance,
            desymmetrize=cfg.desymmetrize_tiling,
            plate_delta=cfg.plate_delta,
            ocean_floor=cfg.ocean_floor,
            plates=self.plates,
        )
        self._water = np.zeros_like(self._height)

    def _run_erosion(self) -> None:
        cfg = self.config
        self._height = droplet_erosion(
            self._require_height(),
            iterations=cfg.erosion_iterations,
            rng=self._rng,
            inertia=cfg.inertia,
            gravity=cfg.gravity,
            evaporation=cfg.evaporation_rate,
            erosion_rate=cfg.erosion_rate,
            deposition_rate=cfg.deposition_rate,
        )

    def _run_smoothing(self) -> None:
        height = normalize01(self._require_height())
        self._height = smooth_field(height, passes=self.config.smooth_passes)

    def _run_hydrology(self) -> None:
        cfg = self.config
        result = resolve_hydrology(
            self._require_height(),
            sea_level=cfg.sea_level,
            river_depth=cfg.river_depth,
            lake_threshold=cfg.lake_threshold,
        )
        self._height = result.height
        self._water = result.water
        self.drainage = result.drainage

    def _run_meshing(self) -> None:
        cfg = self.config
        height = self._require_height()
        water = self._water if self._water is not None else np.zeros_like(height)
        self.mesh = build_planet_mesh(
            height,
            water,
            radius=cfg.radius,
            height_scale=cfg.height_scale,
            sea_level=cfg.sea_level,
            detail=cfg.subdivision_level,
            ice_cap=cfg.ice_cap_threshold,
            water_threshold=cfg.water_threshold,
        )
        self.freshwater = build_freshwater_mesh(
            height,
            water,
            radius=cfg.radius,
            height_scale=cfg.height_scale,
            sea_level=cfg.sea_level,
            detail=cfg.subdivision_level,
            river_depth=cfg.river_depth,
            water_threshold=cfg.water_threshold,
        )

    def _require_height(self) -> np.ndarray:
        if self._height is None:
            raise RuntimeError("height field is not initialized")
        return self._height

    def _publish(self) -> None:
        height = self._require_height()
        water = self._water if self._water is not None else np.zeros_like(height)
        self.surface = PlanetSurface(
            height=_freeze(height),
            water=_freeze(water),
            config=self.config,
            seed=self.seed,
        )
        self._log.info(
            "generation finished",
            total_ms=round(sum(self.timings.values()) * 1e3, 2),
            vertices=self.mesh.vertex_count if self.mesh is not None else 0,
        )
        if self._on_complete is not None:
            self._on_complete(self, self.surface)


def _as_config(config: PlanetConfig | Mapping[str, Any] | None) -> PlanetConfig:
    if config is None:
        return PlanetConfig()
    if isinstance(config, PlanetConfig):
        return config
    return PlanetConfig.model_validate(dict(config))


class PlanetForge:
    """Host-facing entry point: generate planets and query the last one.

    Only one task is live at a time. Starting a new one cancels the previous
    task, which then never publishes its fields.
    """

    def __init__(self) -> None:
        self._task: GenerationTask | None = None
        self._surface: PlanetSurface | None = None

    @property
    def task(self) -> GenerationTask | None:
        return self._task

    @property
    def busy(self) -> bool:
        return self._task is not None and not self._task.done

    @property
    def surface(self) -> PlanetSurface:
        if self._surface is None:
            raise SurfaceNotReadyError("no planet has been generated yet")
        return self._surface

    def start(
        self, config: PlanetConfig | Mapping[str, Any] | None = None
    ) -> GenerationTask:
        cfg = _as_config(config)
        if self.busy and self._task is not None:
            logger.info(
                "cancelling in-flight generation",
                phase=self._task.phase.value,
                seed=self._task.seed,
            )
            self._task.cancel()
        self._task = GenerationTask(cfg, on_complete=self._publish)
        return self._task

    def generate(
        self, config: PlanetConfig | Mapping[str, Any] | None = None
    ) -> PlanetMesh:
        return self.start(config).run()

    def height_at(self, direction: Any) -> float:
        return self.surface.height_at(direction)

    def water_at(self, direction: Any) -> WaterState:
        return self.surface.water_at(direction)

    def _publish(self, task: GenerationTask, surface: PlanetSurface) -> None:
        if task is not self._task:
            return
        self._surface = surface
