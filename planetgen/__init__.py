from __future__ import annotations

from planetgen.config import PRESETS, FaultType, PlanetConfig
from planetgen.erosion import droplet_erosion
from planetgen.errors import (
    DrainageCycleError,
    GenerationCancelledError,
    PlanetGenError,
    SurfaceNotReadyError,
)
from planetgen.hydrology import (
    DrainageResult,
    HydrologyResult,
    flow_accumulation,
    flow_targets,
    priority_flood,
    resolve_hydrology,
    trace_to_sink,
    water_intensity,
)
from planetgen.log import configure_logging
from planetgen.mesh import (
    PlanetMesh,
    build_freshwater_mesh,
    build_planet_mesh,
    icosphere,
    icosphere_vertex_count,
    vertex_normals,
    weld_vertices,
)
from planetgen.pipeline import (
    CancellationToken,
    GenerationTask,
    Phase,
    PlanetForge,
    PlanetSurface,
    WaterState,
)
from planetgen.plates import PlateSeed, plate_field, scatter_plates
from planetgen.sampler import sample_bilinear, sample_triplanar
from planetgen.smoothing import normalize01, sanitize_field, smooth_field

__all__ = [
    "CancellationToken",
    "DrainageCycleError",
    "DrainageResult",
    "FaultType",
    "GenerationCancelledError",
    "GenerationTask",
    "HydrologyResult",
    "PRESETS",
    "Phase",
    "PlanetConfig",
    "PlanetForge",
    "PlanetGenError",
    "PlanetMesh",
    "PlanetSurface",
    "PlateSeed",
    "SurfaceNotReadyError",
    "WaterState",
    "build_freshwater_mesh",
    "build_planet_mesh",
    "configure_logging",
    "droplet_erosion",
    "flow_accumulation",
    "flow_targets",
    "icosphere",
    "icosphere_vertex_count",
    "normalize01",
    "plate_field",
    "priority_flood",
    "resolve_hydrology",
    "sample_bilinear",
    "sample_triplanar",
    "sanitize_field",
    "scatter_plates",
    "smooth_field",
    "trace_to_sink",
    "vertex_normals",
    "water_intensity",
    "weld_vertices",
]
