from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np
import structlog

from planetgen.sampler import sample_triplanar, unit_directions

logger = structlog.get_logger(__name__)

_T = (1.0 + 5.0**0.5) / 2.0

_ICOSAHEDRON_VERTICES = np.array(
    [
        [-1.0, _T, 0.0],
        [1.0, _T, 0.0],
        [-1.0, -_T, 0.0],
        [1.0, -_T, 0.0],
        [0.0, -1.0, _T],
        [0.0, 1.0, _T],
        [0.0, -1.0, -_T],
        [0.0, 1.0, -_T],
        [_T, 0.0, -1.0],
        [_T, 0.0, 1.0],
        [-_T, 0.0, -1.0],
        [-_T, 0.0, 1.0],
    ],
    dtype=np.float64,
)

_ICOSAHEDRON_FACES = np.array(
    [
        [0, 11, 5],
        [0, 5, 1],
        [0, 1, 7],
        [0, 7, 10],
        [0, 10, 11],
        [1, 5, 9],
        [5, 11, 4],
        [11, 10, 2],
        [10, 7, 6],
        [7, 1, 8],
        [3, 9, 4],
        [3, 4, 2],
        [3, 2, 6],
        [3, 6, 8],
        [3, 8, 9],
        [4, 9, 5],
        [2, 4, 11],
        [6, 2, 10],
        [8, 6, 7],
        [9, 8, 1],
    ],
    dtype=np.int64,
)


def icosphere_vertex_count(detail: int) -> int:
    """Distinct vertices of an icosahedron with (detail + 1)^2 triangles per face."""

    n = int(detail) + 1
    return 10 * n * n + 2


def _smoothstep(edge0: float, edge1: float, x: np.ndarray) -> np.ndarray:
    edge0 = float(edge0)
    edge1 = float(edge1)
    if edge1 <= edge0:
        return np.zeros_like(x, dtype=np.float64)
    t = (np.asarray(x, dtype=np.float64) - edge0) / (edge1 - edge0)
    t = np.clip(t, 0.0, 1.0)
    return t * t * (3.0 - 2.0 * t)


def _subdivide_face(
    a: np.ndarray, b: np.ndarray, c: np.ndarray, cols: int
) -> list[np.ndarray]:
    # Lattice rows from edge a-b toward c; row i has cols - i + 1 points.
    rows: list[np.ndarray] = []
    for i in range(cols + 1):
        t = i / cols
        aj = a + (c - a) * t
        bj = b + (c - b) * t
        n = cols - i
        if n == 0:
            rows.append(aj[None, :])
            continue
        s = (np.arange(n + 1, dtype=np.float64) / n)[:, None]
        rows.append(aj[None, :] + (bj - aj)[None, :] * s)

    tris: list[np.ndarray] = []
    for i in range(cols):
        for j in range(2 * (cols - i) - 1):
            k = j // 2
            if j % 2 == 0:
                tris.append(
                    np.stack([rows[i][k + 1], rows[i + 1][k], rows[i][k]])
                )
            else:
                tris.append(
                    np.stack([rows[i][k + 1], rows[i + 1][k + 1], rows[i + 1][k]])
                )
    return tris


def _orient_outward(positions: np.ndarray, faces: np.ndarray) -> np.ndarray:
    """Flip faces whose normal points toward the origin."""

    a = positions[faces[:, 0]]
    b = positions[faces[:, 1]]
    c = positions[faces[:, 2]]
    n = np.cross(b - a, c - a)
    inward = np.sum(n * (a + b + c), axis=1) < 0.0
    out = faces.copy()
    out[inward, 1], out[inward, 2] = faces[inward, 2], faces[inward, 1]
    return out


def icosphere(detail: int) -> tuple[np.ndarray, np.ndarray]:
    """Unit icosphere with independent vertices per triangle.

    Returns (positions (3T, 3), faces (T, 3)). Shared edges produce duplicate
    vertices; use weld_vertices to merge them.
    """

    detail = int(detail)
    if detail < 0:
        raise ValueError("detail must be >= 0")
    cols = detail + 1

    tris: list[np.ndarray] = []
    for f in _ICOSAHEDRON_FACES:
        a, b, c = _ICOSAHEDRON_VERTICES[f]
        tris.extend(_subdivide_face(a, b, c, cols))

    positions = np.concatenate(tris, axis=0)
    positions /= np.linalg.norm(positions, axis=1, keepdims=True)
    faces = np.arange(positions.shape[0], dtype=np.int64).reshape(-1, 3)
    return positions, _orient_outward(positions, faces)


@dataclass(frozen=True)
class WeldResult:
    positions: np.ndarray
    faces: np.ndarray
    index_map: np.ndarray
    attributes: dict[str, np.ndarray] = field(default_factory=dict)


def weld_vertices(
    positions: np.ndarray,
    faces: np.ndarray,
    *,
    tolerance: float = 1e-4,
    attributes: dict[str, np.ndarray] | None = None,
) -> WeldResult:
    """Merge vertices that fall into the same tolerance-sized bucket.

    Vertices are hashed by their coordinates rounded to multiples of
    `tolerance`; the first vertex seen in a bucket is kept along with its
    per-vertex attributes. index_map maps every input vertex to its
    welded index.
    """

    p = np.asarray(positions, dtype=np.float64)
    if p.ndim != 2 or p.shape[1] != 3:
        raise ValueError("positions must have shape (N, 3)")
    fc = np.asarray(faces, dtype=np.int64)
    tolerance = float(tolerance)
    if tolerance <= 0.0:
        raise ValueError("tolerance must be > 0")

    attrs = {k: np.asarray(v) for k, v in (attributes or {}).items()}
    for name, arr in attrs.items():
        if arr.shape[0] != p.shape[0]:
            raise ValueError(f"attribute {name!r} must have one row per vertex")

    keys = np.round(p / tolerance).astype(np.int64).tolist()
    buckets: dict[tuple[int, int, int], int] = {}
    index_map = np.empty(p.shape[0], dtype=np.int64)
    kept: list[int] = []
    for i, key in enumerate(keys):
        k = (key[0], key[1], key[2])
        j = buckets.get(k)
        if j is None:
            j = len(kept)
            buckets[k] = j
            kept.append(i)
        index_map[i] = j

    keep = np.asarray(kept, dtype=np.int64)
    return WeldResult(
        positions=p[keep],
        faces=index_map[fc] if fc.size else fc.reshape(-1, 3),
        index_map=index_map,
        attributes={k: v[keep] for k, v in attrs.items()},
    )


def ensure_finite_positions(
    positions: np.ndarray, *, fallback_radius: float
) -> np.ndarray:
    """Zero out non-finite coordinates; if any were found, pin vertex 0 at
    (fallback_radius, 0, 0) so the mesh keeps a sensible extent."""

    p = np.asarray(positions, dtype=np.float64)
    bad = ~np.isfinite(p)
    if not bool(np.any(bad)):
        return p.copy()
    out = np.where(bad, 0.0, p)
    out[0] = (float(fallback_radius), 0.0, 0.0)
    logger.warning("non-finite mesh positions replaced", count=int(np.sum(bad)))
    return out


def vertex_normals(positions: np.ndarray, faces: np.ndarray) -> np.ndarray:
    """Area-weighted smooth vertex normals.

    Vertices without a usable normal fall back to their radial direction,
    then to +x.
    """

    p = np.asarray(positions, dtype=np.float64)
    fc = np.asarray(faces, dtype=np.int64)

    acc = np.zeros_like(p)
    if fc.size:
        a = p[fc[:, 0]]
        b = p[fc[:, 1]]
        c = p[fc[:, 2]]
        fn = np.cross(b - a, c - a)
        for k in range(3):
            np.add.at(acc, fc[:, k], fn)

    radial, radial_ok = unit_directions(p)
    n, ok = unit_directions(acc)
    fallback = np.where(
        radial_ok[:, None], radial, np.array([1.0, 0.0, 0.0], dtype=np.float64)
    )
    return np.where(ok[:, None], n, fallback)


@dataclass(frozen=True)
class PlanetMesh:
    positions: np.ndarray
    normals: np.ndarray
    faces: np.ndarray
    water: np.ndarray
    heights: np.ndarray
    ice: np.ndarray
    sea_level: float
    water_threshold: float

    @property
    def vertex_count(self) -> int:
        return int(self.positions.shape[0])

    @property
    def face_count(self) -> int:
        return int(self.faces.shape[0])

    @property
    def is_water(self) -> np.ndarray:
        """Ocean (below sea level) or fresh water (lake/river)."""
        return (self.heights < self.sea_level) | (self.water > self.water_threshold)

    @property
    def is_land(self) -> np.ndarray:
        """Dry ground outside the polar ice caps."""
        return (~self.is_water) & (self.ice < 0.5)


def _welded_directions(detail: int) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    unit, faces = icosphere(detail)
    welded = weld_vertices(unit, faces)
    dirs, ok = unit_directions(welded.positions)
    return dirs, ok, welded.faces


def build_planet_mesh(
    height: np.ndarray,
    water: np.ndarray,
    *,
    radius: float = 10.0,
    height_scale: float = 2.0,
    sea_level: float = 0.5,
    detail: int = 6,
    ice_cap: float = 0.12,
    water_threshold: float = 0.05,
) -> PlanetMesh:
    """Displace a welded icosphere by the sampled height field.

    Each vertex moves along its direction to
    radius + (height - sea_level) * height_scale and carries the sampled
    water intensity.
    """

    radius = float(radius)
    height_scale = float(height_scale)
    sea_level = float(sea_level)

    dirs, ok, faces = _welded_directions(detail)
    h, w = sample_triplanar(height, water, dirs)

    r = radius + (h - sea_level) * height_scale
    positions = dirs * r[:, None]
    positions[~ok] = (radius, 0.0, 0.0)
    positions = ensure_finite_positions(positions, fallback_radius=radius)

    normals = vertex_normals(positions, faces)
    ice = _smoothstep(1.0 - float(ice_cap), 1.0, np.abs(dirs[:, 1]))

    logger.debug(
        "planet mesh built",
        detail=int(detail),
        vertices=int(positions.shape[0]),
        faces=int(faces.shape[0]),
    )
    return PlanetMesh(
        positions=positions,
        normals=normals,
        faces=faces,
        water=np.clip(w, 0.0, 1.0),
        heights=h,
        ice=ice,
        sea_level=sea_level,
        water_threshold=float(water_threshold),
    )


def build_freshwater_mesh(
    height: np.ndarray,
    water: np.ndarray,
    *,
    radius: float = 10.0,
    height_scale: float = 2.0,
    sea_level: float = 0.5,
    detail: int = 6,
    river_depth: float = 0.015,
    water_threshold: float = 0.05,
) -> PlanetMesh:
    """Surface of lakes and rivers, halfway up the carved banks.

    Dry vertices sit on the terrain; the consumer hides them using the
    water attribute.
    """

    radius = float(radius)
    height_scale = float(height_scale)
    sea_level = float(sea_level)

    dirs, ok, faces = _welded_directions(detail)
    h, w = sample_triplanar(height, water, dirs)

    surface = h + w * float(river_depth) * 0.5
    # Lifted slightly to avoid z-fighting with the river bed.
    r = radius + (surface - sea_level) * height_scale + 0.001
    positions = dirs * r[:, None]
    positions[~ok] = (radius, 0.0, 0.0)
    positions = ensure_finite_positions(positions, fallback_radius=radius)

    return PlanetMesh(
        positions=positions,
        normals=vertex_normals(positions, faces),
        faces=faces,
        water=np.clip(w, 0.0, 1.0),
        heights=surface,
        ice=np.zeros(positions.shape[0], dtype=np.float64),
        sea_level=sea_level,
        water_threshold=float(water_threshold),
    )
