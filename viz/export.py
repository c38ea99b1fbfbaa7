from __future__ import annotations

import io

import numpy as np
from PIL import Image

from planetgen.mesh import PlanetMesh


def array_to_png_bytes(z: np.ndarray) -> bytes:
    """Convert a 2D array to an 8-bit grayscale PNG.

    Values are min/max normalized to [0, 255]. Degenerate (constant) arrays
    become all zeros.
    """

    z = np.asarray(z, dtype=np.float64)
    if z.ndim != 2:
        raise ValueError("expected a 2D array")

    z = np.where(np.isfinite(z), z, 0.0)
    zmin = float(np.min(z))
    zmax = float(np.max(z))
    if zmax == zmin:
        img = np.zeros(z.shape, dtype=np.uint8)
    else:
        zn = (z - zmin) / (zmax - zmin)
        img = np.clip(zn * 255.0, 0.0, 255.0).astype(np.uint8)

    out = io.BytesIO()
    Image.fromarray(img, mode="L").save(out, format="PNG")
    return out.getvalue()


def rgb_to_png_bytes(rgb01: np.ndarray) -> bytes:
    rgb = np.asarray(rgb01, dtype=np.float64)
    if rgb.ndim != 3 or rgb.shape[2] != 3:
        raise ValueError("rgb01 must be HxWx3")
    img = np.clip(rgb * 255.0, 0.0, 255.0).astype(np.uint8)
    out = io.BytesIO()
    Image.fromarray(img, mode="RGB").save(out, format="PNG")
    return out.getvalue()


def array_to_npy_bytes(z: np.ndarray) -> bytes:
    z = np.asarray(z)
    out = io.BytesIO()
    np.save(out, z)
    return out.getvalue()


def mesh_to_obj_bytes(mesh: PlanetMesh, *, name: str = "planet") -> bytes:
    """Wavefront OBJ with positions, normals and triangle faces.

    The water intensity is not part of the OBJ format; it is written as
    one `# w <value>` comment per vertex so tools can recover it.
    """

    p = np.asarray(mesh.positions, dtype=np.float64)
    n = np.asarray(mesh.normals, dtype=np.float64)
    f = np.asarray(mesh.faces, dtype=np.int64) + 1

    lines: list[str] = []
    lines.append("# Planet mesh\n")
    lines.append(f"# vertices={p.shape[0]} faces={f.shape[0]}\n")
    lines.append(f"o {name}\n")

    for x, y, z in p.tolist():
        lines.append(f"v {x:.6f} {y:.6f} {z:.6f}\n")
    for x, y, z in n.tolist():
        lines.append(f"vn {x:.6f} {y:.6f} {z:.6f}\n")
    for w in np.asarray(mesh.water, dtype=np.float64).tolist():
        lines.append(f"# w {w:.6f}\n")
    for a, b, c in f.tolist():
        lines.append(f"f {a}//{a} {b}//{b} {c}//{c}\n")

    return "".join(lines).encode("utf-8")
