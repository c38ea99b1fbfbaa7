import io

import numpy as np
from PIL import Image

from planetgen.mesh import build_planet_mesh
from viz.export import (
    array_to_npy_bytes,
    array_to_png_bytes,
    mesh_to_obj_bytes,
    rgb_to_png_bytes,
)


def test_array_to_png_bytes_roundtrip():
    z = np.arange(12, dtype=np.float64).reshape(3, 4)
    data = array_to_png_bytes(z)
    assert data[:8] == b"\x89PNG\r\n\x1a\n"

    img = Image.open(io.BytesIO(data))
    assert img.size == (4, 3)


def test_array_to_png_bytes_constant_map():
    z = np.full((5, 6), 7.0, dtype=np.float64)
    data = array_to_png_bytes(z)
    img = Image.open(io.BytesIO(data))
    arr = np.array(img)
    assert arr.min() == 0
    assert arr.max() == 0


def test_array_to_png_bytes_ignores_non_finite():
    z = np.array([[0.0, np.nan], [np.inf, 1.0]])
    arr = np.array(Image.open(io.BytesIO(array_to_png_bytes(z))))
    assert arr[1, 1] == 255
    assert arr[0, 1] == 0


def test_rgb_to_png_bytes_mode():
    rgb = np.zeros((2, 3, 3))
    rgb[..., 0] = 1.0
    img = Image.open(io.BytesIO(rgb_to_png_bytes(rgb)))
    assert img.mode == "RGB"
    assert np.array(img)[0, 0].tolist() == [255, 0, 0]


def test_array_to_npy_bytes_roundtrip():
    z = np.arange(6, dtype=np.int32).reshape(2, 3)
    data = array_to_npy_bytes(z)
    out = np.load(io.BytesIO(data))
    assert np.array_equal(out, z)


def test_mesh_to_obj_bytes_counts():
    h = np.random.default_rng(0).random((16, 16))
    mesh = build_planet_mesh(h, np.zeros_like(h), detail=2)
    lines = mesh_to_obj_bytes(mesh).decode("utf-8").splitlines()

    v_lines = [ln for ln in lines if ln.startswith("v ")]
    vn_lines = [ln for ln in lines if ln.startswith("vn ")]
    w_lines = [ln for ln in lines if ln.startswith("# w ")]
    f_lines = [ln for ln in lines if ln.startswith("f ")]
    assert len(v_lines) == mesh.vertex_count
    assert len(vn_lines) == mesh.vertex_count
    assert len(w_lines) == mesh.vertex_count
    assert len(f_lines) == mesh.face_count

    idx = [int(tok.split("//")[0]) for ln in f_lines for tok in ln.split()[1:]]
    assert min(idx) == 1
    assert max(idx) == mesh.vertex_count
