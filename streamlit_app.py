from __future__ import annotations

import math

import numpy as np
import streamlit as st

from planetgen.config import BOUNDS, PRESETS, FaultType, PlanetConfig
from planetgen.errors import SurfaceNotReadyError
from planetgen.log import configure_logging
from planetgen.pipeline import Phase, PlanetForge
from ui.styles import inject_global_styles
from viz.export import (
    array_to_npy_bytes,
    array_to_png_bytes,
    mesh_to_obj_bytes,
    rgb_to_png_bytes,
)
from viz.figures import field_figure, planet_figure
from viz.palette import planet_colors

st.set_page_config(
    page_title="Planet Forge",
    page_icon="o",
    layout="wide",
)

inject_global_styles()

_PHASE_LABELS = {
    Phase.PLATES: "Tectonics",
    Phase.EROSION: "Erosion",
    Phase.SMOOTHING: "Smoothing",
    Phase.HYDROLOGY: "Hydrology",
    Phase.MESHING: "Meshing",
    Phase.DONE: "Done",
    Phase.CANCELLED: "Cancelled",
}


def _forge() -> PlanetForge:
    if "forge" not in st.session_state:
        configure_logging("INFO")
        st.session_state["forge"] = PlanetForge()
    return st.session_state["forge"]


def _slider(label: str, key: str, default: float, *, step: float) -> float:
    lo, hi = BOUNDS[key]
    return st.slider(
        label,
        min_value=float(lo),
        max_value=float(hi),
        value=float(min(max(default, lo), hi)),
        step=float(step),
    )


def _int_slider(label: str, key: str, default: int, *, max_value: int | None = None) -> int:
    lo, hi = BOUNDS[key]
    hi = int(hi if max_value is None else min(hi, max_value))
    return st.slider(
        label,
        min_value=int(lo),
        max_value=hi,
        value=int(min(max(default, lo), hi)),
    )


def _direction(lat_deg: float, lon_deg: float) -> np.ndarray:
    lat = math.radians(float(lat_deg))
    lon = math.radians(float(lon_deg))
    return np.array(
        [math.cos(lat) * math.cos(lon), math.sin(lat), math.cos(lat) * math.sin(lon)],
        dtype=np.float64,
    )


with st.sidebar:
    st.header("Planet")
    preset_name = st.selectbox("Preset", list(PRESETS.keys()), index=0)
    base = PlanetConfig.preset(preset_name)

    with st.expander("Tectonics", expanded=True):
        resolution = _int_slider("Resolution", "resolution", 192, max_value=512)
        plate_count = _int_slider("Plates", "plate_count", base.plate_count, max_value=64)
        jitter = _slider("Jitter", "jitter", base.jitter, step=0.01)
        plate_delta = _slider("Plate delta", "plate_delta", base.plate_delta, step=0.01)
        plate_size_variance = _slider(
            "Plate size variance", "plate_size_variance", base.plate_size_variance, step=0.01
        )
        desymmetrize = st.checkbox("Desymmetrize tiling", value=base.desymmetrize_tiling)
        fault_type = st.selectbox(
            "Fault type",
            [f.value for f in FaultType],
            index=[f.value for f in FaultType].index(base.fault_type.value),
        )

    with st.expander("Erosion & water", expanded=False):
        erosion_iterations = st.number_input(
            "Droplets",
            min_value=0,
            max_value=int(BOUNDS["erosion_iterations"][1]),
            value=20_000,
            step=1_000,
        )
        erosion_rate = _slider("Erosion rate", "erosion_rate", base.erosion_rate, step=0.01)
        evaporation_rate = _slider(
            "Evaporation", "evaporation_rate", base.evaporation_rate, step=0.01
        )
        smooth_passes = _int_slider("Smooth passes", "smooth_passes", base.smooth_passes)
        sea_level = _slider("Sea level", "sea_level", base.sea_level, step=0.005)

    with st.expander("Mesh", expanded=False):
        height_scale = _slider("Height scale", "height_scale", base.height_scale, step=0.1)
        subdivision_level = _int_slider(
            "Subdivisions", "subdivision_level", 24, max_value=80
        )
        ice_cap = _slider("Ice caps", "ice_cap_threshold", base.ice_cap_threshold, step=0.01)

    seed = st.number_input("Seed", min_value=0, value=0, step=1)
    generate = st.button("Generate", type="primary", use_container_width=True)

config = PlanetConfig(
    resolution=resolution,
    plate_count=plate_count,
    jitter=jitter,
    plate_delta=plate_delta,
    plate_size_variance=plate_size_variance,
    desymmetrize_tiling=desymmetrize,
    fault_type=fault_type,
    erosion_iterations=int(erosion_iterations),
    erosion_rate=erosion_rate,
    evaporation_rate=evaporation_rate,
    smooth_passes=smooth_passes,
    sea_level=sea_level,
    radius=base.radius,
    height_scale=height_scale,
    subdivision_level=subdivision_level,
    ice_cap_threshold=ice_cap,
    seed=int(seed),
)

forge = _forge()

st.title("Planet Forge")

if generate:
    task = forge.start(config)
    bar = st.progress(0.0)
    status = st.empty()
    status.markdown(
        f"<div class='phase-status'>{_PHASE_LABELS[task.phase]}…</div>",
        unsafe_allow_html=True,
    )
    for phase in task.phases():
        bar.progress(task.progress)
        status.markdown(
            f"<div class='phase-status'>{_PHASE_LABELS[phase]}…</div>",
            unsafe_allow_html=True,
        )
    st.session_state["last_task"] = task

task = st.session_state.get("last_task")
if task is None or task.mesh is None:
    st.info("Pick settings in the sidebar and press Generate.")
    st.stop()

mesh = task.mesh
surface = task.surface
map_rgb = planet_colors(surface.height, surface.water, sea_level=task.config.sea_level)

left, right = st.columns([3, 2])
with left:
    st.plotly_chart(
        planet_figure(mesh, freshwater=task.freshwater), use_container_width=True
    )
    timings = ", ".join(f"{p.value} {t * 1e3:.0f} ms" for p, t in task.timings.items())
    st.caption(
        f"seed {task.seed} · {mesh.vertex_count:,} vertices · "
        f"{int(np.sum(mesh.is_water)):,} wet · {timings}"
    )

with right:
    tab_h, tab_w, tab_rgb = st.tabs(["Height", "Water", "Map"])
    with tab_h:
        st.plotly_chart(field_figure(surface.height, colorscale="Earth"), use_container_width=True)
    with tab_w:
        st.plotly_chart(field_figure(surface.water, colorscale="Blues"), use_container_width=True)
    with tab_rgb:
        st.image(map_rgb, clamp=True, use_container_width=True)

    st.subheader("Point query")
    lat = st.slider("Latitude", -90.0, 90.0, 0.0, 0.5)
    lon = st.slider("Longitude", -180.0, 180.0, 0.0, 0.5)
    try:
        state = forge.water_at(_direction(lat, lon))
    except SurfaceNotReadyError:
        st.warning("Generation still running.")
    else:
        st.json(
            {
                "height": round(state.height, 5),
                "water_height": round(state.water_height, 5),
                "water_intensity": round(state.water_intensity, 5),
                "is_water": state.is_water,
            }
        )

    st.subheader("Export")
    st.download_button(
        "Height PNG", array_to_png_bytes(surface.height), file_name="height.png"
    )
    st.download_button(
        "Map PNG",
        rgb_to_png_bytes(map_rgb),
        file_name="map.png",
    )
    st.download_button(
        "Fields NPY",
        array_to_npy_bytes(np.stack([surface.height, surface.water])),
        file_name="fields.npy",
    )
    st.download_button("Mesh OBJ", mesh_to_obj_bytes(mesh), file_name="planet.obj")
