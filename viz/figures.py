from __future__ import annotations

import numpy as np
import plotly.graph_objects as go

from planetgen.mesh import PlanetMesh
from viz.palette import mesh_colors


def _rgb_strings(rgb01: np.ndarray) -> list[str]:
    c = np.clip(np.asarray(rgb01, dtype=np.float64) * 255.0, 0.0, 255.0)
    c = c.astype(np.uint8).tolist()
    return [f"rgb({r},{g},{b})" for r, g, b in c]


def planet_figure(
    mesh: PlanetMesh,
    *,
    freshwater: PlanetMesh | None = None,
    height: int = 620,
) -> go.Figure:
    """3D preview of the displaced planet mesh colored by height and water."""

    p = mesh.positions
    f = mesh.faces
    fig = go.Figure(
        data=go.Mesh3d(
            x=p[:, 0],
            y=p[:, 1],
            z=p[:, 2],
            i=f[:, 0],
            j=f[:, 1],
            k=f[:, 2],
            vertexcolor=_rgb_strings(mesh_colors(mesh)),
            flatshading=False,
            lighting=dict(ambient=0.45, diffuse=0.8, specular=0.2, roughness=0.7),
            hoverinfo="skip",
        )
    )

    if freshwater is not None:
        wet = freshwater.water > freshwater.water_threshold
        fw = freshwater.faces
        keep = np.all(wet[fw], axis=1)
        if bool(np.any(keep)):
            q = freshwater.positions
            fig.add_trace(
                go.Mesh3d(
                    x=q[:, 0],
                    y=q[:, 1],
                    z=q[:, 2],
                    i=fw[keep, 0],
                    j=fw[keep, 1],
                    k=fw[keep, 2],
                    color="rgb(21,79,138)",
                    opacity=0.8,
                    hoverinfo="skip",
                )
            )

    fig.update_layout(
        margin=dict(l=0, r=0, t=0, b=0),
        height=int(height),
        scene=dict(
            xaxis=dict(visible=False),
            yaxis=dict(visible=False),
            zaxis=dict(visible=False),
            aspectmode="data",
        ),
        paper_bgcolor="rgba(0,0,0,0)",
    )
    return fig


def field_figure(
    z: np.ndarray,
    *,
    colorscale: str = "Viridis",
    show_colorbar: bool = True,
    height: int = 420,
) -> go.Figure:
    fig = go.Figure(
        data=go.Heatmap(
            z=np.asarray(z, dtype=np.float64),
            colorscale=colorscale,
            showscale=bool(show_colorbar),
            hovertemplate="value=%{z:.4f}<extra></extra>",
            colorbar=dict(thickness=12),
        )
    )
    fig.update_layout(margin=dict(l=0, r=0, t=0, b=0), height=int(height))
    fig.update_yaxes(
        autorange="reversed", showticklabels=False, showgrid=False, zeroline=False
    )
    fig.update_xaxes(showticklabels=False, showgrid=False, zeroline=False)
    return fig
