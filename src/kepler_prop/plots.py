from pathlib import Path
from typing import Dict
import numpy as np
import plotly.graph_objects as go

from .history import PropagationHistory
from .reporting import safe_name, history_frame_km


def orbit_3d_html(histories: Dict[object, PropagationHistory], outdir: Path, name: str = "orbits") -> Path:
    """
    Plot and save the sampled trajectories of all bodies in 3D.

    Parameters
    ----------
    histories : dict[body_id, PropagationHistory]
        Output of PropagationEngine.propagate().
    outdir : Path
        Output directory for the HTML file.
    name : str
        File name stem.

    Returns
    -------
    Path
        Path to saved HTML file (interactive Plotly visualization).
    """
    outdir = Path(outdir)
    outdir.mkdir(parents=True, exist_ok=True)

    fig = go.Figure()
    for body_id, history in histories.items():
        df = history_frame_km(history)
        label = f"{body_id} (failed)" if history.failed else str(body_id)
        fig.add_trace(go.Scatter3d(
            x=df["x_km"], y=df["y_km"], z=df["z_km"],
            mode="lines+markers",
            name=label,
            marker=dict(size=3),
            line=dict(width=3),
        ))

    # Central body at the origin
    fig.add_trace(go.Scatter3d(x=[0.0], y=[0.0], z=[0.0], mode="markers",
                               name="Central body", marker=dict(size=6, color="black")))

    fig.update_layout(
        title="Propagated trajectories (inertial frame, km)",
        scene=dict(xaxis_title="x (km)", yaxis_title="y (km)", zaxis_title="z (km)", aspectmode="data"),
        font=dict(size=14),
        legend=dict(font=dict(size=14)),
    )

    fname = outdir / f"{safe_name(name)}.html"
    fig.write_html(str(fname), include_plotlyjs="cdn")
    return fname


def radius_time_html(histories: Dict[object, PropagationHistory], outdir: Path, name: str = "radius") -> Path:
    """
    Plot orbital radius versus elapsed time for every body and save as HTML.
    """
    outdir = Path(outdir)
    outdir.mkdir(parents=True, exist_ok=True)

    fig = go.Figure()
    for body_id, history in histories.items():
        df = history_frame_km(history)
        radius = np.linalg.norm(df[["x_km", "y_km", "z_km"]].to_numpy(), axis=1)
        fig.add_trace(go.Scatter(x=df["time_s"], y=radius, mode="lines+markers", name=str(body_id)))

    fig.update_layout(
        title="Orbital radius vs elapsed time",
        xaxis_title="Elapsed time (s)",
        yaxis_title="Radius (km)",
        margin=dict(l=75, r=30, t=90, b=75),
        font=dict(size=16),
        legend=dict(font=dict(size=14)),
    )

    fname = outdir / f"{safe_name(name)}.html"
    fig.write_html(str(fname), include_plotlyjs="cdn")
    return fname
