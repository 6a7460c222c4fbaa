from pathlib import Path
from typing import Dict, List
import numpy as np
import pandas as pd

from .history import PropagationHistory
from .state import KM

SI_COLUMNS = ["time_s", "x_m", "y_m", "z_m", "vx_ms", "vy_ms", "vz_ms"]
KM_COLUMNS = ["time_s", "x_km", "y_km", "z_km", "vx_kms", "vy_kms", "vz_kms"]


def safe_name(x) -> str:
    # Sanitize a body id into a filename component.
    return str(x).replace(" ", "_").replace("/", "_")


def history_frame(history: PropagationHistory) -> pd.DataFrame:
    """
    Tabulate a propagation history in SI units.

    Returns
    -------
    pd.DataFrame
        Columns time_s, x_m, y_m, z_m, vx_ms, vy_ms, vz_ms, one row per sample.
        DataFrame.attrs["failed"] is True if the body's propagation failed,
        and attrs["error"] holds the error message in that case.
    """
    rows = [[t, *state.as_array()] for t, state in history.items()]
    df = pd.DataFrame(rows, columns=SI_COLUMNS)
    df.attrs["body_id"] = history.body_id
    df.attrs["failed"] = history.failed
    if history.failed:
        df.attrs["error"] = str(history.error)
    return df


def history_frame_km(history: PropagationHistory) -> pd.DataFrame:
    # Same table in km and km/s, laid out like a benchmark file.
    df = history_frame(history)
    out = pd.DataFrame({"time_s": df["time_s"]})
    for si, km in zip(SI_COLUMNS[1:], KM_COLUMNS[1:]):
        out[km] = df[si] / KM
    out.attrs.update(df.attrs)
    return out


def compare_to_benchmark(history: PropagationHistory, benchmark: pd.DataFrame) -> pd.DataFrame:
    """
    Compare a propagation history against benchmark data.

    Parameters
    ----------
    history : PropagationHistory
        Propagated states (SI units).
    benchmark : pd.DataFrame
        Reference states with the columns of ``load_benchmark`` (km, km/s).

    Returns
    -------
    pd.DataFrame
        Columns time_s and difference_km, the sum of absolute differences of
        the six state components, for every time present in both. Times
        missing on either side are left out.
    """
    ours = history_frame_km(history)
    merged = ours.merge(benchmark[KM_COLUMNS], on="time_s", suffixes=("", "_ref"))
    cols = KM_COLUMNS[1:]
    diff = np.abs(merged[cols].to_numpy() - merged[[c + "_ref" for c in cols]].to_numpy())
    return pd.DataFrame({
        "time_s": merged["time_s"].to_numpy(),
        "difference_km": diff.sum(axis=1),
    })


def write_histories(histories: Dict[object, PropagationHistory], outdir: Path) -> List[Path]:
    """Write one CSV per body (SI units) into outdir and return the paths."""
    outdir = Path(outdir)
    outdir.mkdir(parents=True, exist_ok=True)
    paths = []
    for body_id, history in histories.items():
        path = outdir / f"{safe_name(body_id)}.csv"
        history_frame(history).to_csv(path, index=False)
        paths.append(path)
    return paths
