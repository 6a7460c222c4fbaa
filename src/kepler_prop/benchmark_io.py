import logging
from pathlib import Path
from typing import Optional
import pandas as pd

logger = logging.getLogger(__name__)

BENCHMARK_COLUMNS = ["time_s", "x_km", "y_km", "z_km", "vx_kms", "vy_kms", "vz_kms"]


def load_benchmark(path_or_str: str, time_step: Optional[float] = None) -> pd.DataFrame:
    """
    Load a two-body benchmark trajectory from a whitespace-separated text file.

    Each data line holds seven numbers: elapsed time followed by the
    Cartesian state in km and km/s. Blank lines and lines starting with '#'
    are ignored; lines that do not parse as seven numbers are skipped.

    Parameters
    ----------
    path_or_str : str or Path
        Benchmark file.
    time_step : float, optional
        If given, rows are re-keyed as row_index * time_step instead of using
        the time column of the file (benchmark files written on a fixed
        output interval are keyed this way).

    Returns
    -------
    pd.DataFrame
        Columns: time_s, x_km, y_km, z_km, vx_kms, vy_kms, vz_kms,
        sorted by time_s.
    """

    # Ensure the file exists at the given path
    p = Path(path_or_str)
    if not p.exists():
        raise FileNotFoundError(f"benchmark file not found: {p}")

    recs = []
    for lineno, line in enumerate(p.read_text().splitlines(), start=1):
        text = line.strip()
        if not text or text.startswith("#"):
            continue
        fields = text.split()
        if len(fields) != 7:
            logger.debug("%s:%d: expected 7 columns, got %d; skipped", p, lineno, len(fields))
            continue
        try:
            recs.append([float(f) for f in fields])
        except ValueError:
            logger.debug("%s:%d: non-numeric field; skipped", p, lineno)

    # Guard against empty result (e.g., file malformed or only blanks)
    if not recs:
        raise ValueError(f"no valid benchmark rows in {p}")

    df = pd.DataFrame.from_records(recs, columns=BENCHMARK_COLUMNS)
    if time_step is not None:
        df["time_s"] = df.index.to_numpy(dtype=float) * float(time_step)

    logger.info("Loaded %d benchmark row(s) from %s", len(df), p)
    return df.sort_values("time_s").reset_index(drop=True)
