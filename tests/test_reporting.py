from pathlib import Path
import math
import pandas as pd

from kepler_prop.history import PropagationHistory
from kepler_prop.reporting import (
    KM_COLUMNS,
    SI_COLUMNS,
    compare_to_benchmark,
    history_frame,
    history_frame_km,
    write_histories,
)
from kepler_prop.state import CartesianState


def _mk_history(body_id="asterix", failed=False):
    h = PropagationHistory(body_id)
    h.append(0.0, CartesianState(6.75e6, 0.0, 0.0, 0.0, 8000.0, 0.0))
    h.append(60.0, CartesianState(6.74e6, 4.8e5, 0.0, -570.0, 7990.0, 0.0))
    if failed:
        h.mark_failed(ArithmeticError("no convergence"))
    else:
        h.mark_complete()
    return h


def test_history_frame_units():
    df = history_frame(_mk_history())
    assert list(df.columns) == SI_COLUMNS
    assert df.loc[0, "x_m"] == 6.75e6
    assert df.attrs["failed"] is False

    km = history_frame_km(_mk_history())
    assert list(km.columns) == KM_COLUMNS
    assert km.loc[0, "x_km"] == 6750.0
    assert km.loc[1, "vy_kms"] == 7.99


def test_failed_history_frame_carries_error():
    df = history_frame(_mk_history(failed=True))
    assert df.attrs["failed"] is True
    assert "no convergence" in df.attrs["error"]
    assert len(df) == 2


def test_compare_to_benchmark():
    bench = history_frame_km(_mk_history()).copy()
    bench.loc[1, "x_km"] += 0.5
    bench.loc[1, "vz_kms"] -= 0.25
    extra = pd.DataFrame([[120.0, 0, 0, 0, 0, 0, 0]], columns=KM_COLUMNS)
    bench = pd.concat([bench, extra], ignore_index=True)

    diff = compare_to_benchmark(_mk_history(), bench)
    assert diff["time_s"].tolist() == [0.0, 60.0]
    assert diff.loc[0, "difference_km"] == 0.0
    assert math.isclose(diff.loc[1, "difference_km"], 0.75)


def test_write_histories(tmp_path: Path):
    histories = {"asterix": _mk_history(), "sat 2/b": _mk_history("sat 2/b", failed=True)}
    paths = write_histories(histories, tmp_path / "out")
    assert [p.name for p in paths] == ["asterix.csv", "sat_2_b.csv"]
    back = pd.read_csv(paths[0])
    assert list(back.columns) == SI_COLUMNS
    assert len(back) == 2
