"""
Smoke tests for the command-line interface.

Covers:
- Top-level commands (--help, --version).
- Subcommand availability and usage messages.
- Argument validation (e.g. required inputs, time window order).
- End-to-end propagate and compare runs.
"""

import sys
import subprocess
from pathlib import Path

import pandas as pd

PY = sys.executable
ASTERIX = ["--body", "asterix", "6750", "0", "0", "0", "8.0595973215", "0"]


def run_cli(args, cwd: Path = Path(".")):
    """Run `python -m kepler_prop <args>` and return (code, stdout, stderr)."""
    proc = subprocess.run(
        [PY, "-m", "kepler_prop", *args],
        cwd=str(cwd),
        capture_output=True,
        text=True,
    )
    return proc.returncode, proc.stdout, proc.stderr


def test_cli_version():
    code, out, err = run_cli(["--version"])
    assert code == 0
    combined = out + err
    assert "kepler_prop" in combined
    assert any(ch.isdigit() for ch in combined)


def test_cli_help_top_level():
    code, out, err = run_cli(["--help"])
    assert code == 0
    combined = out + err
    assert "propagate" in combined
    assert "compare" in combined
    assert "Analytic two-body (Keplerian) orbit propagator" in combined


def test_propagate_requires_args():
    code, out, err = run_cli(["propagate"])
    assert code != 0
    combined = out + err
    assert "usage:" in combined.lower()
    assert "--body" in combined


def test_time_window_validation(tmp_path: Path):
    code, out, err = run_cli(["propagate", *ASTERIX, "--start", "3600", "--end", "60",
                              "--out", str(tmp_path)])
    assert code != 0
    combined = out + err
    assert "must be after" in combined.lower() or "invalid window" in combined.lower()


def test_unknown_central_body(tmp_path: Path):
    code, out, err = run_cli(["propagate", *ASTERIX, "--central-body", "vulcan", "--out", str(tmp_path)])
    assert code != 0
    assert "vulcan" in out + err


def test_propagate_writes_csv_and_plots(tmp_path: Path):
    code, out, err = run_cli(["propagate", *ASTERIX,
                              "--body", "obelix", "7000", "0", "0", "0", "7.6", "1.0",
                              "--end", "7200", "--step", "600", "--workers", "2",
                              "--out", str(tmp_path), "--plot"])
    assert code == 0, err
    df = pd.read_csv(tmp_path / "asterix.csv")
    assert len(df) == 13
    assert df.loc[0, "x_m"] == 6.75e6
    assert (tmp_path / "obelix.csv").exists()
    assert (tmp_path / "orbits.html").exists()
    assert (tmp_path / "radius.html").exists()


def test_compare_against_own_output(tmp_path: Path):
    code, _, err = run_cli(["propagate", *ASTERIX, "--out", str(tmp_path)])
    assert code == 0, err

    # Re-write the SI output as a km benchmark file
    df = pd.read_csv(tmp_path / "asterix.csv")
    bench = pd.DataFrame({"t": df["time_s"]})
    for si in ("x_m", "y_m", "z_m", "vx_ms", "vy_ms", "vz_ms"):
        bench[si] = df[si] / 1000.0
    good = tmp_path / "bench.dat"
    bench.to_csv(good, sep=" ", header=False, index=False)

    code, out, err = run_cli(["compare", *ASTERIX, "--benchmark", str(good)])
    assert code == 0, err
    assert "Compared 25 sample(s)" in out

    bench.loc[3, "x_m"] += 1.0
    bad = tmp_path / "bad.dat"
    bench.to_csv(bad, sep=" ", header=False, index=False)
    code, out, err = run_cli(["compare", *ASTERIX, "--benchmark", str(bad)])
    assert code != 0
    assert "exceeds threshold" in out + err
