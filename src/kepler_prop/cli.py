import argparse
import logging
from argparse import ArgumentDefaultsHelpFormatter
from pathlib import Path

from . import get_version
from .bodies import CentralBody, predefined_body
from .config import Defaults, PropagationConfig
from .errors import ConfigurationError
from .propagate import PropagationEngine
from .state import CartesianState, km_to_m


def _parse_bodies_or_die(body_args):
    """
    Turn repeated `--body NAME X Y Z VX VY VZ` values (km, km/s) into (name, SI state) pairs.
    """
    out = []
    for args in body_args:
        name, *values = args
        try:
            state_km = CartesianState(*(float(v) for v in values))
        except ValueError as e:
            raise SystemExit(f"Invalid state for body {name!r}: {e}")
        out.append((name, km_to_m(state_km)))
    return out


def _central_body_or_die(args) -> CentralBody:
    try:
        if args.mu is not None:
            return CentralBody("custom", args.mu)
        return predefined_body(args.central_body)
    except ConfigurationError as e:
        raise SystemExit(str(e))


def _build_engine(args) -> PropagationEngine:
    config = PropagationConfig(
        interval_start=args.start,
        interval_end=args.end,
        fixed_output_interval=args.step,
        tolerance=args.tolerance,
        max_iterations=args.max_iterations,
    )
    try:
        engine = PropagationEngine(config)
    except ConfigurationError as e:
        raise SystemExit(f"Invalid propagation settings: {e}")

    central = _central_body_or_die(args)
    for name, state in _parse_bodies_or_die(args.body):
        engine.add_body(name)
        engine.set_central_body(name, central)
        try:
            engine.set_initial_state(name, state)
        except ConfigurationError as e:
            raise SystemExit(str(e))
    return engine


def _report_failures(histories) -> int:
    n = 0
    for body_id, history in histories.items():
        if history.failed:
            n += 1
            print(f"Propagation of {body_id} failed after {len(history)} sample(s): {history.error}")
    return n


def cmd_propagate(args):
    from .reporting import write_histories

    engine = _build_engine(args)
    histories = engine.propagate(max_workers=args.workers)
    _report_failures(histories)

    paths = write_histories(histories, Path(args.out))
    print(f"Wrote {len(paths)} CSV file(s) to {args.out}")

    if args.plot:
        from .plots import orbit_3d_html, radius_time_html
        p1 = orbit_3d_html(histories, Path(args.out))
        p2 = radius_time_html(histories, Path(args.out))
        print(f"Plots written: {p1}, {p2}")


def cmd_compare(args):
    from .benchmark_io import load_benchmark
    from .reporting import compare_to_benchmark

    if len(args.body) != 1:
        raise SystemExit("compare takes exactly one --body")
    benchmark = load_benchmark(args.benchmark, time_step=args.step if args.rekey else None)

    engine = _build_engine(args)
    histories = engine.propagate()
    if _report_failures(histories):
        raise SystemExit(1)

    (history,) = histories.values()
    diff = compare_to_benchmark(history, benchmark)
    if diff.empty:
        raise SystemExit("No common sample times between propagation and benchmark.")
    worst = diff.loc[diff["difference_km"].idxmax()]
    print(f"Compared {len(diff)} sample(s); max difference {worst['difference_km']:.3e} km "
          f"at t = {worst['time_s']:g} s")
    if worst["difference_km"] > args.threshold_km:
        raise SystemExit(f"Difference exceeds threshold of {args.threshold_km:g} km.")


def _add_propagation_args(p):
    p.add_argument("--body", nargs=7, action="append", required=True,
                   metavar=("NAME", "X", "Y", "Z", "VX", "VY", "VZ"),
                   help="Body id and initial state in km and km/s (repeatable)")
    p.add_argument("--central-body", default="earth", help="Predefined central body (earth, moon, mars, sun)")
    p.add_argument("--mu", type=float, default=None, help="Gravitational parameter in m^3/s^2 (overrides --central-body)")
    p.add_argument("--start", type=float, default=Defaults.start_s, help="Interval start, seconds after epoch")
    p.add_argument("--end", type=float, default=Defaults.end_s, help="Interval end, seconds after epoch")
    p.add_argument("--step", type=float, default=Defaults.step_s, help="Fixed output interval in seconds")
    p.add_argument("--tolerance", type=float, default=Defaults.tolerance, help="Kepler solver tolerance (rad)")
    p.add_argument("--max-iterations", type=int, default=Defaults.max_iterations, help="Kepler solver iteration cap")


def main(argv=None):
    examples = """Examples:
  # Propagate a LEO satellite for one day and write per-body CSV states
  kepler_prop propagate --body asterix 6750 0 0 0 8.0595973215 0 --out artifacts/prop

  # Same, with HTML plots
  kepler_prop propagate --body asterix 6750 0 0 0 8.0595973215 0 --out artifacts/prop --plot

  # Check the propagation against a benchmark file (km, km/s)
  kepler_prop compare --body asterix 6750 0 0 0 8.0595973215 0 --benchmark data/twoBodyKeplerData.dat
"""
    parser = argparse.ArgumentParser(
        prog="kepler_prop",
        description="Analytic two-body (Keplerian) orbit propagator",
        epilog=examples,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    sub = parser.add_subparsers(dest="cmd", metavar="{propagate,compare}")

    parser.add_argument("--version", action="store_true", help="Show installed version and exit")
    parser.add_argument("-v", "--verbose", action="count", default=0, help="Log progress (-vv for debug)")

    # propagate
    p = sub.add_parser("propagate", help="Propagate bodies and write per-body CSV states", formatter_class=ArgumentDefaultsHelpFormatter)
    _add_propagation_args(p)
    p.add_argument("--workers", type=int, default=None, help="Propagate bodies on this many threads")
    p.add_argument("--out", required=True, help="Output directory")
    p.add_argument("--plot", action="store_true", help="Also write 3D orbit and radius HTML plots")
    p.set_defaults(func=cmd_propagate)

    # compare
    c = sub.add_parser("compare", help="Propagate one body and compare against benchmark data", formatter_class=ArgumentDefaultsHelpFormatter)
    _add_propagation_args(c)
    c.add_argument("--benchmark", required=True, help="Benchmark file: t x y z vx vy vz per line (km, km/s)")
    c.add_argument("--rekey", action="store_true", help="Key benchmark rows by row index * step instead of their time column")
    c.add_argument("--threshold-km", type=float, default=1e-6, help="Maximum accepted summed difference (km)")
    c.set_defaults(func=cmd_compare)

    args = parser.parse_args(argv)

    if args.version:
        print(f"kepler_prop {get_version()}")
        return

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG if args.verbose > 1 else logging.INFO,
                            format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    # Validate the interval early for a friendlier error than the engine's
    if getattr(args, "start", None) is not None and getattr(args, "end", None) is not None:
        if args.end <= args.start:
            raise SystemExit("Invalid window: --end must be after --start.")

    if hasattr(args, "func"):
        args.func(args)
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
