"""
Tests for the Kepler equation solvers.

Covers:
- Newton-Raphson convergence, iteration counts and the iteration cap.
- Elliptic and hyperbolic Kepler equations, including the branch guards.
- Anomaly relations and the regime variants picked by eccentricity.
"""

import math
import pytest

from kepler_prop.elements import keplerian_elements
from kepler_prop.errors import ConfigurationError, ConvergenceError, DegenerateOrbitError
from kepler_prop.kepler import (
    EllipticMotion,
    HyperbolicMotion,
    NewtonRaphson,
    OrbitRegime,
    classify,
    eccentric_from_true,
    hyperbolic_from_true,
    mean_from_eccentric,
    motion_for,
    solve_hyperbolic_kepler,
    solve_kepler,
    true_from_eccentric,
    true_from_hyperbolic,
)
from kepler_prop.state import KeplerianElements

SOLVER = NewtonRaphson(tolerance=1e-12, max_iterations=50)


def test_circular_converges_in_one_iteration():
    for m in (0.0, 0.3, 2.0, 5.9):
        E, iterations = solve_kepler(m, 0.0, SOLVER)
        assert iterations == 1
        assert E == m


@pytest.mark.parametrize("m,e", [(1.0, 0.5), (0.1, 0.95), (3.0, 0.1), (6.0, 0.85), (0.0, 0.7)])
def test_elliptic_solution_satisfies_kepler_equation(m, e):
    E, iterations = solve_kepler(m, e, SOLVER)
    assert abs(E - e * math.sin(E) - m) < 1e-12
    assert 1 <= iterations <= 50


def test_mean_anomaly_is_wrapped():
    E1, _ = solve_kepler(1.0, 0.3, SOLVER)
    E2, _ = solve_kepler(1.0 + 4.0 * math.pi, 0.3, SOLVER)
    assert E1 == pytest.approx(E2, abs=1e-12)


def test_iteration_cap_raises_convergence_error():
    solver = NewtonRaphson(tolerance=1e-12, max_iterations=1)
    with pytest.raises(ConvergenceError) as info:
        solve_kepler(0.5, 0.9, solver)
    assert info.value.iterations == 1
    assert math.isfinite(info.value.estimate)


def test_elliptic_solver_refuses_open_orbits():
    with pytest.raises(ValueError):
        solve_kepler(1.0, 1.0, SOLVER)
    with pytest.raises(ValueError):
        solve_kepler(1.0, 1.5, SOLVER)


def test_hyperbolic_solution():
    for m in (-20.0, -0.5, 0.0, 0.5, 5.0, 100.0):
        H, _ = solve_hyperbolic_kepler(m, 2.0, SOLVER)
        assert abs(2.0 * math.sinh(H) - H - m) < 1e-9 * max(1.0, abs(m))


def test_hyperbolic_solver_refuses_closed_orbits():
    with pytest.raises(ValueError):
        solve_hyperbolic_kepler(1.0, 0.5, SOLVER)
    with pytest.raises(ValueError):
        solve_hyperbolic_kepler(1.0, 1.0, SOLVER)


def test_newton_raphson_settings_validated():
    with pytest.raises(ConfigurationError):
        NewtonRaphson(tolerance=0.0, max_iterations=10)
    with pytest.raises(ConfigurationError):
        NewtonRaphson(tolerance=1e-12, max_iterations=0)
    for cap in (math.inf, math.nan, 2.5):
        with pytest.raises(ConfigurationError):
            NewtonRaphson(tolerance=1e-12, max_iterations=cap)


def test_newton_raphson_zero_derivative():
    with pytest.raises(ConvergenceError):
        SOLVER.solve(lambda x: x * x + 1.0, lambda x: 0.0, 1.0)


def test_anomaly_relations_are_inverse():
    e = 0.3
    for nu in (0.0, 0.7, 2.5, 3.5, 6.0):
        assert true_from_eccentric(eccentric_from_true(nu, e), e) == pytest.approx(nu, abs=1e-12)

    e = 1.8
    for nu in (0.0, 0.4, 1.5, 2.0 * math.pi - 1.5):
        H = hyperbolic_from_true(nu, e)
        assert true_from_hyperbolic(H, e) == pytest.approx(nu, abs=1e-12)


def test_eccentric_anomaly_at_apsides():
    assert eccentric_from_true(0.0, 0.5) == 0.0
    assert eccentric_from_true(math.pi, 0.5) == pytest.approx(math.pi)
    assert mean_from_eccentric(math.pi, 0.5) == pytest.approx(math.pi)


def test_classify():
    assert classify(0.0) is OrbitRegime.ELLIPTIC
    assert classify(0.99) is OrbitRegime.ELLIPTIC
    assert classify(1.0) is OrbitRegime.PARABOLIC
    assert classify(1.0 + 1e-13) is OrbitRegime.PARABOLIC
    assert classify(1.2) is OrbitRegime.HYPERBOLIC
    with pytest.raises(ValueError):
        classify(-0.1)


def _elements(e, a, p=1.0e7):
    return KeplerianElements(a, e, 0.0, 0.0, 0.0, 0.0, p)


def test_motion_for_selects_regime():
    assert isinstance(motion_for(_elements(0.1, 7.5e6)), EllipticMotion)
    assert isinstance(motion_for(_elements(1.5, -1.0e7)), HyperbolicMotion)
    with pytest.raises(DegenerateOrbitError):
        motion_for(_elements(1.0, math.inf))


def test_motion_round_trip_through_mean_anomaly():
    mu = 3.986004418e14
    for el in (keplerian_elements(7.5e6, 0.1, 0.0, 0.0, 0.0, 1.2),
               keplerian_elements(-2.0e7, 1.4, 0.0, 0.0, 0.0, 0.9)):
        motion = motion_for(el)
        m = motion.mean_anomaly(el.true_anomaly)
        nu, _ = motion.true_anomaly(m, SOLVER)
        assert nu == pytest.approx(el.true_anomaly, abs=1e-11)
        assert motion.mean_motion(el.semi_major_axis, mu) > 0.0
