"""
Kepler's equation and anomaly relations.

Each orbit regime gets its own motion type carrying only the equations that
are valid for it:

- EllipticMotion:   M = E - e sin(E)
- HyperbolicMotion: M = e sinh(H) - H

A parabolic orbit has neither an eccentric nor a hyperbolic anomaly. It would
need Barker's equation, which is not implemented, so ``motion_for`` rejects
it with DegenerateOrbitError instead of letting the elliptic iteration run
outside its domain.
"""
import enum
import math
from dataclasses import dataclass
from typing import Callable, ClassVar, NamedTuple, Tuple, Union

from .config import is_positive_count
from .elements import PARABOLIC_TOLERANCE, wrap_angle
from .errors import ConfigurationError, ConvergenceError, DegenerateOrbitError
from .state import KeplerianElements

# Above this eccentricity E0 = M converges slowly (or oscillates) near periapsis.
HIGH_ECCENTRICITY = 0.8


class NewtonRaphson:
    """
    Bounded Newton-Raphson root finder.

    Iterates x_{n+1} = x_n - f(x_n) / f'(x_n) until |x_{n+1} - x_n| < tolerance.
    The iteration cap bounds every solve; there is no other stopping rule.
    """

    def __init__(self, tolerance: float, max_iterations: int):
        if not (math.isfinite(tolerance) and tolerance > 0.0):
            raise ConfigurationError(f"solver tolerance must be positive (got {tolerance})")
        if not is_positive_count(max_iterations):
            raise ConfigurationError(
                f"max iterations must be a positive integer (got {max_iterations})"
            )
        self.tolerance = float(tolerance)
        self.max_iterations = int(max_iterations)

    def __repr__(self) -> str:
        return f"NewtonRaphson(tolerance={self.tolerance!r}, max_iterations={self.max_iterations!r})"

    def solve(
        self,
        function: Callable[[float], float],
        derivative: Callable[[float], float],
        initial_guess: float,
    ) -> Tuple[float, int]:
        """
        Find a root of ``function`` starting from ``initial_guess``.

        Returns
        -------
        (root, iterations)

        Raises
        ------
        ConvergenceError
            If the cap is reached without meeting the tolerance, or the
            iteration hits a zero derivative or overflows.
        """
        x = float(initial_guess)

        # Newton step; a flat or overflowing function ends the solve
        for iteration in range(1, self.max_iterations + 1):
            try:
                slope = derivative(x)
                x_next = x - function(x) / slope
            except (ZeroDivisionError, OverflowError) as exc:
                raise ConvergenceError(
                    f"Newton-Raphson broke down at iterate {x!r}: {exc}", x, iteration
                ) from exc
            # NaN or inf iterates never recover
            if not math.isfinite(x_next):
                raise ConvergenceError(
                    f"Newton-Raphson diverged from iterate {x!r}", x, iteration
                )
            if abs(x_next - x) < self.tolerance:
                return x_next, iteration
            x = x_next

        # Cap reached; the last iterate travels with the error
        raise ConvergenceError(
            f"Newton-Raphson did not converge to {self.tolerance:g} "
            f"within {self.max_iterations} iterations",
            x,
            self.max_iterations,
        )


class KeplerSolution(NamedTuple):
    anomaly: float
    iterations: int


class OrbitRegime(enum.Enum):
    ELLIPTIC = "elliptic"
    PARABOLIC = "parabolic"
    HYPERBOLIC = "hyperbolic"


def classify(eccentricity: float) -> OrbitRegime:
    if not (math.isfinite(eccentricity) and eccentricity >= 0.0):
        raise ValueError(f"eccentricity must be finite and >= 0 (got {eccentricity})")
    if abs(eccentricity - 1.0) < PARABOLIC_TOLERANCE:
        return OrbitRegime.PARABOLIC
    return OrbitRegime.ELLIPTIC if eccentricity < 1.0 else OrbitRegime.HYPERBOLIC


# ---------- anomaly relations ----------

def eccentric_from_true(true_anomaly: float, eccentricity: float) -> float:
    e = eccentricity
    half = 0.5 * true_anomaly
    return wrap_angle(2.0 * math.atan2(math.sqrt(1.0 - e) * math.sin(half),
                                       math.sqrt(1.0 + e) * math.cos(half)))


def true_from_eccentric(eccentric_anomaly: float, eccentricity: float) -> float:
    # tan(nu/2) = sqrt((1+e)/(1-e)) tan(E/2), in atan2 form to keep the quadrant
    e = eccentricity
    half = 0.5 * eccentric_anomaly
    return wrap_angle(2.0 * math.atan2(math.sqrt(1.0 + e) * math.sin(half),
                                       math.sqrt(1.0 - e) * math.cos(half)))


def mean_from_eccentric(eccentric_anomaly: float, eccentricity: float) -> float:
    return eccentric_anomaly - eccentricity * math.sin(eccentric_anomaly)


def hyperbolic_from_true(true_anomaly: float, eccentricity: float) -> float:
    e = eccentricity
    # signed anomaly in (-pi, pi]; only |nu| below the asymptote angle is reachable
    nu = math.atan2(math.sin(true_anomaly), math.cos(true_anomaly))
    if 1.0 + e * math.cos(nu) <= 0.0:
        raise DegenerateOrbitError(
            f"true anomaly {true_anomaly} rad lies beyond the asymptotes for e = {e}"
        )
    return 2.0 * math.atanh(math.sqrt((e - 1.0) / (e + 1.0)) * math.tan(0.5 * nu))


def true_from_hyperbolic(hyperbolic_anomaly: float, eccentricity: float) -> float:
    e = eccentricity
    return wrap_angle(2.0 * math.atan(math.sqrt((e + 1.0) / (e - 1.0)) * math.tanh(0.5 * hyperbolic_anomaly)))


def mean_from_hyperbolic(hyperbolic_anomaly: float, eccentricity: float) -> float:
    return eccentricity * math.sinh(hyperbolic_anomaly) - hyperbolic_anomaly


# ---------- Kepler's equation ----------

def solve_kepler(mean_anomaly: float, eccentricity: float, solver: NewtonRaphson) -> KeplerSolution:
    """
    Solve M = E - e sin(E) for the eccentric anomaly E of an elliptic orbit.

    M is wrapped to [0, 2*pi) first. The initial guess is E0 = M for
    e < 0.8 and E0 = pi above; with e = 0 the first step already lands on
    E = M, so the solve takes exactly one iteration.
    """
    if classify(eccentricity) is not OrbitRegime.ELLIPTIC:
        raise ValueError(f"the elliptic Kepler equation needs 0 <= e < 1 (got e = {eccentricity})")
    e = eccentricity
    m = wrap_angle(mean_anomaly)

    # Start from M, or from pi where the curve is too steep near periapsis
    guess = m if e < HIGH_ECCENTRICITY else math.pi
    E, iterations = solver.solve(
        lambda E: E - e * math.sin(E) - m,
        lambda E: 1.0 - e * math.cos(E),
        guess,
    )
    return KeplerSolution(E, iterations)


def solve_hyperbolic_kepler(mean_anomaly: float, eccentricity: float, solver: NewtonRaphson) -> KeplerSolution:
    """Solve M = e sinh(H) - H for the hyperbolic anomaly H (e > 1)."""
    if classify(eccentricity) is not OrbitRegime.HYPERBOLIC:
        raise ValueError(f"the hyperbolic Kepler equation needs e > 1 (got e = {eccentricity})")
    e = eccentricity
    m = float(mean_anomaly)

    # Logarithmic guess: sinh grows exponentially, so H ~ ln(2|M|/e) for large |M|
    guess = math.copysign(math.log(2.0 * abs(m) / e + 1.8), m)
    H, iterations = solver.solve(
        lambda H: e * math.sinh(H) - H - m,
        lambda H: e * math.cosh(H) - 1.0,
        guess,
    )
    return KeplerSolution(H, iterations)


# ---------- regime variants ----------

@dataclass(frozen=True)
class EllipticMotion:
    eccentricity: float
    regime: ClassVar[OrbitRegime] = OrbitRegime.ELLIPTIC

    def mean_motion(self, semi_major_axis: float, mu: float) -> float:
        return math.sqrt(mu / semi_major_axis ** 3)

    def mean_anomaly(self, true_anomaly: float) -> float:
        E = eccentric_from_true(true_anomaly, self.eccentricity)
        return mean_from_eccentric(E, self.eccentricity)

    def true_anomaly(self, mean_anomaly: float, solver: NewtonRaphson) -> KeplerSolution:
        E, iterations = solve_kepler(mean_anomaly, self.eccentricity, solver)
        return KeplerSolution(true_from_eccentric(E, self.eccentricity), iterations)


@dataclass(frozen=True)
class HyperbolicMotion:
    eccentricity: float
    regime: ClassVar[OrbitRegime] = OrbitRegime.HYPERBOLIC

    def mean_motion(self, semi_major_axis: float, mu: float) -> float:
        # semi-major axis is negative on a hyperbola
        return math.sqrt(mu / (-semi_major_axis) ** 3)

    def mean_anomaly(self, true_anomaly: float) -> float:
        H = hyperbolic_from_true(true_anomaly, self.eccentricity)
        return mean_from_hyperbolic(H, self.eccentricity)

    def true_anomaly(self, mean_anomaly: float, solver: NewtonRaphson) -> KeplerSolution:
        H, iterations = solve_hyperbolic_kepler(mean_anomaly, self.eccentricity, solver)
        return KeplerSolution(true_from_hyperbolic(H, self.eccentricity), iterations)


Motion = Union[EllipticMotion, HyperbolicMotion]


def motion_for(elements: KeplerianElements) -> Motion:
    """Pick the anomaly equations matching the orbit's eccentricity."""
    regime = classify(elements.eccentricity)
    if regime is OrbitRegime.ELLIPTIC:
        return EllipticMotion(elements.eccentricity)
    if regime is OrbitRegime.HYPERBOLIC:
        return HyperbolicMotion(elements.eccentricity)
    raise DegenerateOrbitError(
        f"parabolic orbit (e = {elements.eccentricity!r}) has no eccentric anomaly "
        "and Barker's equation is not supported"
    )
