"""
Conversions between Cartesian states and Keplerian elements.

Angles are recovered with atan2 from sine/cosine pairs rather than arccos,
so ``keplerian_to_cartesian(cartesian_to_keplerian(s, mu), mu)`` reproduces
``s`` to machine precision for any non-degenerate orbit.

Degenerate orbits follow fixed conventions:

- circular (e < CIRCULAR_TOLERANCE): argument of periapsis is 0 and the
  true anomaly is replaced by the argument of latitude;
- equatorial (sin i < EQUATORIAL_TOLERANCE): RAAN is 0 and the x axis is
  used as the node line, so the argument of periapsis becomes the longitude
  of periapsis (its negative for retrograde orbits);
- circular and equatorial: both are 0 and the anomaly is the true longitude;
- rectilinear (no angular momentum): DegenerateOrbitError;
- parabolic (|e - 1| < PARABOLIC_TOLERANCE): semi-major axis is inf.
"""
import math
from typing import Optional
import numpy as np

from .errors import DegenerateOrbitError
from .state import CartesianState, KeplerianElements

CIRCULAR_TOLERANCE = 1e-11
EQUATORIAL_TOLERANCE = 1e-11
RECTILINEAR_TOLERANCE = 1e-12  # |h| / (|r| |v|), the sine of the flight path angle to radial
PARABOLIC_TOLERANCE = 1e-10

TWO_PI = 2.0 * math.pi

_X_AXIS = np.array([1.0, 0.0, 0.0])


def wrap_angle(angle: float) -> float:
    """Wrap an angle to [0, 2*pi)."""
    a = angle % TWO_PI
    # tiny negative angles round up to exactly 2*pi
    return 0.0 if a >= TWO_PI else a


def _angle_about(axis: np.ndarray, a: np.ndarray, b: np.ndarray) -> float:
    # Angle from a to b, positive counter-clockwise around the unit vector axis.
    return wrap_angle(math.atan2(float(np.dot(axis, np.cross(a, b))), float(np.dot(a, b))))


def _check_mu(mu: float) -> None:
    if not (math.isfinite(mu) and mu > 0.0):
        raise ValueError(f"gravitational parameter must be positive and finite (got {mu})")


def angular_momentum(state: CartesianState) -> np.ndarray:
    """Specific angular momentum vector r x v [m^2/s]."""
    return np.cross(state.position, state.velocity)


def specific_energy(state: CartesianState, mu: float) -> float:
    """Specific orbital energy v^2/2 - mu/r [J/kg]."""
    r = float(np.linalg.norm(state.position))
    v = float(np.linalg.norm(state.velocity))
    return 0.5 * v * v - mu / r


def keplerian_elements(
    semi_major_axis: float,
    eccentricity: float,
    inclination: float,
    raan: float,
    arg_periapsis: float,
    true_anomaly: float,
    semi_latus_rectum: Optional[float] = None,
) -> KeplerianElements:
    """
    Build elements from the classical six, filling in the semi-latus rectum.

    ``semi_latus_rectum`` is required for a parabolic orbit, where the
    semi-major axis carries no size information.
    """
    if eccentricity < 0.0:
        raise ValueError(f"eccentricity must be >= 0 (got {eccentricity})")
    if semi_latus_rectum is None:
        if abs(eccentricity - 1.0) < PARABOLIC_TOLERANCE:
            raise DegenerateOrbitError("a parabolic orbit needs its semi-latus rectum")
        semi_latus_rectum = semi_major_axis * (1.0 - eccentricity * eccentricity)
    if not semi_latus_rectum > 0.0:
        raise ValueError(
            f"semi-major axis {semi_major_axis} is inconsistent with eccentricity {eccentricity}"
        )
    return KeplerianElements(
        semi_major_axis=float(semi_major_axis),
        eccentricity=float(eccentricity),
        inclination=float(inclination),
        raan=wrap_angle(float(raan)),
        arg_periapsis=wrap_angle(float(arg_periapsis)),
        true_anomaly=wrap_angle(float(true_anomaly)),
        semi_latus_rectum=float(semi_latus_rectum),
    )


def cartesian_to_keplerian(state: CartesianState, mu: float) -> KeplerianElements:
    """
    Convert a Cartesian state to Keplerian elements.

    Parameters
    ----------
    state : CartesianState
        Position [m] and velocity [m/s] relative to the central body.
    mu : float
        Gravitational parameter of the central body [m^3/s^2].

    Returns
    -------
    KeplerianElements
        Elements at the epoch of ``state``, with the degenerate-case
        conventions described in the module docstring.

    Raises
    ------
    DegenerateOrbitError
        If the angular momentum vanishes (rectilinear motion or zero speed),
        so that no orbital plane exists.
    """
    _check_mu(mu)
    if not state.is_finite():
        raise ValueError(f"state has non-finite components: {state}")

    r_vec = state.position
    v_vec = state.velocity
    r = float(np.linalg.norm(r_vec))
    v = float(np.linalg.norm(v_vec))
    if r == 0.0:
        raise DegenerateOrbitError("position coincides with the centre of the central body")

    # Angular momentum fixes the orbital plane
    h_vec = np.cross(r_vec, v_vec)
    h = float(np.linalg.norm(h_vec))
    if v == 0.0 or h < RECTILINEAR_TOLERANCE * r * v:
        raise DegenerateOrbitError(
            "angular momentum is zero (rectilinear orbit); the orbital plane is undefined"
        )
    h_hat = h_vec / h

    # Eccentricity vector points at periapsis; p follows from h alone, so it
    # stays finite for parabolic orbits
    e_vec = np.cross(v_vec, h_vec) / mu - r_vec / r
    e = float(np.linalg.norm(e_vec))
    p = h * h / mu

    if abs(e - 1.0) < PARABOLIC_TOLERANCE:
        a = math.inf
    else:
        a = p / (1.0 - e * e)

    # Node line: z x h, or the x axis when the orbit lies in the reference plane.
    sin_i = math.hypot(h_hat[0], h_hat[1])
    if sin_i < EQUATORIAL_TOLERANCE:
        inclination = 0.0 if h_hat[2] > 0.0 else math.pi
        raan = 0.0
        node = _X_AXIS
    else:
        inclination = math.atan2(sin_i, h_hat[2])
        node = np.array([-h_hat[1], h_hat[0], 0.0]) / sin_i
        raan = wrap_angle(math.atan2(node[1], node[0]))

    # Angles measured in the orbital plane, counter-clockwise about h
    if e < CIRCULAR_TOLERANCE:
        # No periapsis: the anomaly is counted from the node
        arg_periapsis = 0.0
        true_anomaly = _angle_about(h_hat, node, r_vec)
    else:
        arg_periapsis = _angle_about(h_hat, node, e_vec)
        true_anomaly = _angle_about(h_hat, e_vec, r_vec)

    return KeplerianElements(
        semi_major_axis=a,
        eccentricity=e,
        inclination=inclination,
        raan=raan,
        arg_periapsis=arg_periapsis,
        true_anomaly=true_anomaly,
        semi_latus_rectum=p,
    )


def _perifocal_to_inertial(raan: float, inclination: float, arg_periapsis: float) -> np.ndarray:
    # 3-1-3 rotation R3(-raan) R1(-i) R3(-argp)
    cO, sO = math.cos(raan), math.sin(raan)
    ci, si = math.cos(inclination), math.sin(inclination)
    cw, sw = math.cos(arg_periapsis), math.sin(arg_periapsis)
    return np.array([
        [cO * cw - sO * sw * ci, -cO * sw - sO * cw * ci, sO * si],
        [sO * cw + cO * sw * ci, -sO * sw + cO * cw * ci, -cO * si],
        [sw * si, cw * si, ci],
    ])


def keplerian_to_cartesian(elements: KeplerianElements, mu: float) -> CartesianState:
    """
    Convert Keplerian elements back to a Cartesian state.

    Builds position and velocity in the perifocal frame from the semi-latus
    rectum, eccentricity and true anomaly, then rotates by (raan, i, argp).

    Raises
    ------
    DegenerateOrbitError
        If the true anomaly lies beyond the asymptotes of a hyperbolic or
        parabolic orbit (1 + e cos(nu) <= 0).
    """
    _check_mu(mu)
    p = elements.semi_latus_rectum
    e = elements.eccentricity
    if not p > 0.0:
        raise ValueError(f"semi-latus rectum must be positive (got {p})")

    cos_nu = math.cos(elements.true_anomaly)
    sin_nu = math.sin(elements.true_anomaly)
    denom = 1.0 + e * cos_nu
    if denom <= 0.0:
        raise DegenerateOrbitError(
            f"true anomaly {elements.true_anomaly} rad is unreachable for eccentricity {e}"
        )

    # Perifocal frame: P towards periapsis, Q 90 degrees ahead in the plane
    r = p / denom
    pos_pqw = np.array([r * cos_nu, r * sin_nu, 0.0])
    v_factor = math.sqrt(mu / p)
    vel_pqw = np.array([-v_factor * sin_nu, v_factor * (e + cos_nu), 0.0])

    rotation = _perifocal_to_inertial(elements.raan, elements.inclination, elements.arg_periapsis)
    return CartesianState.from_vectors(rotation @ pos_pqw, rotation @ vel_pqw)


def orbital_period(elements: KeplerianElements, mu: float) -> float:
    """Period of a closed orbit [s]."""
    _check_mu(mu)
    if not elements.eccentricity < 1.0 or not math.isfinite(elements.semi_major_axis):
        raise DegenerateOrbitError("only elliptic orbits have a period")
    return TWO_PI * math.sqrt(elements.semi_major_axis ** 3 / mu)
