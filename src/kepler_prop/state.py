from dataclasses import dataclass
from typing import Sequence
import numpy as np


@dataclass(frozen=True)
class CartesianState:
    """
    Position and velocity of a body relative to its central body.

    Units are SI: x, y, z in meters and vx, vy, vz in meters per second.
    Instances are immutable values, so a history entry can never be changed
    through another reference to the same state.
    """

    x: float
    y: float
    z: float
    vx: float
    vy: float
    vz: float

    def __post_init__(self):
        # Normalise numpy scalars and ints to plain floats.
        for name in ("x", "y", "z", "vx", "vy", "vz"):
            object.__setattr__(self, name, float(getattr(self, name)))

    @classmethod
    def from_vectors(cls, position: Sequence[float], velocity: Sequence[float]) -> "CartesianState":
        r = np.asarray(position, dtype=float)
        v = np.asarray(velocity, dtype=float)
        if r.shape != (3,) or v.shape != (3,):
            raise ValueError("position and velocity must both have 3 components")
        return cls(r[0], r[1], r[2], v[0], v[1], v[2])

    @classmethod
    def from_array(cls, values: Sequence[float]) -> "CartesianState":
        a = np.asarray(values, dtype=float)
        if a.shape != (6,):
            raise ValueError(f"a Cartesian state has 6 components, got shape {a.shape}")
        return cls(*a)

    @property
    def position(self) -> np.ndarray:
        return np.array([self.x, self.y, self.z])

    @property
    def velocity(self) -> np.ndarray:
        return np.array([self.vx, self.vy, self.vz])

    def as_array(self) -> np.ndarray:
        return np.array([self.x, self.y, self.z, self.vx, self.vy, self.vz])

    def is_finite(self) -> bool:
        return bool(np.all(np.isfinite(self.as_array())))


@dataclass(frozen=True)
class KeplerianElements:
    """
    Classical orbital elements at one epoch.

    Angles are in radians, wrapped to [0, 2*pi). ``true_anomaly`` is the
    anomaly these elements carry; mean and eccentric anomalies are derived
    from it in ``kepler_prop.kepler``.

    For circular orbits ``arg_periapsis`` is 0 and the anomaly is measured
    from the ascending node; for equatorial orbits ``raan`` is 0 and the x axis
    stands in for the node. For a parabolic orbit ``semi_major_axis`` is
    ``inf`` and ``semi_latus_rectum`` alone fixes the size.
    """

    semi_major_axis: float
    eccentricity: float
    inclination: float
    raan: float
    arg_periapsis: float
    true_anomaly: float
    semi_latus_rectum: float


KM = 1000.0


def km_to_m(state: CartesianState) -> CartesianState:
    # km, km/s -> m, m/s
    return CartesianState.from_array(state.as_array() * KM)


def m_to_km(state: CartesianState) -> CartesianState:
    # m, m/s -> km, km/s
    return CartesianState.from_array(state.as_array() / KM)
