import math
from dataclasses import dataclass
from typing import Dict, Hashable, Iterator, List, Optional

from .errors import ConfigurationError
from .history import PropagationHistory
from .state import CartesianState

BodyId = Hashable


@dataclass(frozen=True)
class CentralBody:
    """Attracting body of a two-body problem: a name and its gravitational parameter mu [m^3/s^2]."""

    name: str
    gravitational_parameter: float

    def __post_init__(self):
        mu = self.gravitational_parameter
        if not (isinstance(mu, (int, float)) and math.isfinite(mu) and mu > 0):
            raise ConfigurationError(
                f"gravitational parameter of {self.name!r} must be positive (got {mu!r})"
            )
        object.__setattr__(self, "gravitational_parameter", float(mu))

    @property
    def mu(self) -> float:
        return self.gravitational_parameter


EARTH = CentralBody("Earth", 3.986004418e14)
MOON = CentralBody("Moon", 4.9048695e12)
MARS = CentralBody("Mars", 4.282837e13)
SUN = CentralBody("Sun", 1.32712440018e20)

_PREDEFINED = {b.name.lower(): b for b in (EARTH, MOON, MARS, SUN)}


def predefined_body(name: str) -> CentralBody:
    """Look up one of the predefined central bodies by (case-insensitive) name."""
    try:
        return _PREDEFINED[name.strip().lower()]
    except KeyError:
        known = ", ".join(sorted(_PREDEFINED))
        raise ConfigurationError(f"unknown central body {name!r} (known: {known})") from None


@dataclass
class TrackedBody:
    # One entry of the registry; the engine replaces `history` on every run.
    body_id: BodyId
    central_body: Optional[CentralBody] = None
    initial_state: Optional[CartesianState] = None
    epoch: float = 0.0
    history: Optional[PropagationHistory] = None

    def missing(self) -> List[str]:
        out = []
        if self.central_body is None:
            out.append("central body")
        if self.initial_state is None:
            out.append("initial state")
        return out


class BodyRegistry:
    """
    Bodies to propagate, keyed by caller-chosen ids.

    The registry owns the TrackedBody records; everything else refers to a
    body by its id. Insertion order is kept and is the order of propagation.
    """

    def __init__(self):
        self._bodies: Dict[BodyId, TrackedBody] = {}

    def __len__(self) -> int:
        return len(self._bodies)

    def __contains__(self, body_id: BodyId) -> bool:
        return body_id in self._bodies

    def __iter__(self) -> Iterator[TrackedBody]:
        return iter(self._bodies.values())

    def ids(self) -> List[BodyId]:
        return list(self._bodies)

    def add_body(self, body_id: BodyId) -> TrackedBody:
        # Adding an id twice keeps the existing record.
        if body_id not in self._bodies:
            self._bodies[body_id] = TrackedBody(body_id)
        return self._bodies[body_id]

    def get(self, body_id: BodyId) -> TrackedBody:
        try:
            return self._bodies[body_id]
        except KeyError:
            raise ConfigurationError(f"body {body_id!r} has not been added") from None

    def set_central_body(self, body_id: BodyId, central_body: CentralBody) -> None:
        if not isinstance(central_body, CentralBody):
            raise ConfigurationError(f"central body of {body_id!r} must be a CentralBody")
        self.get(body_id).central_body = central_body

    def set_initial_state(self, body_id: BodyId, state: CartesianState) -> None:
        if not isinstance(state, CartesianState):
            raise ConfigurationError(f"initial state of {body_id!r} must be a CartesianState")
        if not state.is_finite():
            raise ConfigurationError(f"initial state of {body_id!r} has non-finite components")
        self.get(body_id).initial_state = state

    def validate(self) -> None:
        """Raise ConfigurationError naming the first body without a central body or initial state."""
        for body in self._bodies.values():
            missing = body.missing()
            if missing:
                raise ConfigurationError(
                    f"body {body.body_id!r} has no {' and no '.join(missing)}"
                )
