import enum
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, replace
from typing import Dict, Optional

from .bodies import BodyId, BodyRegistry, CentralBody, TrackedBody
from .config import PropagationConfig
from .elements import cartesian_to_keplerian, keplerian_to_cartesian
from .errors import ConfigurationError, ConvergenceError, DegenerateOrbitError, OutOfRangeError
from .history import PropagationHistory
from .kepler import Motion, NewtonRaphson, motion_for
from .state import CartesianState, KeplerianElements

logger = logging.getLogger(__name__)


class EngineState(enum.Enum):
    UNCONFIGURED = "unconfigured"
    CONFIGURED = "configured"
    PROPAGATED = "propagated"


@dataclass(frozen=True)
class Trajectory:
    """
    Closed-form description of one body's orbit, fixed at its epoch.

    Built once per body and run; evaluating it at a time t only advances the
    mean anomaly and solves Kepler's equation for that instant.
    """

    initial_state: CartesianState
    epoch: float
    mu: float
    elements: KeplerianElements
    motion: Motion
    mean_anomaly_at_epoch: float
    mean_motion: float

    @classmethod
    def from_body(cls, body: TrackedBody) -> "Trajectory":
        mu = body.central_body.mu
        elements = cartesian_to_keplerian(body.initial_state, mu)
        # Raises DegenerateOrbitError for parabolic orbits.
        motion = motion_for(elements)
        return cls(
            initial_state=body.initial_state,
            epoch=body.epoch,
            mu=mu,
            elements=elements,
            motion=motion,
            mean_anomaly_at_epoch=motion.mean_anomaly(elements.true_anomaly),
            mean_motion=motion.mean_motion(elements.semi_major_axis, mu),
        )

    def state_at(self, t: float, solver: NewtonRaphson) -> CartesianState:
        if t == self.epoch:
            # The epoch sample is the initial state itself, not a round trip through the elements.
            return self.initial_state
        mean_anomaly = self.mean_anomaly_at_epoch + self.mean_motion * (t - self.epoch)
        true_anomaly, iterations = self.motion.true_anomaly(mean_anomaly, solver)
        logger.debug("t=%.3f s: M=%.12f rad, nu=%.12f rad after %d iteration(s)",
                     t, mean_anomaly, true_anomaly, iterations)
        return keplerian_to_cartesian(replace(self.elements, true_anomaly=true_anomaly), self.mu)


def propagate_body(body: TrackedBody, config: PropagationConfig, solver: NewtonRaphson) -> PropagationHistory:
    """
    Propagate one body over the sample grid of ``config``.

    Numerical failures (ConvergenceError, DegenerateOrbitError) are not
    raised: they mark the returned history FAILED, keeping the samples
    computed before the failure. Only the calling task writes the history.

    Parameters
    ----------
    body : TrackedBody
        Must have a central body and an initial state.
    config : PropagationConfig
        Interval and output step.
    solver : NewtonRaphson
        Root finder shared read-only by all bodies.

    Returns
    -------
    PropagationHistory
        Frozen history, COMPLETE or FAILED.
    """
    history = PropagationHistory(body.body_id)
    try:
        trajectory = Trajectory.from_body(body)
        for t in config.sample_times():
            history.append(t, trajectory.state_at(float(t), solver))
    except (ConvergenceError, DegenerateOrbitError) as exc:
        history.mark_failed(exc)
        logger.warning("Propagation of body %r failed after %d sample(s): %s",
                       body.body_id, len(history), exc)
        return history

    history.mark_complete()
    logger.debug("Propagated body %r: %d sample(s)", body.body_id, len(history))
    return history


class PropagationEngine:
    """
    Analytic two-body propagator for a set of independently tracked bodies.

    Lifecycle: UNCONFIGURED -> configure() -> CONFIGURED -> propagate() ->
    PROPAGATED. Changing a body after a run sends the engine back to
    CONFIGURED and drops that body's stale history.

    Example
    -------
        engine = PropagationEngine(PropagationConfig(0.0, 86400.0, 3600.0, 1e-12, 100))
        engine.add_body("asterix")
        engine.set_central_body("asterix", EARTH)
        engine.set_initial_state("asterix", state)
        histories = engine.propagate()
    """

    def __init__(self, config: Optional[PropagationConfig] = None):
        self.registry = BodyRegistry()
        self.state = EngineState.UNCONFIGURED
        self._config: Optional[PropagationConfig] = None
        self._solver: Optional[NewtonRaphson] = None
        if config is not None:
            self.configure(config)

    @property
    def config(self) -> Optional[PropagationConfig]:
        return self._config

    @property
    def solver(self) -> Optional[NewtonRaphson]:
        return self._solver

    def configure(self, config: PropagationConfig) -> None:
        """Validate and install the interval, output step and solver settings."""
        config.validate()
        self._solver = NewtonRaphson(config.tolerance, config.max_iterations)
        self._config = config
        # Histories of a previous configuration no longer match the sample grid.
        for body in self.registry:
            body.history = None
        self.state = EngineState.CONFIGURED

    # ---------- registry ----------

    def add_body(self, body_id: BodyId) -> None:
        if body_id not in self.registry:
            self.registry.add_body(body_id)
            self._invalidate()

    def set_central_body(self, body_id: BodyId, central_body: CentralBody) -> None:
        self.registry.set_central_body(body_id, central_body)
        self._invalidate(body_id)

    def set_initial_state(self, body_id: BodyId, state: CartesianState) -> None:
        self.registry.set_initial_state(body_id, state)
        self._invalidate(body_id)

    def _invalidate(self, body_id: Optional[BodyId] = None) -> None:
        if body_id is not None:
            self.registry.get(body_id).history = None
        if self.state is EngineState.PROPAGATED:
            self.state = EngineState.CONFIGURED

    # ---------- propagation ----------

    def propagate(self, max_workers: Optional[int] = None) -> Dict[BodyId, PropagationHistory]:
        """
        Propagate every registered body over the configured interval.

        Parameters
        ----------
        max_workers : int, optional
            When > 1, bodies are propagated concurrently on a thread pool of
            this size. Each task writes only its own body's history.

        Returns
        -------
        Dict[BodyId, PropagationHistory]
            One history per body in registration order. Failed bodies have
            ``history.failed`` set and ``history.error`` holding the cause.

        Raises
        ------
        ConfigurationError
            If the engine is not configured or a body lacks a central body or
            initial state. Nothing is propagated in that case.
        """
        if self.state is EngineState.UNCONFIGURED:
            raise ConfigurationError(
                "propagate() needs an interval, an output interval and solver settings; call configure() first"
            )
        self.registry.validate()

        config, solver = self._config, self._solver
        bodies = list(self.registry)
        logger.info("Propagating %d body(ies) over [%g, %g] s every %g s",
                    len(bodies), config.interval_start, config.interval_end, config.fixed_output_interval)

        if max_workers is not None and max_workers > 1 and len(bodies) > 1:
            with ThreadPoolExecutor(max_workers=max_workers) as pool:
                histories = list(pool.map(lambda b: propagate_body(b, config, solver), bodies))
        else:
            histories = [propagate_body(b, config, solver) for b in bodies]

        for body, history in zip(bodies, histories):
            body.history = history
        self.state = EngineState.PROPAGATED

        n_failed = sum(1 for h in histories if h.failed)
        logger.info("Propagation finished: %d complete, %d failed", len(histories) - n_failed, n_failed)
        return {body.body_id: body.history for body in bodies}

    # ---------- queries ----------

    def get_history(self, body_id: BodyId, include_failed: bool = False) -> PropagationHistory:
        """
        Return the propagation history of a body.

        Raises
        ------
        OutOfRangeError
            If the body is unknown or has not been propagated, or if its
            propagation failed and ``include_failed`` is False.
        """
        if body_id not in self.registry:
            raise OutOfRangeError(f"body {body_id!r} is not registered")
        history = self.registry.get(body_id).history
        if history is None:
            raise OutOfRangeError(f"body {body_id!r} has not been propagated")
        if history.failed and not include_failed:
            raise OutOfRangeError(f"propagation of body {body_id!r} failed: {history.error}") from history.error
        return history

    def failures(self) -> Dict[BodyId, BaseException]:
        return {
            body.body_id: body.history.error
            for body in self.registry
            if body.history is not None and body.history.failed
        }

    def state_at(self, body_id: BodyId, t: float) -> CartesianState:
        """
        Analytic state of a body at any time inside the configured interval,
        on or off the output grid.

        Numerical errors are raised directly here, unlike in propagate().
        """
        if self.state is EngineState.UNCONFIGURED:
            raise ConfigurationError("engine is not configured")
        if body_id not in self.registry:
            raise OutOfRangeError(f"body {body_id!r} is not registered")
        if not self._config.contains(t):
            raise OutOfRangeError(
                f"t = {t} s is outside the propagation interval "
                f"[{self._config.interval_start}, {self._config.interval_end}]"
            )
        body = self.registry.get(body_id)
        missing = body.missing()
        if missing:
            raise ConfigurationError(f"body {body_id!r} has no {' and no '.join(missing)}")
        return Trajectory.from_body(body).state_at(float(t), self._solver)
