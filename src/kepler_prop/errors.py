class KeplerPropError(Exception):
    """Base class for every error raised by kepler_prop."""


class ConfigurationError(KeplerPropError, ValueError):
    """
    The propagation run is not set up correctly: a missing central body or
    initial state, a bad interval or output step, invalid solver settings,
    or propagate() called before the engine was configured.

    Configuration errors are fatal for the whole run.
    """


class ConvergenceError(KeplerPropError, ArithmeticError):
    """
    Newton-Raphson exceeded its iteration cap without meeting the tolerance.

    Attributes
    ----------
    estimate : float
        Last iterate reached before giving up.
    iterations : int
        Number of iterations performed.
    """

    def __init__(self, message: str, estimate: float = float("nan"), iterations: int = 0):
        super().__init__(message)
        self.estimate = estimate
        self.iterations = iterations

    def __reduce__(self):
        return (type(self), (self.args[0], self.estimate, self.iterations))


class DegenerateOrbitError(KeplerPropError, ValueError):
    """Rectilinear orbit (no orbital plane) or a parabolic orbit, which has no solver path."""


class OutOfRangeError(KeplerPropError, LookupError):
    """History requested for a body that was never successfully propagated, or a time outside the interval."""
