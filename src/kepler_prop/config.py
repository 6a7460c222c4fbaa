import math
import numbers
from dataclasses import dataclass

from . import timeutil
from .errors import ConfigurationError


def is_positive_count(value) -> bool:
    # Rejects bools, NaN, inf and fractional values before comparing.
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        return False
    return math.isfinite(value) and value == int(value) and value >= 1


@dataclass(frozen=True)
class Defaults:
    # Command-line defaults only; the engine never falls back to these.
    start_s: float = 0.0
    end_s: float = 86400.0
    step_s: float = 3600.0
    tolerance: float = 1e-12
    max_iterations: int = 100


@dataclass(frozen=True)
class PropagationConfig:
    """
    Propagation interval, output sampling and Newton-Raphson settings.

    All values are supplied by the caller; there are no silent defaults.

    Parameters
    ----------
    interval_start, interval_end : float
        Elapsed seconds since the epoch of the initial states.
        Requires 0 <= interval_start < interval_end.
    fixed_output_interval : float
        Spacing of the output samples [s], > 0.
    tolerance : float
        Newton-Raphson step tolerance on the anomaly [rad], > 0.
    max_iterations : int
        Newton-Raphson iteration cap, >= 1.
    """

    interval_start: float
    interval_end: float
    fixed_output_interval: float
    tolerance: float
    max_iterations: int

    def validate(self) -> "PropagationConfig":
        values = (self.interval_start, self.interval_end, self.fixed_output_interval, self.tolerance)
        if not all(math.isfinite(v) for v in values):
            raise ConfigurationError("propagation settings must be finite numbers")
        if self.interval_start < 0.0:
            raise ConfigurationError(
                f"interval start must be >= 0 s (got {self.interval_start})"
            )
        if self.interval_start >= self.interval_end:
            raise ConfigurationError(
                f"interval start ({self.interval_start}) must be before interval end ({self.interval_end})"
            )
        if self.fixed_output_interval <= 0.0:
            raise ConfigurationError(
                f"fixed output interval must be positive (got {self.fixed_output_interval})"
            )
        if self.tolerance <= 0.0:
            raise ConfigurationError(f"solver tolerance must be positive (got {self.tolerance})")
        if not is_positive_count(self.max_iterations):
            raise ConfigurationError(
                f"max iterations must be a positive integer (got {self.max_iterations})"
            )
        return self

    def sample_times(self):
        return timeutil.sample_times(self.interval_start, self.interval_end, self.fixed_output_interval)

    def contains(self, t: float) -> bool:
        return self.interval_start <= t <= self.interval_end
