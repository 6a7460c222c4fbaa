import math
import numpy as np

from .errors import ConfigurationError

# A sample counts as landing on the interval end if it misses it by less than
# this fraction of a step (absorbs the rounding of (end - start) / step).
END_SLACK = 1e-9


def sample_count(start_s: float, end_s: float, step_s: float) -> int:
    # Number of sample instants start, start + step, ... that fit in [start, end].
    if end_s <= start_s:
        raise ConfigurationError("end must be after start")
    if step_s <= 0:
        raise ConfigurationError("step must be positive")
    return int(math.floor((end_s - start_s) / step_s + END_SLACK)) + 1


def sample_times(start_s: float, end_s: float, step_s: float) -> np.ndarray:
    # Generate the fixed-interval sample grid between two elapsed times (seconds).
    #
    # Edge policy: the first sample is exactly start_s; the last one is the
    # largest start_s + k * step_s not beyond end_s. end_s itself is part of the
    # grid only when it lands on a sample.
    n = sample_count(start_s, end_s, step_s)

    # Keys are built by multiplication, so every key is an exact multiple
    # of the step offset from the start (no accumulated rounding).
    t = start_s + np.arange(n, dtype=float) * step_s

    # A last sample admitted by END_SLACK may overshoot end_s by a rounding
    # error; it is stored as end_s so no key lies outside the interval.
    if t[-1] > end_s:
        t[-1] = end_s
    return t
