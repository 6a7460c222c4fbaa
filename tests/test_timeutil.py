import math
import numpy as np
import pytest

from kepler_prop.config import PropagationConfig
from kepler_prop.errors import ConfigurationError
from kepler_prop.timeutil import sample_count, sample_times


def test_grid_includes_end_on_sample():
    t = sample_times(0.0, 86400.0, 3600.0)
    assert len(t) == 25
    assert t[0] == 0.0 and t[-1] == 86400.0


def test_grid_stops_before_end_off_sample():
    t = sample_times(600.0, 4000.0, 500.0)
    assert list(t) == [600.0, 1100.0, 1600.0, 2100.0, 2600.0, 3100.0, 3600.0]


def test_rounding_does_not_drop_last_sample():
    # 0.3 / 0.1 is 2.9999999999999996 in floating point
    assert sample_count(0.0, 0.3, 0.1) == 4


def test_last_sample_never_beyond_end():
    # 3 * 0.1 is 0.30000000000000004, just past the end
    t = sample_times(0.0, 0.3, 0.1)
    assert len(t) == 4
    assert t[-1] <= 0.3
    assert t[-1] == 0.3
    assert np.all(np.diff(t) > 0)


def test_keys_are_exact_multiples():
    t = sample_times(10.0, 10.0 + 1000 * 0.1, 0.1)
    assert np.array_equal(t, 10.0 + np.arange(1001) * 0.1)


def test_bad_grid():
    with pytest.raises(ConfigurationError):
        sample_times(10.0, 10.0, 1.0)
    with pytest.raises(ConfigurationError):
        sample_times(0.0, 10.0, 0.0)


@pytest.mark.parametrize("kwargs", [
    dict(interval_start=-1.0),
    dict(interval_start=100.0, interval_end=100.0),
    dict(fixed_output_interval=0.0),
    dict(fixed_output_interval=-60.0),
    dict(tolerance=0.0),
    dict(max_iterations=0),
    dict(max_iterations=2.5),
    dict(interval_end=math.inf),
    dict(max_iterations=math.inf),
    dict(max_iterations=math.nan),
    dict(max_iterations=True),
])
def test_config_validation(kwargs):
    values = dict(interval_start=0.0, interval_end=3600.0, fixed_output_interval=60.0,
                  tolerance=1e-12, max_iterations=50)
    values.update(kwargs)
    with pytest.raises(ConfigurationError):
        PropagationConfig(**values).validate()


def test_config_contains_and_samples():
    config = PropagationConfig(0.0, 3600.0, 600.0, 1e-12, 50).validate()
    assert config.contains(0.0) and config.contains(3600.0)
    assert not config.contains(-1.0) and not config.contains(3600.5)
    assert len(config.sample_times()) == 7
