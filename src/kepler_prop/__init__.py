# src/kepler_prop/__init__.py
__all__ = [
    "__version__",
    "get_version",
    "CartesianState",
    "KeplerianElements",
    "CentralBody",
    "EARTH",
    "PropagationConfig",
    "PropagationEngine",
    "PropagationHistory",
    "cartesian_to_keplerian",
    "keplerian_to_cartesian",
    "ConfigurationError",
    "ConvergenceError",
    "DegenerateOrbitError",
    "OutOfRangeError",
]
__version__ = "0.1.0"  # bump when you tag; used as a fallback/display

def get_version() -> str:
    """
    Return the installed package version if available, else fallback to __version__.
    """
    from importlib.metadata import PackageNotFoundError, version as _v
    try:
        return _v("kepler-prop")
    except PackageNotFoundError:
        return __version__

from .state import CartesianState, KeplerianElements
from .bodies import CentralBody, EARTH
from .config import PropagationConfig
from .elements import cartesian_to_keplerian, keplerian_to_cartesian
from .errors import ConfigurationError, ConvergenceError, DegenerateOrbitError, OutOfRangeError
from .history import PropagationHistory
from .propagate import PropagationEngine
