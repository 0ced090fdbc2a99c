"""Session Fleet - a fleet of per-account browser sessions kept alive on a jittered cadence."""

__version__ = "1.0.0"
__license__ = "MIT"

__all__ = ["__version__"]
