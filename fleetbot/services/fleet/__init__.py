"""Fleet orchestration."""

from .fleet_manager import FleetManager, SessionFactory
from .registry import FleetRegistry

__all__ = ["FleetManager", "FleetRegistry", "SessionFactory"]
