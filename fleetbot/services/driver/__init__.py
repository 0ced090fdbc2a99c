"""Automation driver capability and its Playwright implementation."""

from .base import AutomationDriver, DriverHandle, ElementQuery, ElementRef, IdentityScope
from .playwright_driver import PlaywrightDriver, PlaywrightHandle, remove_profile_locks

__all__ = [
    "AutomationDriver",
    "DriverHandle",
    "ElementQuery",
    "ElementRef",
    "IdentityScope",
    "PlaywrightDriver",
    "PlaywrightHandle",
    "remove_profile_locks",
]
