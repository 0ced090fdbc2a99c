"""Core infrastructure module."""

from .enums import CycleMode, SessionState
from .exceptions import (
    # Base exception
    FleetBotError,
    # Session lifecycle
    LaunchError,
    AuthError,
    ChallengeTimeoutError,
    NavigationError,
    ElementNotFoundError,
    # Accounts
    AccountNotFoundError,
    AccountExistsError,
    AccountStoreError,
    # Configuration
    ConfigurationError,
)
from .logger import setup_structured_logging
from .settings import FleetSettings, get_settings, reset_settings

__all__ = [
    "CycleMode",
    "SessionState",
    "FleetBotError",
    "LaunchError",
    "AuthError",
    "ChallengeTimeoutError",
    "NavigationError",
    "ElementNotFoundError",
    "AccountNotFoundError",
    "AccountExistsError",
    "AccountStoreError",
    "ConfigurationError",
    "setup_structured_logging",
    "FleetSettings",
    "get_settings",
    "reset_settings",
]
