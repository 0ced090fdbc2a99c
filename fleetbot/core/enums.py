"""Centralized enum definitions for the session fleet."""

from enum import Enum


class SessionState(str, Enum):
    """Lifecycle states of a bot session."""
    IDLE = "idle"
    LAUNCHING = "launching"
    AUTHENTICATING = "authenticating"
    RESOLVING_CHALLENGE = "resolving_challenge"
    VERIFYING = "verifying"
    STEADY_STATE = "steady_state"
    RECOVERING = "recovering"
    SHUT_DOWN = "shut_down"

    @classmethod
    def values(cls) -> list:
        """Return list of all enum values."""
        return [e.value for e in cls]


class CycleMode(str, Enum):
    """Action performed by each steady-state cycle."""
    RELOAD = "reload"
    PINNED = "pinned"

    @classmethod
    def values(cls) -> list:
        """Return list of all enum values."""
        return [e.value for e in cls]
