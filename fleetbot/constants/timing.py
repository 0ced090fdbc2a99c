"""Timing-related constants (timeouts, intervals, delays)."""

from typing import Final


class Timeouts:
    """Timeout values in SECONDS (converted to milliseconds at the Playwright boundary)."""

    NAVIGATION: Final[float] = 60.0
    FIELD_WAIT: Final[float] = 60.0
    CHALLENGE: Final[float] = 30.0
    ELEMENT_READ: Final[float] = 5.0
    SHUTDOWN: Final[float] = 30.0


class Intervals:
    """Interval values in SECONDS."""

    REFRESH_MIN: Final[float] = 15.0
    REFRESH_MAX: Final[float] = 20.0
    TYPING_DELAY_MIN: Final[float] = 0.05
    TYPING_DELAY_MAX: Final[float] = 0.15
    LAUNCH_DELAY: Final[float] = 10.0
    STOP_DELAY: Final[float] = 1.0
    RESTART_COOLDOWN: Final[float] = 60.0


class Delays:
    """Fixed pauses inside the login and interaction flows, in SECONDS."""

    SUBMIT_PAUSE: Final[float] = 1.0
    CHALLENGE_PROBE: Final[float] = 3.0
    AUTH_SETTLE: Final[float] = 2.0
    PINNED_DWELL: Final[float] = 3.0
