"""Constants shared across the fleet.

    from fleetbot.constants import Timeouts, Intervals, Delays
"""

from .browser import (
    CHALLENGE_INPUT_SELECTOR,
    CHALLENGE_SCAN_SELECTOR,
    CHROMIUM_ARGS,
    DEFAULT_CHALLENGE_PHRASES,
    DEFAULT_LOGIN_MARKERS,
    PROFILE_LOCK_PREFIX,
    SUBMIT_KEY,
    VIEWPORT,
)
from .timing import Delays, Intervals, Timeouts

__all__ = [
    "Timeouts",
    "Intervals",
    "Delays",
    "VIEWPORT",
    "CHROMIUM_ARGS",
    "PROFILE_LOCK_PREFIX",
    "DEFAULT_LOGIN_MARKERS",
    "DEFAULT_CHALLENGE_PHRASES",
    "CHALLENGE_SCAN_SELECTOR",
    "CHALLENGE_INPUT_SELECTOR",
    "SUBMIT_KEY",
]
