"""Browser launch options and page markers."""

from typing import Final, Tuple

VIEWPORT: Final[dict] = {"width": 1280, "height": 800}

CHROMIUM_ARGS: Final[Tuple[str, ...]] = (
    "--disable-notifications",
    "--no-sandbox",
    "--disable-dev-shm-usage",
    "--disable-features=site-per-process",
    "--disable-gpu",
)

# Chromium refuses to reuse a profile directory while these exist
PROFILE_LOCK_PREFIX: Final[str] = "Singleton"

DEFAULT_LOGIN_MARKERS: Final[Tuple[str, ...]] = ("login", "flow/login")

DEFAULT_CHALLENGE_PHRASES: Final[Tuple[str, ...]] = (
    "unusual login activity",
    "Enter your phone number or username",
    "verify it's you",
)

CHALLENGE_SCAN_SELECTOR: Final[str] = "span, div"
CHALLENGE_INPUT_SELECTOR: Final[str] = "input"
SUBMIT_KEY: Final[str] = "Enter"
