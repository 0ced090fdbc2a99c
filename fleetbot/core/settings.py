"""Application settings with Pydantic validation."""

from pathlib import Path
from typing import List, Optional

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..constants import (
    DEFAULT_CHALLENGE_PHRASES,
    DEFAULT_LOGIN_MARKERS,
    Delays,
    Intervals,
    Timeouts,
)
from .enums import CycleMode


class FleetSettings(BaseSettings):
    """Application settings with validation and environment variable support."""

    # Target
    target_profile: str = Field(
        default="https://example.com/target",
        description="Target resource URL, or a bare handle resolved against site_base_url",
    )
    site_base_url: str = Field(
        default="https://example.com", description="Base URL used to resolve bare handles"
    )

    # Login flow
    login_url: str = Field(default="https://example.com/login", description="Login entry point")
    home_url: str = Field(
        default="",
        description="Page probed at launch to detect a still-valid session (empty disables)",
    )
    login_markers: str = Field(
        default=",".join(DEFAULT_LOGIN_MARKERS),
        description="Comma-separated URL fragments that identify a login surface",
    )
    username_selector: str = Field(
        default='input[autocomplete="username"]', description="Identity field selector"
    )
    password_selector: str = Field(
        default='input[name="password"]', description="Password field selector"
    )
    challenge_phrases: str = Field(
        default=",".join(DEFAULT_CHALLENGE_PHRASES),
        description="Comma-separated phrases that identify a challenge prompt",
    )

    # Steady-state cadence
    min_refresh_time: float = Field(
        default=Intervals.REFRESH_MIN, ge=0, description="Minimum seconds between cycles"
    )
    max_refresh_time: float = Field(
        default=Intervals.REFRESH_MAX, ge=0, description="Maximum seconds between cycles"
    )
    cycle_mode: CycleMode = Field(
        default=CycleMode.RELOAD, description="Cycle action: reload or pinned"
    )
    pinned_selector: str = Field(
        default='article a[href*="/status/"]', description="Pinned artifact locator"
    )

    # Fleet sequencing
    bot_launch_delay: float = Field(
        default=Intervals.LAUNCH_DELAY, ge=0, description="Seconds between sequential launches"
    )
    bot_stop_delay: float = Field(
        default=Intervals.STOP_DELAY, ge=0, description="Seconds between sequential stops"
    )
    auto_restart: bool = Field(
        default=True, description="Restart sessions that shut themselves down"
    )
    restart_cooldown: float = Field(
        default=Intervals.RESTART_COOLDOWN, ge=0, description="Seconds before an auto-restart"
    )

    # Browser
    headless: bool = Field(default=False, description="Run browser in headless mode")
    isolated_profiles: bool = Field(
        default=True,
        description="Persistent per-account profile directories instead of one shared browser",
    )
    profiles_dir: Path = Field(default=Path("chrome-data"), description="Profile root directory")

    # Bounds and pauses
    navigation_timeout: float = Field(default=Timeouts.NAVIGATION, gt=0)
    field_timeout: float = Field(default=Timeouts.FIELD_WAIT, gt=0)
    challenge_timeout: float = Field(default=Timeouts.CHALLENGE, gt=0)
    typing_delay_min: float = Field(default=Intervals.TYPING_DELAY_MIN, ge=0)
    typing_delay_max: float = Field(default=Intervals.TYPING_DELAY_MAX, ge=0)
    submit_pause: float = Field(default=Delays.SUBMIT_PAUSE, ge=0)
    challenge_probe_delay: float = Field(default=Delays.CHALLENGE_PROBE, ge=0)
    auth_settle: float = Field(default=Delays.AUTH_SETTLE, ge=0)
    pinned_dwell: float = Field(default=Delays.PINNED_DWELL, ge=0)

    # Storage
    accounts_file: Path = Field(
        default=Path("data/accounts.json"), description="Account store JSON file"
    )

    # Control surface
    host: str = Field(default="0.0.0.0", description="Control surface bind address")
    port: int = Field(default=3000, ge=1, le=65535, description="Control surface port")

    # Logging
    log_level: str = Field(
        default="INFO", description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )
    json_logging: bool = Field(default=True, description="Write JSON-lines log files")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Ignore extra fields in .env
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        allowed = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in allowed:
            raise ValueError(f'LOG_LEVEL must be one of: {", ".join(allowed)}')
        return v_upper

    @field_validator("cycle_mode", mode="before")
    @classmethod
    def validate_cycle_mode(cls, v: object) -> object:
        """Accept cycle mode case-insensitively."""
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @model_validator(mode="after")
    def validate_windows(self) -> "FleetSettings":
        """Validate that every [min, max] window is ordered."""
        if self.max_refresh_time < self.min_refresh_time:
            raise ValueError("MAX_REFRESH_TIME must be >= MIN_REFRESH_TIME")
        if self.typing_delay_max < self.typing_delay_min:
            raise ValueError("TYPING_DELAY_MAX must be >= TYPING_DELAY_MIN")
        return self

    def get_login_markers(self) -> List[str]:
        """
        Get login surface markers as a list.

        Returns:
            List of URL fragments
        """
        return [m.strip() for m in self.login_markers.split(",") if m.strip()]

    def get_challenge_phrases(self) -> List[str]:
        """
        Get challenge prompt phrases as a list.

        Returns:
            List of phrases
        """
        return [p.strip() for p in self.challenge_phrases.split(",") if p.strip()]

    def get_target_url(self) -> str:
        """
        Resolve the configured target to an absolute URL.

        A bare handle such as ``@name`` or ``name`` is resolved against
        ``site_base_url``.
        """
        target = self.target_profile.strip()
        if target.startswith("http"):
            return target
        return f"{self.site_base_url.rstrip('/')}/{target.lstrip('@')}"


# Singleton instance
_settings: Optional[FleetSettings] = None


def get_settings() -> FleetSettings:
    """
    Get application settings singleton.

    Returns:
        FleetSettings instance

    Raises:
        ValidationError: If settings are invalid
    """
    global _settings
    if _settings is None:
        _settings = FleetSettings()
    return _settings


def reset_settings() -> None:
    """Reset settings singleton (useful for testing)."""
    global _settings
    _settings = None
