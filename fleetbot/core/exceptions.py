"""Custom exception classes for the session fleet."""

from datetime import datetime, timezone
from typing import Any, Dict, Optional


class FleetBotError(Exception):
    """Base exception for the session fleet."""

    def __init__(
        self, message: str, recoverable: bool = True, details: Optional[Dict[str, Any]] = None
    ):
        """
        Initialize fleet error.

        Args:
            message: Error message
            recoverable: Whether the owning session may attempt recovery
            details: Additional error details
        """
        self.message = message
        self.recoverable = recoverable
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc).isoformat()
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "recoverable": self.recoverable,
            "details": self.details,
            "timestamp": self.timestamp,
        }


# Session lifecycle errors
class LaunchError(FleetBotError):
    """Automation driver could not be acquired for a session."""

    def __init__(self, message: str = "Browser launch failed", scope: Optional[str] = None):
        details = {"scope": scope} if scope else {}
        super().__init__(message, recoverable=False, details=details)


class AuthError(FleetBotError):
    """An expected login field or prompt did not appear in time."""

    def __init__(self, message: str = "Authentication failed", recoverable: bool = True):
        super().__init__(message, recoverable)


class ChallengeTimeoutError(AuthError):
    """Challenge prompt handling exceeded its bound. Login proceeds anyway."""

    def __init__(
        self, message: str = "Challenge prompt handling timed out", timeout: Optional[float] = None
    ):
        super().__init__(message, recoverable=True)
        if timeout:
            self.details["timeout"] = timeout


class NavigationError(FleetBotError):
    """Navigation or reload failed or exceeded its timeout."""

    def __init__(self, message: str = "Navigation failed", url: Optional[str] = None):
        details = {"url": url} if url else {}
        super().__init__(message, recoverable=True, details=details)


class ElementNotFoundError(FleetBotError):
    """Element not found on the current page."""

    def __init__(self, selector: str, timeout: Optional[float] = None):
        self.selector = selector
        message = f"Element '{selector}' not found"
        if timeout is not None:
            message += f" within {timeout:g}s"
        super().__init__(message, recoverable=True, details={"selector": selector})


# Account / registry errors
class AccountNotFoundError(FleetBotError):
    """No account with the given login id is registered."""

    def __init__(self, login_id: str):
        self.login_id = login_id
        super().__init__(
            f"Account {login_id} not found", recoverable=False, details={"login_id": login_id}
        )


class AccountExistsError(FleetBotError):
    """A live session is already bound to the given login id."""

    def __init__(self, login_id: str):
        self.login_id = login_id
        super().__init__(
            f"A session for {login_id} is already registered",
            recoverable=False,
            details={"login_id": login_id},
        )


class AccountStoreError(FleetBotError, IOError):
    """Account persistence failed."""

    def __init__(self, message: str = "Account store I/O failed", path: Optional[str] = None):
        details = {"path": path} if path else {}
        super().__init__(message, recoverable=True, details=details)


# Configuration errors
class ConfigurationError(FleetBotError):
    """Configuration error occurred."""

    def __init__(
        self,
        message: str = "Configuration error",
        recoverable: bool = False,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, recoverable, details)
