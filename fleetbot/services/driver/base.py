"""Automation driver capability consumed by bot sessions."""

from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, AsyncIterator, Optional, Tuple

from loguru import logger


@dataclass(frozen=True)
class IdentityScope:
    """Identity isolation for one account: cookies and storage are never shared across scopes."""

    name: str
    profile_dir: Optional[Path] = None


@dataclass(frozen=True)
class ElementQuery:
    """Predicate for ``find_first``: a selector, optionally narrowed to elements containing any phrase."""

    selector: str
    text_any: Tuple[str, ...] = ()


@dataclass
class ElementRef:
    """Reference to an element found on the current page."""

    selector: str
    text: str = ""
    href: Optional[str] = None
    native: Any = field(default=None, repr=False, compare=False)


@dataclass
class DriverHandle:
    """Opaque, exclusively-owned reference to one driver instance."""

    scope: IdentityScope
    released: bool = False


class AutomationDriver(ABC):
    """
    Page control capability.

    Every method taking a handle operates only on that handle's page. Timeouts
    are in seconds and surface as typed errors, never as silent hangs.
    """

    @abstractmethod
    async def acquire(self, scope: IdentityScope) -> DriverHandle:
        """
        Launch an isolated context for an identity.

        Raises:
            LaunchError: If the browser or context cannot be started
        """

    @abstractmethod
    async def navigate(self, handle: DriverHandle, url: str, timeout: float) -> str:
        """
        Navigate to a URL.

        Returns:
            Location after navigation settles

        Raises:
            NavigationError: On failure or timeout
        """

    @abstractmethod
    async def current_location(self, handle: DriverHandle) -> str:
        """Return the current page URL."""

    @abstractmethod
    async def wait_for(self, handle: DriverHandle, selector: str, timeout: float) -> None:
        """
        Wait until an element matching the selector is visible.

        Raises:
            ElementNotFoundError: If it does not appear within the timeout
        """

    @abstractmethod
    async def type_paced(self, handle: DriverHandle, selector: str, text: str) -> None:
        """
        Clear a field and type text one character at a time with human pacing.

        Raises:
            ElementNotFoundError: If the field is not on the page
        """

    @abstractmethod
    async def submit_key(self, handle: DriverHandle, key: str) -> None:
        """Press a key on the focused element."""

    @abstractmethod
    async def find_first(self, handle: DriverHandle, query: ElementQuery) -> Optional[ElementRef]:
        """Return the first element matching the query, or None."""

    @abstractmethod
    async def click(self, handle: DriverHandle, element: ElementRef, timeout: float) -> None:
        """
        Click an element previously returned by ``find_first``.

        Raises:
            NavigationError: If the click or resulting navigation times out
        """

    @abstractmethod
    async def reload(self, handle: DriverHandle, timeout: float) -> None:
        """
        Reload the current page.

        Raises:
            NavigationError: On failure or timeout
        """

    @abstractmethod
    async def release(self, handle: DriverHandle) -> None:
        """Close everything owned by the handle. Safe to call twice."""

    async def close(self) -> None:
        """Release driver-wide resources shared between handles."""

    @asynccontextmanager
    async def lease(self, scope: IdentityScope) -> AsyncIterator[DriverHandle]:
        """
        Acquire a handle for the duration of the block and always release it.

        Args:
            scope: Identity to launch

        Yields:
            DriverHandle owned by the caller
        """
        handle = await self.acquire(scope)
        try:
            yield handle
        finally:
            try:
                await self.release(handle)
            except Exception as e:
                logger.error(f"Error releasing driver for {scope.name}: {e}")
