"""Playwright implementation of the automation driver."""

import asyncio
import random
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from loguru import logger
from playwright.async_api import (
    Browser,
    BrowserContext,
    Error as PlaywrightError,
    Page,
    Playwright,
    TimeoutError as PlaywrightTimeoutError,
    async_playwright,
)

from ...constants import CHROMIUM_ARGS, PROFILE_LOCK_PREFIX, VIEWPORT, Intervals, Timeouts
from ...core.exceptions import ElementNotFoundError, LaunchError, NavigationError
from .base import AutomationDriver, DriverHandle, ElementQuery, ElementRef, IdentityScope


def _ms(seconds: float) -> float:
    return seconds * 1000


@dataclass
class PlaywrightHandle(DriverHandle):
    """Handle owning a Playwright page and its context."""

    page: Optional[Page] = None
    context: Optional[BrowserContext] = None
    # Only set in isolated mode, where each handle runs its own Playwright instance
    playwright: Optional[Playwright] = None


def remove_profile_locks(profile_dir: Path) -> int:
    """
    Remove stale Chromium singleton lock files from a profile directory.

    Args:
        profile_dir: Persistent profile directory

    Returns:
        Number of files removed
    """
    removed = 0
    if not profile_dir.exists():
        return removed
    for path in profile_dir.iterdir():
        if not path.name.startswith(PROFILE_LOCK_PREFIX):
            continue
        try:
            path.unlink()
            removed += 1
            logger.info(f"Removed stale Chrome lock file: {path}")
        except OSError as e:
            logger.warning(f"Error removing lock file {path}: {e}")
    return removed


class PlaywrightDriver(AutomationDriver):
    """
    Drives Chromium through Playwright.

    In isolated mode every scope launches a persistent context on its own
    profile directory. In shared mode one browser is launched lazily and each
    scope gets a fresh context on it.
    """

    def __init__(
        self,
        headless: bool = False,
        isolated_profiles: bool = True,
        typing_delay_min: float = Intervals.TYPING_DELAY_MIN,
        typing_delay_max: float = Intervals.TYPING_DELAY_MAX,
        viewport: Optional[Dict[str, int]] = None,
    ):
        """
        Initialize Playwright driver.

        Args:
            headless: Run browsers without a window
            isolated_profiles: One persistent profile per scope instead of a shared browser
            typing_delay_min: Minimum seconds between keystrokes
            typing_delay_max: Maximum seconds between keystrokes
            viewport: Page viewport size
        """
        self.headless = headless
        self.isolated_profiles = isolated_profiles
        self.typing_delay_min = typing_delay_min
        self.typing_delay_max = typing_delay_max
        self.viewport = viewport or dict(VIEWPORT)

        self._shared_playwright: Optional[Playwright] = None
        self._shared_browser: Optional[Browser] = None
        self._shared_lock = asyncio.Lock()

    async def acquire(self, scope: IdentityScope) -> DriverHandle:
        handle = PlaywrightHandle(scope=scope)
        try:
            if self.isolated_profiles:
                await self._launch_isolated(handle)
            else:
                await self._launch_shared(handle)
        except Exception as e:
            await self.release(handle)
            raise LaunchError(f"Failed to launch browser for {scope.name}: {e}", scope.name) from e

        logger.info(f"Browser started for {scope.name}")
        return handle

    async def _launch_isolated(self, handle: PlaywrightHandle) -> None:
        profile_dir = handle.scope.profile_dir
        if profile_dir is None:
            raise ValueError("Isolated launch requires a profile directory")
        profile_dir.mkdir(parents=True, exist_ok=True)
        remove_profile_locks(profile_dir)

        logger.info(f"Using persistent profile at: {profile_dir}")
        handle.playwright = await async_playwright().start()
        handle.context = await handle.playwright.chromium.launch_persistent_context(
            str(profile_dir),
            headless=self.headless,
            args=list(CHROMIUM_ARGS),
            viewport=self.viewport,
        )
        pages = handle.context.pages
        handle.page = pages[0] if pages else await handle.context.new_page()

    async def _launch_shared(self, handle: PlaywrightHandle) -> None:
        browser = await self._get_shared_browser()
        handle.context = await browser.new_context(viewport=self.viewport)
        handle.page = await handle.context.new_page()

    async def _get_shared_browser(self) -> Browser:
        async with self._shared_lock:
            if self._shared_browser is None or not self._shared_browser.is_connected():
                if self._shared_playwright is None:
                    self._shared_playwright = await async_playwright().start()
                self._shared_browser = await self._shared_playwright.chromium.launch(
                    headless=self.headless, args=list(CHROMIUM_ARGS)
                )
                logger.info("Shared browser started")
            return self._shared_browser

    @staticmethod
    def _page(handle: DriverHandle) -> Page:
        page = getattr(handle, "page", None)
        if handle.released or page is None:
            raise NavigationError(f"Driver for {handle.scope.name} has been released")
        return page

    async def navigate(self, handle: DriverHandle, url: str, timeout: float) -> str:
        page = self._page(handle)
        try:
            await page.goto(url, wait_until="networkidle", timeout=_ms(timeout))
        except PlaywrightTimeoutError as e:
            raise NavigationError(f"Navigation to {url} timed out after {timeout:g}s", url) from e
        except PlaywrightError as e:
            raise NavigationError(f"Navigation to {url} failed: {e}", url) from e
        return page.url

    async def current_location(self, handle: DriverHandle) -> str:
        return self._page(handle).url

    async def wait_for(self, handle: DriverHandle, selector: str, timeout: float) -> None:
        page = self._page(handle)
        try:
            await page.wait_for_selector(selector, state="visible", timeout=_ms(timeout))
        except PlaywrightTimeoutError as e:
            raise ElementNotFoundError(selector, timeout) from e
        except PlaywrightError as e:
            raise NavigationError(f"Waiting for {selector} failed: {e}", page.url) from e

    async def type_paced(self, handle: DriverHandle, selector: str, text: str) -> None:
        page = self._page(handle)
        try:
            element = await page.query_selector(selector)
            if element is None:
                raise ElementNotFoundError(selector)

            await element.focus()

            # Clear any existing text
            await page.keyboard.press("Control+A")
            await page.keyboard.press("Backspace")

            for char in text:
                await asyncio.sleep(random.uniform(self.typing_delay_min, self.typing_delay_max))
                await page.keyboard.type(char)
        except PlaywrightError as e:
            raise NavigationError(f"Typing into {selector} failed: {e}", page.url) from e

    async def submit_key(self, handle: DriverHandle, key: str) -> None:
        page = self._page(handle)
        try:
            await page.keyboard.press(key)
        except PlaywrightError as e:
            raise NavigationError(f"Pressing {key} failed: {e}", page.url) from e

    async def find_first(self, handle: DriverHandle, query: ElementQuery) -> Optional[ElementRef]:
        page = self._page(handle)
        locator = page.locator(query.selector)
        if query.text_any:
            pattern = re.compile("|".join(re.escape(phrase) for phrase in query.text_any))
            locator = locator.filter(has_text=pattern)

        read_timeout = _ms(Timeouts.ELEMENT_READ)
        try:
            if await locator.count() == 0:
                return None

            first = locator.first
            text = await first.text_content(timeout=read_timeout) or ""
            href = await first.get_attribute("href", timeout=read_timeout)
            if href and not href.startswith("http"):
                href = await first.evaluate("el => el.href")
        except PlaywrightTimeoutError as e:
            # Matched element went away before it could be read
            raise ElementNotFoundError(query.selector, Timeouts.ELEMENT_READ) from e
        except PlaywrightError as e:
            # Typically the page navigated mid-query
            raise NavigationError(f"Query for {query.selector} failed: {e}", page.url) from e
        return ElementRef(selector=query.selector, text=text.strip(), href=href, native=first)

    async def click(self, handle: DriverHandle, element: ElementRef, timeout: float) -> None:
        page = self._page(handle)
        target: Any = element.native if element.native is not None else page.locator(
            element.selector
        ).first
        try:
            await target.click(timeout=_ms(timeout))
            await page.wait_for_load_state("networkidle", timeout=_ms(timeout))
        except PlaywrightTimeoutError as e:
            raise NavigationError(f"Click on {element.selector} timed out after {timeout:g}s") from e
        except PlaywrightError as e:
            raise NavigationError(f"Click on {element.selector} failed: {e}") from e

    async def reload(self, handle: DriverHandle, timeout: float) -> None:
        page = self._page(handle)
        try:
            await page.reload(wait_until="networkidle", timeout=_ms(timeout))
        except PlaywrightTimeoutError as e:
            raise NavigationError(f"Reload timed out after {timeout:g}s", page.url) from e
        except PlaywrightError as e:
            raise NavigationError(f"Reload failed: {e}", page.url) from e

    async def release(self, handle: DriverHandle) -> None:
        if handle.released:
            return
        handle.released = True

        context = getattr(handle, "context", None)
        playwright = getattr(handle, "playwright", None)
        if context is not None:
            try:
                await context.close()
            except Exception as e:
                logger.error(f"Error closing browser for {handle.scope.name}: {e}")
        if playwright is not None:
            try:
                await playwright.stop()
            except Exception as e:
                logger.error(f"Error stopping Playwright for {handle.scope.name}: {e}")

        if isinstance(handle, PlaywrightHandle):
            handle.page = None
            handle.context = None
            handle.playwright = None
        logger.info(f"Browser resources released for {handle.scope.name}")

    async def close(self) -> None:
        async with self._shared_lock:
            if self._shared_browser is not None:
                try:
                    await self._shared_browser.close()
                except Exception as e:
                    logger.error(f"Error closing shared browser: {e}")
                self._shared_browser = None
            if self._shared_playwright is not None:
                await self._shared_playwright.stop()
                self._shared_playwright = None
        logger.debug("Playwright driver closed")
