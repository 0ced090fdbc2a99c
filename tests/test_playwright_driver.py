"""Tests for the Playwright driver with mocked pages."""

from unittest.mock import AsyncMock, MagicMock, call, patch

import pytest
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from fleetbot.core.exceptions import ElementNotFoundError, LaunchError, NavigationError
from fleetbot.services.driver.base import ElementQuery, IdentityScope
from fleetbot.services.driver.playwright_driver import (
    PlaywrightDriver,
    PlaywrightHandle,
    remove_profile_locks,
)


@pytest.fixture
def pw_driver():
    """Driver with no keystroke delay."""
    return PlaywrightDriver(headless=True, typing_delay_min=0, typing_delay_max=0)


@pytest.fixture
def page():
    """Mock Playwright page."""
    page = MagicMock()
    page.url = "https://example.com/target"
    page.goto = AsyncMock()
    page.reload = AsyncMock()
    page.wait_for_selector = AsyncMock()
    page.wait_for_load_state = AsyncMock()
    page.query_selector = AsyncMock()
    page.keyboard.press = AsyncMock()
    page.keyboard.type = AsyncMock()
    return page


@pytest.fixture
def handle(page):
    """Handle wrapping the mock page."""
    context = MagicMock()
    context.close = AsyncMock()
    return PlaywrightHandle(scope=IdentityScope(name="alice"), page=page, context=context)


class TestProfileLocks:
    """Tests for stale lock removal."""

    def test_removes_singleton_files_only(self, tmp_path):
        for name in ("SingletonLock", "SingletonCookie", "SingletonSocket", "Preferences"):
            (tmp_path / name).write_text("")

        assert remove_profile_locks(tmp_path) == 3
        assert [p.name for p in tmp_path.iterdir()] == ["Preferences"]

    def test_missing_directory(self, tmp_path):
        assert remove_profile_locks(tmp_path / "absent") == 0


class TestPageControl:
    """Tests for page-level operations."""

    @pytest.mark.asyncio
    async def test_type_paced_clears_then_types_each_character(self, pw_driver, handle, page):
        """Test that the field is cleared and text typed one key at a time."""
        element = MagicMock()
        element.focus = AsyncMock()
        page.query_selector.return_value = element

        await pw_driver.type_paced(handle, "input", "abc")

        element.focus.assert_awaited_once()
        assert page.keyboard.press.await_args_list == [call("Control+A"), call("Backspace")]
        assert page.keyboard.type.await_args_list == [call("a"), call("b"), call("c")]

    @pytest.mark.asyncio
    async def test_type_paced_missing_field(self, pw_driver, handle, page):
        page.query_selector.return_value = None

        with pytest.raises(ElementNotFoundError):
            await pw_driver.type_paced(handle, "input", "abc")

    @pytest.mark.asyncio
    async def test_navigate_returns_location(self, pw_driver, handle, page):
        location = await pw_driver.navigate(handle, "https://example.com/target", 5)

        assert location == "https://example.com/target"
        page.goto.assert_awaited_once_with(
            "https://example.com/target", wait_until="networkidle", timeout=5000
        )

    @pytest.mark.asyncio
    async def test_navigate_timeout_is_navigation_error(self, pw_driver, handle, page):
        page.goto.side_effect = PlaywrightTimeoutError("Timeout 5000ms exceeded")

        with pytest.raises(NavigationError) as exc_info:
            await pw_driver.navigate(handle, "https://example.com/target", 5)

        assert "timed out" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_reload_timeout_is_navigation_error(self, pw_driver, handle, page):
        page.reload.side_effect = PlaywrightTimeoutError("Timeout 5000ms exceeded")

        with pytest.raises(NavigationError):
            await pw_driver.reload(handle, 5)

    @pytest.mark.asyncio
    async def test_wait_for_timeout_is_element_not_found(self, pw_driver, handle, page):
        page.wait_for_selector.side_effect = PlaywrightTimeoutError("Timeout 1000ms exceeded")

        with pytest.raises(ElementNotFoundError) as exc_info:
            await pw_driver.wait_for(handle, "input[name=password]", 1)

        assert exc_info.value.selector == "input[name=password]"

    @pytest.mark.asyncio
    async def test_find_first_filters_by_text(self, pw_driver, handle, page):
        """Test that phrase queries narrow the locator and return the first match."""
        first = MagicMock()
        first.text_content = AsyncMock(return_value="  unusual login activity  ")
        first.get_attribute = AsyncMock(return_value=None)
        filtered = MagicMock()
        filtered.count = AsyncMock(return_value=2)
        filtered.first = first
        page.locator.return_value.filter.return_value = filtered

        element = await pw_driver.find_first(
            handle, ElementQuery("span, div", ("unusual login activity",))
        )

        assert element.text == "unusual login activity"
        assert element.href is None
        assert element.native is first
        assert page.locator.return_value.filter.call_args.kwargs["has_text"].search(
            "There was unusual login activity"
        )

    @pytest.mark.asyncio
    async def test_find_first_no_match(self, pw_driver, handle, page):
        page.locator.return_value.count = AsyncMock(return_value=0)

        assert await pw_driver.find_first(handle, ElementQuery("article a")) is None

    @pytest.mark.asyncio
    async def test_find_first_during_navigation_is_navigation_error(self, pw_driver, handle, page):
        """Test that a query racing a navigation surfaces as NavigationError."""
        page.locator.return_value.filter.return_value.count = AsyncMock(
            side_effect=PlaywrightError(
                "Execution context was destroyed, most likely because of a navigation"
            )
        )

        with pytest.raises(NavigationError) as exc_info:
            await pw_driver.find_first(handle, ElementQuery("span, div", ("verify",)))

        assert "Execution context was destroyed" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_find_first_unreadable_match_is_element_not_found(
        self, pw_driver, handle, page
    ):
        first = MagicMock()
        first.text_content = AsyncMock(side_effect=PlaywrightTimeoutError("Timeout 5000ms"))
        page.locator.return_value.count = AsyncMock(return_value=1)
        page.locator.return_value.first = first

        with pytest.raises(ElementNotFoundError):
            await pw_driver.find_first(handle, ElementQuery("article a"))

        assert first.text_content.call_args.kwargs["timeout"] == 5000

    @pytest.mark.asyncio
    async def test_page_errors_while_typing_are_navigation_errors(self, pw_driver, handle, page):
        """Test that typing, key presses and waits map raw page errors to typed ones."""
        page.query_selector.side_effect = PlaywrightError("Target page has been closed")
        page.keyboard.press.side_effect = PlaywrightError("Target page has been closed")
        page.wait_for_selector.side_effect = PlaywrightError("Frame was detached")

        with pytest.raises(NavigationError):
            await pw_driver.type_paced(handle, "input", "abc")
        with pytest.raises(NavigationError):
            await pw_driver.submit_key(handle, "Enter")
        with pytest.raises(NavigationError):
            await pw_driver.wait_for(handle, "input", 1)

    @pytest.mark.asyncio
    async def test_released_handle_rejected(self, pw_driver, handle):
        await pw_driver.release(handle)

        with pytest.raises(NavigationError):
            await pw_driver.navigate(handle, "https://example.com", 5)


class TestLifecycle:
    """Tests for acquire and release."""

    @pytest.mark.asyncio
    async def test_isolated_acquire_uses_profile_directory(self, pw_driver, tmp_path, page):
        """Test persistent context launch on the scope's own profile."""
        profile_dir = tmp_path / "alice"
        profile_dir.mkdir()
        (profile_dir / "SingletonLock").write_text("")

        context = MagicMock()
        context.pages = [page]
        playwright = MagicMock()
        playwright.chromium.launch_persistent_context = AsyncMock(return_value=context)

        with patch(
            "fleetbot.services.driver.playwright_driver.async_playwright"
        ) as mock_async_playwright:
            mock_async_playwright.return_value.start = AsyncMock(return_value=playwright)
            handle = await pw_driver.acquire(IdentityScope("alice", profile_dir))

        assert handle.page is page
        assert not (profile_dir / "SingletonLock").exists()
        args, kwargs = playwright.chromium.launch_persistent_context.call_args
        assert args[0] == str(profile_dir)
        assert kwargs["headless"] is True

    @pytest.mark.asyncio
    async def test_launch_failure_is_launch_error(self, pw_driver, tmp_path):
        """Test that a failed launch is cleaned up and reported as LaunchError."""
        playwright = MagicMock()
        playwright.stop = AsyncMock()
        playwright.chromium.launch_persistent_context = AsyncMock(
            side_effect=Exception("Executable doesn't exist")
        )

        with patch(
            "fleetbot.services.driver.playwright_driver.async_playwright"
        ) as mock_async_playwright:
            mock_async_playwright.return_value.start = AsyncMock(return_value=playwright)
            with pytest.raises(LaunchError) as exc_info:
                await pw_driver.acquire(IdentityScope("alice", tmp_path / "alice"))

        assert exc_info.value.recoverable is False
        playwright.stop.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_release_is_idempotent(self, pw_driver, handle):
        context = handle.context

        await pw_driver.release(handle)
        await pw_driver.release(handle)

        context.close.assert_awaited_once()
        assert handle.released is True
        assert handle.page is None

    @pytest.mark.asyncio
    async def test_lease_releases_on_error(self, pw_driver, handle):
        """Test that a lease releases its handle when the block raises."""
        context = handle.context
        pw_driver.acquire = AsyncMock(return_value=handle)

        with pytest.raises(RuntimeError):
            async with pw_driver.lease(IdentityScope("alice")):
                raise RuntimeError("boom")

        context.close.assert_awaited_once()
