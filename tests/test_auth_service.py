"""Tests for the login flow and challenge prompt handling."""

import pytest
import pytest_asyncio

from fakes import LOGIN_URL
from fleetbot.core.enums import SessionState
from fleetbot.core.exceptions import AuthError, ElementNotFoundError, NavigationError
from fleetbot.services.driver.base import ElementRef, IdentityScope
from fleetbot.services.session import AuthService

CHALLENGE_TEXT = "Enter your phone number or username to verify it's you"


@pytest.fixture
def auth(driver, fast_settings):
    """Auth service over the scripted driver."""
    return AuthService(driver, fast_settings)


@pytest_asyncio.fixture
async def handle(driver):
    """Acquired driver handle."""
    return await driver.acquire(IdentityScope(name="alice"))


class TestLogin:
    """Tests for AuthService.login."""

    @pytest.mark.asyncio
    async def test_login_types_credentials_and_submits(self, auth, driver, handle, account):
        """Test identity then password, each followed by Enter."""
        location = await auth.login(handle, account)

        assert location == LOGIN_URL
        assert [entry[2] for entry in driver.typed] == [account.login_id, account.secret]
        assert len(driver.calls_named("submit_key")) == 2
        assert "alice" in driver.authenticated

    @pytest.mark.asyncio
    async def test_missing_identity_field_raises_auth_error(self, auth, driver, handle, account):
        """Test that a field missing past its timeout is an AuthError."""
        driver.missing_selectors.add(auth.settings.username_selector)

        with pytest.raises(AuthError) as exc_info:
            await auth.login(handle, account)

        assert "Login field unavailable" in exc_info.value.message
        assert driver.typed == []

    @pytest.mark.asyncio
    async def test_missing_password_field_raises_auth_error(self, auth, driver, handle, account):
        """Test that the password field is bounded too."""
        driver.missing_selectors.add(auth.settings.password_selector)

        with pytest.raises(AuthError):
            await auth.login(handle, account)

        assert [entry[2] for entry in driver.typed] == [account.login_id]

    @pytest.mark.asyncio
    async def test_login_page_unavailable_raises_auth_error(self, auth, driver, handle, account):
        """Test that navigation failure to the login page becomes an AuthError."""
        driver.navigate_failures.append(NavigationError("Navigation timed out"))

        with pytest.raises(AuthError) as exc_info:
            await auth.login(handle, account)

        assert "Login page unavailable" in exc_info.value.message


class TestChallenge:
    """Tests for challenge prompt resolution."""

    @pytest.mark.asyncio
    async def test_challenge_answered_with_handle(self, auth, driver, handle, account):
        """Test that a detected prompt gets the account handle typed into it."""
        driver.challenge_text = CHALLENGE_TEXT
        driver.elements["input"] = ElementRef(selector="input")
        states = []

        assert await auth.resolve_challenge(handle, account, states.append) is True

        assert ("alice", "input", account.handle) in driver.typed
        assert states == [SessionState.RESOLVING_CHALLENGE, SessionState.AUTHENTICATING]

    @pytest.mark.asyncio
    async def test_no_challenge(self, auth, driver, handle, account):
        """Test that a page without the phrases is left alone."""
        driver.challenge_text = "Welcome back"
        states = []

        assert await auth.resolve_challenge(handle, account, states.append) is False

        assert driver.typed == []
        assert SessionState.RESOLVING_CHALLENGE not in states

    @pytest.mark.asyncio
    async def test_challenge_without_input_is_skipped(self, auth, driver, handle, account):
        """Test that a prompt with no input field does not fail the login."""
        driver.challenge_text = CHALLENGE_TEXT

        assert await auth.resolve_challenge(handle, account) is False
        assert driver.typed == []

    @pytest.mark.asyncio
    async def test_challenge_timeout_is_not_fatal(self, driver, fast_settings, handle, account):
        """Test that a hung challenge probe is abandoned after the bound."""
        settings = fast_settings.model_copy(update={"challenge_timeout": 0.05})
        auth = AuthService(driver, settings)
        driver.challenge_delay = 1.0
        states = []

        assert await auth.resolve_challenge(handle, account, states.append) is False

    @pytest.mark.asyncio
    async def test_login_continues_after_challenge(self, auth, driver, handle, account):
        """Test that the password is still entered after a challenge prompt."""
        driver.challenge_text = CHALLENGE_TEXT
        driver.elements["input"] = ElementRef(selector="input")

        await auth.login(handle, account)

        typed_values = [entry[2] for entry in driver.typed]
        assert typed_values[0] == account.login_id
        assert typed_values[1] == account.handle
        assert account.secret in typed_values

    @pytest.mark.asyncio
    async def test_challenge_check_failing_mid_navigation_does_not_abort_login(
        self, auth, driver, handle, account
    ):
        """Test that a challenge check failing while the page navigates is skipped."""
        driver.challenge_failures.append(
            NavigationError("Query failed: Execution context was destroyed")
        )
        states = []

        await auth.login(handle, account, on_state=states.append)

        assert [entry[2] for entry in driver.typed] == [account.login_id, account.secret]
        assert "alice" in driver.authenticated
        assert states == [SessionState.AUTHENTICATING, SessionState.AUTHENTICATING]

    @pytest.mark.asyncio
    async def test_element_vanishing_during_challenge_check_is_skipped(
        self, auth, driver, handle, account
    ):
        driver.challenge_failures.append(ElementNotFoundError("span, div", 5))

        assert await auth.resolve_challenge(handle, account) is False
