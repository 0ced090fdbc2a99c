"""Authentication flow for bot sessions: paced credential entry and challenge prompts."""

import asyncio
from typing import Callable, Optional

from loguru import logger

from ...constants import CHALLENGE_INPUT_SELECTOR, CHALLENGE_SCAN_SELECTOR, SUBMIT_KEY
from ...core.enums import SessionState
from ...core.exceptions import (
    AuthError,
    ChallengeTimeoutError,
    ElementNotFoundError,
    NavigationError,
)
from ...core.settings import FleetSettings
from ...models.account import Account
from ...utils.masking import mask_identifier
from ..driver.base import AutomationDriver, DriverHandle, ElementQuery

StateListener = Callable[[SessionState], None]


class AuthService:
    """Handles login for one account on a driver handle."""

    def __init__(self, driver: AutomationDriver, settings: FleetSettings):
        """
        Initialize authentication service.

        Args:
            driver: Automation driver used for page control
            settings: Fleet settings (login URL, selectors, bounds and pauses)
        """
        self.driver = driver
        self.settings = settings
        self._challenge_query = ElementQuery(
            CHALLENGE_SCAN_SELECTOR, tuple(settings.get_challenge_phrases())
        )

    async def login(
        self,
        handle: DriverHandle,
        account: Account,
        on_state: Optional[StateListener] = None,
    ) -> str:
        """
        Run the login flow.

        Identity and password are each typed with human pacing and submitted
        with Enter. After each submission the page is probed for a challenge
        prompt. Success is not asserted here; a failed login shows up as a
        login surface on the next recovery check.

        Args:
            handle: Driver handle owned by the calling session
            account: Account to log in with
            on_state: Optional listener notified of challenge state changes

        Returns:
            Location after the flow completes

        Raises:
            AuthError: If the login page or an expected field is unavailable
        """
        tag = f"[{account.handle}]"
        logger.info(f"{tag} Logging in as {mask_identifier(account.login_id)}")

        try:
            await self.driver.navigate(
                handle, self.settings.login_url, self.settings.navigation_timeout
            )
        except NavigationError as e:
            raise AuthError(f"Login page unavailable: {e.message}") from e
        logger.info(f"{tag} Login page loaded")

        await self._enter_field(handle, self.settings.username_selector, account.login_id)
        logger.info(f"{tag} Identity submitted ({mask_identifier(account.login_id)})")
        if await self.resolve_challenge(handle, account, on_state):
            logger.info(f"{tag} Handled challenge prompt after identity")

        await self._enter_field(handle, self.settings.password_selector, account.secret)
        logger.info(f"{tag} Password submitted (hidden)")
        if await self.resolve_challenge(handle, account, on_state):
            logger.info(f"{tag} Handled challenge prompt after password")

        location = await self.driver.current_location(handle)
        logger.info(f"{tag} Login flow completed, now at {location}")
        return location

    async def _enter_field(self, handle: DriverHandle, selector: str, value: str) -> None:
        try:
            await self.driver.wait_for(handle, selector, self.settings.field_timeout)
            await self.driver.type_paced(handle, selector, value)
        except ElementNotFoundError as e:
            raise AuthError(f"Login field unavailable: {e.message}") from e
        await asyncio.sleep(self.settings.submit_pause)
        await self.driver.submit_key(handle, SUBMIT_KEY)

    async def resolve_challenge(
        self,
        handle: DriverHandle,
        account: Account,
        on_state: Optional[StateListener] = None,
    ) -> bool:
        """
        Probe for a challenge prompt and answer it with the account handle.

        Never raises for challenge problems: a timeout or a missing input is
        logged and the login flow continues.

        Returns:
            True if a prompt was found and answered
        """
        await asyncio.sleep(self.settings.challenge_probe_delay)
        try:
            return await asyncio.wait_for(
                self._answer_challenge(handle, account, on_state),
                timeout=self.settings.challenge_timeout,
            )
        except asyncio.TimeoutError:
            error = ChallengeTimeoutError(timeout=self.settings.challenge_timeout)
            logger.warning(f"[{account.handle}] {error.message}, continuing login")
            return False

    async def _answer_challenge(
        self,
        handle: DriverHandle,
        account: Account,
        on_state: Optional[StateListener],
    ) -> bool:
        tag = f"[{account.handle}]"
        try:
            prompt = await self.driver.find_first(handle, self._challenge_query)
            if prompt is None:
                return False

            logger.info(f"{tag} Challenge prompt detected")
            if on_state:
                on_state(SessionState.RESOLVING_CHALLENGE)

            field = await self.driver.find_first(handle, ElementQuery(CHALLENGE_INPUT_SELECTOR))
            if field is None:
                logger.warning(f"{tag} Challenge prompt has no input field")
                return False

            await self.driver.type_paced(handle, CHALLENGE_INPUT_SELECTOR, account.handle)
            await asyncio.sleep(self.settings.submit_pause)
            await self.driver.submit_key(handle, SUBMIT_KEY)
            logger.info(f"{tag} Entered handle for verification")

            # Wait for the next screen
            await asyncio.sleep(self.settings.challenge_probe_delay)
            return True
        except (ElementNotFoundError, NavigationError) as e:
            logger.error(f"{tag} Error answering challenge prompt: {e.message}")
            return False
        finally:
            if on_state:
                on_state(SessionState.AUTHENTICATING)
