"""Bot session - the per-account lifecycle state machine."""

import asyncio
from contextlib import AsyncExitStack
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from loguru import logger

from ...core.enums import CycleMode, SessionState
from ...core.exceptions import LaunchError
from ...core.logger import session_ctx
from ...core.settings import FleetSettings
from ...models.account import Account
from ...utils.helpers import is_login_surface, jittered_interval, profile_key, same_resource
from ..driver.base import AutomationDriver, DriverHandle, ElementQuery, IdentityScope
from .auth_service import AuthService


class BotSession:
    """
    One account's automated session.

    Lifecycle::

        IDLE -> LAUNCHING -> AUTHENTICATING [-> RESOLVING_CHALLENGE] -> VERIFYING
             -> STEADY_STATE <-> RECOVERING -> SHUT_DOWN

    Steady state is driven by one-shot timers: each timer spawns a single
    cycle task, and that task's completion arms the next timer. At most one
    cycle is in flight. The driver handle is held in an ``AsyncExitStack``
    and released on every path into ``SHUT_DOWN``.

    The session holds no reference to whoever created it; owners observe
    termination through ``wait_closed()``.
    """

    def __init__(
        self,
        account: Account,
        driver: AutomationDriver,
        settings: FleetSettings,
        auth_service: Optional[AuthService] = None,
    ):
        """
        Initialize bot session.

        Args:
            account: Account this session runs as
            driver: Automation driver to acquire the session's handle from
            settings: Fleet settings
            auth_service: Optional AuthService (built from driver and settings if omitted)
        """
        self.account = account
        self.driver = driver
        self.settings = settings
        self.auth = auth_service or AuthService(driver, settings)

        # Profile directory and driver scope follow the unique login id, never the handle
        self.scope_name = profile_key(account.login_id)
        self.target_url = settings.get_target_url()
        self.pinned_artifact_url: Optional[str] = None
        self.state = SessionState.IDLE
        self.interaction_count = 0
        self.started_at: Optional[datetime] = None
        self.last_error: Optional[str] = None

        self._login_markers = settings.get_login_markers()
        self._handle: Optional[DriverHandle] = None
        self._resources = AsyncExitStack()
        self._timer: Optional[asyncio.TimerHandle] = None
        self._task: Optional[asyncio.Task] = None
        self._closer: Optional[asyncio.Task] = None
        self._closing = False
        self._stop_requested = False
        self._terminated = asyncio.Event()

    # ── Introspection ────────────────────────────────────────────────────────

    @property
    def login_id(self) -> str:
        return self.account.login_id

    @property
    def is_running(self) -> bool:
        """True between launch and shutdown."""
        return self.state not in (SessionState.IDLE, SessionState.SHUT_DOWN)

    @property
    def is_closed(self) -> bool:
        return self.state == SessionState.SHUT_DOWN

    @property
    def stop_requested(self) -> bool:
        """True if shutdown was requested from outside rather than caused by a failure."""
        return self._stop_requested

    @property
    def has_pending_timer(self) -> bool:
        return self._timer is not None

    @property
    def has_driver(self) -> bool:
        return self._handle is not None

    def snapshot(self) -> Dict[str, Any]:
        """Return a point-in-time view of the session."""
        return {
            "login_id": self.account.login_id,
            "handle": self.account.handle,
            "state": self.state.value,
            "interaction_count": self.interaction_count,
            "target_url": self.target_url,
            "pinned_artifact_url": self.pinned_artifact_url,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "last_error": self.last_error,
        }

    async def wait_closed(self) -> None:
        """Wait until the session reaches SHUT_DOWN."""
        await self._terminated.wait()

    @property
    def _tag(self) -> str:
        return f"[{self.account.handle}]"

    def _set_state(self, state: SessionState) -> None:
        if self.state == SessionState.SHUT_DOWN or self.state == state:
            return
        logger.debug(f"{self._tag} {self.state.value} -> {state.value}")
        self.state = state

    def _scope(self) -> IdentityScope:
        profile_dir = None
        if self.settings.isolated_profiles:
            profile_dir = self.settings.profiles_dir / self.scope_name
        return IdentityScope(name=self.scope_name, profile_dir=profile_dir)

    # ── Start-up ─────────────────────────────────────────────────────────────

    async def start(self) -> bool:
        """
        Launch, authenticate and enter steady state.

        Returns:
            True if the session reached steady state, False if it shut down
        """
        if self.state != SessionState.IDLE:
            logger.warning(f"{self._tag} Start ignored in state {self.state.value}")
            return self.is_running

        self._task = asyncio.create_task(
            self._bring_up(), name=f"session_start_{self.account.handle}"
        )
        try:
            return await self._task
        except asyncio.CancelledError:
            if self._stop_requested:
                logger.info(f"{self._tag} Start-up cancelled by shutdown")
                return False
            raise

    async def _bring_up(self) -> bool:
        session_ctx.set(self.account.handle)
        self.started_at = datetime.now(timezone.utc)
        self._set_state(SessionState.LAUNCHING)
        logger.info(f"{self._tag} Launching bot")

        try:
            self._handle = await self._resources.enter_async_context(
                self.driver.lease(self._scope())
            )
        except LaunchError as e:
            self.last_error = e.message
            logger.error(f"{self._tag} {e.message}")
            await self._close()
            return False

        try:
            await self._establish()
        except asyncio.CancelledError:
            if not self._closing:
                await self._close()
            raise
        except Exception as e:
            self.last_error = str(e)
            logger.warning(f"{self._tag} Start-up failed: {e}")
            if not await self._recover():
                await self._close()
                return False

        self._set_state(SessionState.STEADY_STATE)
        self._arm_timer()
        logger.info(f"{self._tag} Bot is now running on {self.target_url}")
        return True

    async def _establish(self) -> None:
        if await self._needs_login():
            await self._authenticate()

        # Login success is not asserted; recovery catches a failed login on the next cycle
        self._set_state(SessionState.VERIFYING)
        await asyncio.sleep(self.settings.auth_settle)

        await self._go_to_target()

    async def _needs_login(self) -> bool:
        if not self.settings.home_url:
            return True

        logger.info(f"{self._tag} Checking if already logged in...")
        location = await self.driver.navigate(
            self._require_handle(), self.settings.home_url, self.settings.navigation_timeout
        )
        if is_login_surface(location, self._login_markers):
            logger.info(f"{self._tag} Login required")
            return True
        logger.info(f"{self._tag} Already logged in, session reused")
        return False

    async def _authenticate(self) -> None:
        self._set_state(SessionState.AUTHENTICATING)
        await self.auth.login(self._require_handle(), self.account, on_state=self._set_state)

    async def _go_to_target(self) -> str:
        location = await self.driver.navigate(
            self._require_handle(), self.target_url, self.settings.navigation_timeout
        )
        logger.info(f"{self._tag} Now on page: {location}")
        return location

    def _require_handle(self) -> DriverHandle:
        if self._handle is None:
            raise RuntimeError(f"Session {self.account.handle} has no driver")
        return self._handle

    # ── Steady state ─────────────────────────────────────────────────────────

    def _arm_timer(self) -> None:
        if self._closing or self.state != SessionState.STEADY_STATE:
            return
        delay = jittered_interval(self.settings.min_refresh_time, self.settings.max_refresh_time)
        self._timer = asyncio.get_running_loop().call_later(delay, self._on_timer)
        logger.debug(f"{self._tag} Next cycle in {delay:.1f}s")

    def _on_timer(self) -> None:
        self._timer = None
        if self._closing or self.state != SessionState.STEADY_STATE:
            return
        self._task = asyncio.create_task(
            self._run_cycle(), name=f"session_cycle_{self.account.handle}"
        )
        self._task.add_done_callback(self._on_cycle_complete)

    def _on_cycle_complete(self, task: asyncio.Task) -> None:
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            self.last_error = str(error)
            logger.error(f"{self._tag} Cycle task crashed: {error}")
            if not self._closing:
                # No timer is armed after a crash; shut down so owners see the session end
                self._closer = asyncio.create_task(
                    self._close(), name=f"session_close_{self.account.handle}"
                )
            return
        self._arm_timer()

    async def _run_cycle(self) -> None:
        session_ctx.set(self.account.handle)
        try:
            await self._perform_cycle()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self.last_error = str(e)
            logger.error(f"{self._tag} Error during cycle: {e}")
            if not await self._recover():
                await self._close()
            return

        self.interaction_count += 1
        logger.info(f"{self._tag} Total interactions: {self.interaction_count}")

    async def _perform_cycle(self) -> None:
        handle = self._require_handle()
        if self.settings.cycle_mode == CycleMode.PINNED:
            await self._visit_pinned_artifact(handle)
        else:
            await self.driver.reload(handle, self.settings.navigation_timeout)

    async def _visit_pinned_artifact(self, handle: DriverHandle) -> None:
        await self._go_to_target()

        artifact = await self.driver.find_first(
            handle, ElementQuery(self.settings.pinned_selector)
        )
        if artifact is not None:
            if artifact.href:
                self.pinned_artifact_url = artifact.href
            await self.driver.click(handle, artifact, self.settings.navigation_timeout)
        elif self.pinned_artifact_url:
            await self.driver.navigate(
                handle, self.pinned_artifact_url, self.settings.navigation_timeout
            )
        else:
            logger.warning(f"{self._tag} Pinned artifact not found, cycle visited target only")
            return

        await asyncio.sleep(self.settings.pinned_dwell)
        await self._go_to_target()

    # ── Recovery ─────────────────────────────────────────────────────────────

    def _on_known_resource(self, location: str) -> bool:
        if same_resource(location, self.target_url):
            return True
        return bool(self.pinned_artifact_url) and same_resource(
            location, self.pinned_artifact_url or ""
        )

    async def _recover(self) -> bool:
        """
        Bring the page back to the target after a failure.

        Returns:
            True if the session can resume steady state
        """
        self._set_state(SessionState.RECOVERING)
        try:
            location = await self.driver.current_location(self._require_handle())
            logger.info(f"{self._tag} Recovery check - current URL: {location}")

            if is_login_surface(location, self._login_markers):
                logger.info(f"{self._tag} Session expired, logging in again")
                await self._authenticate()
                await self._go_to_target()
            elif not self._on_known_resource(location):
                logger.info(f"{self._tag} Off target, navigating back")
                location = await self._go_to_target()
                if is_login_surface(location, self._login_markers):
                    logger.info(f"{self._tag} Redirected to login, logging in again")
                    await self._authenticate()
                    await self._go_to_target()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self.last_error = str(e)
            logger.error(f"{self._tag} Error recovering from previous error: {e}")
            return False

        self._set_state(SessionState.STEADY_STATE)
        logger.info(f"{self._tag} Recovered, resuming cycle")
        return True

    # ── Shutdown ─────────────────────────────────────────────────────────────

    async def shutdown(self) -> None:
        """Stop the session: cancel timer and in-flight work, release the driver. Idempotent."""
        if self.state == SessionState.SHUT_DOWN:
            return
        self._stop_requested = True
        logger.info(f"{self._tag} Shutting down bot")
        await self._close()

    async def _close(self) -> None:
        if self._closing:
            await self._terminated.wait()
            return
        self._closing = True

        # Timer first, so no callback fires against a released driver
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

        task = self._task
        self._task = None
        if task is not None and task is not asyncio.current_task() and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
            except Exception as e:
                logger.error(f"{self._tag} Error in cancelled task: {e}")

        try:
            await self._resources.aclose()
        except Exception as e:
            logger.error(f"{self._tag} Error releasing driver: {e}")
        self._handle = None

        self._set_state(SessionState.SHUT_DOWN)
        self._terminated.set()
        logger.info(
            f"{self._tag} Bot has been shut down - Total interactions: {self.interaction_count}"
        )
