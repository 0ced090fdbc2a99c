"""
Fleet manager for the bot sessions.

Owns the fleet registry and is the single entry point the control surface
uses to add, remove, start and stop sessions.
"""

import asyncio
import time
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Set

from loguru import logger

from ...core.exceptions import AccountStoreError
from ...core.settings import FleetSettings
from ...models.account import Account
from ...repositories.account_store import AccountStore, JsonAccountStore
from ...utils.helpers import format_duration
from ...utils.masking import mask_identifier
from ..driver.base import AutomationDriver
from ..session.bot_session import BotSession
from .registry import FleetRegistry

SessionFactory = Callable[[Account], BotSession]


class FleetManager:
    """
    Creates, sequences and supervises one BotSession per account.

    Registry mutations happen under ``registry.lock``. Launch and shutdown
    run outside the lock on a slot reserved beforehand, so a slow browser
    never blocks the rest of the fleet.
    """

    def __init__(
        self,
        settings: FleetSettings,
        store: AccountStore,
        driver: AutomationDriver,
        registry: Optional[FleetRegistry] = None,
        session_factory: Optional[SessionFactory] = None,
    ):
        """
        Initialize fleet manager.

        Args:
            settings: Fleet settings
            store: Account persistence
            driver: Automation driver shared by all sessions
            registry: Optional registry (a fresh one is created if omitted)
            session_factory: Optional factory building a session for an account
        """
        self.settings = settings
        self.store = store
        self.driver = driver
        self.registry = registry or FleetRegistry()
        self._session_factory = session_factory or self._default_session_factory

        self.started_at = datetime.now(timezone.utc)
        self._started_monotonic = time.monotonic()
        self._background: Set[asyncio.Task] = set()
        self._shutting_down = False

    @classmethod
    def from_settings(cls, settings: FleetSettings) -> "FleetManager":
        """Build a manager with the JSON account store and the Playwright driver."""
        from ..driver.playwright_driver import PlaywrightDriver

        driver = PlaywrightDriver(
            headless=settings.headless,
            isolated_profiles=settings.isolated_profiles,
            typing_delay_min=settings.typing_delay_min,
            typing_delay_max=settings.typing_delay_max,
        )
        return cls(settings, JsonAccountStore(settings.accounts_file), driver)

    def _default_session_factory(self, account: Account) -> BotSession:
        return BotSession(account, self.driver, self.settings)

    # ── Persistence ──────────────────────────────────────────────────────────

    async def load_accounts(self) -> int:
        """
        Load accounts from the store into the registry.

        Returns:
            Number of accounts loaded (0 if the store could not be read)
        """
        try:
            accounts = await self.store.load()
        except AccountStoreError as e:
            logger.error(f"Error loading accounts: {e.message}")
            accounts = []

        async with self.registry.lock:
            self.registry.replace_accounts(accounts)
        logger.info(f"Loaded {len(accounts)} accounts")
        return len(accounts)

    async def save_accounts(self) -> bool:
        """
        Persist the registry's accounts.

        Returns:
            True if the store accepted the write
        """
        async with self.registry.lock:
            return await self._persist()

    async def _persist(self) -> bool:
        # Caller holds registry.lock
        try:
            await self.store.save(self.registry.accounts())
        except AccountStoreError as e:
            logger.error(f"Error saving accounts: {e.message}")
            return False
        logger.debug("Accounts saved")
        return True

    # ── Accounts ─────────────────────────────────────────────────────────────

    async def add_account(self, login_id: str, secret: str, handle: str) -> bool:
        """
        Add or update an account, mark it active and start its bot.

        A failed start is logged and does not undo the add.

        Returns:
            True
        """
        async with self.registry.lock:
            account = self.registry.get_account(login_id)
            if account is None:
                account = Account(login_id=login_id, secret=secret, handle=handle)
                self.registry.put_account(account)
                logger.info(f"Account {mask_identifier(login_id)} added")
            else:
                account.secret = secret
                account.handle = handle
                account.active = True
                logger.info(f"Account {mask_identifier(login_id)} updated")
            await self._persist()

        if account.active:
            await self.start_bot(login_id)
        return True

    async def remove_account(self, login_id: str) -> bool:
        """
        Stop the account's bot, then delete the account.

        Returns:
            False if the account is unknown
        """
        async with self.registry.lock:
            if self.registry.get_account(login_id) is None:
                logger.warning(f"Account {mask_identifier(login_id)} not found")
                return False

        await self.stop_bot(login_id)

        async with self.registry.lock:
            removed = self.registry.remove_account(login_id)
            if removed is not None:
                await self._persist()
        if removed is None:
            return False

        logger.info(f"Account {mask_identifier(login_id)} removed")
        return True

    async def set_account_active(self, login_id: str, active: bool) -> bool:
        """
        Toggle whether an account is started by ``start_all_bots``.

        A running bot keeps running; stopping stays explicit.

        Returns:
            False if the account is unknown
        """
        async with self.registry.lock:
            account = self.registry.get_account(login_id)
            if account is None:
                return False
            account.active = active
            await self._persist()

        logger.info(
            f"Account {mask_identifier(login_id)} {'activated' if active else 'deactivated'}"
        )
        return True

    # ── Bots ─────────────────────────────────────────────────────────────────

    async def start_bot(self, login_id: str) -> bool:
        """
        Start the bot for an account.

        Starting a running bot is a successful no-op.

        Returns:
            True if the bot is running after the call
        """
        async with self.registry.lock:
            if self._shutting_down:
                logger.warning("Fleet is shutting down, start refused")
                return False

            account = self.registry.get_account(login_id)
            if account is None:
                logger.error(f"Account {mask_identifier(login_id)} not found")
                return False

            if self.registry.get_session(login_id) is not None:
                logger.info(f"[{account.handle}] Bot is already running")
                return True

            session = self._session_factory(account)
            self.registry.bind(login_id, session)

        try:
            started = await session.start()
        except asyncio.CancelledError:
            await self._discard(login_id, session)
            raise
        except Exception as e:
            logger.error(f"[{account.handle}] Error starting bot: {e}")
            started = False

        if not started:
            await self._discard(login_id, session)
            logger.error(f"[{account.handle}] Bot failed to start")
            return False

        self._spawn(self._watch(login_id, session), name=f"watchdog_{account.handle}")
        return True

    async def stop_bot(self, login_id: str) -> bool:
        """
        Stop the bot for an account.

        Returns:
            False if no bot is running for the account
        """
        async with self.registry.lock:
            session = self.registry.unbind(login_id)

        if session is None:
            logger.warning(f"No running bot for {mask_identifier(login_id)}")
            return False

        try:
            await session.shutdown()
        except Exception as e:
            logger.error(f"[{session.account.handle}] Error stopping bot: {e}")
            return False
        return True

    async def start_all_bots(self) -> int:
        """
        Start every active account, one at a time with ``bot_launch_delay`` between.

        Returns:
            Number of bots running after their start attempt
        """
        async with self.registry.lock:
            accounts = [account for account in self.registry.accounts() if account.active]

        delay = self.settings.bot_launch_delay
        logger.info(f"Starting {len(accounts)} bots with {delay:g}s delay between each...")

        started = 0
        for index, account in enumerate(accounts):
            try:
                if await self.start_bot(account.login_id):
                    started += 1
            except Exception as e:
                logger.error(f"[{account.handle}] Failed to start bot: {e}")

            if index < len(accounts) - 1:
                await asyncio.sleep(delay)

        logger.info(f"Started {started}/{len(accounts)} bots")
        return started

    async def stop_all_bots(self, delay: Optional[float] = None) -> int:
        """
        Stop every running bot, one at a time.

        Args:
            delay: Seconds between stops (``bot_stop_delay`` if omitted)

        Returns:
            Number of bots stopped
        """
        if delay is None:
            delay = self.settings.bot_stop_delay

        async with self.registry.lock:
            login_ids = list(self.registry.sessions())

        logger.info(f"Stopping {len(login_ids)} bots...")
        stopped = 0
        for index, login_id in enumerate(login_ids):
            try:
                if await self.stop_bot(login_id):
                    stopped += 1
            except Exception as e:
                logger.error(f"Failed to stop bot {mask_identifier(login_id)}: {e}")

            if index < len(login_ids) - 1:
                await asyncio.sleep(delay)

        logger.info(f"Stopped {stopped} bots")
        return stopped

    # ── Supervision ──────────────────────────────────────────────────────────

    def _spawn(self, coro: Any, name: str) -> asyncio.Task:
        task = asyncio.create_task(coro, name=name)
        self._background.add(task)
        task.add_done_callback(self._background.discard)
        return task

    async def _discard(self, login_id: str, session: BotSession) -> None:
        await session.shutdown()
        async with self.registry.lock:
            self.registry.unbind(login_id, session)

    async def _watch(self, login_id: str, session: BotSession) -> None:
        await session.wait_closed()
        if session.stop_requested or self._shutting_down:
            return

        async with self.registry.lock:
            self.registry.unbind(login_id, session)
        tag = f"[{session.account.handle}]"
        logger.warning(
            f"{tag} Bot shut itself down after {session.interaction_count} interactions"
        )

        if not self.settings.auto_restart:
            return

        cooldown = self.settings.restart_cooldown
        logger.info(f"{tag} Restarting in {cooldown:g}s")
        await asyncio.sleep(cooldown)

        async with self.registry.lock:
            account = self.registry.get_account(login_id)
            if (
                self._shutting_down
                or account is None
                or not account.active
                or self.registry.get_session(login_id) is not None
            ):
                logger.info(f"{tag} Restart skipped")
                return

        await self.start_bot(login_id)

    async def shutdown(self) -> None:
        """Stop supervision, stop every bot and close the driver."""
        async with self.registry.lock:
            self._shutting_down = True

        pending = list(self._background)
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)

        await self.stop_all_bots(delay=0)

        try:
            await self.driver.close()
        except Exception as e:
            logger.error(f"Error closing driver: {e}")
        logger.info("Fleet shut down")

    # ── Status ───────────────────────────────────────────────────────────────

    @property
    def is_shutting_down(self) -> bool:
        return self._shutting_down

    def uptime_seconds(self) -> float:
        return time.monotonic() - self._started_monotonic

    def get_status(self) -> Dict[str, Any]:
        """
        Get a snapshot of the fleet.

        Returns:
            Account counts, running bots, aggregate interactions, uptime and
            one entry per account
        """
        accounts = self.registry.accounts()
        sessions = self.registry.sessions()

        entries: List[Dict[str, Any]] = []
        for account in accounts:
            session = sessions.get(account.login_id)
            entries.append(
                {
                    "login_id": account.login_id,
                    "handle": account.handle,
                    "active": account.active,
                    "running": session is not None and session.is_running,
                    "interaction_count": session.interaction_count if session else 0,
                    "state": session.state.value if session else None,
                }
            )

        uptime = self.uptime_seconds()
        return {
            "total_accounts": len(accounts),
            "active_accounts": sum(1 for account in accounts if account.active),
            "running_bots": self.registry.running_count(),
            "total_interactions": self.registry.total_interactions(),
            "uptime_seconds": round(uptime, 1),
            "uptime": format_duration(uptime),
            "target_url": self.settings.get_target_url(),
            "accounts": entries,
        }

    def get_refresh_stats(self) -> Dict[str, Any]:
        """
        Get interaction counts per account.

        Returns:
            Aggregate and per-account counts with start time and uptime
        """
        sessions = self.registry.sessions()
        per_account = []
        for account in self.registry.accounts():
            session = sessions.get(account.login_id)
            per_account.append(
                {
                    "login_id": account.login_id,
                    "handle": account.handle,
                    "refreshes": session.interaction_count if session else 0,
                }
            )
        uptime = self.uptime_seconds()
        return {
            "total_refreshes": sum(entry["refreshes"] for entry in per_account),
            "started_at": self.started_at.isoformat(),
            "uptime_seconds": round(uptime, 1),
            "uptime": format_duration(uptime),
            "accounts": per_account,
        }
