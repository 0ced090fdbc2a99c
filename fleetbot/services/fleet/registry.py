"""Fleet registry: accounts and the live session bound to each."""

import asyncio
from typing import Dict, Iterable, List, Optional

from ...core.exceptions import AccountExistsError
from ...models.account import Account
from ..session.bot_session import BotSession


class FleetRegistry:
    """
    Accounts keyed by login id, plus at most one live session per login id.

    The registry does no locking of its own. Callers mutate it while holding
    ``lock``; reads from synchronous code need no lock on a single event loop.
    """

    def __init__(self):
        self.lock = asyncio.Lock()
        self._accounts: Dict[str, Account] = {}
        self._sessions: Dict[str, BotSession] = {}

    # Accounts

    def replace_accounts(self, accounts: Iterable[Account]) -> None:
        self._accounts = {account.login_id: account for account in accounts}

    def accounts(self) -> List[Account]:
        return list(self._accounts.values())

    def get_account(self, login_id: str) -> Optional[Account]:
        return self._accounts.get(login_id)

    def put_account(self, account: Account) -> None:
        self._accounts[account.login_id] = account

    def remove_account(self, login_id: str) -> Optional[Account]:
        return self._accounts.pop(login_id, None)

    # Sessions

    def get_session(self, login_id: str) -> Optional[BotSession]:
        return self._sessions.get(login_id)

    def sessions(self) -> Dict[str, BotSession]:
        return dict(self._sessions)

    def bind(self, login_id: str, session: BotSession) -> None:
        """
        Reserve the slot for a login id.

        Raises:
            AccountExistsError: If another session already holds the slot
        """
        current = self._sessions.get(login_id)
        if current is not None and current is not session:
            raise AccountExistsError(login_id)
        self._sessions[login_id] = session

    def unbind(self, login_id: str, session: Optional[BotSession] = None) -> Optional[BotSession]:
        """
        Free the slot for a login id.

        When ``session`` is given the slot is only freed if it still holds that
        exact session, so a stale owner cannot evict a newer one.

        Returns:
            The removed session, or None
        """
        current = self._sessions.get(login_id)
        if current is None or (session is not None and current is not session):
            return None
        return self._sessions.pop(login_id)

    def running_count(self) -> int:
        return sum(1 for session in self._sessions.values() if session.is_running)

    def total_interactions(self) -> int:
        return sum(session.interaction_count for session in self._sessions.values())
