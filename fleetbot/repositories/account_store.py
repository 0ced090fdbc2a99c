"""Account store: durable list of fleet accounts."""

import asyncio
import json
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Sequence, Union

from loguru import logger

from ..core.exceptions import AccountStoreError
from ..models.account import Account


class AccountStore(ABC):
    """Load/save contract consumed by the fleet manager."""

    @abstractmethod
    async def load(self) -> List[Account]:
        """
        Load all accounts.

        Returns:
            List of accounts (empty when nothing is stored yet)

        Raises:
            AccountStoreError: If the stored data cannot be read
        """

    @abstractmethod
    async def save(self, accounts: Sequence[Account]) -> None:
        """
        Persist the full account list.

        Args:
            accounts: Accounts to persist, replacing what is stored

        Raises:
            AccountStoreError: If the data cannot be written
        """


class JsonAccountStore(AccountStore):
    """Account store backed by a JSON array on disk."""

    def __init__(self, path: Union[str, Path]):
        """
        Initialize JSON account store.

        Args:
            path: Path to the JSON file
        """
        self.path = Path(path)

    async def load(self) -> List[Account]:
        return await asyncio.to_thread(self._read)

    async def save(self, accounts: Sequence[Account]) -> None:
        await asyncio.to_thread(self._write, [account.to_dict() for account in accounts])

    def _read(self) -> List[Account]:
        if not self.path.exists():
            logger.info(f"Account file {self.path} does not exist yet")
            return []

        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise AccountStoreError(f"Failed to read accounts: {e}", path=str(self.path)) from e

        if not isinstance(raw, list):
            raise AccountStoreError("Account file must contain a JSON array", path=str(self.path))

        try:
            return [Account.from_dict(record) for record in raw]
        except (TypeError, ValueError) as e:
            raise AccountStoreError(f"Invalid account record: {e}", path=str(self.path)) from e

    def _write(self, records: List[dict]) -> None:
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(json.dumps(records, indent=2), encoding="utf-8")
            os.replace(tmp_path, self.path)
        except OSError as e:
            tmp_path.unlink(missing_ok=True)
            raise AccountStoreError(f"Failed to save accounts: {e}", path=str(self.path)) from e
