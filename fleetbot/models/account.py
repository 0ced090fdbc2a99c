"""Account model."""

from dataclasses import dataclass
from typing import Any, Dict


@dataclass
class Account:
    """Credentials and flags for one fleet account, keyed by ``login_id``."""

    login_id: str
    secret: str
    handle: str
    active: bool = True

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Account":
        """
        Create Account from a stored record.

        Records use the keys ``username``, ``password``, ``handle`` and ``active``.

        Raises:
            ValueError: If a required key is missing
        """
        required_fields = ("username", "password", "handle")
        missing = [f for f in required_fields if f not in data]
        if missing:
            raise ValueError(
                f"Account.from_dict: missing required fields: {missing}. "
                f"Available keys: {list(data.keys())}"
            )
        return cls(
            login_id=str(data["username"]),
            secret=str(data["password"]),
            handle=str(data["handle"]),
            active=bool(data.get("active", True)),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the stored record format."""
        return {
            "username": self.login_id,
            "password": self.secret,
            "handle": self.handle,
            "active": self.active,
        }

    def __repr__(self) -> str:
        return (
            f"Account(login_id={self.login_id!r}, handle={self.handle!r}, active={self.active})"
        )
