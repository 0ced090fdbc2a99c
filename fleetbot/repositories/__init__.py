"""Persistence layer."""

from .account_store import AccountStore, JsonAccountStore

__all__ = ["AccountStore", "JsonAccountStore"]
