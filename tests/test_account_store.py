"""Tests for the JSON account store."""

import json

import pytest

from fleetbot.core.exceptions import AccountStoreError
from fleetbot.models.account import Account
from fleetbot.repositories.account_store import JsonAccountStore


class TestJsonAccountStore:
    """Tests for JsonAccountStore."""

    @pytest.mark.asyncio
    async def test_missing_file_loads_empty(self, store):
        """Test that a store with no file yet is empty."""
        assert await store.load() == []

    @pytest.mark.asyncio
    async def test_save_then_load(self, store, account):
        """Test that saved accounts load back unchanged."""
        inactive = Account(login_id="bob@example.com", secret="pw", handle="bob", active=False)

        await store.save([account, inactive])

        assert await store.load() == [account, inactive]

    @pytest.mark.asyncio
    async def test_save_creates_parent_directory(self, tmp_path, account):
        """Test that the data directory is created on first save."""
        store = JsonAccountStore(tmp_path / "data" / "nested" / "accounts.json")

        await store.save([account])

        assert store.path.exists()
        assert not store.path.with_name("accounts.json.tmp").exists()

    @pytest.mark.asyncio
    async def test_active_defaults_to_true(self, store):
        """Test that records without the flag load as active."""
        store.path.write_text(json.dumps([{"username": "a", "password": "b", "handle": "c"}]))

        accounts = await store.load()

        assert accounts[0].active is True

    @pytest.mark.asyncio
    async def test_corrupt_file_raises(self, store):
        """Test that unparsable JSON is an AccountStoreError."""
        store.path.write_text("{not json")

        with pytest.raises(AccountStoreError) as exc_info:
            await store.load()

        assert exc_info.value.details["path"] == str(store.path)

    @pytest.mark.asyncio
    async def test_non_list_raises(self, store):
        """Test that a JSON object instead of an array is rejected."""
        store.path.write_text(json.dumps({"username": "a"}))

        with pytest.raises(AccountStoreError):
            await store.load()

    @pytest.mark.asyncio
    async def test_record_missing_fields_raises(self, store):
        """Test that a record without a password is rejected."""
        store.path.write_text(json.dumps([{"username": "a", "handle": "c"}]))

        with pytest.raises(AccountStoreError) as exc_info:
            await store.load()

        assert "password" in exc_info.value.message

    def test_store_error_is_io_error(self):
        """Test that store failures can be caught as IOError."""
        assert issubclass(AccountStoreError, IOError)


class TestAccountModel:
    """Tests for the Account model."""

    def test_repr_hides_secret(self, account):
        assert account.secret not in repr(account)

    def test_from_dict_missing_field(self):
        with pytest.raises(ValueError, match="missing required fields"):
            Account.from_dict({"username": "a"})
