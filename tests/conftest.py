"""Pytest configuration and common fixtures."""

import sys
import warnings
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

import pytest

from fakes import HOME_URL, LOGIN_URL, TARGET_URL, FakeDriver, scope_of
from fleetbot.core.settings import FleetSettings, reset_settings
from fleetbot.models.account import Account
from fleetbot.repositories.account_store import JsonAccountStore


def pytest_configure(config):
    """Configure pytest environment before tests run."""
    warnings.filterwarnings("ignore", message="coroutine.*was never awaited")


@pytest.fixture(autouse=True)
def setup_test_environment(monkeypatch):
    """Keep the developer's environment out of the settings under test."""
    for name in ("TARGET_PROFILE", "LOGIN_URL", "HOME_URL", "CYCLE_MODE", "LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def fast_settings(tmp_path) -> FleetSettings:
    """Settings with every pause zeroed and a tiny jitter window."""
    return FleetSettings(
        _env_file=None,
        target_profile=TARGET_URL,
        site_base_url="https://example.com",
        login_url=LOGIN_URL,
        min_refresh_time=0.01,
        max_refresh_time=0.02,
        bot_launch_delay=0,
        bot_stop_delay=0,
        restart_cooldown=0,
        navigation_timeout=1,
        field_timeout=1,
        challenge_timeout=0.5,
        typing_delay_min=0,
        typing_delay_max=0,
        submit_pause=0,
        challenge_probe_delay=0,
        auth_settle=0,
        pinned_dwell=0,
        profiles_dir=tmp_path / "profiles",
        accounts_file=tmp_path / "accounts.json",
    )


@pytest.fixture
def home_settings(fast_settings) -> FleetSettings:
    """Fast settings with the session reuse probe enabled."""
    return fast_settings.model_copy(update={"home_url": HOME_URL})


@pytest.fixture
def driver() -> FakeDriver:
    """Scripted driver where the target requires a login."""
    fake = FakeDriver()
    fake.gated_urls.add(TARGET_URL)
    fake.gated_urls.add(HOME_URL)
    return fake


@pytest.fixture
def account() -> Account:
    """Test account."""
    return Account(login_id="alice@example.com", secret="s3cret-pass", handle="alice")


@pytest.fixture
def scope_name(account) -> str:
    """Driver scope name of the test account's session."""
    return scope_of(account.login_id)


@pytest.fixture
def store(tmp_path) -> JsonAccountStore:
    """Account store in a temporary directory."""
    return JsonAccountStore(tmp_path / "accounts.json")
