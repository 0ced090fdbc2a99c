"""Per-account session services."""

from .auth_service import AuthService, StateListener
from .bot_session import BotSession

__all__ = ["AuthService", "BotSession", "StateListener"]
