"""Routes package for the control surface."""

from .accounts import router as accounts_router
from .bots import router as bots_router
from .health import router as health_router
from .status import router as status_router

__all__ = [
    "accounts_router",
    "bots_router",
    "health_router",
    "status_router",
]
