"""FastAPI control surface for the session fleet."""

import asyncio
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from loguru import logger
from starlette.exceptions import HTTPException

from fleetbot import __version__
from fleetbot.constants import Timeouts
from fleetbot.core.exceptions import FleetBotError
from fleetbot.core.settings import FleetSettings, get_settings
from fleetbot.services.fleet import FleetManager
from web.exception_handlers import (
    fleet_exception_handler,
    http_exception_handler,
    unhandled_exception_handler,
    validation_exception_handler,
)
from web.routes import accounts_router, bots_router, health_router, status_router


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    FastAPI lifespan context manager for startup and shutdown.

    Handles:
    - Fleet manager creation and account loading on startup
    - Background start of every active bot
    - Fleet shutdown (bots stopped, browsers closed) with timeout protection
    """
    logger.info("Control surface starting up...")

    fleet: Optional[FleetManager] = app.state.fleet
    if fleet is None:
        fleet = FleetManager.from_settings(app.state.settings or get_settings())
        app.state.fleet = fleet

    await fleet.load_accounts()

    startup_task: Optional[asyncio.Task] = None
    if app.state.autostart:
        startup_task = asyncio.create_task(fleet.start_all_bots(), name="fleet_startup")

    yield

    logger.info("Control surface shutting down...")

    if startup_task is not None and not startup_task.done():
        startup_task.cancel()
        await asyncio.gather(startup_task, return_exceptions=True)

    try:
        await asyncio.wait_for(fleet.shutdown(), timeout=Timeouts.SHUTDOWN)
    except asyncio.TimeoutError:
        logger.error(f"Fleet shutdown timed out after {Timeouts.SHUTDOWN}s")
    except Exception as e:
        logger.error(f"Error shutting down fleet: {e}")


def create_app(
    fleet_manager: Optional[FleetManager] = None,
    settings: Optional[FleetSettings] = None,
    autostart: bool = True,
) -> FastAPI:
    """
    Factory function to create FastAPI application instance.

    Args:
        fleet_manager: Fleet manager to serve (built from settings at startup if omitted)
        settings: Settings used when building the fleet manager
        autostart: Start every active bot in the background at startup

    Returns:
        Configured FastAPI application instance
    """
    app = FastAPI(
        title="Session Fleet Control API",
        version=__version__,
        lifespan=lifespan,
        openapi_tags=[
            {"name": "status", "description": "Fleet status and refresh statistics"},
            {"name": "accounts", "description": "Account management"},
            {"name": "bots", "description": "Bot start and stop"},
            {"name": "health", "description": "Service health"},
        ],
    )

    app.state.fleet = fleet_manager
    app.state.settings = settings
    app.state.autostart = autostart

    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(FleetBotError, fleet_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    app.include_router(status_router, prefix="/api")
    app.include_router(accounts_router, prefix="/api")
    app.include_router(bots_router, prefix="/api")
    app.include_router(health_router)  # /health, /health/live

    return app
