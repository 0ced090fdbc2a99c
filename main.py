#!/usr/bin/env python3
"""
Session Fleet - automated browsing sessions for a fleet of accounts.

Main entry point for the application.
"""

import argparse
import asyncio
import logging
import os
import sys
from typing import Any, Dict

from pydantic import ValidationError

from fleetbot.core.exceptions import ConfigurationError
from fleetbot.core.logger import setup_structured_logging
from fleetbot.core.settings import FleetSettings


def load_settings(overrides: Dict[str, Any]) -> FleetSettings:
    """
    Build settings from the environment, with command line overrides on top.

    Raises:
        ConfigurationError: If the resulting settings are invalid
    """
    try:
        return FleetSettings(**{k: v for k, v in overrides.items() if v is not None})
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e


async def run_server(settings: FleetSettings, autostart: bool = True) -> None:
    """
    Serve the control surface until the process is signalled.

    Bots are started and stopped by the application lifespan.

    Args:
        settings: Validated settings
        autostart: Start every active bot once the server is up
    """
    import uvicorn

    from web.app import create_app

    logger = logging.getLogger(__name__)
    logger.info(f"Starting control surface on {settings.host}:{settings.port}")

    app = create_app(settings=settings, autostart=autostart)
    config_uvicorn = uvicorn.Config(
        app,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
        log_config=None,  # keep the loguru intercept in place
    )
    server = uvicorn.Server(config_uvicorn)
    await server.serve()
    logger.info("Control surface stopped")


def main() -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Session Fleet - automated account sessions")
    parser.add_argument("--host", default=None, help="Control surface bind address")
    parser.add_argument("--port", type=int, default=None, help="Control surface port")
    parser.add_argument(
        "--log-level",
        default=os.getenv("LOG_LEVEL", "INFO").upper(),
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level",
    )
    parser.add_argument(
        "--headless", action="store_true", default=None, help="Run browsers without a window"
    )
    parser.add_argument(
        "--no-autostart",
        action="store_true",
        help="Do not start the bots when the server comes up",
    )

    args = parser.parse_args()

    # Setup structured logging
    json_logging = os.getenv("JSON_LOGGING", "true").lower() == "true"
    setup_structured_logging(args.log_level, json_format=json_logging)
    logger = logging.getLogger(__name__)

    try:
        settings = load_settings(
            {
                "host": args.host,
                "port": args.port,
                "headless": args.headless,
                "log_level": args.log_level,
            }
        )
        logger.info(f"Target: {settings.get_target_url()}")

        asyncio.run(run_server(settings, autostart=not args.no_autostart))

    except ConfigurationError as e:
        logger.error(e.message)
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("Interrupted")
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
