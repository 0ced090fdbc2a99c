"""Shared dependencies for the control surface."""

from fastapi import HTTPException, Request

from fleetbot.services.fleet import FleetManager


def get_fleet_manager(request: Request) -> FleetManager:
    """
    Get the fleet manager attached to the application.

    Raises:
        HTTPException: 503 if the application has not finished starting
    """
    fleet = getattr(request.app.state, "fleet", None)
    if fleet is None:
        raise HTTPException(status_code=503, detail="Fleet manager not initialized")
    return fleet
