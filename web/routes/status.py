"""Fleet status routes."""

from typing import Any, Dict

from fastapi import APIRouter, Depends

from fleetbot.services.fleet import FleetManager
from web.dependencies import get_fleet_manager

router = APIRouter(tags=["status"])


@router.get("/status")
async def get_status(fleet: FleetManager = Depends(get_fleet_manager)) -> Dict[str, Any]:
    """Get a snapshot of accounts and running bots."""
    return fleet.get_status()


@router.get("/stats/refreshes")
async def get_refresh_stats(fleet: FleetManager = Depends(get_fleet_manager)) -> Dict[str, Any]:
    """Get aggregate and per-account refresh counts with start time and uptime."""
    return fleet.get_refresh_stats()
