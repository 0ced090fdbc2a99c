"""Bot control routes."""

import logging

from fastapi import APIRouter, Depends, HTTPException

from fleetbot.services.fleet import FleetManager
from web.dependencies import get_fleet_manager
from web.models import ActionResponse, CountResponse

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/bots", tags=["bots"])


# Batch routes are declared first so "start-all" is never taken for a login id
@router.post("/start-all", response_model=CountResponse)
async def start_all_bots(fleet: FleetManager = Depends(get_fleet_manager)) -> CountResponse:
    """Start every active account's bot, one at a time."""
    count = await fleet.start_all_bots()
    return CountResponse(success=True, message=f"Started {count} bots", count=count)


@router.post("/stop-all", response_model=CountResponse)
async def stop_all_bots(fleet: FleetManager = Depends(get_fleet_manager)) -> CountResponse:
    """Stop every running bot, one at a time."""
    count = await fleet.stop_all_bots()
    return CountResponse(success=True, message=f"Stopped {count} bots", count=count)


@router.post("/{login_id}/start", response_model=ActionResponse)
async def start_bot(
    login_id: str, fleet: FleetManager = Depends(get_fleet_manager)
) -> ActionResponse:
    """Start one account's bot."""
    if not await fleet.start_bot(login_id):
        raise HTTPException(status_code=404, detail=f"Failed to start bot for {login_id}")
    logger.info("Bot started via control surface")
    return ActionResponse(success=True, message=f"Bot for {login_id} started successfully")


@router.post("/{login_id}/stop", response_model=ActionResponse)
async def stop_bot(
    login_id: str, fleet: FleetManager = Depends(get_fleet_manager)
) -> ActionResponse:
    """Stop one account's bot."""
    if not await fleet.stop_bot(login_id):
        raise HTTPException(status_code=404, detail=f"Failed to stop bot for {login_id}")
    logger.info("Bot stopped via control surface")
    return ActionResponse(success=True, message=f"Bot for {login_id} stopped successfully")
