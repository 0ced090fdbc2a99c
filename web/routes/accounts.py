"""Account management routes."""

from fastapi import APIRouter, Depends, HTTPException
from loguru import logger

from fleetbot.core.exceptions import AccountNotFoundError
from fleetbot.services.fleet import FleetManager
from web.dependencies import get_fleet_manager
from web.models import AccountCreateRequest, ActionResponse

router = APIRouter(prefix="/accounts", tags=["accounts"])


@router.post("", response_model=ActionResponse)
async def add_account(
    account: AccountCreateRequest, fleet: FleetManager = Depends(get_fleet_manager)
) -> ActionResponse:
    """Add or update an account and start its bot."""
    await fleet.add_account(account.username, account.password, account.handle)
    return ActionResponse(success=True, message=f"Account {account.handle} added successfully")


@router.delete("/{login_id}", response_model=ActionResponse)
async def remove_account(
    login_id: str, fleet: FleetManager = Depends(get_fleet_manager)
) -> ActionResponse:
    """Stop the account's bot and remove the account."""
    if not await fleet.remove_account(login_id):
        raise AccountNotFoundError(login_id)
    return ActionResponse(success=True, message=f"Account {login_id} removed successfully")


@router.post("/{login_id}/activate", response_model=ActionResponse)
async def activate_account(
    login_id: str, fleet: FleetManager = Depends(get_fleet_manager)
) -> ActionResponse:
    """Include the account in start-all."""
    return await _set_active(fleet, login_id, True)


@router.post("/{login_id}/deactivate", response_model=ActionResponse)
async def deactivate_account(
    login_id: str, fleet: FleetManager = Depends(get_fleet_manager)
) -> ActionResponse:
    """Exclude the account from start-all. A running bot keeps running."""
    return await _set_active(fleet, login_id, False)


async def _set_active(fleet: FleetManager, login_id: str, active: bool) -> ActionResponse:
    if not await fleet.set_account_active(login_id, active):
        raise HTTPException(status_code=404, detail=f"Account {login_id} not found")
    state = "activated" if active else "deactivated"
    logger.info(f"Account toggled via control surface: {state}")
    return ActionResponse(success=True, message=f"Account {login_id} {state}")
