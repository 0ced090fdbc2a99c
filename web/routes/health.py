"""Health check routes."""

from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Request, Response

router = APIRouter(tags=["health"])


def get_version() -> str:
    """Get application version from centralized source."""
    from fleetbot import __version__

    return __version__


@router.get("/health")
async def health_check(request: Request, response: Response) -> Dict[str, Any]:
    """
    Health check endpoint for monitoring and container orchestration.

    Reports 503 while the fleet manager is missing or shutting down.

    Returns:
        Health status with fleet counters
    """
    fleet = getattr(request.app.state, "fleet", None)
    healthy = fleet is not None and not fleet.is_shutting_down
    if not healthy:
        response.status_code = 503

    body: Dict[str, Any] = {
        "status": "healthy" if healthy else "unhealthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": get_version(),
    }
    if fleet is not None:
        status = fleet.get_status()
        body["uptime_seconds"] = status["uptime_seconds"]
        body["running_bots"] = status["running_bots"]
    return body


@router.get("/health/live")
async def liveness_probe() -> Dict[str, str]:
    """Liveness probe. Always 200 while the process serves requests."""
    return {"status": "alive", "timestamp": datetime.now(timezone.utc).isoformat()}
