"""Health endpoints: liveness and readiness."""
import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from app.services.hub import BroadcastHub
from app.services.state import get_hub

router = APIRouter(tags=["health"])
logger = logging.getLogger("stock.health")


@router.get("/health/live")
async def liveness():
    """Liveness: process is running. No dependencies checked."""
    return {"status": "ok"}


@router.get("/health/ready")
async def readiness(hub: BroadcastHub = Depends(get_hub)):
    """Readiness: the broadcast loop is running."""
    if not hub.running:
        logger.warning("Readiness check failed: broadcast hub not running")
        return JSONResponse(
            status_code=503,
            content={"status": "unhealthy", "errors": ["hub"]},
        )
    return {"status": "ok", "subscribers": hub.subscriber_count}
