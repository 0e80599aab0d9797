"""Offline queue and connectivity routes."""

import logging

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from ...services.wellness import WellnessService
from ..dependencies import get_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sync", tags=["sync"])


class ConnectivityUpdate(BaseModel):
    online: bool


@router.get("")
async def sync_status(service: WellnessService = Depends(get_service)):
    """Pending offline changes, oldest first."""
    items = service.queue.load()
    return {
        "online": service.is_online,
        "pending": [item.to_dict() for item in items],
        "total": len(items),
    }


@router.post("/run")
async def run_sync(service: WellnessService = Depends(get_service)):
    """Replay pending changes against the store."""
    if not service.is_online:
        raise HTTPException(status_code=409, detail="Cannot sync while offline")
    result = await service.sync()
    logger.info("Manual sync applied %d item(s)", result.applied)
    return {
        "applied": result.applied,
        "remaining": result.remaining,
        "createdIds": result.created_ids,
        "error": result.error,
    }


@router.post("/connectivity")
async def set_connectivity(
    update: ConnectivityUpdate, service: WellnessService = Depends(get_service)
):
    """Flip the online flag; coming back online replays the queue."""
    await service.context.connectivity.set_online(update.online)
    return {"online": service.is_online, "pending": len(service.queue)}
