"""Helpers shared by the routers."""

from fastapi import HTTPException, Request

from ..errors import (
    ActionNotAllowedError,
    ClientNotFoundError,
    InvalidFieldError,
    OfflineOperationError,
    StoreError,
    WellnessError,
)
from ..models.client import ClientRecord
from ..services.wellness import WellnessService


def get_service(request: Request) -> WellnessService:
    """Get the session's service from app state."""
    return request.app.state.service


def to_http_error(error: WellnessError) -> HTTPException:
    """Map a domain error to an HTTP response."""
    if isinstance(error, ClientNotFoundError):
        return HTTPException(status_code=404, detail=str(error))
    if isinstance(error, ActionNotAllowedError):
        return HTTPException(status_code=403, detail=str(error))
    if isinstance(error, OfflineOperationError):
        return HTTPException(status_code=409, detail=str(error))
    if isinstance(error, InvalidFieldError):
        return HTTPException(status_code=422, detail=str(error))
    if isinstance(error, StoreError):
        return HTTPException(status_code=502, detail=f"Store error: {error}")
    return HTTPException(status_code=400, detail=str(error))


def client_summary(client: ClientRecord) -> dict:
    """Client fields shown in listings."""
    return {
        "id": client.id,
        "clientName": client.client_name,
        "phone": client.phone,
        "email": client.email,
        "coach": client.coach,
        "date": client.date,
        "updatedAt": client.updated_at.isoformat() if client.updated_at else None,
        "deleted": client.is_deleted,
        "pending": client.pending,
    }
