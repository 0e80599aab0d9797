"""Client management routes."""

from datetime import date

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from ...errors import WellnessError
from ...services.client_listing import ClientSort, ClientsView, filter_clients
from ...services.wellness import RETENTION_DAYS, SaveStatus, WellnessService
from ..dependencies import client_summary, get_service, to_http_error

router = APIRouter(prefix="/clients", tags=["clients"])


class SaveRequest(BaseModel):
    skip_duplicate_check: bool = False


@router.get("")
async def list_clients(
    view: ClientsView = ClientsView.ALL,
    sort: ClientSort = ClientSort.UPDATED_AT_DESC,
    search: str = "",
    on_date: date | None = None,
    service: WellnessService = Depends(get_service),
):
    """List clients for the session."""
    source = (
        service.deleted_clients()
        if view == ClientsView.RECYCLE_BIN
        else service.visible_clients()
    )
    listed = filter_clients(
        source, view=view, search=search, sort=sort, selected_date=on_date
    )
    return {
        "clients": [client_summary(c) for c in listed],
        "total": len(listed),
        "online": service.is_online,
    }


@router.post("")
async def save_client(
    body: SaveRequest | None = None,
    service: WellnessService = Depends(get_service),
):
    """Save the current form.

    A possible duplicate is reported with status 409 and nothing is saved;
    resend with ``skip_duplicate_check`` to save anyway.
    """
    skip = body.skip_duplicate_check if body else False
    try:
        result = await service.save(skip_duplicate_check=skip)
    except WellnessError as e:
        raise to_http_error(e)

    if result.status == SaveStatus.DUPLICATE:
        duplicate = result.duplicate
        raise HTTPException(
            status_code=409,
            detail={
                "message": result.message,
                "type": duplicate.type.value,
                "reason": duplicate.reason.value,
                "match": client_summary(duplicate.match),
            },
        )
    return {
        "status": result.status.value,
        "clientId": result.client_id,
        "message": result.message,
    }


@router.post("/restore-all")
async def restore_all(service: WellnessService = Depends(get_service)):
    try:
        count = await service.restore_all_deleted()
    except WellnessError as e:
        raise to_http_error(e)
    return {"restored": count}


@router.post("/undo-delete")
async def undo_delete(service: WellnessService = Depends(get_service)):
    """Undo the last delete if it happened within the undo window."""
    try:
        client = await service.undo_delete()
    except WellnessError as e:
        raise to_http_error(e)
    if client is None:
        raise HTTPException(status_code=404, detail="Nothing to undo")
    return {"restored": client_summary(client)}


@router.delete("/recycle-bin")
async def empty_recycle_bin(service: WellnessService = Depends(get_service)):
    """Permanently delete everything in the recycle bin (online only)."""
    try:
        count = await service.empty_recycle_bin()
    except WellnessError as e:
        raise to_http_error(e)
    return {"deleted": count}


@router.post("/purge")
async def purge(days: int = RETENTION_DAYS, service: WellnessService = Depends(get_service)):
    """Hard-delete clients soft-deleted more than ``days`` ago (admins only)."""
    try:
        count = await service.purge_expired_deletions(retention_days=days)
    except WellnessError as e:
        raise to_http_error(e)
    return {"purged": count}


@router.delete("/{client_id}")
async def delete_client(client_id: str, service: WellnessService = Depends(get_service)):
    """Move a client to the recycle bin."""
    try:
        client = await service.delete_client(client_id)
    except WellnessError as e:
        raise to_http_error(e)
    return {"deleted": client.id, "queued": not service.is_online}


@router.post("/{client_id}/restore")
async def restore_client(client_id: str, service: WellnessService = Depends(get_service)):
    try:
        client = await service.restore_client(client_id)
    except WellnessError as e:
        raise to_http_error(e)
    return {"restored": client.id, "queued": not service.is_online}
