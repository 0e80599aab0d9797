"""Form editing routes."""

from typing import Literal

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from ...errors import WellnessError
from ...services.wellness import WellnessService
from ..dependencies import get_service, to_http_error

router = APIRouter(prefix="/form", tags=["form"])


class FieldChange(BaseModel):
    section: Literal["contact", "page2", "appointment", "evaluation"]
    key: str = Field(..., min_length=1)
    value: str = ""
    index: int | None = Field(None, description="Appointment index (0-25)")


class FormPatch(BaseModel):
    changes: list[FieldChange] = Field(..., min_length=1)


def _form_response(service: WellnessService, changed: bool | None = None) -> dict:
    history = service.history
    response = {
        "form": service.form.to_dict(),
        "canUndo": history.can_undo,
        "canRedo": history.can_redo,
    }
    if changed is not None:
        response["changed"] = changed
    return response


def _apply_change(service: WellnessService, change: FieldChange) -> bool:
    if change.section == "contact":
        return service.update_contact(change.key, change.value)
    if change.section == "page2":
        return service.update_page2(change.key, change.value)
    if change.section == "evaluation":
        return service.update_evaluation(change.key, change.value)
    if change.index is None:
        raise HTTPException(status_code=422, detail="Appointment changes need an index")
    return service.update_appointment(change.index, change.key, change.value)


@router.get("")
async def get_form(service: WellnessService = Depends(get_service)):
    """Current form and undo/redo availability."""
    return _form_response(service)


@router.patch("")
async def patch_form(patch: FormPatch, service: WellnessService = Depends(get_service)):
    """Apply field edits, one history entry per effective change."""
    changed = False
    try:
        for change in patch.changes:
            changed = _apply_change(service, change) or changed
    except WellnessError as e:
        raise to_http_error(e)
    return _form_response(service, changed)


@router.post("/today")
async def set_today(service: WellnessService = Depends(get_service)):
    return _form_response(service, service.set_today_date())


@router.post("/undo")
async def undo(service: WellnessService = Depends(get_service)):
    return _form_response(service, service.undo())


@router.post("/redo")
async def redo(service: WellnessService = Depends(get_service)):
    return _form_response(service, service.redo())


@router.post("/clear")
async def clear(service: WellnessService = Depends(get_service)):
    return _form_response(service, service.clear())


@router.post("/open/{client_id}")
async def open_client(client_id: str, service: WellnessService = Depends(get_service)):
    """Load an existing client into the form."""
    try:
        service.open_client_in_form(client_id)
    except WellnessError as e:
        raise to_http_error(e)
    return _form_response(service, True)
