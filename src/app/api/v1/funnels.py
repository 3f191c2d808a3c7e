"""REST API endpoints for funnel custom values.

Provides preview (mapping without CRM calls), push, cancellation, and push
operation history. The PushService is created in the lifespan and read from
app.state.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, HTTPException, Query, Request, status
from pydantic import BaseModel, Field, field_validator

from src.app.funnels.aggregator import PUSH_SECTIONS
from src.app.funnels.errors import (
    ContentNotFoundError,
    PushCancelledError,
    PushInProgressError,
    RemoteFetchError,
)
from src.app.funnels.schemas import PushOperationRead, PushSummary
from src.app.funnels.service import CustomValuePreview

router = APIRouter(tags=["funnels"])


# ── Request Schemas ──────────────────────────────────────────────────────────


class PushRequest(BaseModel):
    """Push target and options."""

    location_id: str = Field(..., min_length=1)
    access_token: str = Field(..., min_length=1)
    selected_keys: list[str] | None = None
    sections: list[str] | None = None
    force: bool = False

    @field_validator("sections")
    @classmethod
    def _known_sections(cls, value: list[str] | None) -> list[str] | None:
        if value is None:
            return value
        unknown = sorted(set(value) - set(PUSH_SECTIONS))
        if unknown:
            raise ValueError(f"Unknown sections {unknown}; expected any of {list(PUSH_SECTIONS)}")
        return value


class CancelResponse(BaseModel):
    funnel_id: str
    cancelled: bool


# ── Dependencies ─────────────────────────────────────────────────────────────


def _get_push_service(request: Request) -> Any:
    """Retrieve PushService from app.state, 503 if not available."""
    service = getattr(request.app.state, "push_service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Push service not initialized",
        )
    return service


# ── Endpoints ────────────────────────────────────────────────────────────────


@router.get("/funnels/{funnel_id}/custom-values/preview", response_model=CustomValuePreview)
async def preview_custom_values(funnel_id: str, request: Request) -> CustomValuePreview:
    """Map the funnel's content to custom values without calling the CRM."""
    service = _get_push_service(request)
    try:
        return await service.preview(funnel_id)
    except ContentNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc


@router.post("/funnels/{funnel_id}/push", response_model=PushSummary)
async def push_custom_values(funnel_id: str, body: PushRequest, request: Request) -> PushSummary:
    """Push the funnel's custom values to a CRM location.

    Returns the summary; status "partial" means some keys failed and are
    listed in failed_keys. cached=true means nothing changed since the last
    completed push and no CRM call was made. sections scopes the push to
    content families such as emails, sms or colors.
    """
    service = _get_push_service(request)
    try:
        return await service.push(
            funnel_id,
            body.location_id,
            body.access_token,
            selected_keys=body.selected_keys,
            force=body.force,
            sections=body.sections,
        )
    except ContentNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except (PushInProgressError, PushCancelledError) as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except RemoteFetchError as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc


@router.post("/funnels/{funnel_id}/push/cancel", response_model=CancelResponse)
async def cancel_push(funnel_id: str, request: Request) -> CancelResponse:
    """Ask the running push for this funnel to stop before its next key."""
    service = _get_push_service(request)
    return CancelResponse(funnel_id=funnel_id, cancelled=service.cancel(funnel_id))


@router.get("/push-operations/{operation_id}", response_model=PushOperationRead)
async def get_push_operation(operation_id: str, request: Request) -> PushOperationRead:
    """Status, progress, and per-key outcomes of one push."""
    service = _get_push_service(request)
    operation = await service.get_operation(operation_id)
    if operation is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Push operation not found: {operation_id}",
        )
    return operation


@router.get("/funnels/{funnel_id}/push-operations", response_model=list[PushOperationRead])
async def list_push_operations(
    funnel_id: str,
    request: Request,
    limit: int = Query(20, ge=1, le=100),
) -> list[PushOperationRead]:
    """Recent push operations for a funnel, newest first."""
    service = _get_push_service(request)
    return await service.list_operations(funnel_id, limit)
