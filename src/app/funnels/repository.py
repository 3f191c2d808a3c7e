"""Funnel persistence -- Field Store reads and the push operation ledger.

Provides two repositories with the session_factory callable pattern:
- FieldStoreRepository: read-only access to section blobs, field rows
  (parsed into the tagged union at ingestion), and completed images
- PushOperationRepository: OperationLedger implementation over
  ghl_push_operations

Per-key outcome lists are serialized via Pydantic model_dump(mode="json")
and deserialized via model_validate().
"""

from __future__ import annotations

import uuid
from collections.abc import AsyncGenerator, Callable
from datetime import datetime, timezone
from typing import Any

import structlog
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.app.funnels.crm.adapter import OperationLedger
from src.app.funnels.fields import to_field_record
from src.app.funnels.models import (
    GeneratedImageModel,
    PushOperationModel,
    VaultContentModel,
    VaultFieldModel,
)
from src.app.funnels.schemas import (
    FieldRecord,
    GeneratedImage,
    PushOperationRead,
    PushResults,
    PushStatus,
)

logger = structlog.get_logger(__name__)

SessionFactory = Callable[..., AsyncGenerator[AsyncSession, None]]


# ── Serialization Helpers ───────────────────────────────────────────────────


def _model_to_operation(model: PushOperationModel) -> PushOperationRead:
    """Convert PushOperationModel to PushOperationRead schema."""
    return PushOperationRead(
        id=str(model.id),
        funnel_id=model.funnel_id,
        location_id=model.location_id,
        status=PushStatus(model.status),
        total_items=model.total_items or 0,
        completed_items=model.completed_items or 0,
        failed_items=model.failed_items or 0,
        progress=model.progress or 0,
        current_key=model.current_key,
        content_hash=model.content_hash,
        custom_values_pushed=PushResults.model_validate(model.custom_values_pushed or {}),
        errors=model.errors or [],
        started_at=model.started_at,
        completed_at=model.completed_at,
        duration_ms=model.duration_ms,
    )


def _parse_uuid(value: str) -> uuid.UUID | None:
    try:
        return uuid.UUID(value)
    except ValueError:
        return None


# ── Field Store ─────────────────────────────────────────────────────────────


class FieldStoreRepository:
    """Read-only access to generated funnel content.

    Args:
        session_factory: Async callable that yields AsyncSession instances.
    """

    def __init__(self, session_factory: SessionFactory) -> None:
        self._session_factory = session_factory

    async def get_section_blobs(self, funnel_id: str) -> dict[str, Any]:
        """Return {section_id: content} for the current version of every section."""
        async for session in self._session_factory():
            stmt = (
                select(VaultContentModel)
                .where(
                    VaultContentModel.funnel_id == funnel_id,
                    VaultContentModel.is_current_version.is_(True),
                )
                .order_by(VaultContentModel.version)
            )
            result = await session.execute(stmt)
            # Ascending version order: the newest row wins if several are flagged current
            return {m.section_id: m.content for m in result.scalars().all()}

    async def get_field_rows(self, funnel_id: str) -> list[FieldRecord]:
        """Return every field row of the funnel parsed into FieldRecords."""
        async for session in self._session_factory():
            stmt = select(VaultFieldModel).where(VaultFieldModel.funnel_id == funnel_id)
            result = await session.execute(stmt)
            return [
                to_field_record(
                    {
                        "section_id": m.section_id,
                        "field_id": m.field_id,
                        "field_type": m.field_type,
                        "field_value": m.field_value,
                        "is_approved": m.is_approved,
                        "version": m.version,
                        "is_custom": m.is_custom,
                    }
                )
                for m in result.scalars().all()
            ]

    async def get_completed_images(self, funnel_id: str) -> list[GeneratedImage]:
        async for session in self._session_factory():
            stmt = (
                select(GeneratedImageModel)
                .where(
                    GeneratedImageModel.funnel_id == funnel_id,
                    GeneratedImageModel.status == "completed",
                )
                .order_by(GeneratedImageModel.created_at)
            )
            result = await session.execute(stmt)
            return [
                GeneratedImage(image_type=m.image_type, public_url=m.public_url)
                for m in result.scalars().all()
                if m.public_url
            ]


# ── Operation Ledger ────────────────────────────────────────────────────────


class PushOperationRepository(OperationLedger):
    """Push operation ledger backed by ghl_push_operations.

    Args:
        session_factory: Async callable that yields AsyncSession instances.
    """

    def __init__(self, session_factory: SessionFactory) -> None:
        self._session_factory = session_factory

    async def create(
        self,
        funnel_id: str,
        location_id: str,
        total_items: int,
        content_hash: str,
    ) -> PushOperationRead:
        async for session in self._session_factory():
            model = PushOperationModel(
                funnel_id=funnel_id,
                location_id=location_id,
                status=PushStatus.in_progress.value,
                total_items=total_items,
                content_hash=content_hash,
                custom_values_pushed=PushResults().model_dump(mode="json"),
                errors=[],
            )
            session.add(model)
            await session.commit()
            await session.refresh(model)
            logger.debug("ledger.created", operation_id=str(model.id), funnel_id=funnel_id)
            return _model_to_operation(model)

    async def update_progress(
        self,
        operation_id: str,
        progress: int,
        completed_items: int,
        failed_items: int,
        current_key: str | None,
    ) -> None:
        async for session in self._session_factory():
            stmt = (
                update(PushOperationModel)
                .where(PushOperationModel.id == uuid.UUID(operation_id))
                .values(
                    progress=progress,
                    completed_items=completed_items,
                    failed_items=failed_items,
                    current_key=current_key,
                )
            )
            await session.execute(stmt)
            await session.commit()

    async def finalize(
        self,
        operation_id: str,
        status: PushStatus,
        results: PushResults,
        duration_ms: int,
        errors: list[dict[str, Any]] | None = None,
    ) -> PushOperationRead:
        async for session in self._session_factory():
            model = await session.get(PushOperationModel, uuid.UUID(operation_id))
            if model is None:
                raise LookupError(f"Push operation {operation_id} not found")
            model.status = status.value
            model.completed_items = len(results.created) + len(results.updated) + len(results.skipped)
            model.failed_items = len(results.failed)
            model.progress = 100
            model.current_key = None
            model.custom_values_pushed = results.model_dump(mode="json")
            model.errors = errors or []
            if status == PushStatus.failed and errors:
                model.error_message = str(errors[0].get("error"))
            model.completed_at = datetime.now(timezone.utc)
            model.duration_ms = duration_ms
            await session.commit()
            await session.refresh(model)
            logger.debug("ledger.finalized", operation_id=operation_id, status=status.value)
            return _model_to_operation(model)

    async def mark_failed(
        self,
        operation_id: str,
        error_message: str,
        results: PushResults,
        duration_ms: int,
        stack: str | None = None,
    ) -> None:
        error = {"error": error_message}
        if stack:
            error["stack"] = stack
        async for session in self._session_factory():
            stmt = (
                update(PushOperationModel)
                .where(PushOperationModel.id == uuid.UUID(operation_id))
                .values(
                    status=PushStatus.failed.value,
                    error_message=error_message,
                    errors=[error],
                    completed_items=len(results.created) + len(results.updated) + len(results.skipped),
                    failed_items=len(results.failed),
                    custom_values_pushed=results.model_dump(mode="json"),
                    completed_at=datetime.now(timezone.utc),
                    duration_ms=duration_ms,
                )
            )
            await session.execute(stmt)
            await session.commit()

    async def get(self, operation_id: str) -> PushOperationRead | None:
        op_uuid = _parse_uuid(operation_id)
        if op_uuid is None:
            return None
        async for session in self._session_factory():
            model = await session.get(PushOperationModel, op_uuid)
            if model is None:
                return None
            return _model_to_operation(model)

    async def latest_completed(self, funnel_id: str, location_id: str) -> PushOperationRead | None:
        async for session in self._session_factory():
            stmt = (
                select(PushOperationModel)
                .where(
                    PushOperationModel.funnel_id == funnel_id,
                    PushOperationModel.location_id == location_id,
                    PushOperationModel.status == PushStatus.completed.value,
                )
                .order_by(PushOperationModel.started_at.desc())
                .limit(1)
            )
            result = await session.execute(stmt)
            model = result.scalar_one_or_none()
            if model is None:
                return None
            return _model_to_operation(model)

    async def list_for_funnel(self, funnel_id: str, limit: int = 20) -> list[PushOperationRead]:
        async for session in self._session_factory():
            stmt = (
                select(PushOperationModel)
                .where(PushOperationModel.funnel_id == funnel_id)
                .order_by(PushOperationModel.started_at.desc())
                .limit(limit)
            )
            result = await session.execute(stmt)
            return [_model_to_operation(m) for m in result.scalars().all()]
