"""Funnel push service -- wires the Field Store, mapping pipeline, and push engine.

load -> normalize -> aggregate is pure apart from the Field Store reads; the
push path adds the cached previous operation lookup and a GHLClient bound
to the caller's location and token.
"""

from __future__ import annotations

from collections.abc import Callable, Collection
from typing import Any

import structlog
from pydantic import BaseModel, Field

from src.app.funnels.aggregator import aggregate
from src.app.funnels.crm.adapter import CustomValueStore
from src.app.funnels.crm.ghl_client import GHLClient
from src.app.funnels.crm.push import ProgressCallback, PushEngine
from src.app.funnels.errors import ContentNotFoundError
from src.app.funnels.hashing import compute_content_hash
from src.app.funnels.normalizer import merge_funnel_content
from src.app.funnels.repository import FieldStoreRepository, PushOperationRepository
from src.app.funnels.schemas import AggregationResult, PushOperationRead, PushSummary
from src.app.funnels.validation import (
    validate_appointment_reminders,
    validate_custom_values,
    validate_email_content,
    validate_sms_content,
)

logger = structlog.get_logger(__name__)

StoreFactory = Callable[[str, str], CustomValueStore]


class CustomValuePreview(BaseModel):
    """Desired state for a funnel without touching the CRM."""

    funnel_id: str
    content_hash: str
    total: int
    values: dict[str, str] = Field(default_factory=dict)
    warnings: list[str] = Field(default_factory=list)
    inferred_keys: list[str] = Field(default_factory=list)
    defaulted_keys: list[str] = Field(default_factory=list)
    validation: dict[str, Any] = Field(default_factory=dict)
    key_sections: dict[str, str] = Field(default_factory=dict)


def _ghl_store(location_id: str, access_token: str) -> CustomValueStore:
    return GHLClient(access_token=access_token, location_id=location_id)


class PushService:
    """Facade used by the API layer.

    Args:
        field_store: Read-only content repository.
        ledger: Push operation repository.
        engine: Push engine sharing the same ledger.
        store_factory: (location_id, access_token) -> CustomValueStore.
    """

    def __init__(
        self,
        field_store: FieldStoreRepository,
        ledger: PushOperationRepository,
        engine: PushEngine,
        store_factory: StoreFactory = _ghl_store,
    ) -> None:
        self._field_store = field_store
        self._ledger = ledger
        self._engine = engine
        self._store_factory = store_factory

    async def load_merged_content(self, funnel_id: str) -> dict[str, dict[str, Any]]:
        blobs = await self._field_store.get_section_blobs(funnel_id)
        records = await self._field_store.get_field_rows(funnel_id)
        if not blobs and not records:
            raise ContentNotFoundError(funnel_id)
        return merge_funnel_content(blobs, records)

    async def build_desired_state(self, funnel_id: str) -> tuple[dict[str, dict[str, Any]], AggregationResult]:
        merged = await self.load_merged_content(funnel_id)
        images = await self._field_store.get_completed_images(funnel_id)
        return merged, aggregate(merged, images)

    async def preview(self, funnel_id: str) -> CustomValuePreview:
        merged, result = await self.build_desired_state(funnel_id)
        validation = {
            "emails": validate_email_content(merged.get("emails")),
            "sms": validate_sms_content(merged.get("sms")),
            "appointmentReminders": validate_appointment_reminders(merged.get("appointmentReminders")),
            "customValues": validate_custom_values(result.values),
        }
        return CustomValuePreview(
            funnel_id=funnel_id,
            content_hash=compute_content_hash(result.values),
            total=len(result.values),
            values=result.values,
            warnings=result.warnings,
            inferred_keys=result.inferred_keys,
            defaulted_keys=result.defaulted_keys,
            validation={name: report.model_dump() for name, report in validation.items()},
            key_sections=result.key_sections,
        )

    async def push(
        self,
        funnel_id: str,
        location_id: str,
        access_token: str,
        selected_keys: Collection[str] | None = None,
        force: bool = False,
        progress_callback: ProgressCallback | None = None,
        sections: Collection[str] | None = None,
    ) -> PushSummary:
        """Push the funnel's desired state, or the part of it the caller scoped.

        Args:
            sections: Only push keys produced for these content families
                (see PUSH_SECTIONS), e.g. ["emails"] or ["colors", "media"].
            selected_keys: Only push these keys. Combined with sections, a key
                must satisfy both.
        """
        _, result = await self.build_desired_state(funnel_id)
        desired = result.values
        if sections is not None:
            wanted = set(sections)
            desired = {k: v for k, v in desired.items() if result.key_sections.get(k) in wanted}
            logger.info("push.sections_selected", funnel_id=funnel_id, sections=sorted(wanted), keys=len(desired))

        previous = None if force else await self._ledger.latest_completed(funnel_id, location_id)
        store = self._store_factory(location_id, access_token)
        return await self._engine.push(
            store,
            funnel_id,
            location_id,
            desired,
            previous_operation=previous,
            progress_callback=progress_callback,
            selected_keys=selected_keys,
            force=force,
        )

    def cancel(self, funnel_id: str) -> bool:
        """Request cancellation of the running push for a funnel, if any."""
        return self._engine.cancel(funnel_id)

    async def get_operation(self, operation_id: str) -> PushOperationRead | None:
        return await self._ledger.get(operation_id)

    async def list_operations(self, funnel_id: str, limit: int = 20) -> list[PushOperationRead]:
        return await self._ledger.list_for_funnel(funnel_id, limit)
