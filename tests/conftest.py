"""Shared test fixtures.

Provides:
- InMemoryLedger: OperationLedger kept in a dict (no database)
- make_store(): AsyncMock CustomValueStore seeded with a remote snapshot
- sample_content: merged funnel content touching every mapper
"""

from __future__ import annotations

from typing import Any
from unittest.mock import AsyncMock

import pytest

from src.app.funnels.crm.adapter import CustomValueStore, OperationLedger
from src.app.funnels.schemas import CustomValue, PushOperationRead, PushResults, PushStatus


class InMemoryLedger(OperationLedger):
    """Operation ledger backed by a dict, preserving insertion order."""

    def __init__(self) -> None:
        self.operations: dict[str, PushOperationRead] = {}
        self.progress_updates: list[dict[str, Any]] = []

    async def create(self, funnel_id, location_id, total_items, content_hash):
        op = PushOperationRead(
            id=f"op-{len(self.operations) + 1}",
            funnel_id=funnel_id,
            location_id=location_id,
            status=PushStatus.in_progress,
            total_items=total_items,
            content_hash=content_hash,
        )
        self.operations[op.id] = op
        return op

    async def update_progress(self, operation_id, progress, completed_items, failed_items, current_key):
        self.progress_updates.append(
            {
                "operation_id": operation_id,
                "progress": progress,
                "completed_items": completed_items,
                "failed_items": failed_items,
                "current_key": current_key,
            }
        )

    async def finalize(self, operation_id, status, results, duration_ms, errors=None):
        op = self.operations[operation_id].model_copy(
            update={
                "status": status,
                "custom_values_pushed": results.model_copy(deep=True),
                "completed_items": len(results.created) + len(results.updated) + len(results.skipped),
                "failed_items": len(results.failed),
                "errors": errors or [],
                "progress": 100,
                "duration_ms": duration_ms,
            }
        )
        self.operations[operation_id] = op
        return op

    async def mark_failed(self, operation_id, error_message, results, duration_ms, stack=None):
        error = {"error": error_message}
        if stack:
            error["stack"] = stack
        self.operations[operation_id] = self.operations[operation_id].model_copy(
            update={
                "status": PushStatus.failed,
                "custom_values_pushed": results.model_copy(deep=True),
                "errors": [error],
                "duration_ms": duration_ms,
            }
        )

    async def get(self, operation_id):
        return self.operations.get(operation_id)

    async def latest_completed(self, funnel_id, location_id):
        for op in reversed(list(self.operations.values())):
            if op.funnel_id == funnel_id and op.location_id == location_id and op.status == PushStatus.completed:
                return op
        return None

    async def list_for_funnel(self, funnel_id, limit=20):
        ops = [op for op in self.operations.values() if op.funnel_id == funnel_id]
        return list(reversed(ops))[:limit]


def make_store(remote: list[CustomValue] | None = None) -> AsyncMock:
    """AsyncMock store whose creates echo back a record with a fresh id."""
    store = AsyncMock(spec=CustomValueStore)
    store.fetch_all.return_value = list(remote or [])

    async def _create(name: str, value: str) -> CustomValue:
        return CustomValue(id=f"new-{name}", name=name, value=value)

    async def _update(custom_value_id: str, name: str, value: str) -> CustomValue:
        return CustomValue(id=custom_value_id, name=name, value=value)

    store.create_custom_value.side_effect = _create
    store.update_custom_value.side_effect = _update
    return store


@pytest.fixture
def ledger() -> InMemoryLedger:
    return InMemoryLedger()


@pytest.fixture
def sample_content() -> dict[str, Any]:
    return {
        "intake_form": {
            "companyName": "Acme Coaching",
            "brandColors": "our brand is deep ocean blue",
            "supportEmail": "help@acme.test",
        },
        "message": {"coreMessage": "Scale your practice without burnout"},
        "emails": {
            "email1": {"subject": "Welcome", "body": "**Hello** there", "preview": "Start here"},
            "email8a": {"subject": "Morning", "body": "Rise and shine", "preheader": "AM"},
        },
        "sms": {"sms1": {"message": "Your guide is ready"}},
        "appointmentReminders": {
            "emailWhenBooked": {"subject": "You're booked", "body": "See you soon"},
            "sms1HourBefore": {"message": "One hour to go"},
        },
        "funnelCopy": {
            "optinPage": {"headline_text": "Free Practice Growth Guide"},
            "salesPage": {"cta_text": "Book Your Call", "faq_question_2": "How long does it take?"},
            "logo_image": "https://cdn.acme.test/logo.png",
        },
        "media": {"vslVideo": "https://cdn.acme.test/vsl.mp4"},
    }
