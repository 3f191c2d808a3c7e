"""Tests for the funnel repositories without a database.

The session factory yields a MagicMock AsyncSession whose execute/get results
are seeded per test.
"""

from __future__ import annotations

import uuid
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.app.funnels.models import PushOperationModel
from src.app.funnels.repository import (
    FieldStoreRepository,
    PushOperationRepository,
    _model_to_operation,
)
from src.app.funnels.schemas import ArrayValue, PushAction, PushItemResult, PushResults, PushStatus, TextValue


def _make_session(rows=None, get_result=None) -> MagicMock:
    session = MagicMock()
    result = MagicMock()
    result.scalars.return_value.all.return_value = list(rows or [])
    session.execute = AsyncMock(return_value=result)
    session.get = AsyncMock(return_value=get_result)
    session.commit = AsyncMock()
    session.refresh = AsyncMock()
    return session


def _factory(session):
    async def session_factory():
        yield session

    return session_factory


def _make_operation_model(**overrides) -> PushOperationModel:
    defaults = {
        "id": uuid.uuid4(),
        "funnel_id": "funnel-1",
        "location_id": "loc-1",
        "status": "in_progress",
        "total_items": 3,
        "content_hash": "abc",
        "custom_values_pushed": PushResults().model_dump(mode="json"),
        "errors": [],
    }
    defaults.update(overrides)
    return PushOperationModel(**defaults)


# ── Serialization ─────────────────────────────────────────────────────────


class TestModelToOperation:
    def test_round_trips_per_key_results(self):
        results = PushResults()
        results.record(PushItemResult(key="a", action=PushAction.updated, value="new", old_value="old"))
        model = _make_operation_model(status="partial", custom_values_pushed=results.model_dump(mode="json"))

        op = _model_to_operation(model)

        assert op.id == str(model.id)
        assert op.status == PushStatus.partial
        assert op.custom_values_pushed.updated[0].old_value == "old"

    def test_null_columns_default(self):
        op = _model_to_operation(_make_operation_model(custom_values_pushed=None, errors=None, progress=None))
        assert op.custom_values_pushed == PushResults()
        assert op.errors == []
        assert op.progress == 0


# ── Field Store ───────────────────────────────────────────────────────────


class TestFieldStoreRepository:
    async def test_section_blobs_newest_version_wins(self):
        rows = [
            SimpleNamespace(section_id="emails", content={"email1": {"subject": "v1"}}),
            SimpleNamespace(section_id="emails", content={"email1": {"subject": "v2"}}),
            SimpleNamespace(section_id="sms", content={}),
        ]
        repo = FieldStoreRepository(_factory(_make_session(rows)))

        blobs = await repo.get_section_blobs("funnel-1")

        assert blobs == {"emails": {"email1": {"subject": "v2"}}, "sms": {}}

    async def test_field_rows_are_parsed(self):
        rows = [
            SimpleNamespace(
                section_id="funnelCopy",
                field_id="optinPage.headline_text",
                field_type="text",
                field_value="Free Guide",
                is_approved=True,
                version=2,
                is_custom=False,
            ),
            SimpleNamespace(
                section_id="offer",
                field_id="bonuses",
                field_type="array",
                field_value='["a", "b"]',
                is_approved=False,
                version=1,
                is_custom=True,
            ),
        ]
        repo = FieldStoreRepository(_factory(_make_session(rows)))

        records = await repo.get_field_rows("funnel-1")

        assert records[0].value == TextValue(value="Free Guide")
        assert records[0].version == 2
        assert isinstance(records[1].value, ArrayValue)
        assert records[1].value.value == ["a", "b"]

    async def test_images_without_url_are_dropped(self):
        rows = [
            SimpleNamespace(image_type="hero", public_url="https://cdn.test/hero.png"),
            SimpleNamespace(image_type="vsl", public_url=None),
        ]
        repo = FieldStoreRepository(_factory(_make_session(rows)))

        images = await repo.get_completed_images("funnel-1")

        assert [i.image_type for i in images] == ["hero"]


# ── Operation Ledger ──────────────────────────────────────────────────────


class TestPushOperationRepository:
    async def test_get_invalid_id_returns_none(self):
        session = _make_session()
        repo = PushOperationRepository(_factory(session))

        assert await repo.get("not-a-uuid") is None
        session.get.assert_not_awaited()

    async def test_finalize_sets_counts_and_progress(self):
        model = _make_operation_model()
        session = _make_session(get_result=model)
        repo = PushOperationRepository(_factory(session))
        results = PushResults()
        results.record(PushItemResult(key="a", action=PushAction.created, value="1"))
        results.record(PushItemResult(key="b", action=PushAction.failed, value="2", error="HTTP 422"))

        op = await repo.finalize(
            str(model.id), PushStatus.partial, results, 120, errors=[{"key": "b", "error": "HTTP 422"}]
        )

        assert op.status == PushStatus.partial
        assert (op.completed_items, op.failed_items, op.progress) == (1, 1, 100)
        assert op.duration_ms == 120
        assert op.errors == [{"key": "b", "error": "HTTP 422"}]
        assert model.error_message is None
        session.commit.assert_awaited_once()

    async def test_finalize_cancelled_records_error_message(self):
        model = _make_operation_model()
        repo = PushOperationRepository(_factory(_make_session(get_result=model)))

        await repo.finalize(str(model.id), PushStatus.failed, PushResults(), 5, errors=[{"key": "b", "error": "cancelled"}])

        assert model.status == "failed"
        assert model.error_message == "cancelled"

    async def test_mark_failed_persists_stack(self):
        session = _make_session()
        repo = PushOperationRepository(_factory(session))

        await repo.mark_failed(str(uuid.uuid4()), "boom", PushResults(), 7, stack="Traceback: boom")

        params = session.execute.await_args.args[0].compile().params
        assert params["status"] == "failed"
        assert params["error_message"] == "boom"
        assert params["errors"] == [{"error": "boom", "stack": "Traceback: boom"}]
        session.commit.assert_awaited_once()

    async def test_finalize_missing_operation(self):
        repo = PushOperationRepository(_factory(_make_session(get_result=None)))
        with pytest.raises(LookupError):
            await repo.finalize(str(uuid.uuid4()), PushStatus.completed, PushResults(), 1)
