"""Reconciliation engine -- converge the CRM's custom values on the desired state.

Per push:
1. Hash the desired map. If the previous completed operation carries the
   same hash, finish immediately as a cache hit (every key skipped, zero
   remote calls) unless force is set.
2. Fetch the full remote snapshot and index it (exact name, then looser forms).
3. For each key in order: skip when the remote value is identical, else
   create or update, then wait the inter-request delay.
4. Finalize the ledger record as completed (no failures) or partial.

A single key's write failure is recorded and the loop continues. Anything
else that escapes steps 2-4 marks the operation failed and is re-raised.
"""

from __future__ import annotations

import asyncio
import math
import time
import traceback
from collections.abc import Awaitable, Callable, Collection, Mapping
from typing import Any

import structlog

from src.app.config import get_settings
from src.app.core.monitoring import push_duration_seconds, push_items_total, push_operations_total
from src.app.funnels.crm.adapter import CustomValueStore, OperationLedger
from src.app.funnels.crm.key_matcher import RemoteIndex
from src.app.funnels.crm.locks import FunnelLockManager
from src.app.funnels.errors import PushCancelledError
from src.app.funnels.hashing import compute_content_hash
from src.app.funnels.schemas import (
    PushAction,
    PushItemResult,
    PushOperationRead,
    PushProgress,
    PushResults,
    PushStatus,
    PushSummary,
)

logger = structlog.get_logger(__name__)

SNIPPET_LENGTH = 100
LOOP_PROGRESS_START = 40
LOOP_PROGRESS_SPAN = 55

ProgressCallback = Callable[[PushProgress], Any]


def _snippet(value: str | None) -> str | None:
    if value is None:
        return None
    return value if len(value) <= SNIPPET_LENGTH else value[:SNIPPET_LENGTH] + "..."


def loop_percent(processed: int, total: int) -> int:
    if total <= 0:
        return LOOP_PROGRESS_START + LOOP_PROGRESS_SPAN
    return LOOP_PROGRESS_START + math.floor(processed / total * LOOP_PROGRESS_SPAN)


def success_rate(results: PushResults, total: int) -> int:
    if total <= 0:
        return 100
    ok = len(results.created) + len(results.updated) + len(results.skipped)
    return round(ok / total * 100)


class PushEngine:
    """Serial, rate-limited push of a desired custom value map.

    Args:
        ledger: Operation ledger, used for the audit record only. The cache
            source is passed to push() explicitly as previous_operation.
        lock_manager: Per-funnel lease; a private in-process one by default.
        request_delay: Seconds to wait after every remote create/update.
        sleep: Awaitable sleep, injectable for tests.
    """

    def __init__(
        self,
        ledger: OperationLedger,
        lock_manager: FunnelLockManager | None = None,
        request_delay: float | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self._ledger = ledger
        self._locks = lock_manager or FunnelLockManager()
        self._delay = get_settings().PUSH_REQUEST_DELAY_SECONDS if request_delay is None else request_delay
        self._sleep = sleep
        # Cancel signal of the push currently holding each funnel lease
        self._running: dict[str, asyncio.Event] = {}

    def cancel(self, funnel_id: str) -> bool:
        """Signal the push holding this funnel's lease to stop before its next key.

        Pushes queued behind it are unaffected. Returns False when no push for
        the funnel is running in this process.
        """
        event = self._running.get(funnel_id)
        if event is None:
            return False
        event.set()
        logger.info("push.cancel_requested", funnel_id=funnel_id)
        return True

    def is_running(self, funnel_id: str) -> bool:
        return funnel_id in self._running

    @staticmethod
    def _notify(callback: ProgressCallback | None, progress: PushProgress) -> None:
        if callback is None:
            return
        try:
            callback(progress)
        except Exception:
            logger.warning("push.progress_callback_failed", operation_id=progress.operation_id, exc_info=True)

    @staticmethod
    def _prepare(desired: Mapping[str, Any], selected_keys: Collection[str] | None) -> dict[str, str]:
        values = {k: str(v) for k, v in desired.items() if v is not None and str(v) != ""}
        if selected_keys is not None:
            selected = set(selected_keys)
            values = {k: v for k, v in values.items() if k in selected}
        return values

    def _summary(
        self,
        operation_id: str,
        status: PushStatus,
        results: PushResults,
        total: int,
        duration_ms: int,
        cached: bool = False,
    ) -> PushSummary:
        return PushSummary(
            operation_id=operation_id,
            status=status,
            total=total,
            created=len(results.created),
            updated=len(results.updated),
            failed=len(results.failed),
            skipped=len(results.skipped),
            success_rate=success_rate(results, total),
            duration_ms=duration_ms,
            cached=cached,
            failed_keys=list(results.failed),
        )

    @staticmethod
    def _record_metrics(status: PushStatus, results: PushResults, started: float) -> None:
        push_operations_total.labels(status=status.value).inc()
        for action in PushAction:
            count = len(getattr(results, action.value))
            if count:
                push_items_total.labels(action=action.value).inc(count)
        push_duration_seconds.observe(time.monotonic() - started)

    async def push(
        self,
        store: CustomValueStore,
        funnel_id: str,
        location_id: str,
        desired: Mapping[str, Any],
        previous_operation: PushOperationRead | None = None,
        progress_callback: ProgressCallback | None = None,
        cancel_event: asyncio.Event | None = None,
        selected_keys: Collection[str] | None = None,
        force: bool = False,
    ) -> PushSummary:
        """Push desired values to the CRM location.

        Args:
            store: Remote custom value store for the location.
            funnel_id: Funnel whose content is being pushed.
            location_id: CRM location id.
            desired: Flat {key: value} desired state (values are stringified).
            previous_operation: Most recent completed operation, the cache source.
            progress_callback: Sync callable receiving PushProgress between keys.
            cancel_event: Checked before each key; when set the run stops.
                Registered only once the lease is held, so cancel() reaches
                the running push and never one queued behind it.
            selected_keys: Restrict the push to these keys.
            force: Ignore the operation-level cache.

        Returns:
            PushSummary for the finalized operation.

        Raises:
            PushInProgressError: Another worker holds this funnel's lease.
            PushCancelledError: cancel_event was set during the run.
            RemoteFetchError: The remote snapshot could not be fetched.
        """
        values = self._prepare(desired, selected_keys)
        content_hash = compute_content_hash(values)

        async with self._locks.hold(funnel_id):
            if cancel_event is None:
                cancel_event = asyncio.Event()
            self._running[funnel_id] = cancel_event
            try:
                return await self._run(
                    store,
                    funnel_id,
                    location_id,
                    values,
                    content_hash,
                    previous_operation,
                    progress_callback,
                    cancel_event,
                    force,
                )
            finally:
                del self._running[funnel_id]

    async def _run(
        self,
        store: CustomValueStore,
        funnel_id: str,
        location_id: str,
        values: dict[str, str],
        content_hash: str,
        previous_operation: PushOperationRead | None,
        progress_callback: ProgressCallback | None,
        cancel_event: asyncio.Event,
        force: bool,
    ) -> PushSummary:
        total = len(values)
        started = time.monotonic()
        operation = await self._ledger.create(funnel_id, location_id, total, content_hash)
        op_id = operation.id
        results = PushResults()
        log = logger.bind(operation_id=op_id, funnel_id=funnel_id, location_id=location_id)
        log.info("push.started", total=total, force=force)

        if (
            not force
            and previous_operation is not None
            and previous_operation.status == PushStatus.completed
            and previous_operation.content_hash == content_hash
        ):
            for key, value in values.items():
                results.record(PushItemResult(key=key, action=PushAction.skipped, value=_snippet(value)))
            duration_ms = int((time.monotonic() - started) * 1000)
            await self._ledger.finalize(op_id, PushStatus.completed, results, duration_ms)
            self._record_metrics(PushStatus.completed, results, started)
            self._notify(progress_callback, PushProgress(operation_id=op_id, percent=100, processed=total, total=total))
            log.info("push.cache_hit", previous_operation_id=previous_operation.id, total=total)
            return self._summary(op_id, PushStatus.completed, results, total, duration_ms, cached=True)

        try:
            remote = RemoteIndex(await store.fetch_all())
            log.info("push.snapshot_loaded", remote_count=len(remote))

            for key, value in values.items():
                if cancel_event.is_set():
                    duration_ms = int((time.monotonic() - started) * 1000)
                    await self._ledger.finalize(
                        op_id,
                        PushStatus.failed,
                        results,
                        duration_ms,
                        errors=[{"key": key, "error": "cancelled"}],
                    )
                    self._record_metrics(PushStatus.failed, results, started)
                    log.warning("push.cancelled", processed=results.processed, total=total)
                    raise PushCancelledError(op_id, results.processed)

                await self._push_key(store, remote, key, value, results, log)

                processed = results.processed
                percent = loop_percent(processed, total)
                await self._ledger.update_progress(
                    op_id,
                    percent,
                    len(results.created) + len(results.updated) + len(results.skipped),
                    len(results.failed),
                    key,
                )
                self._notify(
                    progress_callback,
                    PushProgress(operation_id=op_id, percent=percent, processed=processed, total=total, current_key=key),
                )

            status = PushStatus.partial if results.failed else PushStatus.completed
            duration_ms = int((time.monotonic() - started) * 1000)
            errors = [{"key": item.key, "error": item.error} for item in results.failed]
            await self._ledger.finalize(op_id, status, results, duration_ms, errors=errors or None)
        except PushCancelledError:
            raise
        except Exception as exc:
            duration_ms = int((time.monotonic() - started) * 1000)
            log.error("push.failed", error=str(exc), processed=results.processed, exc_info=True)
            await self._ledger.mark_failed(
                op_id,
                str(exc) or type(exc).__name__,
                results,
                duration_ms,
                stack=traceback.format_exc(),
            )
            self._record_metrics(PushStatus.failed, results, started)
            raise

        self._record_metrics(status, results, started)
        self._notify(progress_callback, PushProgress(operation_id=op_id, percent=100, processed=total, total=total))
        summary = self._summary(op_id, status, results, total, duration_ms)
        log.info(
            "push.finished",
            status=status.value,
            created=summary.created,
            updated=summary.updated,
            skipped=summary.skipped,
            failed=summary.failed,
            success_rate=summary.success_rate,
            duration_ms=duration_ms,
        )
        return summary

    async def _push_key(
        self,
        store: CustomValueStore,
        remote: RemoteIndex,
        key: str,
        value: str,
        results: PushResults,
        log: Any,
    ) -> None:
        existing = remote.find(key)
        if existing is not None and existing.value == value:
            results.record(PushItemResult(key=key, action=PushAction.skipped, value=_snippet(value)))
            return

        try:
            if existing is None:
                created = await store.create_custom_value(key, value)
                remote.remember(created)
                results.record(PushItemResult(key=key, action=PushAction.created, value=_snippet(value)))
            else:
                # Keep the remote record's name so existing merge tags keep resolving
                await store.update_custom_value(existing.id, existing.name, value)
                results.record(
                    PushItemResult(
                        key=key,
                        action=PushAction.updated,
                        value=_snippet(value),
                        old_value=_snippet(existing.value),
                    )
                )
        except Exception as exc:
            log.warning("push.key_failed", key=key, error=str(exc))
            results.record(
                PushItemResult(
                    key=key,
                    action=PushAction.failed,
                    value=_snippet(value),
                    old_value=_snippet(existing.value) if existing is not None else None,
                    error=str(exc) or type(exc).__name__,
                )
            )
        finally:
            await self._sleep(self._delay)
