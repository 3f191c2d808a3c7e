"""Abstract boundaries of the push engine.

CustomValueStore is the remote CRM custom value API (GHLClient in production,
AsyncMock in tests). OperationLedger is the push operation audit store
(PushOperationRepository in production). The engine depends only on these
two interfaces, so it runs without a live CRM or database.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from src.app.funnels.schemas import CustomValue, PushOperationRead, PushResults, PushStatus


class CustomValueStore(ABC):
    """Remote custom value store for one CRM location.

    Methods:
        fetch_all: Complete paginated snapshot of the location's custom values.
        create_custom_value: Create a key, return the created record.
        update_custom_value: Overwrite the value of an existing record by id.
    """

    @abstractmethod
    async def fetch_all(self) -> list[CustomValue]:
        """Fetch every custom value. Raises RemoteFetchError on any non-2xx page."""
        ...

    @abstractmethod
    async def create_custom_value(self, name: str, value: str) -> CustomValue:
        """Create a custom value. Raises RemoteWriteError on failure."""
        ...

    @abstractmethod
    async def update_custom_value(self, custom_value_id: str, name: str, value: str) -> CustomValue:
        """Update a custom value by id. Raises RemoteWriteError on failure."""
        ...


class OperationLedger(ABC):
    """Persistence for push operation records.

    The in-flight push owns its record exclusively; no other writer touches it.
    """

    @abstractmethod
    async def create(
        self,
        funnel_id: str,
        location_id: str,
        total_items: int,
        content_hash: str,
    ) -> PushOperationRead:
        """Insert an in_progress operation and return it."""
        ...

    @abstractmethod
    async def update_progress(
        self,
        operation_id: str,
        progress: int,
        completed_items: int,
        failed_items: int,
        current_key: str | None,
    ) -> None:
        """Record loop progress."""
        ...

    @abstractmethod
    async def finalize(
        self,
        operation_id: str,
        status: PushStatus,
        results: PushResults,
        duration_ms: int,
        errors: list[dict[str, Any]] | None = None,
    ) -> PushOperationRead:
        """Write the terminal status, counts, and per-key outcome lists."""
        ...

    @abstractmethod
    async def mark_failed(
        self,
        operation_id: str,
        error_message: str,
        results: PushResults,
        duration_ms: int,
        stack: str | None = None,
    ) -> None:
        """Mark the operation failed after an aborted run, keeping the traceback."""
        ...

    @abstractmethod
    async def get(self, operation_id: str) -> PushOperationRead | None:
        ...

    @abstractmethod
    async def latest_completed(self, funnel_id: str, location_id: str) -> PushOperationRead | None:
        """Most recent operation with status completed, for the content hash cache."""
        ...

    @abstractmethod
    async def list_for_funnel(self, funnel_id: str, limit: int = 20) -> list[PushOperationRead]:
        ...
