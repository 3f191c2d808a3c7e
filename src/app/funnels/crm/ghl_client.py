"""Async HTTP client for the GoHighLevel custom values API.

Provides GHLClient, the production CustomValueStore, with retry logic
(tenacity, 3 attempts, exponential backoff 1-10s) on transient failures
only: connection errors, timeouts, 429, and 5xx. Any other non-2xx response
fails immediately.

Endpoints:
    GET  /locations/{locationId}/customValues?limit=100&skip={n}
    POST /locations/{locationId}/customValues
    PUT  /locations/{locationId}/customValues/{id}
"""

from __future__ import annotations

from typing import Any

import httpx
import structlog
from tenacity import retry, retry_if_exception, stop_after_attempt, wait_exponential

from src.app.config import get_settings
from src.app.core.monitoring import ghl_requests_total
from src.app.funnels.crm.adapter import CustomValueStore
from src.app.funnels.errors import RemoteFetchError, RemoteWriteError
from src.app.funnels.schemas import CustomValue

logger = structlog.get_logger(__name__)


def _is_transient(exc: BaseException) -> bool:
    if isinstance(exc, (httpx.TransportError, httpx.TimeoutException)):
        return True
    if isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code
        return status == 429 or status >= 500
    return False


_ghl_retry = retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    retry=retry_if_exception(_is_transient),
    reraise=True,
)


class GHLClient(CustomValueStore):
    """Custom value client bound to one location and access token.

    Args:
        access_token: Location (sub-account) OAuth or private integration token.
        location_id: CRM location id.
        base_url: API root; defaults to settings.
        api_version: Value of the Version header.
        page_size: Listing page size.
        max_records: Hard cap on records fetched, guarantees termination.
        read_timeout: Seconds per listing page.
        write_timeout: Seconds per create/update.
    """

    def __init__(
        self,
        access_token: str,
        location_id: str,
        base_url: str | None = None,
        api_version: str | None = None,
        page_size: int | None = None,
        max_records: int | None = None,
        read_timeout: float | None = None,
        write_timeout: float | None = None,
    ) -> None:
        settings = get_settings()
        self._location_id = location_id
        self._base_url = (base_url or settings.GHL_API_BASE_URL).rstrip("/")
        self._page_size = page_size or settings.GHL_PAGE_SIZE
        self._max_records = max_records or settings.GHL_MAX_RECORDS
        self._read_timeout = read_timeout or settings.GHL_READ_TIMEOUT
        self._write_timeout = write_timeout or settings.GHL_WRITE_TIMEOUT
        self._headers = {
            "Authorization": f"Bearer {access_token}",
            "Version": api_version or settings.GHL_API_VERSION,
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    @property
    def location_id(self) -> str:
        return self._location_id

    def _url(self, suffix: str = "") -> str:
        return f"{self._base_url}/locations/{self._location_id}/customValues{suffix}"

    @_ghl_retry
    async def _request(self, method: str, url: str, timeout: float, **kwargs: Any) -> httpx.Response:
        """Send one request, raising HTTPStatusError only for retryable statuses."""
        try:
            async with httpx.AsyncClient(headers=self._headers, timeout=timeout) as client:
                response = await client.request(method, url, **kwargs)
        except httpx.HTTPError as exc:
            ghl_requests_total.labels(method=method, outcome="transport_error").inc()
            logger.warning("ghl.transport_error", method=method, url=url, error=str(exc))
            raise

        ghl_requests_total.labels(method=method, outcome=str(response.status_code)).inc()
        if response.status_code == 429 or response.status_code >= 500:
            logger.warning("ghl.transient_status", method=method, status_code=response.status_code)
            response.raise_for_status()
        return response

    @staticmethod
    def _error_detail(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.text[:200]
        if isinstance(body, dict):
            return str(body.get("message") or body.get("error") or body)[:200]
        return str(body)[:200]

    async def fetch_all(self) -> list[CustomValue]:
        """Paginate the listing until a short page or the record cap."""
        records: list[CustomValue] = []
        skip = 0

        while len(records) < self._max_records:
            try:
                response = await self._request(
                    "GET",
                    self._url(),
                    self._read_timeout,
                    params={"limit": self._page_size, "skip": skip},
                )
            except httpx.HTTPStatusError as exc:
                raise RemoteFetchError(
                    f"Custom value listing failed: HTTP {exc.response.status_code}",
                    status_code=exc.response.status_code,
                ) from exc
            except httpx.HTTPError as exc:
                raise RemoteFetchError(f"Custom value listing failed: {exc}") from exc

            if not response.is_success:
                raise RemoteFetchError(
                    f"Custom value listing failed: HTTP {response.status_code} {self._error_detail(response)}",
                    status_code=response.status_code,
                )

            batch = response.json().get("customValues") or []
            records.extend(
                CustomValue(
                    id=str(item.get("id") or item.get("_id") or ""),
                    name=str(item.get("name") or ""),
                    value="" if item.get("value") is None else str(item.get("value")),
                )
                for item in batch
            )
            logger.debug("ghl.page_fetched", skip=skip, count=len(batch), total=len(records))

            if len(batch) < self._page_size:
                break
            skip += self._page_size
        else:
            logger.warning("ghl.record_cap_reached", max_records=self._max_records)

        records = records[: self._max_records]
        logger.info("ghl.snapshot_fetched", location_id=self._location_id, count=len(records))
        return records

    async def _write(self, method: str, url: str, name: str, value: str) -> CustomValue:
        try:
            response = await self._request(
                method,
                url,
                self._write_timeout,
                json={"name": name, "value": str(value)},
            )
        except httpx.HTTPStatusError as exc:
            raise RemoteWriteError(
                name, f"HTTP {exc.response.status_code}", status_code=exc.response.status_code
            ) from exc
        except httpx.HTTPError as exc:
            raise RemoteWriteError(name, str(exc) or type(exc).__name__) from exc

        if not response.is_success:
            raise RemoteWriteError(
                name,
                f"HTTP {response.status_code} {self._error_detail(response)}",
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError:
            data = {}
        record = data.get("customValue") if isinstance(data, dict) else None
        record = record or {}
        return CustomValue(
            id=str(record.get("id") or ""),
            name=str(record.get("name") or name),
            value=str(record.get("value") if record.get("value") is not None else value),
        )

    async def create_custom_value(self, name: str, value: str) -> CustomValue:
        created = await self._write("POST", self._url(), name, value)
        logger.debug("ghl.custom_value_created", key=name, id=created.id)
        return created

    async def update_custom_value(self, custom_value_id: str, name: str, value: str) -> CustomValue:
        updated = await self._write("PUT", self._url(f"/{custom_value_id}"), name, value)
        logger.debug("ghl.custom_value_updated", key=name, id=custom_value_id)
        return updated
