"""Exception hierarchy for custom value mapping and push operations."""

from __future__ import annotations


class CustomValueError(Exception):
    """Base class for all custom value errors."""


class ContentNotFoundError(CustomValueError):
    """The funnel has no vault content to map."""

    def __init__(self, funnel_id: str) -> None:
        super().__init__(f"No vault content found for funnel {funnel_id}")
        self.funnel_id = funnel_id


class RemoteFetchError(CustomValueError):
    """Listing the remote custom values failed; the push cannot continue."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class RemoteWriteError(CustomValueError):
    """A single create/update call was rejected by the CRM."""

    def __init__(self, key: str, message: str, status_code: int | None = None) -> None:
        super().__init__(f"{key}: {message}")
        self.key = key
        self.status_code = status_code


class PushInProgressError(CustomValueError):
    """Another push currently holds the lease for this funnel."""

    def __init__(self, funnel_id: str) -> None:
        super().__init__(f"A push is already running for funnel {funnel_id}")
        self.funnel_id = funnel_id


class PushCancelledError(CustomValueError):
    """The push was cancelled between keys."""

    def __init__(self, operation_id: str, processed: int) -> None:
        super().__init__(f"Push {operation_id} cancelled after {processed} keys")
        self.operation_id = operation_id
        self.processed = processed
