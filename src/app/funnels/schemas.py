"""Pydantic schemas for vault fields, mapper output, validation, and push operations.

Defines the data contracts shared by the mapping pipeline and the push engine:
- Field tagged union (TextValue | ArrayValue | ObjectValue | ImageValue) built at ingestion
- MapperResult: {values, warnings} returned by every direct mapper
- ValidationReport: non-blocking content statistics and warnings
- CustomValue: the CRM-side key/value record
- Push operation ledger records, progress events, and summaries
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field


# ── Field Store ──────────────────────────────────────────────────────────────


class FieldType(str, Enum):
    """Field types as stored in the field table."""

    text = "text"
    textarea = "textarea"
    array = "array"
    object = "object"
    image = "image"
    video_url = "video_url"


class TextValue(BaseModel):
    kind: Literal["text"] = "text"
    value: str = ""


class ArrayValue(BaseModel):
    kind: Literal["array"] = "array"
    value: list[Any] = Field(default_factory=list)


class ObjectValue(BaseModel):
    kind: Literal["object"] = "object"
    value: dict[str, Any] = Field(default_factory=dict)


class ImageValue(BaseModel):
    """A media URL (images and hosted videos)."""

    kind: Literal["image"] = "image"
    value: str = ""


FieldValue = Annotated[
    Union[TextValue, ArrayValue, ObjectValue, ImageValue],
    Field(discriminator="kind"),
]


class FieldRecord(BaseModel):
    """One granular field override, parsed into the tagged union."""

    section_id: str
    field_id: str
    field_type: FieldType = FieldType.text
    value: FieldValue
    is_approved: bool = False
    version: int = 1
    is_custom: bool = False
    warnings: list[str] = Field(default_factory=list)


class GeneratedImage(BaseModel):
    """An AI-generated image record."""

    image_type: str
    public_url: str


# ── Mapping ──────────────────────────────────────────────────────────────────


class MapperResult(BaseModel):
    """Flat {key: value} output of a mapper plus any degraded-input warnings."""

    values: dict[str, str] = Field(default_factory=dict)
    warnings: list[str] = Field(default_factory=list)


class ValidationWarning(BaseModel):
    field_id: str
    issue: str
    segments: int | None = None


class ValidationReport(BaseModel):
    """Counts of complete/empty/malformed entries and non-blocking warnings."""

    stats: dict[str, int] = Field(default_factory=dict)
    warnings: list[ValidationWarning] = Field(default_factory=list)


class AggregationResult(BaseModel):
    """Complete desired remote state for a funnel."""

    values: dict[str, str] = Field(default_factory=dict)
    # key -> content family that produced it (colors, emails, funnelCopy, ...)
    key_sections: dict[str, str] = Field(default_factory=dict)
    warnings: list[str] = Field(default_factory=list)
    inferred_keys: list[str] = Field(default_factory=list)
    defaulted_keys: list[str] = Field(default_factory=list)


# ── CRM ──────────────────────────────────────────────────────────────────────


class CustomValue(BaseModel):
    """A custom value as returned by the CRM."""

    id: str
    name: str
    value: str = ""


# ── Push Operations ──────────────────────────────────────────────────────────


class PushStatus(str, Enum):
    in_progress = "in_progress"
    completed = "completed"
    partial = "partial"
    failed = "failed"


class PushAction(str, Enum):
    created = "created"
    updated = "updated"
    failed = "failed"
    skipped = "skipped"


class PushItemResult(BaseModel):
    """Outcome of one key, with truncated before/after snippets for audit."""

    key: str
    action: PushAction
    value: str | None = None
    old_value: str | None = None
    error: str | None = None


class PushResults(BaseModel):
    """Per-key outcomes grouped by action (persisted as custom_values_pushed)."""

    created: list[PushItemResult] = Field(default_factory=list)
    updated: list[PushItemResult] = Field(default_factory=list)
    failed: list[PushItemResult] = Field(default_factory=list)
    skipped: list[PushItemResult] = Field(default_factory=list)

    def record(self, item: PushItemResult) -> None:
        getattr(self, item.action.value).append(item)

    @property
    def processed(self) -> int:
        return len(self.created) + len(self.updated) + len(self.failed) + len(self.skipped)


class PushOperationRead(BaseModel):
    """A push operation ledger record."""

    id: str
    funnel_id: str
    location_id: str
    status: PushStatus
    total_items: int = 0
    completed_items: int = 0
    failed_items: int = 0
    progress: int = 0
    current_key: str | None = None
    content_hash: str | None = None
    custom_values_pushed: PushResults = Field(default_factory=PushResults)
    errors: list[dict[str, Any]] = Field(default_factory=list)
    started_at: datetime | None = None
    completed_at: datetime | None = None
    duration_ms: int | None = None


class PushProgress(BaseModel):
    operation_id: str
    percent: int
    processed: int
    total: int
    current_key: str | None = None


class PushSummary(BaseModel):
    """Caller-facing result of a push."""

    model_config = ConfigDict(populate_by_name=True)

    operation_id: str
    status: PushStatus
    total: int
    created: int = 0
    updated: int = 0
    failed: int = 0
    skipped: int = 0
    success_rate: int = Field(default=100, alias="successRate")
    duration_ms: int = 0
    cached: bool = False
    failed_keys: list[PushItemResult] = Field(default_factory=list)
