"""Funnel content and push ledger persistence models.

Four SQLAlchemy models:
- VaultContentModel: denormalized JSON blob per (funnel, section)
- VaultFieldModel: granular, individually editable field rows
- GeneratedImageModel: AI-generated image records
- PushOperationModel: the push operation ledger (audit + content hash cache)

The first three are written by the content editor and generation pipeline;
the push path only reads them.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import (
    Boolean,
    DateTime,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
    text,
)
from sqlalchemy.dialects.postgresql import JSON, UUID
from sqlalchemy.orm import Mapped, mapped_column

from src.app.core.database import Base


class VaultContentModel(Base):
    """Section-level content blob.

    Several versions may exist per section; only the row flagged
    is_current_version is read.
    """

    __tablename__ = "vault_content"
    __table_args__ = (
        Index("ix_vault_content_funnel_section", "funnel_id", "section_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        server_default=text("gen_random_uuid()"),
    )
    funnel_id: Mapped[str] = mapped_column(String(100), nullable=False)
    section_id: Mapped[str] = mapped_column(String(100), nullable=False)
    content: Mapped[dict] = mapped_column(
        JSON, default=dict, server_default=text("'{}'::json")
    )
    version: Mapped[int] = mapped_column(Integer, default=1, server_default=text("1"))
    is_current_version: Mapped[bool] = mapped_column(
        Boolean, default=True, server_default=text("true")
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
    )


class VaultFieldModel(Base):
    """One editable field; overrides the matching key of the section blob."""

    __tablename__ = "vault_content_fields"
    __table_args__ = (
        UniqueConstraint(
            "funnel_id",
            "section_id",
            "field_id",
            name="uq_vault_field_funnel_section_field",
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        server_default=text("gen_random_uuid()"),
    )
    funnel_id: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    section_id: Mapped[str] = mapped_column(String(100), nullable=False)
    field_id: Mapped[str] = mapped_column(String(200), nullable=False)
    field_type: Mapped[str] = mapped_column(
        String(20), default="text", server_default=text("'text'")
    )
    field_value: Mapped[Any] = mapped_column(JSON, nullable=True)
    field_metadata: Mapped[dict] = mapped_column(
        JSON, default=dict, server_default=text("'{}'::json")
    )
    is_approved: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default=text("false")
    )
    version: Mapped[int] = mapped_column(Integer, default=1, server_default=text("1"))
    is_custom: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default=text("false")
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        onupdate=func.now(),
        nullable=True,
    )


class GeneratedImageModel(Base):
    """AI-generated image; only status='completed' rows are mapped."""

    __tablename__ = "generated_images"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        server_default=text("gen_random_uuid()"),
    )
    funnel_id: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    image_type: Mapped[str] = mapped_column(String(100), nullable=False)
    public_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(
        String(20), default="pending", server_default=text("'pending'")
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
    )


class PushOperationModel(Base):
    """Push operation ledger row.

    custom_values_pushed holds the created/updated/failed/skipped lists with
    value snippets; content_hash is the whole-operation cache key.
    """

    __tablename__ = "ghl_push_operations"
    __table_args__ = (
        Index("ix_push_operations_funnel_started", "funnel_id", "started_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    funnel_id: Mapped[str] = mapped_column(String(100), nullable=False)
    location_id: Mapped[str] = mapped_column(String(100), nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), default="in_progress", server_default=text("'in_progress'")
    )
    total_items: Mapped[int] = mapped_column(Integer, default=0, server_default=text("0"))
    completed_items: Mapped[int] = mapped_column(Integer, default=0, server_default=text("0"))
    failed_items: Mapped[int] = mapped_column(Integer, default=0, server_default=text("0"))
    progress: Mapped[int] = mapped_column(Integer, default=0, server_default=text("0"))
    current_key: Mapped[str | None] = mapped_column(String(300), nullable=True)
    content_hash: Mapped[str | None] = mapped_column(String(64), nullable=True)
    custom_values_pushed: Mapped[dict] = mapped_column(
        JSON, default=dict, server_default=text("'{}'::json")
    )
    errors: Mapped[list] = mapped_column(
        JSON, default=list, server_default=text("'[]'::json")
    )
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    started_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
    )
    completed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    duration_ms: Mapped[int | None] = mapped_column(Integer, nullable=True)
