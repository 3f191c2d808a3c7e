"""Initial funnel sync schema.

Revision ID: 001_initial_funnel_sync
Revises:
Create Date: 2026-10-19

Creates four tables:
- vault_content: section-level content blobs
- vault_content_fields: granular field overrides
- generated_images: AI-generated image records
- ghl_push_operations: push operation ledger (audit + content hash cache)
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

# revision identifiers, used by Alembic.
revision: str = "001_initial_funnel_sync"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _uuid_pk() -> sa.Column:
    return sa.Column(
        "id",
        UUID(as_uuid=True),
        primary_key=True,
        server_default=sa.text("gen_random_uuid()"),
    )


def upgrade() -> None:
    # ── vault_content ───────────────────────────────────────────────────

    op.create_table(
        "vault_content",
        _uuid_pk(),
        sa.Column("funnel_id", sa.String(100), nullable=False),
        sa.Column("section_id", sa.String(100), nullable=False),
        sa.Column("content", sa.JSON(), server_default=sa.text("'{}'::json"), nullable=False),
        sa.Column("version", sa.Integer(), server_default=sa.text("1"), nullable=False),
        sa.Column("is_current_version", sa.Boolean(), server_default=sa.text("true"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_vault_content_funnel_section", "vault_content", ["funnel_id", "section_id"])

    # ── vault_content_fields ────────────────────────────────────────────

    op.create_table(
        "vault_content_fields",
        _uuid_pk(),
        sa.Column("funnel_id", sa.String(100), nullable=False),
        sa.Column("section_id", sa.String(100), nullable=False),
        sa.Column("field_id", sa.String(200), nullable=False),
        sa.Column("field_type", sa.String(20), server_default=sa.text("'text'"), nullable=False),
        sa.Column("field_value", sa.JSON(), nullable=True),
        sa.Column("field_metadata", sa.JSON(), server_default=sa.text("'{}'::json"), nullable=False),
        sa.Column("is_approved", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        sa.Column("version", sa.Integer(), server_default=sa.text("1"), nullable=False),
        sa.Column("is_custom", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint(
            "funnel_id",
            "section_id",
            "field_id",
            name="uq_vault_field_funnel_section_field",
        ),
    )
    op.create_index("ix_vault_content_fields_funnel_id", "vault_content_fields", ["funnel_id"])

    # ── generated_images ────────────────────────────────────────────────

    op.create_table(
        "generated_images",
        _uuid_pk(),
        sa.Column("funnel_id", sa.String(100), nullable=False),
        sa.Column("image_type", sa.String(100), nullable=False),
        sa.Column("public_url", sa.Text(), nullable=True),
        sa.Column("status", sa.String(20), server_default=sa.text("'pending'"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_generated_images_funnel_id", "generated_images", ["funnel_id"])

    # ── ghl_push_operations ─────────────────────────────────────────────

    op.create_table(
        "ghl_push_operations",
        _uuid_pk(),
        sa.Column("funnel_id", sa.String(100), nullable=False),
        sa.Column("location_id", sa.String(100), nullable=False),
        sa.Column("status", sa.String(20), server_default=sa.text("'in_progress'"), nullable=False),
        sa.Column("total_items", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("completed_items", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("failed_items", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("progress", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("current_key", sa.String(300), nullable=True),
        sa.Column("content_hash", sa.String(64), nullable=True),
        sa.Column("custom_values_pushed", sa.JSON(), server_default=sa.text("'{}'::json"), nullable=False),
        sa.Column("errors", sa.JSON(), server_default=sa.text("'[]'::json"), nullable=False),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("started_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("duration_ms", sa.Integer(), nullable=True),
    )
    op.create_index(
        "ix_push_operations_funnel_started",
        "ghl_push_operations",
        ["funnel_id", "started_at"],
    )


def downgrade() -> None:
    op.drop_index("ix_push_operations_funnel_started", table_name="ghl_push_operations")
    op.drop_table("ghl_push_operations")
    op.drop_index("ix_generated_images_funnel_id", table_name="generated_images")
    op.drop_table("generated_images")
    op.drop_index("ix_vault_content_fields_funnel_id", table_name="vault_content_fields")
    op.drop_table("vault_content_fields")
    op.drop_index("ix_vault_content_funnel_section", table_name="vault_content")
    op.drop_table("vault_content")
