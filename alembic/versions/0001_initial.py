"""Initial schema: transfers, subscriptions, fulfillments, notifications.

Revision ID: 0001
Revises:
Create Date: 2026-10-19
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
    ]


def upgrade() -> None:
    op.create_table(
        "transfers",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("ledger", sa.Text(), nullable=True),
        sa.Column("state", sa.String(16), nullable=False),
        sa.Column("debits", sa.JSON(), nullable=False),
        sa.Column("credits", sa.JSON(), nullable=False),
        sa.Column("execution_condition", sa.Text(), nullable=True),
        sa.Column("cancellation_condition", sa.Text(), nullable=True),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("proposed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("prepared_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("executed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("rejected_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("rejection_reason", sa.String(64), nullable=True),
        *_timestamps(),
    )
    op.create_table(
        "subscriptions",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("owner", sa.Text(), nullable=False, comment="Owning account URI"),
        sa.Column("event", sa.String(64), nullable=False),
        sa.Column("subject", sa.Text(), nullable=False),
        sa.Column("target", sa.Text(), nullable=False, comment="Delivery URL"),
        sa.Column("is_deleted", sa.Boolean(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_subscriptions_subject", "subscriptions", ["subject"])
    op.create_table(
        "fulfillments",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("transfer_id", sa.String(64), nullable=False, unique=True),
        sa.Column("condition_fulfillment", sa.Text(), nullable=False),
        *_timestamps(),
    )
    op.create_table(
        "notifications",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("subscription_id", sa.String(64), nullable=False),
        sa.Column("transfer_id", sa.String(64), nullable=False),
        sa.Column("retry_count", sa.Integer(), nullable=False),
        sa.Column("retry_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("subscription_id", "transfer_id", name="uq_notifications_pair"),
    )
    op.create_index("ix_notifications_transfer_id", "notifications", ["transfer_id"])
    op.create_index("ix_notifications_retry_at", "notifications", ["retry_at"])


def downgrade() -> None:
    op.drop_index("ix_notifications_retry_at", table_name="notifications")
    op.drop_index("ix_notifications_transfer_id", table_name="notifications")
    op.drop_table("notifications")
    op.drop_table("fulfillments")
    op.drop_index("ix_subscriptions_subject", table_name="subscriptions")
    op.drop_table("subscriptions")
    op.drop_table("transfers")
