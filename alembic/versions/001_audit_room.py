"""Audit room schema: trade_fills and audit_overrides.

Revision ID: 001_audit_room
Revises: None
Create Date: 2026-10-19 00:00:00.000000
"""
from __future__ import annotations

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects.postgresql import JSONB, UUID

revision: str = "001_audit_room"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Append-only fill log, written by the execution process
    op.create_table(
        "trade_fills",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("strategy", sa.String(64), nullable=False),
        sa.Column("symbol", sa.String(32), nullable=False),
        sa.Column("direction", sa.String(8), nullable=False),
        sa.Column("size", sa.String(32), nullable=True),
        sa.Column("price", sa.Numeric(24, 8), nullable=False),
        sa.Column("status", sa.String(16), nullable=False),

        # Closed trades only
        sa.Column("exit_price", sa.Numeric(24, 8), nullable=True),
        sa.Column("pnl", sa.Numeric(24, 8), nullable=True),
        sa.Column("r_multiple", sa.Float, nullable=True),
        sa.Column("win", sa.Boolean, nullable=True),
        sa.Column("entry_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("exit_time", sa.DateTime(timezone=True), nullable=True),

        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now(),
        ),
    )
    op.create_index("ix_trade_fills_time", "trade_fills", ["time"])
    op.create_index("ix_trade_fills_strategy", "trade_fills", ["strategy"])
    op.create_index("ix_trade_fills_symbol", "trade_fills", ["symbol"])
    op.create_index("ix_trade_fills_status", "trade_fills", ["status"])

    # Singleton override snapshot (key = "default")
    op.create_table(
        "audit_overrides",
        sa.Column("key", sa.String(32), primary_key=True),
        sa.Column("payload", JSONB, nullable=False),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(),
        ),
    )


def downgrade() -> None:
    op.drop_table("audit_overrides")
    op.drop_index("ix_trade_fills_status", table_name="trade_fills")
    op.drop_index("ix_trade_fills_symbol", table_name="trade_fills")
    op.drop_index("ix_trade_fills_strategy", table_name="trade_fills")
    op.drop_index("ix_trade_fills_time", table_name="trade_fills")
    op.drop_table("trade_fills")
