"""SQLAlchemy ORM models for the audit room database.

Tables:
    trade_fills      Append-only fill log written by the execution process
    audit_overrides  One row per override key (normally just ``"default"``)

Column types are portable (generic ``Uuid`` / ``JSON``, JSONB on
PostgreSQL) so the same models run against SQLite in tests.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Float,
    Index,
    Numeric,
    String,
    Uuid,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_uuid() -> uuid.UUID:
    return uuid.uuid4()


_JSONDocument = JSON().with_variant(JSONB(), "postgresql")


# ---------------------------------------------------------------------------
# Declarative base
# ---------------------------------------------------------------------------

class Base(DeclarativeBase):
    """Shared declarative base for all ORM models."""

    pass


# ---------------------------------------------------------------------------
# TradeFillRecord
# ---------------------------------------------------------------------------

class TradeFillRecord(Base):
    """Persisted trade fill.

    Maps from :class:`audit_room.core.models.TradeFill`. ``win``, ``pnl``,
    ``r_multiple`` and the entry/exit times are only set on closed trades.
    """

    __tablename__ = "trade_fills"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=_new_uuid)
    time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    strategy: Mapped[str] = mapped_column(String(64), nullable=False)
    symbol: Mapped[str] = mapped_column(String(32), nullable=False)
    direction: Mapped[str] = mapped_column(String(8), nullable=False)
    size: Mapped[str | None] = mapped_column(String(32), nullable=True)
    price: Mapped[Decimal] = mapped_column(Numeric(24, 8), nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False)
    exit_price: Mapped[Decimal | None] = mapped_column(Numeric(24, 8), nullable=True)
    pnl: Mapped[Decimal | None] = mapped_column(Numeric(24, 8), nullable=True)
    r_multiple: Mapped[float | None] = mapped_column(Float, nullable=True)
    win: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    entry_time: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    exit_time: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, server_default=func.now(),
    )

    __table_args__ = (
        Index("ix_trade_fills_time", "time"),
        Index("ix_trade_fills_strategy", "strategy"),
        Index("ix_trade_fills_symbol", "symbol"),
        Index("ix_trade_fills_status", "status"),
    )

    def __repr__(self) -> str:
        return (
            f"<TradeFillRecord(strategy={self.strategy!r}, symbol={self.symbol!r}, "
            f"status={self.status!r}, time={self.time!r})>"
        )


# ---------------------------------------------------------------------------
# AuditOverrideRecord
# ---------------------------------------------------------------------------

class AuditOverrideRecord(Base):
    """Operator override snapshot, replaced wholesale on every save."""

    __tablename__ = "audit_overrides"

    key: Mapped[str] = mapped_column(String(32), primary_key=True, default="default")
    payload: Mapped[dict[str, Any]] = mapped_column(_JSONDocument, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, server_default=func.now(),
    )

    def __repr__(self) -> str:
        return f"<AuditOverrideRecord(key={self.key!r}, updated_at={self.updated_at!r})>"
