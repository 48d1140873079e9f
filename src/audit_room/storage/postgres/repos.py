"""SQL-backed fill and override stores.

Each store owns an ``async_sessionmaker`` and opens a short session per
call, so the merger can issue its reads concurrently.

Conversion helpers translate between the core :class:`TradeFill` model and
the ORM :class:`TradeFillRecord`.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Iterable, Sequence

from pydantic import ValidationError
from sqlalchemy import func, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from audit_room.core.enums import FillStatus
from audit_room.core.errors import InvalidFillRecord, StoreError
from audit_room.core.models import TradeFill

from .connection import session_scope
from .models import AuditOverrideRecord, TradeFillRecord

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Conversion helpers
# ---------------------------------------------------------------------------

def _as_utc(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _fill_to_record(fill: TradeFill) -> TradeFillRecord:
    """Convert a core :class:`TradeFill` to an ORM :class:`TradeFillRecord`."""
    return TradeFillRecord(
        time=_as_utc(fill.time),
        strategy=fill.strategy,
        symbol=fill.symbol,
        direction=fill.direction.value,
        size=fill.size,
        price=fill.price,
        status=fill.status.value,
        exit_price=fill.exit_price,
        pnl=fill.pnl,
        r_multiple=fill.r_multiple,
        win=fill.win,
        entry_time=_as_utc(fill.entry_time),
        exit_time=_as_utc(fill.exit_time),
    )


def _record_to_fill(record: TradeFillRecord) -> TradeFill:
    """Convert an ORM :class:`TradeFillRecord` back to a core :class:`TradeFill`.

    Raises:
        InvalidFillRecord: If the row does not form a valid fill (e.g. an
            unknown status written by another process).
    """
    try:
        return TradeFill(
            time=_as_utc(record.time),
            strategy=record.strategy,
            symbol=record.symbol,
            direction=record.direction,
            size=record.size,
            price=record.price,
            status=record.status,
            exit_price=record.exit_price,
            pnl=record.pnl,
            r_multiple=record.r_multiple,
            win=record.win,
            entry_time=_as_utc(record.entry_time),
            exit_time=_as_utc(record.exit_time),
        )
    except ValidationError as exc:
        raise InvalidFillRecord(f"fill {record.id}: {exc.error_count()} invalid fields") from exc


# ---------------------------------------------------------------------------
# SqlFillStore
# ---------------------------------------------------------------------------

class SqlFillStore:
    """Fill store over the ``trade_fills`` table."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def add_fills(self, fills: Iterable[TradeFill]) -> int:
        """Append fills. Returns the number of rows inserted."""
        records = [_fill_to_record(f) for f in fills]
        async with session_scope(self._session_factory, "fill_store") as session:
            session.add_all(records)
            await session.flush()
        logger.info("Inserted %d trade fills", len(records))
        return len(records)

    async def query(
        self,
        *,
        time_from: datetime | None = None,
        status: FillStatus | None = None,
        closed_only: bool = False,
        limit: int | None = None,
        newest_first: bool = False,
    ) -> list[TradeFill]:
        """Retrieve fills matching all given filters.

        Args:
            time_from: Only fills logged at or after this time.
            status: Only fills with this status.
            closed_only: Only fills whose outcome (``win``) is known.
            limit: Maximum rows.
            newest_first: Order by fill time, descending.

        Returns:
            List of core :class:`TradeFill` objects. Rows that do not form
            a valid fill are logged and skipped.
        """
        stmt = select(TradeFillRecord)
        if time_from is not None:
            stmt = stmt.where(TradeFillRecord.time >= _as_utc(time_from))
        if status is not None:
            stmt = stmt.where(TradeFillRecord.status == status.value)
        if closed_only:
            stmt = stmt.where(TradeFillRecord.win.is_not(None))
        if newest_first:
            stmt = stmt.order_by(TradeFillRecord.time.desc())
        if limit is not None:
            stmt = stmt.limit(limit)

        async with session_scope(self._session_factory, "fill_store") as session:
            result = await session.execute(stmt)
            records: Sequence[TradeFillRecord] = result.scalars().all()

        fills: list[TradeFill] = []
        for record in records:
            try:
                fills.append(_record_to_fill(record))
            except InvalidFillRecord as exc:
                logger.warning("Skipping unreadable fill: %s", exc)
        return fills

    async def count_by_status(self, status: FillStatus) -> int:
        stmt = (
            select(func.count())
            .select_from(TradeFillRecord)
            .where(TradeFillRecord.status == status.value)
        )
        async with session_scope(self._session_factory, "fill_store") as session:
            result = await session.execute(stmt)
            return int(result.scalar_one())


# ---------------------------------------------------------------------------
# SqlOverrideStore
# ---------------------------------------------------------------------------

_UPSERT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class SqlOverrideStore:
    """Override snapshot store over the ``audit_overrides`` table."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        key: str = "default",
    ) -> None:
        self._session_factory = session_factory
        self._key = key

    async def get(self) -> dict[str, Any] | None:
        stmt = select(AuditOverrideRecord).where(AuditOverrideRecord.key == self._key)
        async with session_scope(self._session_factory, "override_store") as session:
            result = await session.execute(stmt)
            record = result.scalar_one_or_none()
            if record is None:
                return None
            return record.payload

    async def upsert(self, snapshot: dict[str, Any]) -> None:
        """Insert or fully replace the snapshot row in one statement.

        Uses ``INSERT ... ON CONFLICT (key) DO UPDATE`` so concurrent saves,
        including the first ones for a key, resolve to the last writer.
        """
        async with session_scope(self._session_factory, "override_store") as session:
            dialect = session.get_bind().dialect.name
            insert = _UPSERT_INSERTS.get(dialect)
            if insert is None:
                raise StoreError(f"Override upsert not supported on dialect {dialect!r}")
            stmt = insert(AuditOverrideRecord).values(
                key=self._key,
                payload=snapshot,
                updated_at=datetime.now(timezone.utc),
            )
            stmt = stmt.on_conflict_do_update(
                index_elements=[AuditOverrideRecord.key],
                set_={
                    "payload": stmt.excluded.payload,
                    "updated_at": stmt.excluded.updated_at,
                },
            )
            await session.execute(stmt)
        logger.debug("Upserted override snapshot %s", self._key)
