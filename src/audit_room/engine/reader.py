"""Named read paths over the fill store.

Every calculator gets its own independently fetched slice; the reader only
translates "what the calculator needs" into a store query.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta

from audit_room.core.enums import FillStatus
from audit_room.core.interfaces import IFillStore
from audit_room.core.models import TradeFill

logger = logging.getLogger(__name__)


class TradeFillReader:
    """Read-only access to trade fills for the report calculators."""

    def __init__(self, store: IFillStore) -> None:
        self._store = store

    async def closed_since(self, now: datetime, window: timedelta) -> list[TradeFill]:
        """Closed fills (any status) logged within *window* before *now*."""
        fills = await self._store.query(time_from=now - window, closed_only=True)
        logger.debug("Read %d closed fills since %s", len(fills), now - window)
        return fills

    async def most_recent(self, limit: int) -> list[TradeFill]:
        """The *limit* most recently logged fills, newest first."""
        return await self._store.query(limit=limit, newest_first=True)

    async def completed_filled(self) -> list[TradeFill]:
        """Every filled fill with a known outcome."""
        return await self._store.query(status=FillStatus.FILLED, closed_only=True)

    async def count_by_status(self, status: FillStatus) -> int:
        return await self._store.count_by_status(status)
