"""In-memory fill and override stores for tests and demo runs.

No external dependencies. Both stores live within a single asyncio event
loop and return copies so callers cannot mutate stored state.
"""

from __future__ import annotations

import copy
import logging
from datetime import datetime
from typing import Any, Iterable

from audit_room.core.enums import FillStatus
from audit_room.core.models import TradeFill

logger = logging.getLogger(__name__)


class InMemoryFillStore:
    """Append-only list of fills, filtered and sorted on read."""

    def __init__(self, fills: Iterable[TradeFill] | None = None) -> None:
        self._fills: list[TradeFill] = list(fills or [])

    async def add_fills(self, fills: Iterable[TradeFill]) -> int:
        added = list(fills)
        self._fills.extend(added)
        logger.debug("Appended %d fills (total=%d)", len(added), len(self._fills))
        return len(added)

    async def query(
        self,
        *,
        time_from: datetime | None = None,
        status: FillStatus | None = None,
        closed_only: bool = False,
        limit: int | None = None,
        newest_first: bool = False,
    ) -> list[TradeFill]:
        rows = [
            f for f in self._fills
            if (time_from is None or f.time >= time_from)
            and (status is None or f.status == status)
            and (not closed_only or f.is_closed)
        ]
        if newest_first:
            rows.sort(key=lambda f: f.time, reverse=True)
        if limit is not None:
            rows = rows[:limit]
        return [f.model_copy() for f in rows]

    async def count_by_status(self, status: FillStatus) -> int:
        return sum(1 for f in self._fills if f.status == status)

    def __len__(self) -> int:
        return len(self._fills)


class InMemoryOverrideStore:
    """Holds the single override snapshot."""

    def __init__(self, snapshot: dict[str, Any] | None = None) -> None:
        self._snapshot = copy.deepcopy(snapshot)

    async def get(self) -> dict[str, Any] | None:
        return copy.deepcopy(self._snapshot)

    async def upsert(self, snapshot: dict[str, Any]) -> None:
        self._snapshot = copy.deepcopy(snapshot)
