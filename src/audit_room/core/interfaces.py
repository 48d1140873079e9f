"""Protocol interfaces for the audit room engine.

Store boundaries are defined here as Protocol classes so the in-memory,
PostgreSQL and Redis implementations can be swapped without changing the
merger or the calculators.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Iterable, Protocol, runtime_checkable

from .enums import FillStatus
from .models import TradeFill


# ---------------------------------------------------------------------------
# Fill store
# ---------------------------------------------------------------------------

@runtime_checkable
class IFillStore(Protocol):
    """Append-only trade-fill store.

    ``query`` filters are ANDed together. Implementations raise
    :class:`~audit_room.core.errors.StoreUnavailable` when unreachable.
    """

    async def query(
        self,
        *,
        time_from: datetime | None = None,
        status: FillStatus | None = None,
        closed_only: bool = False,
        limit: int | None = None,
        newest_first: bool = False,
    ) -> list[TradeFill]: ...

    async def count_by_status(self, status: FillStatus) -> int: ...

    async def add_fills(self, fills: Iterable[TradeFill]) -> int: ...


# ---------------------------------------------------------------------------
# Override store
# ---------------------------------------------------------------------------

@runtime_checkable
class IOverrideStore(Protocol):
    """Singleton store holding the operator override snapshot.

    The snapshot is kept as the raw JSON document (camelCase keys) so that
    operator edits made outside the engine are read back as-is.
    """

    async def get(self) -> dict[str, Any] | None: ...

    async def upsert(self, snapshot: dict[str, Any]) -> None: ...
