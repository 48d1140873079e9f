"""Redis-backed override snapshot store.

The singleton snapshot is stored as one JSON string under
``{prefix}override:{key}`` (default ``audit_room:override:default``), so a
save is a single atomic ``SET`` and concurrent saves are last-write-wins.

Uses ``redis.asyncio`` for non-blocking I/O.
"""

from __future__ import annotations

import json
import logging
from decimal import Decimal
from typing import Any

import redis.asyncio as aioredis
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import TimeoutError as RedisTimeoutError

from audit_room.core.errors import StoreUnavailable

logger = logging.getLogger(__name__)

_STORE_NAME = "redis_override"


class _DecimalEncoder(json.JSONEncoder):
    """JSON encoder that converts :class:`Decimal` to string."""

    def default(self, obj: Any) -> Any:
        if isinstance(obj, Decimal):
            return str(obj)
        return super().default(obj)


def _override_key(prefix: str, key: str) -> str:
    return f"{prefix}override:{key}"


class RedisOverrideStore:
    """Override snapshot store on Redis.

    Args:
        client: A ``redis.asyncio.Redis`` instance.
        prefix: Namespace prefix for all keys.
        key: Singleton key of the snapshot.
    """

    def __init__(
        self,
        client: aioredis.Redis,
        *,
        prefix: str = "audit_room:",
        key: str = "default",
    ) -> None:
        self._client = client
        self._key = _override_key(prefix, key)

    @classmethod
    def from_url(cls, url: str, **kwargs: Any) -> RedisOverrideStore:
        client = aioredis.from_url(url, decode_responses=True)
        logger.info("Connected override store to %s", url.split("@")[-1])
        return cls(client, **kwargs)

    async def get(self) -> dict[str, Any] | None:
        try:
            raw = await self._client.get(self._key)
        except (RedisConnectionError, RedisTimeoutError) as exc:
            raise StoreUnavailable(_STORE_NAME, str(exc)) from exc
        if raw is None:
            return None
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8")
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            # Unreadable snapshots degrade to "no override" on the read path.
            logger.warning("Override at %s is not valid JSON; ignoring it", self._key)
            return None

    async def upsert(self, snapshot: dict[str, Any]) -> None:
        payload = json.dumps(snapshot, cls=_DecimalEncoder)
        try:
            await self._client.set(self._key, payload)
        except (RedisConnectionError, RedisTimeoutError) as exc:
            raise StoreUnavailable(_STORE_NAME, str(exc)) from exc
        logger.debug("Stored override snapshot at %s (%d bytes)", self._key, len(payload))

    async def close(self) -> None:
        await self._client.aclose()
