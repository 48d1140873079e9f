"""Test store wiring and the seed data set."""

from datetime import timedelta

import pytest

from audit_room.core.config import Settings
from audit_room.core.enums import FillStatus
from audit_room.core.errors import ConfigError
from audit_room.main import open_stores
from audit_room.storage.memory_store import InMemoryFillStore, InMemoryOverrideStore
from audit_room.storage.redis_state import RedisOverrideStore
from audit_room.storage.seed import sample_trade_fills


class TestOpenStores:
    @pytest.mark.asyncio
    async def test_memory_backends(self):
        async with open_stores(Settings()) as (fill_store, override_store):
            assert isinstance(fill_store, InMemoryFillStore)
            assert isinstance(override_store, InMemoryOverrideStore)

    @pytest.mark.asyncio
    async def test_redis_override_backend(self):
        settings = Settings(storage={"override_backend": "redis"})
        async with open_stores(settings) as (_fill_store, override_store):
            assert isinstance(override_store, RedisOverrideStore)

    @pytest.mark.asyncio
    async def test_redis_fill_backend_rejected(self):
        settings = Settings(storage={"fill_backend": "redis"})
        with pytest.raises(ConfigError):
            async with open_stores(settings):
                pass


class TestSampleTradeFills:
    def test_relative_to_now(self, now):
        fills = sample_trade_fills(now)
        assert len(fills) == 11
        assert max(f.time for f in fills) == now - timedelta(minutes=5)
        assert min(f.time for f in fills) == now - timedelta(days=6)

    def test_all_filled_and_closed(self, now):
        fills = sample_trade_fills(now)
        assert all(f.status == FillStatus.FILLED and f.is_closed for f in fills)
        assert {f.strategy for f in fills} == {"Drav", "Tenzor"}
        assert {f.symbol for f in fills} == {"XAUUSD", "BTCUSDT", "EURUSD"}

    def test_entry_before_exit(self, now):
        for fill in sample_trade_fills(now):
            assert fill.entry_time < fill.exit_time == fill.time
