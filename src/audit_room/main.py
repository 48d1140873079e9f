"""Application bootstrap and store wiring.

Builds the fill store and override store selected in settings, hands them
to an :class:`AuditMerger` and runs one command against it.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import AsyncExitStack, asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator

from .core.clock import WallClock
from .core.config import Settings, load_settings
from .core.enums import StoreBackend
from .core.errors import ConfigError, StoreUnavailable
from .core.models import AuditReport
from .engine.merger import AuditMerger
from .storage.memory_store import InMemoryFillStore, InMemoryOverrideStore
from .storage.seed import sample_trade_fills

logger = logging.getLogger(__name__)


@asynccontextmanager
async def open_stores(settings: Settings) -> AsyncIterator[tuple[Any, Any]]:
    """Yield ``(fill_store, override_store)`` for the configured backends.

    Database engines and Redis clients are released on exit.
    """
    settings.validate_backends()
    storage = settings.storage
    needs_sql = StoreBackend.POSTGRES in (storage.fill_backend, storage.override_backend)

    async with AsyncExitStack() as stack:
        session_factory = None
        if needs_sql:
            from .storage.postgres.connection import create_engine, create_session_factory

            engine = create_engine(
                storage.postgres_url,
                pool_size=storage.pool_size,
                echo=storage.echo_sql,
            )
            stack.push_async_callback(engine.dispose)
            session_factory = create_session_factory(engine)

        if storage.fill_backend == StoreBackend.MEMORY:
            fill_store: Any = InMemoryFillStore()
        elif storage.fill_backend == StoreBackend.POSTGRES:
            from .storage.postgres.repos import SqlFillStore

            fill_store = SqlFillStore(session_factory)
        else:
            raise ConfigError(f"Unsupported fill backend: {storage.fill_backend}")

        key = settings.audit.override_key
        if storage.override_backend == StoreBackend.MEMORY:
            override_store: Any = InMemoryOverrideStore()
        elif storage.override_backend == StoreBackend.POSTGRES:
            from .storage.postgres.repos import SqlOverrideStore

            override_store = SqlOverrideStore(session_factory, key=key)
        elif storage.override_backend == StoreBackend.REDIS:
            from .storage.redis_state import RedisOverrideStore

            override_store = RedisOverrideStore.from_url(
                storage.redis_url, prefix=storage.redis_prefix, key=key,
            )
            stack.push_async_callback(override_store.close)
        else:
            raise ConfigError(f"Unsupported override backend: {storage.override_backend}")

        logger.info(
            "Opened stores: fills=%s overrides=%s",
            storage.fill_backend.value, storage.override_backend.value,
        )
        yield fill_store, override_store


def _setup(config_path: str | Path | None, overrides: dict[str, Any] | None) -> Settings:
    from .observability.logger import setup_logging

    settings = load_settings(config_path=config_path, overrides=overrides)
    setup_logging(
        level=settings.observability.log_level,
        format=settings.observability.log_format,
    )
    return settings


async def run_report(
    config_path: str | Path | None = None,
    overrides: dict[str, Any] | None = None,
    *,
    seed_demo: bool = False,
) -> AuditReport:
    """Build one audit report with the configured stores."""
    settings = _setup(config_path, overrides)
    clock = WallClock()
    async with open_stores(settings) as (fill_store, override_store):
        if seed_demo:
            await fill_store.add_fills(sample_trade_fills(clock.now()))
        merger = AuditMerger(fill_store, override_store, config=settings.audit, clock=clock)
        return await merger.get_audit_report()


async def run_watch(
    config_path: str | Path | None = None,
    overrides: dict[str, Any] | None = None,
    *,
    interval: float = 30.0,
    iterations: int | None = None,
    seed_demo: bool = False,
) -> int:
    """Rebuild the report every *interval* seconds and serve Prometheus metrics.

    A store outage fails only the current round; the loop keeps going.
    Returns the number of reports built.
    """
    settings = _setup(config_path, overrides)

    try:
        from .observability.metrics import start_metrics_server

        metrics_port = settings.observability.metrics_port
        start_metrics_server(port=metrics_port)
        logger.info("Prometheus metrics server started on port %d", metrics_port)
    except Exception:
        logger.warning("Failed to start metrics server", exc_info=True)

    clock = WallClock()
    built = 0
    rounds = 0
    async with open_stores(settings) as (fill_store, override_store):
        if seed_demo:
            await fill_store.add_fills(sample_trade_fills(clock.now()))
        merger = AuditMerger(fill_store, override_store, config=settings.audit, clock=clock)
        while iterations is None or rounds < iterations:
            rounds += 1
            try:
                report, source = await merger.report_with_source()
            except StoreUnavailable:
                # Already logged and counted by the merger.
                pass
            else:
                built += 1
                logger.info(
                    "Report #%d from %s: %d executions, %d anomalies",
                    built, source.value, len(report.recent_executions), len(report.anomalies),
                )
            if iterations is None or rounds < iterations:
                await asyncio.sleep(interval)
    return built


async def run_save_override(
    report: AuditReport,
    config_path: str | Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> AuditReport:
    """Replace the override snapshot with *report*."""
    settings = _setup(config_path, overrides)
    async with open_stores(settings) as (fill_store, override_store):
        merger = AuditMerger(fill_store, override_store, config=settings.audit)
        return await merger.save_audit_override(report)


async def run_seed(
    config_path: str | Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> int:
    """Insert the sample fill set into the configured fill store."""
    settings = _setup(config_path, overrides)
    if settings.storage.fill_backend == StoreBackend.MEMORY:
        raise ConfigError(
            "Seeding an in-memory fill store has no lasting effect; "
            "use `report --seed-demo` or configure the postgres backend."
        )
    async with open_stores(settings) as (fill_store, _override_store):
        return await fill_store.add_fills(sample_trade_fills(WallClock().now()))


async def run_init_db(
    config_path: str | Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> None:
    """Create the database tables (dev/test; production uses Alembic)."""
    from .storage.postgres.connection import create_all, create_engine

    settings = _setup(config_path, overrides)
    engine = create_engine(settings.storage.postgres_url, use_null_pool=True)
    try:
        await create_all(engine)
    finally:
        await engine.dispose()
