"""CLI entry point for the audit room engine."""

from __future__ import annotations

import json
import sys

import click

from .core.errors import AuditRoomError


def _overrides(fill_backend: str | None, override_backend: str | None) -> dict:
    storage: dict = {}
    if fill_backend:
        storage["fill_backend"] = fill_backend
    if override_backend:
        storage["override_backend"] = override_backend
    return {"storage": storage} if storage else {}


_BACKENDS = click.Choice(["memory", "postgres", "redis"])


@click.group()
def main() -> None:
    """Audit Room analytics engine."""


@main.command()
@click.option("--config", default="configs/audit_room.toml", help="Config file path")
@click.option("--fill-backend", type=_BACKENDS, default=None, help="Fill store override")
@click.option("--override-backend", type=_BACKENDS, default=None, help="Override store override")
@click.option("--seed-demo", is_flag=True, help="Load the sample fills before computing")
def report(
    config: str,
    fill_backend: str | None,
    override_backend: str | None,
    seed_demo: bool,
) -> None:
    """Compute the audit report and print it as JSON."""
    import asyncio

    from .main import run_report
    from .observability.logger import new_trace_id

    new_trace_id("report")
    try:
        result = asyncio.run(
            run_report(
                config_path=config,
                overrides=_overrides(fill_backend, override_backend),
                seed_demo=seed_demo,
            )
        )
    except AuditRoomError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(json.dumps(result.to_wire(), indent=2))


@main.command()
@click.option("--config", default="configs/audit_room.toml", help="Config file path")
@click.option("--fill-backend", type=_BACKENDS, default=None, help="Fill store override")
@click.option("--override-backend", type=_BACKENDS, default=None, help="Override store override")
@click.option("--interval", type=float, default=30.0, show_default=True,
              help="Seconds between reports")
@click.option("--iterations", type=int, default=None,
              help="Stop after N reports (default: run forever)")
@click.option("--seed-demo", is_flag=True, help="Load the sample fills before computing")
def watch(
    config: str,
    fill_backend: str | None,
    override_backend: str | None,
    interval: float,
    iterations: int | None,
    seed_demo: bool,
) -> None:
    """Recompute the report periodically and serve Prometheus metrics."""
    import asyncio

    from .main import run_watch
    from .observability.logger import new_trace_id

    new_trace_id("watch")
    try:
        built = asyncio.run(
            run_watch(
                config_path=config,
                overrides=_overrides(fill_backend, override_backend),
                interval=interval,
                iterations=iterations,
                seed_demo=seed_demo,
            )
        )
    except AuditRoomError as exc:
        raise click.ClickException(str(exc)) from exc
    except KeyboardInterrupt:
        click.echo("Stopped.")
        return
    click.echo(f"Built {built} reports")


@main.command("save-override")
@click.argument("path", type=click.File("r"))
@click.option("--config", default="configs/audit_room.toml", help="Config file path")
@click.option("--override-backend", type=_BACKENDS, default=None, help="Override store override")
def save_override(path, config: str, override_backend: str | None) -> None:
    """Replace the override snapshot with the report in PATH ('-' for stdin)."""
    import asyncio

    from pydantic import ValidationError

    from .core.models import AuditReport
    from .main import run_save_override
    from .observability.logger import new_trace_id

    new_trace_id("save-override")
    try:
        payload = AuditReport.model_validate(json.load(path))
    except (json.JSONDecodeError, ValidationError) as exc:
        raise click.ClickException(f"Invalid audit report: {exc}") from exc

    try:
        saved = asyncio.run(
            run_save_override(
                payload,
                config_path=config,
                overrides=_overrides(None, override_backend),
            )
        )
    except AuditRoomError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(json.dumps(saved.to_wire(), indent=2))


@main.command()
@click.option("--config", default="configs/audit_room.toml", help="Config file path")
def seed(config: str) -> None:
    """Insert the sample trade fills into the configured fill store."""
    import asyncio

    from .main import run_seed
    from .observability.logger import new_trace_id

    new_trace_id("seed")
    try:
        count = asyncio.run(run_seed(config_path=config))
    except AuditRoomError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(f"Seeded {count} trade fills")


@main.command("init-db")
@click.option("--config", default="configs/audit_room.toml", help="Config file path")
def init_db(config: str) -> None:
    """Create the trade_fills and audit_overrides tables."""
    import asyncio

    from .main import run_init_db
    from .observability.logger import new_trace_id

    new_trace_id("init-db")
    try:
        asyncio.run(run_init_db(config_path=config))
    except AuditRoomError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo("Database tables created / verified.")


if __name__ == "__main__":
    sys.exit(main())
