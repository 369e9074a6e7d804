"""Flask CLI commands for schema setup and expired-record sweeping."""

from __future__ import annotations

import logging
from datetime import UTC, datetime

import click
from flask.cli import with_appcontext

from credcycle.core.extensions import db
from credcycle.core.wiring import get_components

LOGGER = logging.getLogger(__name__)


def sweep(now: datetime | None = None) -> dict[str, int]:
    """
    Purge refresh records past their expiry and reset records that are
    used or expired.

    :param now: Cut-off instant; defaults to the current UTC time.
    :returns: Rows removed per record type.
    """
    cutoff = now or datetime.now(UTC)
    comps = get_components()
    summary = {
        "refresh_records": comps.refresh_store.purge_expired(cutoff),
        "reset_records": comps.reset_store.purge_spent(cutoff),
    }
    LOGGER.info("tokens.sweep", extra={"removed": summary})
    return summary


@click.group("tokens")
def tokens_cli() -> None:
    """Credential store maintenance commands."""


@tokens_cli.command("init-db")
@with_appcontext
def init_db_command() -> None:
    """Create all tables that do not exist yet."""
    db.create_all()
    click.echo("Schema created.")


@tokens_cli.command("sweep")
@with_appcontext
def sweep_command() -> None:
    """Delete expired refresh records and spent reset records."""
    summary = sweep()
    width = max(len(name) for name in summary)
    click.echo("Sweep summary:")
    for table, removed in summary.items():
        click.echo(f"  {table.ljust(width)}  removed={removed:>4}")
