"""Flask CLI commands for refresh-token ledger housekeeping."""

from __future__ import annotations

import logging
from datetime import timedelta

import click
from flask.cli import with_appcontext

from todo_api.api.deps import get_refresh_ledger
from todo_api.services._shared.base import BaseService

LOGGER = logging.getLogger(__name__)


@click.group("ledger")
def ledger_cli() -> None:
    """Refresh-token ledger maintenance commands."""


@ledger_cli.command("purge")
@click.option(
    "--days",
    type=click.IntRange(min=0),
    default=30,
    show_default=True,
    help="Keep entries that expired or were revoked within this many days.",
)
@with_appcontext
def purge_command(days: int) -> None:
    """Delete ledger entries that expired or were revoked before the cutoff."""
    cutoff = BaseService.now_utc() - timedelta(days=days)
    purged = get_refresh_ledger().purge(before=cutoff)
    LOGGER.info("Refresh ledger purged", extra={"purged": purged})
    click.echo(f"Purged {purged} refresh token(s).")
