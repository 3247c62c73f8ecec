"""CLI commands for inspecting the idempotency ledger."""

from __future__ import annotations

import click

from bundlesync.domain.model.ledger import ProcessingStatus
from bundlesync.infrastructure.cli.runtime import open_application


@click.command("show")
@click.option("--event", "event_id", default=None, help="Only entries for this event.")
@click.option(
    "--status",
    type=click.Choice([s.value for s in ProcessingStatus], case_sensitive=False),
    default=None,
    help="Only entries with this status.",
)
def ledger_show(event_id: str | None, status: str | None) -> None:
    """Show ledger entries, e.g. ambiguous failures awaiting reconciliation."""
    with open_application() as app:
        entries = app.show_ledger.handle(
            event_id=event_id,
            status=ProcessingStatus(status.upper()) if status else None,
        )

    if not entries:
        click.echo("No ledger entries found.")
        return

    click.echo(f"{'Entry':<60} {'Status':<8} {'Delta':>6} {'Failure':<14} {'Tries':>5}")
    click.echo("-" * 97)
    for e in entries:
        click.echo(
            f"{e.key:<60} {e.status:<8} {e.applied_delta:>6} "
            f"{e.failure or '':<14} {e.attempts:>5}"
        )
