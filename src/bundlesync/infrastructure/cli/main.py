import click

from bundlesync.infrastructure.cli.bundle_commands import (
    bundle_remove,
    bundle_resync,
    bundle_resync_deferred,
    bundle_set,
    bundle_show,
)
from bundlesync.infrastructure.cli.event_commands import event_process
from bundlesync.infrastructure.cli.ledger_commands import ledger_show


@click.group()
def cli() -> None:
    """bundlesync — keep bundle stock in line with its components"""


@cli.group()
def event() -> None:
    """Process sale events."""


@cli.group()
def bundle() -> None:
    """Manage bundles and resync their availability."""


@cli.group()
def ledger() -> None:
    """Inspect the idempotency ledger."""


# Register subcommands
event.add_command(event_process)
bundle.add_command(bundle_remove)
bundle.add_command(bundle_resync)
bundle.add_command(bundle_resync_deferred)
bundle.add_command(bundle_set)
bundle.add_command(bundle_show)
ledger.add_command(ledger_show)
