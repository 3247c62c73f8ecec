"""CLI commands for feeding sale events to the reconciliation engine."""

from __future__ import annotations

import json
from pathlib import Path

import click

from bundlesync.domain.exceptions import DomainException
from bundlesync.domain.model.outcome import ProcessingOutcome
from bundlesync.domain.model.sale import SaleEvent
from bundlesync.infrastructure.cli.runtime import open_application
from bundlesync.infrastructure.shopify.order_payload import parse_order_webhook


def _load_event(path: Path, shop: str, configured_shop: str) -> SaleEvent:
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except ValueError as exc:
        raise click.BadParameter(f"{path} is not valid JSON: {exc}")
    try:
        event = parse_order_webhook(payload, shop or configured_shop)
    except DomainException as exc:
        raise click.BadParameter(f"{path}: {exc}")
    # The ledger and credentials in use belong to the configured shop
    if event.shop != configured_shop:
        raise click.BadParameter(
            f"{path}: order is for shop {event.shop!r}, "
            f"but this process is configured for {configured_shop!r}"
        )
    return event


def _display_outcome(outcome: ProcessingOutcome) -> None:
    click.echo(f"Event {outcome.event_id}")
    if not outcome.line_items:
        click.echo("  (no line items)")
    for item in outcome.line_items:
        click.echo(f"  {item.line_item_id:<16} {item.product_id:<36} {item.status.value}")
        for component in item.components:
            failure = component.failure.value if component.failure else ""
            click.echo(
                f"      {component.product_id:<36} {component.delta:>6} "
                f"{component.admission.value:<16} {failure}"
            )
        if item.recompute is not None and item.recompute.complete:
            click.echo(f"      bundle availability -> {item.recompute.availability}")
        if item.detail:
            click.echo(f"      {item.detail}")


@click.command("process")
@click.argument(
    "files",
    nargs=-1,
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option("--shop", default="", help="Shop the orders came from (must match SHOPIFY_SHOP).")
def event_process(files: tuple[Path, ...], shop: str) -> None:
    """Process one or more orders/create webhook bodies concurrently."""
    with open_application() as app:
        configured_shop = app.settings.connection.shop
        events = [_load_event(path, shop, configured_shop) for path in files]
        outcomes = app.dispatcher.dispatch(events)

    for outcome in outcomes:
        _display_outcome(outcome)

    if any(outcome.has_transient_errors for outcome in outcomes):
        click.echo(
            "Some bundle configs could not be fetched; "
            "re-run these events once the store is reachable.",
            err=True,
        )
