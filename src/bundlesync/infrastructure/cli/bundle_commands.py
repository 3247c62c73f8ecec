"""CLI commands for bundle configs and out-of-band resync."""

from __future__ import annotations

import click

from bundlesync.application.dto import ComponentSpec
from bundlesync.domain.model.outcome import RecomputeResult
from bundlesync.infrastructure.cli.runtime import open_application


def _parse_components(raw: str) -> list[ComponentSpec]:
    """Parse '123:2,456:1' into ComponentSpec list."""
    specs: list[ComponentSpec] = []
    for pair in raw.split(","):
        pair = pair.strip()
        if ":" not in pair:
            raise click.BadParameter(
                f"Invalid component format '{pair}'. Expected 'ProductId:Quantity'."
            )
        product_id, qty_str = pair.rsplit(":", 1)
        try:
            qty = int(qty_str)
        except ValueError:
            raise click.BadParameter(
                f"Invalid quantity '{qty_str}' for product '{product_id}'."
            )
        specs.append(ComponentSpec(product_id=product_id.strip(), quantity=qty))
    return specs


def _display_result(result: RecomputeResult) -> None:
    if not result.complete:
        click.echo(f"{result.bundle_product_id}: incomplete ({result.reason})")
    elif result.availability is None:
        reason = result.reason or "no tracked components"
        click.echo(f"{result.bundle_product_id}: nothing to set ({reason})")
    else:
        click.echo(f"{result.bundle_product_id}: availability set to {result.availability}")


@click.command("show")
@click.argument("product_id")
def bundle_show(product_id: str) -> None:
    """Show a bundle's components and how many bundles they can supply."""
    with open_application() as app:
        view = app.show_bundle.handle(product_id)

    click.echo(f"Bundle {view.product_id}" + ("  (deferred)" if view.deferred else ""))
    click.echo()
    click.echo(f"  {'Component':<30} {'Per':>5} {'Stock':>8} {'Bundles':>8}")
    click.echo(f"  {'-'*54}")
    for c in view.components:
        stock = str(c.level) if c.tracked else "-"
        bundles = "unlimited" if c.bundles_supported is None else str(c.bundles_supported)
        click.echo(f"  {c.title:<30} {c.per_bundle:>5} {stock:>8} {bundles:>8}")
    click.echo(f"  {'-'*54}")
    available = "unlimited" if view.availability is None else str(view.availability)
    click.echo(f"  {'Can build':<44} {available:>8}")


@click.command("set")
@click.argument("product_id")
@click.option(
    "--components", required=True, help="Components as 'ProductId:Qty,ProductId:Qty'."
)
def bundle_set(product_id: str, components: str) -> None:
    """Define (or replace) a bundle's components."""
    specs = _parse_components(components)
    with open_application() as app:
        config = app.set_bundle_config.handle(product_id, specs)
    click.echo(f"Bundle {product_id} saved with {len(config.components)} component(s)")


@click.command("remove")
@click.argument("product_id")
def bundle_remove(product_id: str) -> None:
    """Remove a product's bundle config."""
    with open_application() as app:
        app.remove_bundle_config.handle(product_id)
    click.echo(f"Bundle config removed from {product_id}")


@click.command("resync")
@click.argument("product_id")
def bundle_resync(product_id: str) -> None:
    """Recompute and publish one bundle's availability."""
    with open_application() as app:
        result = app.resync_bundle.handle(product_id)
    _display_result(result)


@click.command("resync-deferred")
def bundle_resync_deferred() -> None:
    """Retry every bundle waiting in the resync queue."""
    with open_application() as app:
        results = app.resync_deferred.handle()

    if not results:
        click.echo("No deferred bundles.")
        return
    for result in results:
        _display_result(result)
