"""CLI commands for inventory management."""

from __future__ import annotations

import click

from storefront.application.adjust_inventory import AdjustInventoryHandler, AdjustmentType
from storefront.application.inventory_report import InventoryReportHandler
from storefront.application.show_inventory import ShowInventoryHandler
from storefront.domain.exceptions import DomainException, StoreError
from storefront.domain.model.stock import StockRequest
from storefront.infrastructure.bootstrap import product_repository, stock_sync_service
from storefront.infrastructure.cli.order_commands import parse_items
from storefront.infrastructure.config import get_settings


def _threshold_option(func):
    return click.option(
        "--threshold",
        type=int,
        default=None,
        help="Low-stock threshold (defaults to the configured one).",
    )(func)


def _threshold(value: int | None) -> int:
    return get_settings().low_stock_threshold if value is None else value


@click.command("show")
@click.option("--low-stock-only", is_flag=True, default=False, help="Only low and out-of-stock products.")
@_threshold_option
def inventory_show(low_stock_only: bool, threshold: int | None) -> None:
    """Show current stock levels."""
    handler = ShowInventoryHandler(product_repo=product_repository())
    try:
        inventory = handler.handle(low_stock_only=low_stock_only, threshold=_threshold(threshold))
    except StoreError as exc:
        raise click.ClickException(str(exc))

    if not inventory.lines:
        click.echo("No inventory records found.")
        return

    click.echo(f"{'ID':<22} {'Product':<24} {'Stock':>7} {'Status':>14}")
    click.echo("-" * 70)
    for line in inventory.lines:
        click.echo(
            f"{line.product_id:<22} {line.product_name:<24} {line.stock:>7} {line.status:>14}"
        )
    s = inventory.summary
    click.echo("-" * 70)
    click.echo(
        f"{s.total} products: {s.in_stock} in stock, {s.low_stock} low, "
        f"{s.out_of_stock} out of stock"
    )


@click.command("adjust")
@click.option("--product", "product_id", required=True, help="Product ID.")
@click.option(
    "--type",
    "adjustment_type",
    required=True,
    type=click.Choice([t.value for t in AdjustmentType]),
    help="add / remove units, or set an absolute level.",
)
@click.option("--quantity", required=True, type=int, help="Units to add/remove, or the new level.")
@click.option("--reason", default=None, help="Audit reason.")
def inventory_adjust(
    product_id: str,
    adjustment_type: str,
    quantity: int,
    reason: str | None,
) -> None:
    """Adjust stock for a product."""
    handler = AdjustInventoryHandler(stock_service=stock_sync_service())

    try:
        result = handler.handle(product_id, quantity, adjustment_type, reason=reason)
    except (DomainException, StoreError) as exc:
        raise click.ClickException(str(exc))

    if not result.changed:
        click.echo(f"Stock for {product_id} already at {quantity}; nothing changed.")
    else:
        click.echo(f"Stock for {product_id} is now {result.new_stock}")


@click.command("low-stock")
@_threshold_option
def inventory_low_stock(threshold: int | None) -> None:
    """Run the low-stock sweep and alert on what it finds."""
    report = stock_sync_service().check_and_alert_low_stock(_threshold(threshold))

    if report.error is not None:
        raise click.ClickException(f"Low stock check failed: {report.error}")
    if not report.alerts_sent:
        click.echo(f"No products at or below {report.threshold} units.")
        return

    click.echo(f"{len(report.products_with_low_stock)} product(s) at or below {report.threshold} units:")
    for p in report.products_with_low_stock:
        click.echo(f"  {p.product_id:<22} {p.name:<24} {p.stock:>5}")


@click.command("validate")
@click.option("--items", required=True, help="Items as 'ProductId:Qty,ProductId:Qty'.")
def inventory_validate(items: str) -> None:
    """Check whether current stock covers the given items."""
    specs = parse_items(items)
    try:
        requests = [StockRequest(s.product_id, s.quantity) for s in specs]
    except DomainException as exc:
        raise click.ClickException(str(exc))

    result = stock_sync_service().validate_stock_availability(requests)

    if result.error is not None:
        raise click.ClickException(f"Stock validation failed: {result.error}")
    for failure in result.failed:
        click.echo(f"  {failure.product_id}: {failure.reason}", err=True)
    if result.valid:
        click.echo("All items available.")
        return

    click.echo("Unavailable items:")
    for u in result.unavailable_items:
        click.echo(f"  {u.product_id}: requested {u.requested}, available {u.available}")
    raise SystemExit(1)


@click.command("history")
@click.option("--product", "product_id", required=True, help="Product ID.")
def inventory_history(product_id: str) -> None:
    """Show the stock ledger for a product."""
    try:
        entries = stock_sync_service().stock_history(product_id)
    except StoreError as exc:
        raise click.ClickException(str(exc))

    if not entries:
        click.echo(f"No stock changes recorded for {product_id}.")
        return

    for entry in entries:
        order = f"  order={entry.order_id}" if entry.order_id else ""
        click.echo(
            f"{entry.created_at:%Y-%m-%d %H:%M:%S}  {entry.delta:>+6}  {entry.reason}{order}"
        )


@click.command("report")
@_threshold_option
def inventory_report(threshold: int | None) -> None:
    """Show catalogue-wide stock statistics."""
    handler = InventoryReportHandler(
        product_repo=product_repository(),
        currency=get_settings().currency,
    )
    try:
        report = handler.handle(threshold=_threshold(threshold))
    except (DomainException, StoreError) as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Products:          {report.total_products}")
    click.echo(f"Value in stock:    {report.total_value_in_stock}")
    click.echo(f"Average stock:     {report.avg_stock_per_product}")
    click.echo(
        f"In / low / out:    {report.in_stock_products} / "
        f"{report.low_stock_products} / {report.out_of_stock_products}"
    )

    if report.low_stock_alert:
        click.echo()
        click.echo("Running low:")
        for line in report.low_stock_alert:
            click.echo(f"  {line.name:<24} {line.stock:>5}")

    if report.category_breakdown:
        click.echo()
        click.echo(f"  {'Category':<20} {'Products':>8} {'Stock':>8} {'Value':>16}")
        for name, breakdown in sorted(report.category_breakdown.items()):
            click.echo(
                f"  {name:<20} {breakdown.count:>8} {breakdown.total_stock:>8} "
                f"{str(breakdown.total_value):>16}"
            )


@click.command("set")
@click.option("--product", "product_id", required=True, help="Product ID.")
@click.option("--quantity", required=True, type=int, help="New stock level.")
@click.option("--reason", default=None, help="Audit reason.")
def inventory_set(product_id: str, quantity: int, reason: str | None) -> None:
    """Set the stock level for a product."""
    handler = AdjustInventoryHandler(stock_service=stock_sync_service())

    try:
        result = handler.handle(product_id, quantity, AdjustmentType.SET.value, reason=reason)
    except (DomainException, StoreError) as exc:
        raise click.ClickException(str(exc))

    if not result.changed:
        click.echo(f"Stock for {product_id} already at {quantity}; nothing changed.")
    else:
        click.echo(f"Stock for {product_id} set to {result.new_stock}")
