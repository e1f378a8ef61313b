"""CLI commands for the Order aggregate."""

from __future__ import annotations

import click

from storefront.application.cancel_order import CancelOrderHandler
from storefront.application.create_order import CreateOrderHandler
from storefront.application.dto import AddressSpec, OrderDTO, OrderItemSpec
from storefront.application.show_order import ShowOrderHandler
from storefront.application.update_order_status import UpdateOrderStatusHandler
from storefront.domain.exceptions import DomainException, InsufficientStockError, StoreError
from storefront.domain.model.order import OrderStatus, PaymentMethod
from storefront.infrastructure.bootstrap import (
    order_repository,
    product_repository,
    stock_sync_service,
)
from storefront.infrastructure.config import get_settings


def parse_items(raw: str) -> list[OrderItemSpec]:
    """Parse 'p1:3,p2:5' into OrderItemSpec list."""
    specs: list[OrderItemSpec] = []
    for pair in raw.split(","):
        pair = pair.strip()
        if ":" not in pair:
            raise click.BadParameter(
                f"Invalid item format '{pair}'. Expected 'ProductId:Quantity'."
            )
        product_id, qty_str = pair.rsplit(":", 1)
        try:
            qty = int(qty_str)
        except ValueError:
            raise click.BadParameter(
                f"Invalid quantity '{qty_str}' for product '{product_id}'."
            )
        specs.append(OrderItemSpec(product_id=product_id.strip(), quantity=qty))
    return specs


def _display_order(dto: OrderDTO) -> None:
    """Shared formatting for displaying an order."""
    click.echo(f"Order {dto.id}  (status={dto.status}, payment={dto.payment_method}/{dto.payment_status})")
    click.echo(f"Invoice:  {dto.invoice_id}")
    click.echo(f"Customer: {dto.customer_id}")
    click.echo(f"Created:  {dto.created_at}")
    if dto.cancellation_reason:
        click.echo(f"Cancelled: {dto.cancellation_reason}")
    click.echo()
    click.echo(f"  {'Product':<24} {'Qty':>5} {'Price':>14} {'Total':>14}")
    click.echo(f"  {'-'*60}")
    for item in dto.items:
        click.echo(
            f"  {item.product_name:<24} {item.quantity:>5} {item.unit_price:>14} {item.line_total:>14}"
        )
    click.echo(f"  {'-'*60}")
    click.echo(f"  {'Subtotal':<30} {dto.subtotal:>29}")
    click.echo(f"  {'Shipping':<30} {dto.shipping_cost:>29}")
    click.echo(f"  {'Discount':<30} {dto.discount_amount:>29}")
    click.echo(f"  {'Order Total':<30} {dto.total:>29}")


@click.command("create")
@click.option("--customer", required=True, help="Customer (user) id.")
@click.option("--items", required=True, help="Items as 'ProductId:Qty,ProductId:Qty'.")
@click.option("--name", required=True, help="Recipient name.")
@click.option("--phone", required=True, help="Recipient phone.")
@click.option("--street", required=True, help="Street address.")
@click.option("--city", required=True, help="City.")
@click.option("--state", required=True, help="State.")
@click.option("--postal-code", required=True, help="Postal code.")
@click.option("--country", default="India", show_default=True, help="Country.")
@click.option(
    "--payment",
    type=click.Choice([m.value for m in PaymentMethod]),
    default=PaymentMethod.COD.value,
    show_default=True,
    help="Payment method.",
)
@click.option("--shipping-cost", default="0", help="Shipping cost.")
@click.option("--discount-code", default=None, help="Discount code applied.")
@click.option("--discount-amount", default="0", help="Discount amount.")
def order_create(
    customer: str,
    items: str,
    name: str,
    phone: str,
    street: str,
    city: str,
    state: str,
    postal_code: str,
    country: str,
    payment: str,
    shipping_cost: str,
    discount_code: str | None,
    discount_amount: str,
) -> None:
    """Create a new order (validates and decrements stock)."""
    specs = parse_items(items)

    handler = CreateOrderHandler(
        order_repo=order_repository(),
        product_repo=product_repository(),
        stock_service=stock_sync_service(),
        low_stock_threshold=get_settings().low_stock_threshold,
    )

    try:
        result = handler.handle(
            customer_id=customer,
            item_specs=specs,
            address=AddressSpec(
                name=name,
                phone=phone,
                street=street,
                city=city,
                state=state,
                postal_code=postal_code,
                country=country,
            ),
            payment_method=payment,
            shipping_cost=shipping_cost,
            discount_code=discount_code,
            discount_amount=discount_amount,
        )
    except InsufficientStockError as exc:
        lines = [str(exc)] + [
            f"  {u.product_id}: requested {u.requested}, available {u.available}"
            for u in exc.unavailable_items
        ]
        raise click.ClickException("\n".join(lines))
    except (DomainException, StoreError) as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Order {result.order.id} created")
    click.echo()
    _display_order(result.order)

    for failure in result.stock_failures:
        click.echo(f"Warning: stock not decremented for {failure.product_id}: {failure.reason}", err=True)
    if result.low_stock_product_ids:
        click.echo(f"Low stock: {', '.join(result.low_stock_product_ids)}")


@click.command("show")
@click.option("--id", "order_id", required=True, help="Order ID to display.")
def order_show(order_id: str) -> None:
    """Show details of an existing order."""
    handler = ShowOrderHandler(order_repo=order_repository())

    try:
        dto = handler.handle(order_id)
    except (DomainException, StoreError) as exc:
        raise click.ClickException(str(exc))

    _display_order(dto)


@click.command("cancel")
@click.option("--id", "order_id", required=True, help="Order ID to cancel.")
@click.option("--reason", default=None, help="Cancellation reason.")
def order_cancel(order_id: str, reason: str | None) -> None:
    """Cancel an order (restores the stock it took)."""
    handler = CancelOrderHandler(
        order_repo=order_repository(),
        stock_service=stock_sync_service(),
    )

    try:
        result = handler.handle(order_id, reason=reason)
    except (DomainException, StoreError) as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Order {order_id} cancelled ({result.reason}).")
    click.echo(f"Stock restored for {result.stock_restored} item(s).")
    for failure in result.restoration_failures:
        click.echo(f"Warning: stock not restored for {failure.product_id}: {failure.reason}", err=True)


@click.command("status")
@click.option("--id", "order_id", required=True, help="Order ID to update.")
@click.option(
    "--status",
    required=True,
    type=click.Choice([s.value for s in OrderStatus if s is not OrderStatus.CANCELLED]),
    help="New status.",
)
def order_status(order_id: str, status: str) -> None:
    """Move an order to a new status (use 'cancel' to cancel)."""
    handler = UpdateOrderStatusHandler(order_repo=order_repository())

    try:
        handler.handle(order_id, status)
    except (DomainException, StoreError) as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Order {order_id} is now {status}.")
