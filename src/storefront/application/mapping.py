"""Domain -> DTO mapping shared by the order use cases."""

from __future__ import annotations

from storefront.application.dto import OrderDTO, OrderLineItemDTO
from storefront.domain.model.order import Order


def order_to_dto(order: Order) -> OrderDTO:
    return OrderDTO(
        id=order.id,  # type: ignore[arg-type]
        invoice_id=order.invoice_id,
        customer_id=order.customer_id,
        status=order.status.value,
        payment_method=order.payment_method.value,
        payment_status=order.payment_status.value,
        items=[
            OrderLineItemDTO(
                product_id=item.product_id,
                product_name=item.product_name,
                quantity=item.quantity.value,
                unit_price=str(item.unit_price),
                line_total=str(item.line_total),
            )
            for item in order.items
        ],
        subtotal=str(order.subtotal),
        shipping_cost=str(order.shipping_cost),
        discount_amount=str(order.discount_amount),
        total=str(order.total),
        created_at=order.created_at.strftime("%Y-%m-%d %H:%M UTC"),
        payment_order_id=order.payment_order_id,
        cancellation_reason=order.cancellation_reason,
    )
