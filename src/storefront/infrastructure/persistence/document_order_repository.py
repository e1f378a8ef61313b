"""OrderRepository on top of a DocumentStore (``orders`` collection)."""

from __future__ import annotations

from decimal import Decimal
from typing import Any

from storefront.domain.model.order import (
    ORDERS,
    Order,
    OrderLineItem,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
    ShippingAddress,
)
from storefront.domain.model.value_objects import (
    DEFAULT_CURRENCY,
    Money,
    Quantity,
    parse_timestamp,
)
from storefront.domain.repository.document_store import DocumentStore
from storefront.domain.repository.order_repository import OrderRepository


class DocumentOrderRepository(OrderRepository):

    def __init__(self, store: DocumentStore) -> None:
        self._store = store

    # --- OrderRepository interface --------------------------------------------

    def get_by_id(self, order_id: str) -> Order | None:
        snapshot = self._store.get(ORDERS, order_id)
        if not snapshot.exists:
            return None
        return self._to_domain(snapshot.id, snapshot.fields)

    def save(self, order: Order) -> None:
        if order.id is None:
            order.id = self._store.add(ORDERS, self._to_raw(order))
        else:
            self._store.set(ORDERS, order.id, self._to_raw(order))

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _to_raw(order: Order) -> dict[str, Any]:
        address = order.shipping_address
        return {
            "invoiceId": order.invoice_id,
            "userId": order.customer_id,
            "items": [
                {
                    "productId": item.product_id,
                    "name": item.product_name,
                    "quantity": item.quantity.value,
                    "price": str(item.unit_price.amount),
                    "currency": item.unit_price.currency,
                    "category": item.category,
                    "stockDecremented": item.stock_committed,
                }
                for item in order.items
            ],
            "address": {
                "name": address.name,
                "phone": address.phone,
                "street": address.street,
                "city": address.city,
                "state": address.state,
                "postalCode": address.postal_code,
                "country": address.country,
            },
            "paymentMethod": order.payment_method.value,
            "orderStatus": order.status.value,
            "paymentStatus": order.payment_status.value,
            "currency": order.shipping_cost.currency,
            "subtotal": str(order.subtotal.amount),
            "shippingCost": str(order.shipping_cost.amount),
            "discountCode": order.discount_code,
            "discountAmount": str(order.discount_amount.amount),
            "total": str(order.total.amount),
            "paymentOrderId": order.payment_order_id,
            "cancellationReason": order.cancellation_reason,
            "createdAt": order.created_at,
            "updatedAt": order.updated_at,
            "cancelledAt": order.cancelled_at,
        }

    @staticmethod
    def _to_domain(order_id: str, raw: dict[str, Any]) -> Order:
        currency = raw.get("currency", DEFAULT_CURRENCY)
        items = [
            OrderLineItem(
                product_id=i["productId"],
                product_name=i.get("name", ""),
                quantity=Quantity(i["quantity"]),
                unit_price=Money(Decimal(i["price"]), i.get("currency", currency)),
                category=i.get("category", ""),
                stock_committed=i.get("stockDecremented"),
            )
            for i in raw["items"]
        ]
        address = raw["address"]
        return Order(
            id=order_id,
            invoice_id=raw["invoiceId"],
            customer_id=raw["userId"],
            items=items,
            shipping_address=ShippingAddress(
                name=address["name"],
                phone=address["phone"],
                street=address["street"],
                city=address["city"],
                state=address["state"],
                postal_code=address["postalCode"],
                country=address.get("country", ""),
            ),
            payment_method=PaymentMethod(raw["paymentMethod"]),
            status=OrderStatus(raw["orderStatus"]),
            payment_status=PaymentStatus(raw.get("paymentStatus", "pending")),
            shipping_cost=Money(Decimal(raw.get("shippingCost", "0")), currency),
            discount_code=raw.get("discountCode"),
            discount_amount=Money(Decimal(raw.get("discountAmount", "0")), currency),
            payment_order_id=raw.get("paymentOrderId"),
            cancellation_reason=raw.get("cancellationReason"),
            created_at=parse_timestamp(raw["createdAt"]),
            updated_at=parse_timestamp(raw.get("updatedAt") or raw["createdAt"]),
            cancelled_at=parse_timestamp(raw.get("cancelledAt")),
        )
