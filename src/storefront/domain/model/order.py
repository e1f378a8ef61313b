"""Order aggregate.

The Order owns its line items and shipping address. Its status only
interacts with stock at two points: creation (stock is decremented by the
workflow after the order is persisted) and cancellation (stock is restored
before the order is marked cancelled). Other transitions never re-check or
re-decrement stock.
"""

from __future__ import annotations

import secrets
import string
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from storefront.domain.exceptions import ValidationError
from storefront.domain.model.stock import StockRequest
from storefront.domain.model.value_objects import Money, Quantity

ORDERS = "orders"


class OrderStatus(Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


# Once an order reaches one of these, it can no longer be cancelled.
NON_CANCELLABLE = frozenset(
    {OrderStatus.SHIPPED, OrderStatus.DELIVERED, OrderStatus.CANCELLED}
)


class PaymentMethod(Enum):
    RAZORPAY = "razorpay"
    COD = "cod"


class PaymentStatus(Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"


@dataclass(frozen=True)
class ShippingAddress:
    name: str
    phone: str
    street: str
    city: str
    state: str
    postal_code: str
    country: str = "India"

    def __post_init__(self) -> None:
        missing = [
            name
            for name in ("name", "phone", "street", "city", "state", "postal_code")
            if not str(getattr(self, name) or "").strip()
        ]
        if missing:
            raise ValidationError(f"Address is missing: {', '.join(missing)}")


@dataclass
class OrderLineItem:
    """Captures the price of a product at order-creation time."""

    product_id: str
    product_name: str
    quantity: Quantity
    unit_price: Money  # locked at order-creation time
    category: str = ""
    # Units actually taken out of stock for this line. None means unknown
    # (orders persisted before this was tracked), treated as the full quantity.
    stock_committed: int | None = None

    @property
    def line_total(self) -> Money:
        return self.unit_price * self.quantity.value

    def stock_request(self) -> StockRequest:
        return StockRequest(product_id=self.product_id, quantity=self.quantity.value)

    @property
    def restorable_quantity(self) -> int:
        if self.stock_committed is None:
            return self.quantity.value
        return self.stock_committed


MAX_LINE_ITEMS = 50


def generate_invoice_id(now: datetime | None = None) -> str:
    """Return an invoice id of the form ``INV-YYYYMMDD-XXXXX``."""
    now = now or datetime.now(timezone.utc)
    alphabet = string.ascii_uppercase + string.digits
    suffix = "".join(secrets.choice(alphabet) for _ in range(5))
    return f"INV-{now:%Y%m%d}-{suffix}"


@dataclass
class Order:
    """Aggregate root for customer orders.

    Use the ``Order.create()`` factory for new orders. The ``__init__`` is
    intentionally simple so the repository can reconstitute persisted
    orders without re-validating.
    """

    id: str | None
    invoice_id: str
    customer_id: str
    items: list[OrderLineItem]
    shipping_address: ShippingAddress
    payment_method: PaymentMethod
    status: OrderStatus = OrderStatus.PENDING
    payment_status: PaymentStatus = PaymentStatus.PENDING
    shipping_cost: Money = field(default_factory=Money.zero)
    discount_code: str | None = None
    discount_amount: Money = field(default_factory=Money.zero)
    payment_order_id: str | None = None
    cancellation_reason: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    cancelled_at: datetime | None = None

    # --- Factory (used for NEW orders only) -----------------------------------

    @staticmethod
    def create(
        customer_id: str,
        items: list[OrderLineItem],
        shipping_address: ShippingAddress,
        payment_method: PaymentMethod,
        shipping_cost: Money | None = None,
        discount_code: str | None = None,
        discount_amount: Money | None = None,
    ) -> Order:
        """Create a new pending order, enforcing all invariants."""
        if not customer_id or not customer_id.strip():
            raise ValidationError("Customer id is required")

        if not items:
            raise ValidationError("Order must contain at least one item")

        if len(items) > MAX_LINE_ITEMS:
            raise ValidationError(f"Maximum {MAX_LINE_ITEMS} items per order")

        currency = items[0].unit_price.currency
        order = Order(
            id=None,
            invoice_id=generate_invoice_id(),
            customer_id=customer_id.strip(),
            items=list(items),
            shipping_address=shipping_address,
            payment_method=payment_method,
            shipping_cost=shipping_cost or Money.zero(currency),
            discount_code=discount_code or None,
            discount_amount=discount_amount or Money.zero(currency),
        )

        if order.discount_amount.amount > (order.subtotal + order.shipping_cost).amount:
            raise ValidationError(
                f"Discount {order.discount_amount} exceeds order value"
            )

        return order

    # --- State transitions ----------------------------------------------------

    @property
    def is_cancellable(self) -> bool:
        return self.status not in NON_CANCELLABLE

    def cancel(self, reason: str) -> None:
        """Transition to CANCELLED.

        Stock restoration must happen *before* calling this (coordinated
        by the application handler via the stock service).
        """
        if not self.is_cancellable:
            raise ValidationError(
                f"Cannot cancel order with status: {self.status.value}"
            )
        now = datetime.now(timezone.utc)
        self.status = OrderStatus.CANCELLED
        self.cancellation_reason = reason
        self.cancelled_at = now
        self.updated_at = now

    def update_status(self, new_status: OrderStatus) -> None:
        """Admin status change between the non-terminal states."""
        if new_status is OrderStatus.CANCELLED:
            raise ValidationError("Use order cancellation to cancel an order")
        if self.status in (OrderStatus.CANCELLED, OrderStatus.DELIVERED):
            raise ValidationError(
                f"Cannot change status of a {self.status.value} order"
            )
        # A shipped order only moves on to delivered.
        if self.status is OrderStatus.SHIPPED and new_status is not OrderStatus.DELIVERED:
            raise ValidationError(
                f"Cannot move a shipped order to {new_status.value}"
            )
        self.status = new_status
        self.updated_at = datetime.now(timezone.utc)

    def attach_payment_order(self, payment_order_id: str) -> None:
        self.payment_order_id = payment_order_id
        self.updated_at = datetime.now(timezone.utc)

    # --- Computed properties --------------------------------------------------

    @property
    def subtotal(self) -> Money:
        result = Money.zero(self.shipping_cost.currency)
        for item in self.items:
            result = result + item.line_total
        return result

    @property
    def total(self) -> Money:
        return self.subtotal + self.shipping_cost - self.discount_amount

    def stock_requests(self) -> list[StockRequest]:
        return [item.stock_request() for item in self.items]

    def record_stock_commit(self, committed: dict[str, int]) -> None:
        """Record how many units of each product were taken out of stock."""
        for item in self.items:
            item.stock_committed = committed.get(item.product_id, 0)

    def restorable_stock(self) -> list[StockRequest]:
        """Stock to put back on cancellation: only what was actually taken."""
        return [
            StockRequest(product_id=item.product_id, quantity=item.restorable_quantity)
            for item in self.items
            if item.restorable_quantity > 0
        ]
