"""Data Transfer Objects: plain containers that cross layer boundaries.

DTOs carry data between the CLI (or an HTTP adapter) and the application
layer without exposing domain internals to the outside world.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from storefront.domain.model.stock import StockFailure


@dataclass(frozen=True)
class OrderItemSpec:
    """Input: what the customer asked for (product id + quantity)."""

    product_id: str
    quantity: int


@dataclass(frozen=True)
class AddressSpec:
    """Input: shipping address as submitted at checkout."""

    name: str
    phone: str
    street: str
    city: str
    state: str
    postal_code: str
    country: str = "India"


@dataclass(frozen=True)
class OrderLineItemDTO:
    product_id: str
    product_name: str
    quantity: int
    unit_price: str  # formatted, e.g. "INR 15.00"
    line_total: str


@dataclass(frozen=True)
class OrderDTO:
    """Output: a complete order as displayed to the user."""

    id: str
    invoice_id: str
    customer_id: str
    status: str
    payment_method: str
    payment_status: str
    items: list[OrderLineItemDTO]
    subtotal: str
    shipping_cost: str
    discount_amount: str
    total: str
    created_at: str
    payment_order_id: str | None = None
    cancellation_reason: str | None = None


@dataclass(frozen=True)
class CreateOrderResult:
    """Output of checkout.

    ``stock_failures`` lists items whose stock could not be decremented
    after the order was persisted; the order stands regardless.
    """

    order: OrderDTO
    stock_failures: list[StockFailure] = field(default_factory=list)
    low_stock_product_ids: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class CancellationResult:
    order_id: str
    reason: str
    stock_restored: int
    restoration_failures: list[StockFailure] = field(default_factory=list)
