"""Stock requests and the result values the stock core hands back.

None of these are persisted. They describe, per item, what happened to a
product's stock so the order workflow can decide how to respond.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from storefront.domain.model.value_objects import Quantity

ORDER_CREATED = "Order created"
ORDER_CANCELLED = "Order cancelled"
PRODUCT_NOT_FOUND = "Product not found"

DEFAULT_LOW_STOCK_THRESHOLD = 5


class StockOperationType(Enum):
    DECREMENT = "decrement"
    INCREMENT = "increment"


class StockFailureKind(Enum):
    NOT_FOUND = "not_found"
    INSUFFICIENT_STOCK = "insufficient_stock"
    STORE_ERROR = "store_error"


@dataclass(frozen=True)
class StockRequest:
    """One order item as the stock core sees it: product and quantity."""

    product_id: str
    quantity: int

    def __post_init__(self) -> None:
        Quantity(self.quantity)


@dataclass(frozen=True)
class StockOperation:
    """A committed stock change for a single product."""

    product_id: str
    quantity: int
    type: StockOperationType
    reason: str
    order_id: str | None = None
    new_stock: int | None = None

    @property
    def delta(self) -> int:
        if self.type is StockOperationType.DECREMENT:
            return -self.quantity
        return self.quantity


@dataclass(frozen=True)
class StockFailure:
    """A per-item failure, tagged by kind."""

    product_id: str
    reason: str
    kind: StockFailureKind
    requested: int | None = None
    available: int | None = None


@dataclass(frozen=True)
class UnavailableItem:
    product_id: str
    requested: int
    available: int

    @property
    def shortfall(self) -> int:
        return self.requested - self.available


@dataclass(frozen=True)
class StockValidationResult:
    unavailable_items: list[UnavailableItem] = field(default_factory=list)
    failed: list[StockFailure] = field(default_factory=list)
    error: str | None = None

    @property
    def valid(self) -> bool:
        return not self.unavailable_items and not self.failed and self.error is None


@dataclass(frozen=True)
class StockDecrementResult:
    decremented: list[StockOperation] = field(default_factory=list)
    failed: list[StockFailure] = field(default_factory=list)
    error: str | None = None

    @property
    def success(self) -> bool:
        return not self.failed and self.error is None


@dataclass(frozen=True)
class StockRestoreResult:
    restored: list[StockOperation] = field(default_factory=list)
    failed: list[StockFailure] = field(default_factory=list)
    error: str | None = None

    @property
    def success(self) -> bool:
        return not self.failed and self.error is None


@dataclass(frozen=True)
class LowStockProduct:
    product_id: str
    name: str
    stock: int
    sku: str = ""


@dataclass(frozen=True)
class LowStockReport:
    threshold: int
    products_with_low_stock: list[LowStockProduct] = field(default_factory=list)
    error: str | None = None

    @property
    def alerts_sent(self) -> bool:
        """True when there was something to alert about.

        Says nothing about whether a notification was actually delivered.
        """
        return bool(self.products_with_low_stock)


@dataclass(frozen=True)
class StockLedgerEntry:
    """An entry of the append-only ``stockLedger`` collection."""

    id: str
    product_id: str
    delta: int
    reason: str
    created_at: datetime
    order_id: str | None = None
