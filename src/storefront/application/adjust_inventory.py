"""Application service: Adjust Inventory use case (admin).

``add`` and ``remove`` go through the stock service's atomic adjustment,
so they serialise with concurrent checkouts and cancellations. Removing
more than is in stock is refused rather than clamped to zero. ``set``
writes an absolute level with a compare-and-swap retry loop.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from storefront.domain.exceptions import ValidationError
from storefront.domain.service.stock_sync_service import StockSyncService

ADMIN_ADJUSTMENT = "Admin adjustment"


class AdjustmentType(Enum):
    ADD = "add"
    REMOVE = "remove"
    SET = "set"


@dataclass(frozen=True)
class AdjustmentResult:
    product_id: str
    new_stock: int | None  # None when ``set`` found nothing to change
    changed: bool


class AdjustInventoryHandler:

    def __init__(self, stock_service: StockSyncService) -> None:
        self._stock = stock_service

    def handle(
        self,
        product_id: str,
        adjustment: int,
        adjustment_type: str,
        reason: str | None = None,
    ) -> AdjustmentResult:
        try:
            kind = AdjustmentType(adjustment_type.strip().lower())
        except ValueError:
            raise ValidationError(
                f"Unknown adjustment type '{adjustment_type}' "
                f"(expected add, remove or set)"
            ) from None

        reason = (reason or "").strip() or ADMIN_ADJUSTMENT

        if kind is AdjustmentType.SET:
            op = self._stock.set_stock(product_id, adjustment, reason)
            if op is None:
                return AdjustmentResult(product_id, new_stock=None, changed=False)
            return AdjustmentResult(product_id, new_stock=op.new_stock, changed=True)

        if adjustment <= 0:
            raise ValidationError("Adjustment must be a positive number of units")

        delta = adjustment if kind is AdjustmentType.ADD else -adjustment
        op = self._stock.adjust_stock(product_id, delta, reason)
        return AdjustmentResult(product_id, new_stock=op.new_stock, changed=True)
