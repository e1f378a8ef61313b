"""Application service: Cancel Order use case.

Refuses orders that are already shipped, delivered or cancelled. Otherwise
puts back the stock the order actually took, then marks it cancelled.

Stock restoration is best effort: a product that vanished or a store error
on one item is logged and reported, but never blocks the cancellation.
"""

from __future__ import annotations

import structlog

from storefront.application.dto import CancellationResult
from storefront.domain.exceptions import EntityNotFoundError, ValidationError
from storefront.domain.model.stock import ORDER_CANCELLED
from storefront.domain.repository.order_repository import OrderRepository
from storefront.domain.service.stock_sync_service import StockSyncService

logger = structlog.get_logger(__name__)


class CancelOrderHandler:

    def __init__(
        self,
        order_repo: OrderRepository,
        stock_service: StockSyncService,
    ) -> None:
        self._order_repo = order_repo
        self._stock = stock_service

    def handle(self, order_id: str, reason: str | None = None) -> CancellationResult:
        order = self._order_repo.get_by_id(order_id)
        if order is None:
            raise EntityNotFoundError(f"Order not found: '{order_id}'")

        if not order.is_cancellable:
            raise ValidationError(
                f"Cannot cancel order with status: {order.status.value}"
            )

        restore_reason = (reason or "").strip() or ORDER_CANCELLED
        restore = self._stock.restore_order_stock(
            order.restorable_stock(), restore_reason, order_id=order.id
        )
        if not restore.success:
            logger.warning(
                "Stock restore partially failed",
                order_id=order.id,
                failed=[
                    {"product_id": f.product_id, "reason": f.reason}
                    for f in restore.failed
                ],
                error=restore.error,
            )

        order.cancel(restore_reason)
        self._order_repo.save(order)

        logger.info(
            "Order cancelled",
            order_id=order.id,
            reason=restore_reason,
            stock_restored=len(restore.restored),
        )
        return CancellationResult(
            order_id=order.id,  # type: ignore[arg-type]
            reason=restore_reason,
            stock_restored=len(restore.restored),
            restoration_failures=list(restore.failed),
        )
