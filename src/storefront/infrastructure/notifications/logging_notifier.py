"""LowStockNotifier that writes the alert to the structured log.

Stands in for chat/webhook delivery, which lives outside this service.
"""

from __future__ import annotations

import structlog

from storefront.domain.model.stock import LowStockProduct
from storefront.domain.service.low_stock_notifier import LowStockNotifier

logger = structlog.get_logger(__name__)


class LoggingLowStockNotifier(LowStockNotifier):

    def notify(self, products: list[LowStockProduct], threshold: int) -> None:
        logger.warning(
            "Low stock alert",
            threshold=threshold,
            products=[
                {"product_id": p.product_id, "name": p.name, "stock": p.stock}
                for p in products
            ],
        )
