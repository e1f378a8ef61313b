"""Composition root: wires concrete implementations to domain interfaces.

This is the only place in the codebase that knows about *all* layers.
Every other module depends only on abstractions.
"""

from __future__ import annotations

from storefront.domain.service.stock_sync_service import StockSyncService
from storefront.infrastructure.config import get_settings
from storefront.infrastructure.notifications.logging_notifier import (
    LoggingLowStockNotifier,
)
from storefront.infrastructure.persistence.document_order_repository import (
    DocumentOrderRepository,
)
from storefront.infrastructure.persistence.document_product_repository import (
    DocumentProductRepository,
)
from storefront.infrastructure.persistence.json_document_store import (
    JsonDocumentStore,
)


def document_store() -> JsonDocumentStore:
    return JsonDocumentStore(get_settings().data_dir)


def product_repository() -> DocumentProductRepository:
    return DocumentProductRepository(document_store())


def order_repository() -> DocumentOrderRepository:
    return DocumentOrderRepository(document_store())


def stock_sync_service() -> StockSyncService:
    return StockSyncService(
        document_store(),
        notifier=LoggingLowStockNotifier(),
        set_stock_retries=get_settings().set_stock_retries,
    )
