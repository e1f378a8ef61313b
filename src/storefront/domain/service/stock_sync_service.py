"""Domain service: Stock Synchronization.

Keeps product stock consistent with the order lifecycle: validate before an
order is created, decrement per item once it is persisted, restore on
cancellation, and sweep for products running low.

Every stock mutation goes through ``adjust_stock`` (or the compare-and-swap
loop in ``set_stock``), which delegates to the store's atomic conditional
increment. Two orders racing for the last unit therefore cannot both
succeed, and stock is never committed below zero.

The per-order batch operations never raise for business conditions: a
missing product or a shortfall is returned as a tagged ``StockFailure`` so
the order workflow decides how to respond. ``adjust_stock`` and
``set_stock`` are meant for direct (admin) callers and raise instead.
"""

from __future__ import annotations

from datetime import datetime, timezone

import structlog

from storefront.domain.exceptions import (
    DocumentNotFoundError,
    EntityNotFoundError,
    InsufficientStockError,
    PreconditionFailedError,
    StoreError,
    ValidationError,
)
from storefront.domain.model.product import (
    LAST_UPDATE_REASON_FIELD,
    LAST_UPDATED_FIELD,
    PRODUCTS,
    STOCK_FIELD,
)
from storefront.domain.model.stock import (
    DEFAULT_LOW_STOCK_THRESHOLD,
    ORDER_CANCELLED,
    ORDER_CREATED,
    PRODUCT_NOT_FOUND,
    LowStockProduct,
    LowStockReport,
    StockDecrementResult,
    StockFailure,
    StockFailureKind,
    StockLedgerEntry,
    StockOperation,
    StockOperationType,
    StockRequest,
    StockRestoreResult,
    StockValidationResult,
    UnavailableItem,
)
from storefront.domain.model.value_objects import parse_timestamp
from storefront.domain.repository.document_store import (
    DocumentSnapshot,
    DocumentStore,
    FieldFilter,
    JournalEntry,
)
from storefront.domain.service.low_stock_notifier import LowStockNotifier

logger = structlog.get_logger(__name__)

STOCK_LEDGER = "stockLedger"


class StockSyncService:

    def __init__(
        self,
        store: DocumentStore,
        notifier: LowStockNotifier | None = None,
        set_stock_retries: int = 5,
    ) -> None:
        self._store = store
        self._notifier = notifier
        self._set_stock_retries = set_stock_retries

    # --- Order workflow -------------------------------------------------------

    def validate_stock_availability(
        self, items: list[StockRequest]
    ) -> StockValidationResult:
        """Check every item against current stock without changing anything.

        A product that does not exist counts as unavailable with nothing
        in stock. A store failure or an unreadable stock value on one item
        is reported for that item; the result is then invalid but still
        lists every shortfall found.
        """
        unavailable: list[UnavailableItem] = []
        failed: list[StockFailure] = []

        try:
            for item in items:
                try:
                    snapshot = self._store.get(PRODUCTS, item.product_id)
                    available = _stock_of(snapshot) if snapshot.exists else 0
                except Exception as exc:
                    logger.error(
                        "Stock lookup failed",
                        product_id=item.product_id,
                        error=str(exc),
                    )
                    failed.append(
                        StockFailure(
                            product_id=item.product_id,
                            reason=str(exc),
                            kind=StockFailureKind.STORE_ERROR,
                            requested=item.quantity,
                        )
                    )
                    continue

                if available < item.quantity:
                    unavailable.append(
                        UnavailableItem(
                            product_id=item.product_id,
                            requested=item.quantity,
                            available=available,
                        )
                    )
        except Exception as exc:
            logger.exception("Stock validation failed")
            return StockValidationResult(error=str(exc))

        return StockValidationResult(unavailable_items=unavailable, failed=failed)

    def decrement_order_stock(
        self,
        items: list[StockRequest],
        order_id: str | None = None,
    ) -> StockDecrementResult:
        """Take each item's quantity out of stock, item by item.

        Items are independent: a failure on one never stops the next, and
        items already decremented stay decremented.
        """
        decremented: list[StockOperation] = []
        failed: list[StockFailure] = []

        try:
            for item in items:
                outcome = self._apply_to_item(
                    item, -item.quantity, ORDER_CREATED, order_id
                )
                if isinstance(outcome, StockFailure):
                    failed.append(outcome)
                else:
                    decremented.append(outcome)
        except Exception as exc:
            logger.exception("Stock decrement failed", order_id=order_id)
            return StockDecrementResult(decremented, failed, error=str(exc))

        return StockDecrementResult(decremented, failed)

    def restore_order_stock(
        self,
        items: list[StockRequest],
        reason: str = ORDER_CANCELLED,
        order_id: str | None = None,
    ) -> StockRestoreResult:
        """Put each item's quantity back into stock. There is no ceiling."""
        reason = (reason or "").strip() or ORDER_CANCELLED
        restored: list[StockOperation] = []
        failed: list[StockFailure] = []

        try:
            for item in items:
                outcome = self._apply_to_item(item, item.quantity, reason, order_id)
                if isinstance(outcome, StockFailure):
                    failed.append(outcome)
                else:
                    restored.append(outcome)
        except Exception as exc:
            logger.exception("Stock restore failed", order_id=order_id)
            return StockRestoreResult(restored, failed, error=str(exc))

        return StockRestoreResult(restored, failed)

    def check_and_alert_low_stock(
        self, threshold: int = DEFAULT_LOW_STOCK_THRESHOLD
    ) -> LowStockReport:
        """Find every product with ``stock <= threshold`` and raise an alert."""
        try:
            snapshots = self._store.query(
                PRODUCTS, FieldFilter(STOCK_FIELD, "<=", threshold)
            )
        except Exception as exc:
            logger.exception("Low stock check failed", threshold=threshold)
            return LowStockReport(threshold=threshold, error=str(exc))

        products = sorted(
            (
                LowStockProduct(
                    product_id=snapshot.id,
                    name=snapshot.fields.get("name") or snapshot.fields.get("title") or "",
                    stock=_stock_of(snapshot),
                    sku=snapshot.fields.get("sku") or "",
                )
                for snapshot in snapshots
            ),
            key=lambda p: (p.stock, p.product_id),
        )

        if products:
            logger.warning(
                "Products with low stock",
                count=len(products),
                threshold=threshold,
                product_ids=[p.product_id for p in products],
            )
            self._notify(products, threshold)

        return LowStockReport(threshold=threshold, products_with_low_stock=products)

    # --- Direct stock mutation ------------------------------------------------

    def adjust_stock(
        self,
        product_id: str,
        delta: int,
        reason: str,
        order_id: str | None = None,
    ) -> StockOperation:
        """Atomically add ``delta`` (negative to take stock out).

        Raises EntityNotFoundError for an unknown product and
        InsufficientStockError when a negative delta exceeds current stock.
        """
        if delta == 0:
            raise ValidationError("Stock adjustment must be non-zero")
        if not reason or not reason.strip():
            raise ValidationError("A reason is required for every stock change")

        now = datetime.now(timezone.utc)
        try:
            new_stock = self._store.increment(
                PRODUCTS,
                product_id,
                STOCK_FIELD,
                delta,
                floor=0 if delta < 0 else None,
                merge={LAST_UPDATED_FIELD: now, LAST_UPDATE_REASON_FIELD: reason},
                journal=self._ledger_entry(product_id, delta, reason, order_id, now),
            )
        except DocumentNotFoundError as exc:
            raise EntityNotFoundError(f"Product not found: '{product_id}'") from exc
        except PreconditionFailedError as exc:
            raise InsufficientStockError(
                f"Insufficient stock. Available: {exc.current}, Required: {-delta}",
                [UnavailableItem(product_id, requested=-delta, available=exc.current)],
            ) from exc

        logger.info(
            "Stock adjusted",
            product_id=product_id,
            previous_stock=new_stock - delta,
            new_stock=new_stock,
            reason=reason,
            order_id=order_id,
        )
        return StockOperation(
            product_id=product_id,
            quantity=abs(delta),
            type=StockOperationType.DECREMENT if delta < 0 else StockOperationType.INCREMENT,
            reason=reason,
            order_id=order_id,
            new_stock=new_stock,
        )

    def set_stock(self, product_id: str, stock: int, reason: str) -> StockOperation | None:
        """Set stock to an absolute level.

        Reads the current level and commits the difference only if nobody
        changed it in between, retrying on contention. Returns None when
        the level already matches.
        """
        if stock < 0:
            raise ValidationError(f"Stock cannot be negative, got {stock}")

        for attempt in range(1, self._set_stock_retries + 1):
            snapshot = self._store.get(PRODUCTS, product_id)
            if not snapshot.exists:
                raise EntityNotFoundError(f"Product not found: '{product_id}'")

            current = _stock_of(snapshot)
            delta = stock - current
            if delta == 0:
                return None

            now = datetime.now(timezone.utc)
            try:
                self._store.increment(
                    PRODUCTS,
                    product_id,
                    STOCK_FIELD,
                    delta,
                    expect=current,
                    merge={LAST_UPDATED_FIELD: now, LAST_UPDATE_REASON_FIELD: reason},
                    journal=self._ledger_entry(product_id, delta, reason, None, now),
                )
            except DocumentNotFoundError as exc:
                raise EntityNotFoundError(f"Product not found: '{product_id}'") from exc
            except PreconditionFailedError:
                logger.debug(
                    "Stock changed concurrently, retrying",
                    product_id=product_id,
                    attempt=attempt,
                )
                continue

            logger.info(
                "Stock set",
                product_id=product_id,
                previous_stock=current,
                new_stock=stock,
                reason=reason,
            )
            return StockOperation(
                product_id=product_id,
                quantity=abs(delta),
                type=StockOperationType.DECREMENT if delta < 0 else StockOperationType.INCREMENT,
                reason=reason,
                new_stock=stock,
            )

        raise StoreError(
            f"Could not set stock for '{product_id}' after "
            f"{self._set_stock_retries} attempts"
        )

    def stock_history(self, product_id: str) -> list[StockLedgerEntry]:
        """Return the ledger of stock changes for a product, oldest first."""
        snapshots = self._store.query(
            STOCK_LEDGER, FieldFilter("productId", "==", product_id)
        )
        entries = [
            StockLedgerEntry(
                id=snapshot.id,
                product_id=snapshot.fields["productId"],
                delta=int(snapshot.fields["delta"]),
                reason=snapshot.fields.get("reason", ""),
                created_at=parse_timestamp(snapshot.fields["createdAt"]),
                order_id=snapshot.fields.get("orderId"),
            )
            for snapshot in snapshots
        ]
        return sorted(entries, key=lambda e: e.created_at)

    # --- Internal helpers -----------------------------------------------------

    def _apply_to_item(
        self,
        item: StockRequest,
        delta: int,
        reason: str,
        order_id: str | None,
    ) -> StockOperation | StockFailure:
        try:
            return self.adjust_stock(item.product_id, delta, reason, order_id)
        except EntityNotFoundError:
            logger.warning("Product not found", product_id=item.product_id, order_id=order_id)
            return StockFailure(
                product_id=item.product_id,
                reason=PRODUCT_NOT_FOUND,
                kind=StockFailureKind.NOT_FOUND,
                requested=item.quantity,
            )
        except InsufficientStockError as exc:
            shortfall = exc.unavailable_items[0]
            logger.warning(
                "Insufficient stock",
                product_id=item.product_id,
                requested=shortfall.requested,
                available=shortfall.available,
                order_id=order_id,
            )
            return StockFailure(
                product_id=item.product_id,
                reason=str(exc),
                kind=StockFailureKind.INSUFFICIENT_STOCK,
                requested=shortfall.requested,
                available=shortfall.available,
            )
        except StoreError as exc:
            logger.error(
                "Stock update failed",
                product_id=item.product_id,
                order_id=order_id,
                error=str(exc),
            )
            return StockFailure(
                product_id=item.product_id,
                reason=str(exc) or "Unknown error",
                kind=StockFailureKind.STORE_ERROR,
                requested=item.quantity,
            )
        except Exception as exc:
            logger.exception(
                "Stock update failed", product_id=item.product_id, order_id=order_id
            )
            return StockFailure(
                product_id=item.product_id,
                reason=str(exc) or type(exc).__name__,
                kind=StockFailureKind.STORE_ERROR,
                requested=item.quantity,
            )

    @staticmethod
    def _ledger_entry(
        product_id: str,
        delta: int,
        reason: str,
        order_id: str | None,
        now: datetime,
    ) -> JournalEntry:
        return JournalEntry(
            collection=STOCK_LEDGER,
            fields={
                "productId": product_id,
                "delta": delta,
                "reason": reason,
                "orderId": order_id,
                "createdAt": now,
            },
        )

    def _notify(self, products: list[LowStockProduct], threshold: int) -> None:
        if self._notifier is None:
            return
        try:
            self._notifier.notify(products, threshold)
        except Exception:
            logger.exception("Low stock notification failed", count=len(products))


def _stock_of(snapshot: DocumentSnapshot) -> int:
    return int(snapshot.fields.get(STOCK_FIELD) or 0)
