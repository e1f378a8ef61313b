"""Application service: Create Order use case (checkout).

Orchestrates the stock service, the catalogue and the order repository:

1. Check the request carries a customer, items and an address.
2. Validate stock for every item; any shortfall aborts with the
   per-item report (409) before anything is written.
3. Persist the order as ``pending`` with a price snapshot.
4. Decrement stock item by item. A partial failure is logged and
   reported back, but the order stands.
5. Run the low-stock sweep (best effort).
6. For online payment, open a payment order with the gateway.
"""

from __future__ import annotations

import structlog

from storefront.application.dto import AddressSpec, CreateOrderResult, OrderItemSpec
from storefront.application.mapping import order_to_dto
from storefront.application.payment_gateway import PaymentGateway
from storefront.domain.exceptions import (
    EntityNotFoundError,
    InsufficientStockError,
    StoreError,
    ValidationError,
)
from storefront.domain.model.order import (
    Order,
    OrderLineItem,
    PaymentMethod,
    ShippingAddress,
)
from storefront.domain.model.stock import DEFAULT_LOW_STOCK_THRESHOLD, StockRequest
from storefront.domain.model.value_objects import Money, Quantity
from storefront.domain.repository.order_repository import OrderRepository
from storefront.domain.repository.product_repository import ProductRepository
from storefront.domain.service.stock_sync_service import StockSyncService

logger = structlog.get_logger(__name__)


class CreateOrderHandler:

    def __init__(
        self,
        order_repo: OrderRepository,
        product_repo: ProductRepository,
        stock_service: StockSyncService,
        payment_gateway: PaymentGateway | None = None,
        low_stock_threshold: int = DEFAULT_LOW_STOCK_THRESHOLD,
    ) -> None:
        self._order_repo = order_repo
        self._product_repo = product_repo
        self._stock = stock_service
        self._payment_gateway = payment_gateway
        self._low_stock_threshold = low_stock_threshold

    def handle(
        self,
        customer_id: str,
        item_specs: list[OrderItemSpec],
        address: AddressSpec | None,
        payment_method: str,
        shipping_cost: str = "0",
        discount_code: str | None = None,
        discount_amount: str = "0",
    ) -> CreateOrderResult:
        if not customer_id or not customer_id.strip():
            raise ValidationError("Customer id is required")
        if not item_specs:
            raise ValidationError("Order must contain at least one item")
        if address is None:
            raise ValidationError("Shipping address is required")

        shipping_address = ShippingAddress(
            name=address.name,
            phone=address.phone,
            street=address.street,
            city=address.city,
            state=address.state,
            postal_code=address.postal_code,
            country=address.country,
        )
        method = self._parse_payment_method(payment_method)
        requests = self._merge(item_specs)

        # --- Pre-flight stock gate --------------------------------------------
        validation = self._stock.validate_stock_availability(requests)
        if validation.error is not None or validation.failed:
            raise StoreError(
                validation.error
                or "; ".join(f"{f.product_id}: {f.reason}" for f in validation.failed)
            )
        if not validation.valid:
            details = "; ".join(
                f"{u.product_id}: requested {u.requested}, available {u.available}"
                for u in validation.unavailable_items
            )
            raise InsufficientStockError(
                f"Insufficient stock for some items ({details})",
                validation.unavailable_items,
            )

        # --- Persist ----------------------------------------------------------
        line_items = [self._line_item(request) for request in requests]
        currency = line_items[0].unit_price.currency
        order = Order.create(
            customer_id=customer_id,
            items=line_items,
            shipping_address=shipping_address,
            payment_method=method,
            shipping_cost=Money.of(shipping_cost, currency),
            discount_code=discount_code,
            discount_amount=Money.of(discount_amount, currency),
        )
        self._order_repo.save(order)

        # --- Stock ------------------------------------------------------------
        decrement = self._stock.decrement_order_stock(requests, order_id=order.id)
        if not decrement.success:
            logger.warning(
                "Stock decrement partially failed",
                order_id=order.id,
                failed=[
                    {"product_id": f.product_id, "reason": f.reason}
                    for f in decrement.failed
                ],
                error=decrement.error,
            )
        order.record_stock_commit(
            {op.product_id: op.quantity for op in decrement.decremented}
        )
        self._order_repo.save(order)

        low_stock = self._stock.check_and_alert_low_stock(self._low_stock_threshold)

        # --- Payment ----------------------------------------------------------
        if method is PaymentMethod.RAZORPAY and self._payment_gateway is not None:
            payment_order_id = self._payment_gateway.create_order(
                order.total,
                receipt=order.invoice_id,
                notes={"orderId": order.id, "userId": order.customer_id},  # type: ignore[dict-item]
            )
            order.attach_payment_order(payment_order_id)
            self._order_repo.save(order)

        logger.info(
            "Order created",
            order_id=order.id,
            invoice_id=order.invoice_id,
            items=len(order.items),
            total=str(order.total),
        )
        return CreateOrderResult(
            order=order_to_dto(order),
            stock_failures=list(decrement.failed),
            low_stock_product_ids=[
                p.product_id for p in low_stock.products_with_low_stock
            ],
        )

    # --- Internal helpers -----------------------------------------------------

    @staticmethod
    def _parse_payment_method(raw: str) -> PaymentMethod:
        try:
            return PaymentMethod((raw or "").strip().lower())
        except ValueError:
            allowed = ", ".join(m.value for m in PaymentMethod)
            raise ValidationError(
                f"Unknown payment method '{raw}' (expected one of: {allowed})"
            ) from None

    @staticmethod
    def _merge(item_specs: list[OrderItemSpec]) -> list[StockRequest]:
        """One request per product, so validation sees the combined quantity."""
        totals: dict[str, int] = {}
        for spec in item_specs:
            if not spec.product_id or not spec.product_id.strip():
                raise ValidationError("Every item needs a product id")
            Quantity(spec.quantity)
            product_id = spec.product_id.strip()
            totals[product_id] = totals.get(product_id, 0) + spec.quantity
        return [StockRequest(product_id=pid, quantity=qty) for pid, qty in totals.items()]

    def _line_item(self, request: StockRequest) -> OrderLineItem:
        product = self._product_repo.get_by_id(request.product_id)
        if product is None:
            raise EntityNotFoundError(f"Product not found: '{request.product_id}'")
        return OrderLineItem(
            product_id=product.id,
            product_name=product.name,
            quantity=Quantity(request.quantity),
            unit_price=product.price,  # <-- price snapshot
            category=product.category,
        )
