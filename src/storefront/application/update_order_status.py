"""Application service: Update Order Status use case (admin).

Moves an order along pending -> confirmed -> processing -> shipped ->
delivered. Stock is never re-checked or re-decremented here;
cancellation has its own use case because it restores stock.
"""

from __future__ import annotations

from storefront.domain.exceptions import EntityNotFoundError, ValidationError
from storefront.domain.model.order import OrderStatus
from storefront.domain.repository.order_repository import OrderRepository


class UpdateOrderStatusHandler:

    def __init__(self, order_repo: OrderRepository) -> None:
        self._order_repo = order_repo

    def handle(self, order_id: str, status: str) -> None:
        try:
            new_status = OrderStatus(status.strip().lower())
        except ValueError:
            raise ValidationError(f"Unknown order status '{status}'") from None

        order = self._order_repo.get_by_id(order_id)
        if order is None:
            raise EntityNotFoundError(f"Order not found: '{order_id}'")

        order.update_status(new_status)
        self._order_repo.save(order)
