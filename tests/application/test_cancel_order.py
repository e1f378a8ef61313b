"""Integration tests for the CancelOrder use case."""

import pytest

from storefront.application.cancel_order import CancelOrderHandler
from storefront.application.create_order import CreateOrderHandler
from storefront.application.dto import AddressSpec, OrderItemSpec
from storefront.domain.exceptions import EntityNotFoundError, ValidationError
from storefront.domain.model.order import OrderStatus
from storefront.domain.model.product import PRODUCTS
from storefront.domain.model.stock import StockFailureKind
from storefront.domain.service.stock_sync_service import StockSyncService
from storefront.infrastructure.persistence.document_product_repository import (
    DocumentProductRepository,
)
from tests.fakes import FakeOrderRepository, InMemoryDocumentStore, seed_product

ADDRESS = AddressSpec("Asha Rao", "9800000000", "12 MG Road", "Bengaluru", "KA", "560001")


@pytest.fixture
def store():
    store = InMemoryDocumentStore()
    seed_product(store, "widget", name="Widget", stock=10)
    seed_product(store, "gadget", name="Gadget", stock=10)
    return store


@pytest.fixture
def order_repo():
    return FakeOrderRepository()


@pytest.fixture
def stock(store):
    return StockSyncService(store)


@pytest.fixture
def cancel(order_repo, stock):
    return CancelOrderHandler(order_repo, stock)


@pytest.fixture
def place_order(store, order_repo, stock):
    handler = CreateOrderHandler(order_repo, DocumentProductRepository(store), stock)

    def _place(*items):
        result = handler.handle("user-1", list(items), ADDRESS, "cod")
        return result.order.id

    return _place


def _stock(store, product_id):
    return store.fields(PRODUCTS, product_id)["stock"]


class TestCancelOrder:

    def test_restores_stock_and_cancels(self, store, order_repo, cancel, place_order):
        order_id = place_order(OrderItemSpec("widget", 3), OrderItemSpec("gadget", 2))
        assert _stock(store, "widget") == 7

        result = cancel.handle(order_id, reason="Changed my mind")

        assert result.stock_restored == 2
        assert result.restoration_failures == []
        assert _stock(store, "widget") == 10
        assert _stock(store, "gadget") == 10
        order = order_repo.get_by_id(order_id)
        assert order.status == OrderStatus.CANCELLED
        assert order.cancellation_reason == "Changed my mind"

    def test_default_reason(self, store, cancel, place_order):
        order_id = place_order(OrderItemSpec("widget", 1))
        result = cancel.handle(order_id)
        assert result.reason == "Order cancelled"
        assert store.fields(PRODUCTS, "widget")["lastUpdateReason"] == "Order cancelled"

    def test_unknown_order(self, cancel):
        with pytest.raises(EntityNotFoundError):
            cancel.handle("nope")

    @pytest.mark.parametrize(
        "status", [OrderStatus.SHIPPED, OrderStatus.DELIVERED, OrderStatus.CANCELLED]
    )
    def test_non_cancellable_status_leaves_stock_alone(
        self, store, order_repo, cancel, place_order, status
    ):
        order_id = place_order(OrderItemSpec("widget", 4))
        order_repo.get_by_id(order_id).status = status

        with pytest.raises(ValidationError, match=f"Cannot cancel order with status: {status.value}"):
            cancel.handle(order_id)
        assert _stock(store, "widget") == 6

    def test_cancelling_twice_restores_once(self, store, cancel, place_order):
        order_id = place_order(OrderItemSpec("widget", 4))
        cancel.handle(order_id)
        with pytest.raises(ValidationError):
            cancel.handle(order_id)
        assert _stock(store, "widget") == 10


class TestCancelOrderBestEffortRestore:

    def test_vanished_product_does_not_block_cancellation(
        self, store, order_repo, cancel, place_order
    ):
        order_id = place_order(OrderItemSpec("widget", 1), OrderItemSpec("gadget", 1))
        del store.documents(PRODUCTS)["gadget"]

        result = cancel.handle(order_id)

        assert order_repo.get_by_id(order_id).status == OrderStatus.CANCELLED
        assert [f.kind for f in result.restoration_failures] == [StockFailureKind.NOT_FOUND]
        assert _stock(store, "widget") == 10

    def test_store_error_does_not_block_cancellation(
        self, store, order_repo, cancel, place_order
    ):
        order_id = place_order(OrderItemSpec("widget", 1))
        store.fail_writes.add("widget")

        result = cancel.handle(order_id)

        assert order_repo.get_by_id(order_id).status == OrderStatus.CANCELLED
        assert result.stock_restored == 0
        assert result.restoration_failures[0].kind is StockFailureKind.STORE_ERROR

    def test_only_committed_stock_is_restored(self, store, cancel, place_order):
        store.fail_writes.add("gadget")
        order_id = place_order(OrderItemSpec("widget", 2), OrderItemSpec("gadget", 2))
        store.fail_writes.clear()
        assert _stock(store, "gadget") == 10

        result = cancel.handle(order_id)

        assert result.stock_restored == 1
        assert _stock(store, "widget") == 10
        assert _stock(store, "gadget") == 10
