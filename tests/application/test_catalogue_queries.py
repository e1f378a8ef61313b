"""Tests for the catalogue and order query/admin use cases."""

from decimal import Decimal

import pytest

from storefront.application.add_product import AddProductHandler
from storefront.application.create_order import CreateOrderHandler
from storefront.application.dto import AddressSpec, OrderItemSpec
from storefront.application.inventory_report import InventoryReportHandler
from storefront.application.show_inventory import ShowInventoryHandler, StockStatus
from storefront.application.show_order import ShowOrderHandler
from storefront.application.update_order_status import UpdateOrderStatusHandler
from storefront.domain.exceptions import EntityNotFoundError, ValidationError
from storefront.domain.model.value_objects import Money
from storefront.domain.service.stock_sync_service import StockSyncService
from storefront.infrastructure.persistence.document_product_repository import (
    DocumentProductRepository,
)
from tests.fakes import FakeOrderRepository, InMemoryDocumentStore, seed_product


@pytest.fixture
def store():
    store = InMemoryDocumentStore()
    seed_product(store, "a", name="Apron", price="200", stock=20, category="Kitchen")
    seed_product(store, "b", name="Bowl", price="50", stock=4, category="Kitchen")
    seed_product(store, "c", name="Candle", price="120", stock=0, category="Decor")
    seed_product(store, "d", name="Doormat", price="300", stock=None, category="Decor")
    return store


@pytest.fixture
def product_repo(store):
    return DocumentProductRepository(store)


class TestStockStatus:

    @pytest.mark.parametrize(
        "stock,expected",
        [(6, StockStatus.IN_STOCK), (5, StockStatus.LOW_STOCK), (1, StockStatus.LOW_STOCK), (0, StockStatus.OUT_OF_STOCK)],
    )
    def test_classification(self, stock, expected):
        assert StockStatus.of(stock, threshold=5) is expected


class TestShowInventory:

    def test_lists_every_product_by_name(self, product_repo):
        inventory = ShowInventoryHandler(product_repo).handle()
        assert [l.product_name for l in inventory.lines] == ["Apron", "Bowl", "Candle", "Doormat"]
        assert inventory.summary.in_stock == 1
        assert inventory.summary.low_stock == 1
        assert inventory.summary.out_of_stock == 2

    def test_low_stock_only(self, product_repo):
        inventory = ShowInventoryHandler(product_repo).handle(low_stock_only=True)
        assert [l.product_id for l in inventory.lines] == ["b", "c", "d"]
        assert inventory.summary.total == 3


class TestInventoryReport:

    def test_totals(self, product_repo):
        report = InventoryReportHandler(product_repo).handle(threshold=5)
        assert report.total_products == 4
        assert report.total_value_in_stock == Money.of("4200")
        assert report.avg_stock_per_product == Decimal("6.00")
        assert (report.in_stock_products, report.low_stock_products, report.out_of_stock_products) == (1, 1, 2)

    def test_rankings(self, product_repo):
        report = InventoryReportHandler(product_repo).handle(threshold=5)
        assert [p.name for p in report.top_stock_products][:2] == ["Apron", "Bowl"]
        assert [p.name for p in report.low_stock_alert] == ["Bowl"]

    def test_category_breakdown(self, product_repo):
        report = InventoryReportHandler(product_repo).handle()
        kitchen = report.category_breakdown["Kitchen"]
        assert (kitchen.count, kitchen.total_stock) == (2, 24)
        assert kitchen.total_value == Money.of("4200")
        assert report.category_breakdown["Decor"].total_value == Money.zero()

    def test_empty_catalogue(self):
        report = InventoryReportHandler(DocumentProductRepository(InMemoryDocumentStore())).handle()
        assert report.total_products == 0
        assert report.avg_stock_per_product == Decimal("0.00")


class TestAddProduct:

    def test_adds_with_opening_stock(self, store, product_repo):
        product = AddProductHandler(product_repo).handle("Vase", "450", stock=7, category="Decor")
        assert product.id
        assert product_repo.get_by_id(product.id).stock == 7

    def test_defaults(self, product_repo):
        product = AddProductHandler(product_repo).handle("Vase", "450")
        assert product.stock == 0
        assert product.category == "Uncategorized"

    def test_duplicate_name_rejected(self, product_repo):
        with pytest.raises(ValidationError, match="already exists"):
            AddProductHandler(product_repo).handle("bowl", "10")

    def test_negative_stock_rejected(self, product_repo):
        with pytest.raises(ValidationError):
            AddProductHandler(product_repo).handle("Vase", "450", stock=-1)

    def test_configured_currency(self, product_repo):
        product = AddProductHandler(product_repo, currency="USD").handle("Vase", "4.50")
        assert product_repo.get_by_id(product.id).price == Money.of("4.50", "USD")


class TestOrderQueries:

    @pytest.fixture
    def order_repo(self):
        return FakeOrderRepository()

    @pytest.fixture
    def order_id(self, store, product_repo, order_repo):
        handler = CreateOrderHandler(order_repo, product_repo, StockSyncService(store))
        address = AddressSpec("Asha Rao", "9800000000", "12 MG Road", "Bengaluru", "KA", "560001")
        return handler.handle("user-1", [OrderItemSpec("a", 2)], address, "cod").order.id

    def test_show_order(self, order_repo, order_id):
        dto = ShowOrderHandler(order_repo).handle(order_id)
        assert dto.total == "INR 400.00"
        assert dto.items[0].product_name == "Apron"

    def test_show_unknown_order(self, order_repo):
        with pytest.raises(EntityNotFoundError):
            ShowOrderHandler(order_repo).handle("nope")

    def test_update_status(self, order_repo, order_id):
        UpdateOrderStatusHandler(order_repo).handle(order_id, "Shipped")
        assert order_repo.get_by_id(order_id).status.value == "shipped"

    def test_update_status_does_not_touch_stock(self, store, order_repo, order_id):
        UpdateOrderStatusHandler(order_repo).handle(order_id, "confirmed")
        assert store.fields("products", "a")["stock"] == 18

    def test_unknown_status(self, order_repo, order_id):
        with pytest.raises(ValidationError, match="Unknown order status"):
            UpdateOrderStatusHandler(order_repo).handle(order_id, "lost")
