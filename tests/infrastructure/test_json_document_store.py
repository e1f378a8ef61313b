"""Tests for the JSON-file document store and the repositories built on it."""

import json
import threading
from datetime import datetime, timezone

import pytest

from storefront.domain.exceptions import (
    DocumentNotFoundError,
    PreconditionFailedError,
    StoreError,
)
from storefront.domain.model.order import Order, OrderLineItem, PaymentMethod, ShippingAddress
from storefront.domain.model.product import PRODUCTS, Product
from storefront.domain.model.stock import StockFailureKind, StockRequest
from storefront.domain.model.value_objects import Money, Quantity
from storefront.domain.repository.document_store import FieldFilter, JournalEntry
from storefront.domain.service.stock_sync_service import StockSyncService
from storefront.infrastructure.persistence.document_order_repository import (
    DocumentOrderRepository,
)
from storefront.infrastructure.persistence.document_product_repository import (
    DocumentProductRepository,
)
from storefront.infrastructure.persistence.json_document_store import JsonDocumentStore


@pytest.fixture
def store(tmp_path) -> JsonDocumentStore:
    return JsonDocumentStore(tmp_path)


class TestJsonDocumentStore:

    def test_missing_collection_reads_empty(self, store):
        assert not store.get(PRODUCTS, "p1").exists
        assert store.query(PRODUCTS) == []

    def test_set_get_round_trip(self, store, tmp_path):
        store.set(PRODUCTS, "p1", {"name": "Mug", "stock": 3})
        assert store.get(PRODUCTS, "p1").fields == {"name": "Mug", "stock": 3}
        on_disk = json.loads((tmp_path / "products.json").read_text())
        assert on_disk == {"p1": {"name": "Mug", "stock": 3}}

    def test_datetimes_are_written_as_iso_text(self, store):
        when = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
        store.set(PRODUCTS, "p1", {"lastUpdated": when})
        assert store.get(PRODUCTS, "p1").fields["lastUpdated"] == when.isoformat()

    def test_update_missing_document(self, store):
        with pytest.raises(DocumentNotFoundError):
            store.update(PRODUCTS, "p1", {"stock": 1})

    def test_query_filters(self, store):
        for doc_id, stock in [("a", 1), ("b", 5), ("c", 9)]:
            store.set(PRODUCTS, doc_id, {"stock": stock})
        store.set(PRODUCTS, "d", {"name": "no stock"})
        low = store.query(PRODUCTS, FieldFilter("stock", "<=", 5))
        assert sorted(s.id for s in low) == ["a", "b"]

    def test_increment_with_floor(self, store):
        store.set(PRODUCTS, "p1", {"stock": 2})
        assert store.increment(PRODUCTS, "p1", "stock", -2, floor=0) == 0
        with pytest.raises(PreconditionFailedError) as exc_info:
            store.increment(PRODUCTS, "p1", "stock", -1, floor=0)
        assert exc_info.value.current == 0

    def test_increment_with_expect(self, store):
        store.set(PRODUCTS, "p1", {"stock": 2})
        with pytest.raises(PreconditionFailedError):
            store.increment(PRODUCTS, "p1", "stock", 5, expect=3)
        assert store.increment(PRODUCTS, "p1", "stock", 5, expect=2) == 7

    def test_increment_missing_field_counts_as_zero(self, store):
        store.set(PRODUCTS, "p1", {"name": "Mug"})
        assert store.increment(PRODUCTS, "p1", "stock", 4) == 4

    def test_increment_missing_document(self, store):
        with pytest.raises(DocumentNotFoundError):
            store.increment(PRODUCTS, "ghost", "stock", 1)

    def test_increment_merges_and_journals(self, store):
        store.set(PRODUCTS, "p1", {"stock": 2})
        store.increment(
            PRODUCTS,
            "p1",
            "stock",
            1,
            merge={"lastUpdateReason": "Restock"},
            journal=JournalEntry("stockLedger", {"productId": "p1", "delta": 1}),
        )
        assert store.get(PRODUCTS, "p1").fields["lastUpdateReason"] == "Restock"
        (entry,) = store.query("stockLedger")
        assert entry.fields == {"productId": "p1", "delta": 1}

    def test_refused_increment_writes_no_journal(self, store):
        store.set(PRODUCTS, "p1", {"stock": 0})
        with pytest.raises(PreconditionFailedError):
            store.increment(
                PRODUCTS, "p1", "stock", -1, floor=0,
                journal=JournalEntry("stockLedger", {"productId": "p1"}),
            )
        assert store.query("stockLedger") == []

    def test_unreadable_journal_leaves_counter_untouched(self, store, tmp_path):
        store.set(PRODUCTS, "p1", {"stock": 5})
        (tmp_path / "stockLedger.json").write_text("{not json")
        with pytest.raises(StoreError):
            store.increment(
                PRODUCTS, "p1", "stock", -2, floor=0,
                merge={"lastUpdateReason": "Order created"},
                journal=JournalEntry("stockLedger", {"productId": "p1"}),
            )
        assert store.get(PRODUCTS, "p1").fields == {"stock": 5}

    def test_failed_journal_write_rolls_counter_back(self, store, monkeypatch):
        store.set(PRODUCTS, "p1", {"stock": 5})
        persist = store._persist

        def persist_all_but_journal(collection, docs):
            if collection == "stockLedger":
                raise StoreError("disk full")
            persist(collection, docs)

        monkeypatch.setattr(store, "_persist", persist_all_but_journal)
        with pytest.raises(StoreError, match="disk full"):
            store.increment(
                PRODUCTS, "p1", "stock", -2, floor=0,
                merge={"lastUpdateReason": "Order created"},
                journal=JournalEntry("stockLedger", {"productId": "p1"}),
            )
        monkeypatch.undo()
        assert store.get(PRODUCTS, "p1").fields == {"stock": 5}
        assert store.query("stockLedger") == []

    def test_non_integer_counter_is_a_store_error(self, store):
        store.set(PRODUCTS, "p1", {"stock": "n/a"})
        with pytest.raises(StoreError, match="not an integer"):
            store.increment(PRODUCTS, "p1", "stock", 1)

    def test_corrupt_file_is_a_store_error(self, store, tmp_path):
        (tmp_path / "products.json").write_text("{not json")
        with pytest.raises(StoreError, match="Cannot read collection"):
            store.get(PRODUCTS, "p1")

    def test_stores_on_the_same_directory_share_locks(self, tmp_path):
        JsonDocumentStore(tmp_path).set(PRODUCTS, "p1", {"stock": 50})
        barrier = threading.Barrier(10)

        def take_five():
            barrier.wait()
            service = StockSyncService(JsonDocumentStore(tmp_path))
            service.decrement_order_stock([StockRequest("p1", 5)] * 2)

        threads = [threading.Thread(target=take_five) for _ in range(10)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        store = JsonDocumentStore(tmp_path)
        assert store.get(PRODUCTS, "p1").fields["stock"] == 0
        assert len(store.query("stockLedger")) == 10


class TestStockServiceOnDisk:

    def test_decrement_with_unreadable_ledger_keeps_stock(self, store, tmp_path):
        store.set(PRODUCTS, "p1", {"name": "Mug", "stock": 5})
        (tmp_path / "stockLedger.json").write_text("{not json")

        result = StockSyncService(store).decrement_order_stock([StockRequest("p1", 2)])

        assert not result.success
        assert result.decremented == []
        assert result.failed[0].kind is StockFailureKind.STORE_ERROR
        assert store.get(PRODUCTS, "p1").fields["stock"] == 5


class TestLastUnitRaceOnDisk:

    def test_exactly_one_checkout_wins(self, store):
        store.set(PRODUCTS, "p1", {"name": "Last one", "stock": 1})
        service = StockSyncService(store)
        barrier = threading.Barrier(2)
        results = []

        def checkout():
            barrier.wait()
            results.append(service.decrement_order_stock([StockRequest("p1", 1)]))

        threads = [threading.Thread(target=checkout) for _ in range(2)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert sorted(r.success for r in results) == [False, True]
        assert store.get(PRODUCTS, "p1").fields["stock"] == 0


class TestDocumentRepositories:

    def test_product_repository(self, store):
        repo = DocumentProductRepository(store)
        repo.add(Product(id="", name="Zither", price=Money.of("900"), stock=1))
        mug = repo.add(Product(id="", name="mug", price=Money.of("250"), stock=3))

        assert [p.name for p in repo.list_all()] == ["mug", "Zither"]
        assert repo.get_by_name("MUG").id == mug.id
        assert repo.get_by_id(mug.id).stock == 3
        assert repo.get_by_id("ghost") is None

    def test_order_repository_round_trip(self, store):
        repo = DocumentOrderRepository(store)
        order = Order.create(
            customer_id="user-1",
            items=[
                OrderLineItem("p1", "Mug", Quantity(2), Money.of("250"), category="Kitchen"),
            ],
            shipping_address=ShippingAddress(
                "Asha Rao", "9800000000", "12 MG Road", "Bengaluru", "KA", "560001"
            ),
            payment_method=PaymentMethod.RAZORPAY,
            shipping_cost=Money.of("40"),
            discount_code="WELCOME",
            discount_amount=Money.of("10"),
        )
        order.record_stock_commit({"p1": 2})
        repo.save(order)
        assert order.id is not None

        loaded = repo.get_by_id(order.id)
        assert loaded == order

        raw = store.get("orders", order.id).fields
        assert raw["orderStatus"] == "pending"
        assert raw["total"] == "530.00"
        assert raw["items"][0]["stockDecremented"] == 2

    def test_order_repository_save_replaces(self, store):
        repo = DocumentOrderRepository(store)
        order = Order.create(
            "user-1",
            [OrderLineItem("p1", "Mug", Quantity(1), Money.of("250"))],
            ShippingAddress("A", "1", "s", "c", "st", "000000"),
            PaymentMethod.COD,
        )
        repo.save(order)
        order.cancel("Changed my mind")
        repo.save(order)

        assert len(store.query("orders")) == 1
        assert repo.get_by_id(order.id).cancellation_reason == "Changed my mind"
