"""ProductRepository on top of a DocumentStore (``products`` collection)."""

from __future__ import annotations

from storefront.domain.model.product import PRODUCTS, Product
from storefront.domain.repository.document_store import DocumentStore
from storefront.domain.repository.product_repository import ProductRepository


class DocumentProductRepository(ProductRepository):

    def __init__(self, store: DocumentStore) -> None:
        self._store = store

    # --- ProductRepository interface ------------------------------------------

    def get_by_id(self, product_id: str) -> Product | None:
        snapshot = self._store.get(PRODUCTS, product_id)
        if not snapshot.exists:
            return None
        return Product.from_document(snapshot.id, snapshot.fields)

    def get_by_name(self, name: str) -> Product | None:
        for product in self.list_all():
            if product.name.lower() == name.strip().lower():
                return product
        return None

    def list_all(self) -> list[Product]:
        products = [
            Product.from_document(snapshot.id, snapshot.fields)
            for snapshot in self._store.query(PRODUCTS)
        ]
        return sorted(products, key=lambda p: p.name.lower())

    def add(self, product: Product) -> Product:
        product.id = self._store.add(PRODUCTS, product.to_document())
        return product
