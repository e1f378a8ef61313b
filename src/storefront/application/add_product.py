"""Application service: Add Product use case."""

from __future__ import annotations

from storefront.domain.exceptions import ValidationError
from storefront.domain.model.product import UNCATEGORIZED, Product, parse_price
from storefront.domain.model.value_objects import DEFAULT_CURRENCY
from storefront.domain.repository.product_repository import ProductRepository


class AddProductHandler:

    def __init__(
        self,
        product_repo: ProductRepository,
        currency: str = DEFAULT_CURRENCY,
    ) -> None:
        self._product_repo = product_repo
        self._currency = currency

    def handle(
        self,
        name: str,
        price: str,
        stock: int = 0,
        category: str | None = None,
        sku: str | None = None,
    ) -> Product:
        """Add a new product to the catalog with its opening stock."""
        if not name or not name.strip():
            raise ValidationError("Product name is required")

        existing = self._product_repo.get_by_name(name)
        if existing is not None:
            raise ValidationError(f"Product '{name}' already exists")

        product = Product(
            id="",
            name=name.strip(),
            price=parse_price(price, self._currency),
            stock=stock,
            category=(category or "").strip() or UNCATEGORIZED,
            sku=(sku or "").strip(),
        )
        return self._product_repo.add(product)
