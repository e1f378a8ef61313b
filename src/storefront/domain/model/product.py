"""Product aggregate.

The product document is the authoritative owner of stock. The stock core
only ever mutates ``stock``, ``lastUpdated`` and ``lastUpdateReason``;
everything else here is read-only context for listings and reports.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any

from storefront.domain.exceptions import ValidationError
from storefront.domain.model.value_objects import (
    DEFAULT_CURRENCY,
    Money,
    parse_timestamp,
)

PRODUCTS = "products"

# Document field names
STOCK_FIELD = "stock"
LAST_UPDATED_FIELD = "lastUpdated"
LAST_UPDATE_REASON_FIELD = "lastUpdateReason"

UNCATEGORIZED = "Uncategorized"


@dataclass
class Product:
    """A product in the catalog together with its current stock level."""

    id: str
    name: str
    price: Money
    stock: int = 0
    category: str = UNCATEGORIZED
    sku: str = ""
    last_updated: datetime | None = None
    last_update_reason: str | None = None

    def __post_init__(self) -> None:
        if self.stock < 0:
            raise ValidationError(f"Stock cannot be negative, got {self.stock}")

    @property
    def stock_value(self) -> Money:
        return self.price * self.stock

    # --- Document mapping -----------------------------------------------------

    @staticmethod
    def from_document(doc_id: str, fields: dict[str, Any]) -> Product:
        """Build a Product from a raw ``products`` document.

        Older documents carry ``title`` instead of ``name`` and may lack
        ``stock`` altogether, which reads as zero.
        """
        return Product(
            id=doc_id,
            name=fields.get("name") or fields.get("title") or "",
            price=Money.of(fields.get("price", 0), fields.get("currency", DEFAULT_CURRENCY)),
            stock=int(fields.get(STOCK_FIELD) or 0),
            category=fields.get("category") or UNCATEGORIZED,
            sku=fields.get("sku") or "",
            last_updated=parse_timestamp(fields.get(LAST_UPDATED_FIELD)),
            last_update_reason=fields.get(LAST_UPDATE_REASON_FIELD),
        )

    def to_document(self) -> dict[str, Any]:
        fields: dict[str, Any] = {
            "name": self.name,
            "price": str(self.price.amount),
            "currency": self.price.currency,
            STOCK_FIELD: self.stock,
            "category": self.category,
            "sku": self.sku,
        }
        if self.last_updated is not None:
            fields[LAST_UPDATED_FIELD] = self.last_updated
        if self.last_update_reason is not None:
            fields[LAST_UPDATE_REASON_FIELD] = self.last_update_reason
        return fields


def parse_price(raw: str | Decimal, currency: str = DEFAULT_CURRENCY) -> Money:
    price = Money.of(raw, currency)
    if price.amount <= 0:
        raise ValidationError("Product price must be greater than zero")
    return price
