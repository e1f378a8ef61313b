"""Application service: Inventory Report use case (query).

Catalogue-wide stock statistics for the admin dashboard: stock value,
in/low/out-of-stock counts, the ten best-stocked products, the ten
products closest to running out, and a per-category breakdown.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal

from storefront.application.show_inventory import StockStatus
from storefront.domain.model.stock import DEFAULT_LOW_STOCK_THRESHOLD
from storefront.domain.model.value_objects import DEFAULT_CURRENCY, Money
from storefront.domain.repository.product_repository import ProductRepository

TOP_N = 10


@dataclass(frozen=True)
class ProductStockDTO:
    product_id: str
    name: str
    stock: int
    price: str


@dataclass
class CategoryBreakdown:
    count: int = 0
    total_stock: int = 0
    total_value: Money = field(default_factory=Money.zero)


@dataclass(frozen=True)
class InventoryReportDTO:
    generated_at: datetime
    total_products: int
    total_value_in_stock: Money
    avg_stock_per_product: Decimal
    in_stock_products: int
    low_stock_products: int
    out_of_stock_products: int
    top_stock_products: list[ProductStockDTO]
    low_stock_alert: list[ProductStockDTO]
    category_breakdown: dict[str, CategoryBreakdown]


class InventoryReportHandler:

    def __init__(
        self,
        product_repo: ProductRepository,
        currency: str = DEFAULT_CURRENCY,
    ) -> None:
        self._product_repo = product_repo
        self._currency = currency

    def handle(self, threshold: int = DEFAULT_LOW_STOCK_THRESHOLD) -> InventoryReportDTO:
        products = self._product_repo.list_all()

        total_value = Money.zero(self._currency)
        total_stock = 0
        counts = {status: 0 for status in StockStatus}
        low_stock = []
        categories: dict[str, CategoryBreakdown] = {}

        for product in products:
            value = product.stock_value
            total_value = total_value + value
            total_stock += product.stock

            status = StockStatus.of(product.stock, threshold)
            counts[status] += 1
            if status is StockStatus.LOW_STOCK:
                low_stock.append(product)

            breakdown = categories.setdefault(
                product.category, CategoryBreakdown(total_value=Money.zero(self._currency))
            )
            breakdown.count += 1
            breakdown.total_stock += product.stock
            breakdown.total_value = breakdown.total_value + value

        average = (
            (Decimal(total_stock) / len(products)).quantize(Decimal("0.01"))
            if products
            else Decimal("0.00")
        )
        by_stock_desc = sorted(products, key=lambda p: (-p.stock, p.name))
        by_stock_asc = sorted(low_stock, key=lambda p: (p.stock, p.name))

        return InventoryReportDTO(
            generated_at=datetime.now(timezone.utc),
            total_products=len(products),
            total_value_in_stock=total_value,
            avg_stock_per_product=average,
            in_stock_products=counts[StockStatus.IN_STOCK],
            low_stock_products=counts[StockStatus.LOW_STOCK],
            out_of_stock_products=counts[StockStatus.OUT_OF_STOCK],
            top_stock_products=[_line(p) for p in by_stock_desc[:TOP_N]],
            low_stock_alert=[_line(p) for p in by_stock_asc[:TOP_N]],
            category_breakdown=categories,
        )


def _line(product) -> ProductStockDTO:
    return ProductStockDTO(
        product_id=product.id,
        name=product.name,
        stock=product.stock,
        price=str(product.price),
    )
