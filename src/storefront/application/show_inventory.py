"""Application service: Show Inventory use case (query)."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from storefront.domain.model.stock import DEFAULT_LOW_STOCK_THRESHOLD
from storefront.domain.repository.product_repository import ProductRepository


class StockStatus(Enum):
    IN_STOCK = "in_stock"
    LOW_STOCK = "low_stock"
    OUT_OF_STOCK = "out_of_stock"

    @staticmethod
    def of(stock: int, threshold: int) -> StockStatus:
        if stock > threshold:
            return StockStatus.IN_STOCK
        if stock > 0:
            return StockStatus.LOW_STOCK
        return StockStatus.OUT_OF_STOCK


@dataclass(frozen=True)
class InventoryLineDTO:
    product_id: str
    product_name: str
    sku: str
    price: str
    stock: int
    status: str


@dataclass(frozen=True)
class InventorySummaryDTO:
    total: int
    in_stock: int
    low_stock: int
    out_of_stock: int


@dataclass(frozen=True)
class InventoryDTO:
    lines: list[InventoryLineDTO]
    summary: InventorySummaryDTO


class ShowInventoryHandler:

    def __init__(self, product_repo: ProductRepository) -> None:
        self._product_repo = product_repo

    def handle(
        self,
        low_stock_only: bool = False,
        threshold: int = DEFAULT_LOW_STOCK_THRESHOLD,
    ) -> InventoryDTO:
        lines = [
            InventoryLineDTO(
                product_id=p.id,
                product_name=p.name,
                sku=p.sku,
                price=str(p.price),
                stock=p.stock,
                status=StockStatus.of(p.stock, threshold).value,
            )
            for p in self._product_repo.list_all()
        ]

        if low_stock_only:
            lines = [l for l in lines if l.status != StockStatus.IN_STOCK.value]

        def count(status: StockStatus) -> int:
            return sum(1 for l in lines if l.status == status.value)

        return InventoryDTO(
            lines=lines,
            summary=InventorySummaryDTO(
                total=len(lines),
                in_stock=count(StockStatus.IN_STOCK),
                low_stock=count(StockStatus.LOW_STOCK),
                out_of_stock=count(StockStatus.OUT_OF_STOCK),
            ),
        )
