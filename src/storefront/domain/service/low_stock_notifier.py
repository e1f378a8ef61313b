"""Port for delivering low-stock alerts (chat, webhook, e-mail...)."""

from __future__ import annotations

from abc import ABC, abstractmethod

from storefront.domain.model.stock import LowStockProduct


class LowStockNotifier(ABC):

    @abstractmethod
    def notify(self, products: list[LowStockProduct], threshold: int) -> None:
        """Deliver one alert listing every product at or below ``threshold``."""
