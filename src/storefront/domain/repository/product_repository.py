"""Abstract repository for Product aggregate.

Catalogue reads and writes for listings and reports. Stock levels are
never written through here once a product exists; those go through the
stock service's atomic adjustment.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from storefront.domain.model.product import Product


class ProductRepository(ABC):

    @abstractmethod
    def get_by_id(self, product_id: str) -> Product | None:
        """Return a product by its ID, or None if not found."""

    @abstractmethod
    def get_by_name(self, name: str) -> Product | None:
        """Return a product by its name (case-insensitive), or None."""

    @abstractmethod
    def list_all(self) -> list[Product]:
        """Return every product in the catalog, ordered by name."""

    @abstractmethod
    def add(self, product: Product) -> Product:
        """Persist a new product and return it with its assigned id."""
