"""Abstract repository for Product aggregate.

Defined in the domain layer so the domain never depends on
infrastructure. Concrete implementations (JSON, SQL, in-memory)
live in the infrastructure layer.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from csm.domain.model.product import Product


class ProductRepository(ABC):
    """Products are handed out as detached copies.

    ``save`` is an optimistic compare-and-swap: it succeeds only if the
    stored version still equals ``product.version``, then bumps the
    version on both the stored record and ``product``.  A product that
    is not stored yet is inserted (its version must be 0).
    """

    @abstractmethod
    def get_by_id(self, product_id: str) -> Product | None:
        """Return a product by its ID, or None if not found."""

    @abstractmethod
    def get_by_name(self, name: str) -> Product | None:
        """Return a product by its exact name, or None if not found."""

    @abstractmethod
    def list_all(self) -> list[Product]:
        """Return every product in the catalog."""

    @abstractmethod
    def list_by_batch(self, batch_id: str) -> list[Product]:
        """Return every product sorted out of a batch."""

    @abstractmethod
    def save(self, product: Product) -> None:
        """Persist a new or updated product; raise ConcurrencyConflict on a stale version."""
