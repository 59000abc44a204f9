"""Abstract repository for the inventory movement audit trail."""

from __future__ import annotations

from abc import ABC, abstractmethod

from csm.domain.model.inventory_movement import InventoryMovement


class InventoryMovementRepository(ABC):

    @abstractmethod
    def add(self, movement: InventoryMovement) -> None:
        """Append a movement record."""

    @abstractmethod
    def list_for_product(self, product_id: str) -> list[InventoryMovement]:
        """Return a product's movements, oldest first."""
