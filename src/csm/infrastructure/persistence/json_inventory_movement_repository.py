"""JSON-file-backed implementation of InventoryMovementRepository (append-only)."""

from __future__ import annotations

from csm.domain.model.inventory_movement import InventoryMovement, MovementType
from csm.domain.repository.inventory_movement_repository import (
    InventoryMovementRepository,
)
from csm.infrastructure.persistence.codec import datetime_from_raw, datetime_to_raw
from csm.infrastructure.persistence.json_store import JsonFileStore


class JsonInventoryMovementRepository(JsonFileStore, InventoryMovementRepository):

    def add(self, movement: InventoryMovement) -> None:
        with self._locked() as records:
            records.append(
                {
                    "movement_id": movement.movement_id,
                    "product_id": movement.product_id,
                    "delta": movement.delta,
                    "type": movement.type.value,
                    "reason": movement.reason,
                    "at": datetime_to_raw(movement.at),
                    "quantity_after": movement.quantity_after,
                    "order_id": movement.order_id,
                    "batch_id": movement.batch_id,
                }
            )

    def list_for_product(self, product_id: str) -> list[InventoryMovement]:
        with self._lock:
            records = self._load_raw()
        return [
            InventoryMovement(
                product_id=raw["product_id"],
                delta=raw["delta"],
                type=MovementType(raw["type"]),
                reason=raw["reason"],
                at=datetime_from_raw(raw["at"]),  # type: ignore[arg-type]
                quantity_after=raw["quantity_after"],
                order_id=raw.get("order_id"),
                batch_id=raw.get("batch_id"),
                movement_id=raw["movement_id"],
            )
            for raw in records
            if raw["product_id"] == product_id
        ]
