"""InventoryMovement — audit record of a change to a product's on-hand stock."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class MovementType(Enum):
    INBOUND = "INBOUND"
    OUTBOUND = "OUTBOUND"
    ADJUSTMENT = "ADJUSTMENT"
    RETURN = "RETURN"
    DAMAGE = "DAMAGE"
    THEFT = "THEFT"
    DISPOSAL = "DISPOSAL"


@dataclass(frozen=True)
class InventoryMovement:
    product_id: str
    delta: int
    type: MovementType
    reason: str
    at: datetime
    quantity_after: int
    order_id: int | None = None
    batch_id: str | None = None
    movement_id: str = field(default_factory=lambda: uuid.uuid4().hex)
