"""Application service: Adjust Inventory use case.

Direct administrative correction (damage, theft, recount) that bypasses
the reservation flow.  Always audited.
"""

from __future__ import annotations

from csm.application.context import UseCaseContext
from csm.domain.model.inventory_movement import MovementType
from csm.domain.model.product import Product


class AdjustInventoryHandler:

    def __init__(self, ctx: UseCaseContext) -> None:
        self._ctx = ctx

    def handle(
        self,
        product_id: str,
        delta: int,
        reason: str,
        movement_type: MovementType = MovementType.ADJUSTMENT,
    ) -> Product:
        return self._ctx.reservation_manager().adjust(
            product_id, delta, reason, movement_type=movement_type
        )
