"""Application service: Show Inventory use case (query)."""

from __future__ import annotations

from csm.application.context import UseCaseContext
from csm.application.dto import InventoryLineDTO


class ShowInventoryHandler:

    def __init__(self, ctx: UseCaseContext) -> None:
        self._ctx = ctx

    def handle(self) -> list[InventoryLineDTO]:
        products = self._ctx.products.list_all()
        return [
            InventoryLineDTO(
                product_id=product.id,
                product_name=product.name,
                price=str(product.price),
                total=product.quantity,
                reserved=product.reserved_quantity,
                available=product.available_quantity,
                purchase_price=str(product.purchase_price) if product.purchase_price else None,
                margin=f"{product.profit_margin}%" if product.profit_margin is not None else None,
            )
            for product in products
        ]
