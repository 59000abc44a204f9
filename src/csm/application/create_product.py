"""Application service: Create Product use case.

Products sorted out of a batch are stamped with their share of the
batch's landed cost and recorded on the batch; the initial stock is an
INBOUND movement.
"""

from __future__ import annotations

import logging
from decimal import Decimal

from csm.application.context import UseCaseContext
from csm.domain.exceptions import EntityNotFoundError, ValidationError
from csm.domain.model.inventory_movement import InventoryMovement, MovementType
from csm.domain.model.product import Product
from csm.domain.model.value_objects import Money
from csm.domain.service.status_deriver import batch_has_arrived

logger = logging.getLogger(__name__)


class CreateProductHandler:

    def __init__(self, ctx: UseCaseContext) -> None:
        self._ctx = ctx

    def handle(
        self,
        name: str,
        price: Money,
        quantity: int,
        batch_id: str | None = None,
        batch_units: Decimal = Decimal("1"),
        purchase_price: Money | None = None,
    ) -> Product:
        """Add a new product to the catalog."""
        ctx = self._ctx
        if not name or not name.strip():
            raise ValidationError("Product name is required")
        if price.is_negative():
            raise ValidationError("Product price cannot be negative")
        if quantity < 0:
            raise ValidationError("Initial quantity cannot be negative")
        if batch_units <= 0:
            raise ValidationError("Batch units must be positive")

        existing = ctx.products.get_by_name(name)
        if existing is not None:
            raise ValidationError(f"Product '{name}' already exists")

        batch = None
        if batch_id is not None:
            batch = ctx.batches.get_by_id(batch_id)
            if batch is None:
                raise EntityNotFoundError(f"Batch '{batch_id}' not found")
            if not batch_has_arrived(batch):
                raise ValidationError(
                    f"Batch {batch.batch_number} is {batch.status.value}; "
                    "products can only be created from received batches"
                )
            purchase_price = ctx.cost_allocator().allocate(batch).cost_for(batch_units)

        # Auto-assign ID based on existing products
        all_products = ctx.products.list_all()
        if all_products:
            next_id = str(max(int(p.id) for p in all_products) + 1)
        else:
            next_id = "1"

        product = Product(
            id=next_id,
            name=name.strip(),
            price=price,
            quantity=quantity,
            purchase_price=purchase_price,
            batch_id=batch_id,
            batch_units=batch_units,
        )
        ctx.products.save(product)

        if quantity:
            ctx.movements.add(
                InventoryMovement(
                    product_id=product.id,
                    delta=quantity,
                    type=MovementType.INBOUND,
                    reason="initial stock",
                    at=ctx.clock.now(),
                    quantity_after=quantity,
                    batch_id=batch_id,
                )
            )
        if batch is not None:
            batch.products_created.append(product.id)
            ctx.batches.save(batch)

        logger.info("Created product %s '%s' (cost %s)", product.id, product.name, purchase_price)
        return product
