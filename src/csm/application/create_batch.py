"""Application service: Create Batch use case (a purchase from a supplier)."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime
from decimal import Decimal

from csm.application.context import UseCaseContext
from csm.domain.model.batch import Batch, BatchCosts, BatchUnit

logger = logging.getLogger(__name__)


class CreateBatchHandler:

    def __init__(self, ctx: UseCaseContext) -> None:
        self._ctx = ctx

    def handle(
        self,
        supplier: str,
        ordered_quantity: Decimal,
        unit: BatchUnit,
        costs: BatchCosts,
        order_date: datetime | None = None,
    ) -> Batch:
        ctx = self._ctx
        order_date = order_date or ctx.clock.now()
        batch = Batch.create(
            batch_id=uuid.uuid4().hex,
            supplier=supplier,
            ordered_quantity=ordered_quantity,
            unit=unit,
            order_date=order_date,
            costs=costs,
        )
        sequence = ctx.batches.count_ordered_in(order_date.year, order_date.month) + 1
        batch.batch_number = f"BATCH-{order_date:%Y%m}-{sequence:04d}"
        ctx.batches.save(batch)
        logger.info(
            "Ordered batch %s from %s: %s %s",
            batch.batch_number, batch.supplier, ordered_quantity, unit.value,
        )
        return batch
