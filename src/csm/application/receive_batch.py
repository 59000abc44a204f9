"""Application service: Receive Batch use case.

Records the weighed/counted quantity and the final landed costs of a
batch that was in transit, and returns the resulting cost allocation.
A batch received with quantity zero gets an *unknown* cost per unit.
"""

from __future__ import annotations

import logging
from decimal import Decimal

from csm.application.context import UseCaseContext
from csm.domain.exceptions import EntityNotFoundError
from csm.domain.model.batch import BatchCosts, BatchStatus
from csm.domain.service.batch_cost_allocator import CostAllocation
from csm.domain.service.status_deriver import check_batch_transition

logger = logging.getLogger(__name__)


class ReceiveBatchHandler:

    def __init__(self, ctx: UseCaseContext) -> None:
        self._ctx = ctx

    def handle(
        self,
        batch_id: str,
        received_quantity: Decimal,
        costs: BatchCosts | None = None,
    ) -> CostAllocation:
        ctx = self._ctx
        now = ctx.clock.now()
        batch = ctx.batches.get_by_id(batch_id)
        if batch is None:
            raise EntityNotFoundError(f"Batch '{batch_id}' not found")

        check_batch_transition(batch, BatchStatus.RECEIVED)
        batch.receive(received_quantity, costs or batch.costs, now)
        allocation = ctx.cost_allocator().allocate(batch)

        batch.record(BatchStatus.RECEIVED, now)
        batch.total_cost = allocation.total_cost
        batch.cost_per_unit = allocation.cost_per_unit
        ctx.batches.save(batch)

        if allocation.is_known:
            logger.info(
                "Received batch %s: %s %s, landed cost %s (%s per %s)",
                batch.batch_number, received_quantity, batch.unit.value,
                allocation.total_cost, allocation.cost_per_unit, batch.unit.value,
            )
        else:
            logger.warning(
                "Received batch %s with no quantity; cost per unit unknown",
                batch.batch_number,
            )
        return allocation
