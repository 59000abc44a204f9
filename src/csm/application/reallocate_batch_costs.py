"""Application service: Reallocate Batch Costs use case.

Re-runs the cost allocation for a batch (after a late customs bill, a
corrected rate, a re-weigh) and re-stamps the purchase price of every
product sorted out of it.  Idempotent: a second run changes nothing.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from csm.application.context import UseCaseContext
from csm.domain.exceptions import ConcurrencyConflict, EntityNotFoundError
from csm.domain.model.value_objects import Money
from csm.domain.service.batch_cost_allocator import CostAllocation

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CostCorrection:
    product_id: str
    old_purchase_price: Money | None
    new_purchase_price: Money | None


@dataclass(frozen=True)
class BatchCostReport:
    allocation: CostAllocation
    corrections: list[CostCorrection]


class ReallocateBatchCostsHandler:

    def __init__(self, ctx: UseCaseContext) -> None:
        self._ctx = ctx

    def handle(self, batch_id: str) -> BatchCostReport:
        ctx = self._ctx
        batch = ctx.batches.get_by_id(batch_id)
        if batch is None:
            raise EntityNotFoundError(f"Batch '{batch_id}' not found")

        allocation = ctx.cost_allocator().allocate(batch)
        if (batch.total_cost, batch.cost_per_unit) != (
            allocation.total_cost,
            allocation.cost_per_unit,
        ):
            batch.total_cost = allocation.total_cost
            batch.cost_per_unit = allocation.cost_per_unit
            ctx.batches.save(batch)

        corrections: list[CostCorrection] = []
        for product in ctx.products.list_by_batch(batch_id):
            new_price = allocation.cost_for(product.batch_units)
            if product.purchase_price == new_price:
                continue
            corrections.append(
                CostCorrection(product.id, product.purchase_price, new_price)
            )
            self._restamp(product.id, new_price)

        logger.info(
            "Reallocated batch %s: %d product(s) corrected", batch.batch_number, len(corrections)
        )
        return BatchCostReport(allocation=allocation, corrections=corrections)

    def _restamp(self, product_id: str, price: Money | None) -> None:
        # Stock counters may move concurrently; retry on version conflicts.
        for _ in range(self._ctx.max_reservation_retries):
            product = self._ctx.products.get_by_id(product_id)
            if product is None:
                return
            product.purchase_price = price
            try:
                self._ctx.products.save(product)
            except ConcurrencyConflict:
                continue
            return
        raise ConcurrencyConflict(f"Could not restamp product '{product_id}'")
