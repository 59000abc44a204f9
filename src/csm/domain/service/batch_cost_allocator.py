"""Domain service: Batch Cost Allocator.

Spreads a batch's landed cost (purchase + shipping + customs + other)
over its received quantity.  The allocation is a pure function of the
batch and the rate table, so it can be re-run at any time for audit or
correction; it never touches products itself.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from csm.domain.model.batch import Batch, BatchUnit
from csm.domain.model.value_objects import ACCOUNTING_CURRENCY, Money
from csm.domain.service.currency_converter import CurrencyConverter

UNIT_COST_EXPONENT = Decimal("0.0001")


@dataclass(frozen=True)
class CostAllocation:
    batch_id: str
    total_cost: Money
    unit: BatchUnit
    received_quantity: Decimal | None
    cost_per_unit: Money | None  # None when the received quantity is unknown or zero

    @property
    def is_known(self) -> bool:
        return self.cost_per_unit is not None

    def cost_for(self, units: Decimal) -> Money | None:
        """Purchase cost of a product that consumed *units* of the batch."""
        if self.cost_per_unit is None:
            return None
        return (self.cost_per_unit * units).rounded()


class BatchCostAllocator:

    def __init__(
        self,
        converter: CurrencyConverter,
        accounting_currency: str = ACCOUNTING_CURRENCY,
    ) -> None:
        self._converter = converter
        self._accounting_currency = accounting_currency

    def allocate(self, batch: Batch) -> CostAllocation:
        """Compute total landed cost and cost per unit in the accounting currency.

        Each cost component is converted at the batch's order date.
        Raises NoRateFound if a component's currency has no valid rate.
        """
        total = Money.zero(self._accounting_currency).rounded()
        for component in batch.costs.components():
            total += self._converter.convert(
                component, self._accounting_currency, batch.order_date
            )

        received = batch.received_quantity
        if not received:
            cost_per_unit = None
        else:
            cost_per_unit = Money(
                total.amount / received, self._accounting_currency
            ).rounded(UNIT_COST_EXPONENT)

        return CostAllocation(
            batch_id=batch.id,
            total_cost=total,
            unit=batch.unit,
            received_quantity=received,
            cost_per_unit=cost_per_unit,
        )
