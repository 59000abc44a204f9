"""LineItem — one priced row of an order or invoice.

Inputs (price, quantity, discount, tax rate) are set by the caller; the
derived amounts are only ever written by the line-item calculator, which
returns a new LineItem rather than mutating one.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from csm.domain.model.value_objects import Discount, Money


@dataclass(frozen=True)
class LineItem:
    unit_price: Money
    quantity: int
    product_id: str | None = None
    description: str = ""
    discount: Discount | None = None
    tax_rate: Decimal | None = None  # percent, applied after discount

    # --- Derived (calculator output) ------------------------------------------
    subtotal: Money | None = None
    discount_amount: Money | None = None
    tax_amount: Money | None = None
    total: Money | None = None

    @property
    def currency(self) -> str:
        return self.unit_price.currency

    @property
    def is_calculated(self) -> bool:
        return self.total is not None
