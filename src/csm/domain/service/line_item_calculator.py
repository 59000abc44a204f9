"""Domain service: Line Item Calculator.

Order of operations is fixed: subtotal, then discount on the subtotal,
then tax on the discounted amount.
"""

from __future__ import annotations

from dataclasses import replace
from decimal import Decimal

from csm.domain.exceptions import InvalidLineItem, ValidationError
from csm.domain.model.line_item import LineItem
from csm.domain.model.value_objects import Money

_HUNDRED = Decimal(100)


class LineItemCalculator:

    def calculate(self, item: LineItem) -> LineItem:
        """Return a copy of *item* with its derived amounts filled in.

        Pure and idempotent: the derived fields of the input are ignored
        and recomputed from the inputs.
        """
        self._validate(item)
        currency = item.currency

        subtotal = (item.unit_price * item.quantity).rounded()
        if item.discount is not None:
            try:
                discount_amount = item.discount.amount_on(subtotal)
            except ValidationError as exc:
                raise InvalidLineItem(str(exc)) from exc
        else:
            discount_amount = Money.zero(currency).rounded()

        taxable = subtotal - discount_amount
        if item.tax_rate:
            tax_amount = (taxable * (item.tax_rate / _HUNDRED)).rounded()
        else:
            tax_amount = Money.zero(currency).rounded()

        return replace(
            item,
            subtotal=subtotal,
            discount_amount=discount_amount,
            tax_amount=tax_amount,
            total=taxable + tax_amount,
        )

    @staticmethod
    def _validate(item: LineItem) -> None:
        if isinstance(item.quantity, bool) or not isinstance(item.quantity, int):
            raise InvalidLineItem(
                f"Quantity must be an integer, got {type(item.quantity).__name__}"
            )
        if item.quantity <= 0:
            raise InvalidLineItem(f"Quantity must be positive, got {item.quantity}")
        if item.unit_price.is_negative():
            raise InvalidLineItem(f"Unit price cannot be negative, got {item.unit_price}")
        if item.tax_rate is not None:
            if not isinstance(item.tax_rate, Decimal):
                raise InvalidLineItem("Tax rate must be a Decimal percentage")
            if item.tax_rate < 0:
                raise InvalidLineItem(f"Tax rate cannot be negative, got {item.tax_rate}")
