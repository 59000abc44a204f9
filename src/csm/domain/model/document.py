"""FinancialDocument — shared base of Order and Invoice.

A document owns its line items (insertion order = display order) and its
payment events.  Mutators here only change *inputs*; the derived
``totals`` and ``payment_summary`` are written by the reconciliation
services and must be refreshed after every mutation.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

from csm.domain.exceptions import ValidationError
from csm.domain.model.line_item import LineItem
from csm.domain.model.payment import PaymentEvent, PaymentSummary
from csm.domain.model.value_objects import (
    ACCOUNTING_CURRENCY,
    Discount,
    Money,
    validate_currency_code,
)


@dataclass(frozen=True)
class DocumentTotals:
    subtotal: Money
    item_discount_total: Money
    document_discount_total: Money
    tax_total: Money
    charges_total: Money  # shipping + handling / other charges
    total: Money
    tax_breakdown: tuple[tuple[Decimal, Money], ...] = ()
    accounting_total: Money | None = None  # total in the accounting currency

    @property
    def discount_total(self) -> Money:
        return self.item_discount_total + self.document_discount_total


@dataclass
class FinancialDocument:
    id: int | None
    currency: str = ACCOUNTING_CURRENCY
    items: list[LineItem] = field(default_factory=list)
    discounts: list[Discount] = field(default_factory=list)
    shipping_cost: Money | None = None
    extra_charges: Money | None = None
    payments: list[PaymentEvent] = field(default_factory=list)
    version: int = 0

    # --- Derived --------------------------------------------------------------
    totals: DocumentTotals | None = None
    payment_summary: PaymentSummary | None = None

    def __post_init__(self) -> None:
        validate_currency_code(self.currency)

    @property
    def document_date(self) -> datetime:
        """Reference instant for currency conversion of this document."""
        raise NotImplementedError

    @property
    def due_date(self) -> datetime | None:
        return None

    # --- Item mutations -------------------------------------------------------

    def add_item(self, item: LineItem) -> None:
        self.items.append(item)

    def replace_item(self, index: int, item: LineItem) -> None:
        self._check_index(index)
        self.items[index] = item

    def remove_item(self, index: int) -> LineItem:
        self._check_index(index)
        return self.items.pop(index)

    # --- Document-level adjustments -------------------------------------------

    def add_discount(self, discount: Discount) -> None:
        self.discounts.append(discount)

    def remove_discount(self, index: int) -> Discount:
        if not 0 <= index < len(self.discounts):
            raise ValidationError(f"No document discount at position {index}")
        return self.discounts.pop(index)

    def set_shipping_cost(self, cost: Money | None) -> None:
        if cost is not None and cost.is_negative():
            raise ValidationError("Shipping cost cannot be negative")
        self.shipping_cost = cost

    def set_extra_charges(self, charges: Money | None) -> None:
        if charges is not None and charges.is_negative():
            raise ValidationError("Charges cannot be negative")
        self.extra_charges = charges

    # --- Payments -------------------------------------------------------------

    def add_payment(self, event: PaymentEvent) -> bool:
        """Record a payment event; returns False if nothing changed.

        Re-delivery of a known ``payment_id`` replaces the earlier event
        (a gateway status update); an identical re-delivery is a no-op.
        """
        for i, existing in enumerate(self.payments):
            if existing.payment_id == event.payment_id:
                if existing == event:
                    return False
                self.payments[i] = event
                return True
        self.payments.append(event)
        return True

    # --- Convenience accessors ------------------------------------------------

    @property
    def total(self) -> Money:
        return self._require_totals().total

    @property
    def paid_amount(self) -> Money:
        return self._require_summary().paid_amount

    @property
    def balance_due(self) -> Money:
        return self._require_summary().balance_due

    def _require_totals(self) -> DocumentTotals:
        if self.totals is None:
            raise ValidationError("Document totals have not been computed")
        return self.totals

    def _require_summary(self) -> PaymentSummary:
        if self.payment_summary is None:
            raise ValidationError("Document payments have not been reconciled")
        return self.payment_summary

    def _check_index(self, index: int) -> None:
        if not 0 <= index < len(self.items):
            raise ValidationError(f"No line item at position {index}")
