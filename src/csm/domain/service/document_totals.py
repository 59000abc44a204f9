"""Domain service: Document Totals Aggregator.

Folds line items plus document-level discounts and charges into the
document's totals.  Runs after every structural mutation of an order or
invoice and is idempotent: recomputing an unchanged document yields the
same values.

    total = Σsubtotal - Σitem discount - Σdocument discount + Σtax
            + shipping + handling/other charges

Document discounts are computed on the item subtotal sum, not on the
already-discounted amount, and can never push the pre-tax amount below
zero.
"""

from __future__ import annotations

import logging
from decimal import Decimal

from csm.domain.exceptions import NoRateFound
from csm.domain.model.document import DocumentTotals, FinancialDocument
from csm.domain.model.value_objects import ACCOUNTING_CURRENCY, Money
from csm.domain.service.currency_converter import CurrencyConverter
from csm.domain.service.line_item_calculator import LineItemCalculator

logger = logging.getLogger(__name__)


class DocumentTotalsAggregator:

    def __init__(
        self,
        converter: CurrencyConverter,
        calculator: LineItemCalculator | None = None,
        accounting_currency: str = ACCOUNTING_CURRENCY,
    ) -> None:
        self._converter = converter
        self._calculator = calculator or LineItemCalculator()
        self._accounting_currency = accounting_currency

    def recompute(self, doc: FinancialDocument) -> FinancialDocument:
        """Recompute every line item and the document totals in place."""
        doc.items[:] = [self._calculator.calculate(item) for item in doc.items]

        currency = doc.currency
        zero = Money.zero(currency).rounded()
        subtotal = item_discounts = tax_total = zero
        tax_by_rate: dict[Decimal, Money] = {}

        for item in doc.items:
            subtotal += self._to_doc(item.subtotal, doc)
            item_discounts += self._to_doc(item.discount_amount, doc)
            tax = self._to_doc(item.tax_amount, doc)
            tax_total += tax
            if item.tax_rate:
                rate = item.tax_rate.normalize()
                tax_by_rate[rate] = tax_by_rate.get(rate, zero) + tax

        document_discounts = zero
        for discount in doc.discounts:
            document_discounts += discount.amount_on(subtotal)
        headroom = subtotal - item_discounts
        if document_discounts > headroom:
            document_discounts = max(headroom, zero)

        charges = zero
        for charge in (doc.shipping_cost, doc.extra_charges):
            if charge is not None:
                charges += self._to_doc(charge, doc)

        total = subtotal - item_discounts - document_discounts + tax_total + charges

        doc.totals = DocumentTotals(
            subtotal=subtotal,
            item_discount_total=item_discounts,
            document_discount_total=document_discounts,
            tax_total=tax_total,
            charges_total=charges,
            total=total,
            tax_breakdown=tuple(sorted(tax_by_rate.items())),
            accounting_total=self._accounting_total(total, doc),
        )
        return doc

    def _to_doc(self, amount: Money | None, doc: FinancialDocument) -> Money:
        if amount is None:
            return Money.zero(doc.currency).rounded()
        return self._converter.convert(amount, doc.currency, doc.document_date)

    def _accounting_total(self, total: Money, doc: FinancialDocument) -> Money | None:
        try:
            return self._converter.convert(total, self._accounting_currency, doc.document_date)
        except NoRateFound as exc:
            logger.warning("Accounting total unavailable for document %s: %s", doc.id, exc)
            return None
