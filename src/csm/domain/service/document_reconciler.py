"""Domain service: Document Reconciler.

Brings an order's or invoice's derived fields back in line with its
inputs: totals first, then the payment summary against the new total.
Every use case that mutates a document calls this before saving it.
"""

from __future__ import annotations

from datetime import datetime

from csm.domain.model.document import FinancialDocument
from csm.domain.service.document_totals import DocumentTotalsAggregator
from csm.domain.service.payment_ledger import PaymentLedger


class DocumentReconciler:

    def __init__(self, aggregator: DocumentTotalsAggregator, ledger: PaymentLedger) -> None:
        self._aggregator = aggregator
        self._ledger = ledger

    def reconcile(self, doc: FinancialDocument, now: datetime) -> FinancialDocument:
        self._aggregator.recompute(doc)
        doc.payment_summary = self._ledger.apply(doc, now)
        return doc
