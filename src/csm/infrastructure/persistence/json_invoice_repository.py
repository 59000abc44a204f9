"""JSON-file-backed implementation of InvoiceRepository."""

from __future__ import annotations

from csm.domain.model.invoice import (
    Invoice,
    InvoiceMilestone,
    InvoiceMilestoneRecord,
    InvoiceType,
)
from csm.domain.repository.invoice_repository import InvoiceRepository
from csm.infrastructure.persistence.codec import (
    datetime_from_raw,
    datetime_to_raw,
    document_fields_from_raw,
    document_to_raw,
)
from csm.infrastructure.persistence.json_store import JsonFileStore


class JsonInvoiceRepository(JsonFileStore, InvoiceRepository):

    def get_by_id(self, invoice_id: int) -> Invoice | None:
        with self._lock:
            for raw in self._load_raw():
                if raw["id"] == invoice_id:
                    return self._to_domain(raw)
        return None

    def count_issued_in(self, year: int, invoice_type: InvoiceType) -> int:
        with self._lock:
            invoices = [self._to_domain(raw) for raw in self._load_raw()]
        return sum(
            1 for inv in invoices if inv.type is invoice_type and inv.issue_date.year == year
        )

    def save(self, invoice: Invoice) -> None:
        with self._lock:
            if invoice.id is None:
                invoice.id = max((raw["id"] for raw in self._load_raw()), default=0) + 1
            self._compare_and_swap(
                invoice, "id", invoice.id, lambda: self._to_raw(invoice), "Invoice"
            )

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _to_raw(invoice: Invoice) -> dict:
        raw = document_to_raw(invoice)
        raw.update(
            {
                "type": invoice.type.value,
                "invoice_number": invoice.invoice_number,
                "issued_to": invoice.issued_to,
                "issue_date": datetime_to_raw(invoice.issue_date),
                "payment_terms_days": invoice.payment_terms_days,
                "order_id": invoice.order_id,
                "milestones": [
                    {"milestone": m.milestone.value, "at": datetime_to_raw(m.at)}
                    for m in invoice.milestones
                ],
            }
        )
        return raw

    @staticmethod
    def _to_domain(raw: dict) -> Invoice:
        return Invoice(
            **document_fields_from_raw(raw),
            type=InvoiceType(raw["type"]),
            invoice_number=raw.get("invoice_number"),
            issued_to=raw["issued_to"],
            issue_date=datetime_from_raw(raw["issue_date"]),  # type: ignore[arg-type]
            payment_terms_days=raw["payment_terms_days"],
            order_id=raw.get("order_id"),
            milestones=[
                InvoiceMilestoneRecord(
                    milestone=InvoiceMilestone(m["milestone"]),
                    at=datetime_from_raw(m["at"]),  # type: ignore[arg-type]
                )
                for m in raw.get("milestones", [])
            ],
        )
