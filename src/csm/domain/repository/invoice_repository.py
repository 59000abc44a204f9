"""Abstract repository for Invoice aggregate."""

from __future__ import annotations

from abc import ABC, abstractmethod

from csm.domain.model.invoice import Invoice, InvoiceType


class InvoiceRepository(ABC):

    @abstractmethod
    def get_by_id(self, invoice_id: int) -> Invoice | None:
        """Return a detached copy of an invoice, or None if not found."""

    @abstractmethod
    def count_issued_in(self, year: int, invoice_type: InvoiceType) -> int:
        """Number of invoices of *invoice_type* issued in *year*."""

    @abstractmethod
    def save(self, invoice: Invoice) -> None:
        """Persist a new or updated invoice; raise ConcurrencyConflict on a stale version."""
