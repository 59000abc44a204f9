"""Invoice aggregate — a sales or purchase invoice with its own payments."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum

from csm.domain.exceptions import ValidationError
from csm.domain.model.document import FinancialDocument
from csm.domain.model.line_item import LineItem


class InvoiceType(Enum):
    SALES = "SALES"
    PURCHASE = "PURCHASE"


class InvoiceStatus(Enum):
    DRAFT = "DRAFT"
    SENT = "SENT"
    VIEWED = "VIEWED"
    PARTIALLY_PAID = "PARTIALLY_PAID"
    PAID = "PAID"
    OVERDUE = "OVERDUE"
    CANCELLED = "CANCELLED"
    REFUNDED = "REFUNDED"


class InvoiceMilestone(Enum):
    SENT = "SENT"
    VIEWED = "VIEWED"
    CANCELLED = "CANCELLED"
    REFUNDED = "REFUNDED"


@dataclass(frozen=True)
class InvoiceMilestoneRecord:
    milestone: InvoiceMilestone
    at: datetime


NUMBER_PREFIXES = {
    InvoiceType.SALES: "SINV",
    InvoiceType.PURCHASE: "PINV",
}


@dataclass
class Invoice(FinancialDocument):
    """``extra_charges`` holds the invoice's other charges."""

    type: InvoiceType = InvoiceType.SALES
    invoice_number: str | None = None
    issued_to: str = ""
    issue_date: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    payment_terms_days: int = 14
    order_id: int | None = None
    milestones: list[InvoiceMilestoneRecord] = field(default_factory=list)

    @staticmethod
    def create(
        issued_to: str,
        items: list[LineItem],
        currency: str,
        issue_date: datetime,
        payment_terms_days: int,
        type: InvoiceType = InvoiceType.SALES,
        order_id: int | None = None,
    ) -> Invoice:
        if not issued_to or not issued_to.strip():
            raise ValidationError("Invoice recipient is required")
        if not items:
            raise ValidationError("Invoice must contain at least one item")
        if payment_terms_days < 0:
            raise ValidationError("Payment terms cannot be negative")
        return Invoice(
            id=None,
            currency=currency,
            items=list(items),
            type=type,
            issued_to=issued_to.strip(),
            issue_date=issue_date,
            payment_terms_days=payment_terms_days,
            order_id=order_id,
        )

    def record(self, milestone: InvoiceMilestone, at: datetime) -> None:
        self.milestones.append(InvoiceMilestoneRecord(milestone=milestone, at=at))

    def reached(self, milestone: InvoiceMilestone) -> InvoiceMilestoneRecord | None:
        for record in self.milestones:
            if record.milestone is milestone:
                return record
        return None

    @property
    def number_prefix(self) -> str:
        return NUMBER_PREFIXES[self.type]

    @property
    def document_date(self) -> datetime:
        return self.issue_date

    @property
    def due_date(self) -> datetime:
        return self.issue_date + timedelta(days=self.payment_terms_days)
