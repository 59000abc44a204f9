"""JSON encoding of the value objects shared by several aggregates.

Amounts are stored as strings so no precision is lost to floats;
instants as ISO-8601 with their UTC offset.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from csm.domain.model.document import DocumentTotals, FinancialDocument
from csm.domain.model.line_item import LineItem
from csm.domain.model.payment import (
    PaymentEvent,
    PaymentEventStatus,
    PaymentMethod,
    PaymentStatus,
    PaymentSummary,
)
from csm.domain.model.value_objects import Discount, DiscountKind, Money


def money_to_raw(money: Money | None) -> dict | None:
    if money is None:
        return None
    return {"amount": str(money.amount), "currency": money.currency}


def money_from_raw(raw: dict | None) -> Money | None:
    if raw is None:
        return None
    return Money(Decimal(raw["amount"]), raw["currency"])


def decimal_to_raw(value: Decimal | None) -> str | None:
    return None if value is None else str(value)


def decimal_from_raw(raw: str | None) -> Decimal | None:
    return None if raw is None else Decimal(raw)


def datetime_to_raw(value: datetime | None) -> str | None:
    return None if value is None else value.isoformat()


def datetime_from_raw(raw: str | None) -> datetime | None:
    return None if raw is None else datetime.fromisoformat(raw)


def discount_to_raw(discount: Discount | None) -> dict | None:
    if discount is None:
        return None
    return {"kind": discount.kind.value, "value": str(discount.value), "reason": discount.reason}


def discount_from_raw(raw: dict | None) -> Discount | None:
    if raw is None:
        return None
    return Discount(DiscountKind(raw["kind"]), Decimal(raw["value"]), raw.get("reason", ""))


def line_item_to_raw(item: LineItem) -> dict:
    return {
        "product_id": item.product_id,
        "description": item.description,
        "unit_price": money_to_raw(item.unit_price),
        "quantity": item.quantity,
        "discount": discount_to_raw(item.discount),
        "tax_rate": decimal_to_raw(item.tax_rate),
        "subtotal": money_to_raw(item.subtotal),
        "discount_amount": money_to_raw(item.discount_amount),
        "tax_amount": money_to_raw(item.tax_amount),
        "total": money_to_raw(item.total),
    }


def line_item_from_raw(raw: dict) -> LineItem:
    return LineItem(
        unit_price=money_from_raw(raw["unit_price"]),  # type: ignore[arg-type]
        quantity=raw["quantity"],
        product_id=raw.get("product_id"),
        description=raw.get("description", ""),
        discount=discount_from_raw(raw.get("discount")),
        tax_rate=decimal_from_raw(raw.get("tax_rate")),
        subtotal=money_from_raw(raw.get("subtotal")),
        discount_amount=money_from_raw(raw.get("discount_amount")),
        tax_amount=money_from_raw(raw.get("tax_amount")),
        total=money_from_raw(raw.get("total")),
    )


def payment_to_raw(event: PaymentEvent) -> dict:
    return {
        "payment_id": event.payment_id,
        "amount": money_to_raw(event.amount),
        "status": event.status.value,
        "timestamp": datetime_to_raw(event.timestamp),
        "method": event.method.value,
        "refund_of": event.refund_of,
        "reference": event.reference,
    }


def payment_from_raw(raw: dict) -> PaymentEvent:
    return PaymentEvent(
        amount=money_from_raw(raw["amount"]),  # type: ignore[arg-type]
        status=PaymentEventStatus(raw["status"]),
        timestamp=datetime_from_raw(raw["timestamp"]),  # type: ignore[arg-type]
        method=PaymentMethod(raw["method"]),
        payment_id=raw["payment_id"],
        refund_of=raw.get("refund_of"),
        reference=raw.get("reference", ""),
    )


def totals_to_raw(totals: DocumentTotals | None) -> dict | None:
    if totals is None:
        return None
    return {
        "subtotal": money_to_raw(totals.subtotal),
        "item_discount_total": money_to_raw(totals.item_discount_total),
        "document_discount_total": money_to_raw(totals.document_discount_total),
        "tax_total": money_to_raw(totals.tax_total),
        "charges_total": money_to_raw(totals.charges_total),
        "total": money_to_raw(totals.total),
        "tax_breakdown": [[str(rate), money_to_raw(amount)] for rate, amount in totals.tax_breakdown],
        "accounting_total": money_to_raw(totals.accounting_total),
    }


def totals_from_raw(raw: dict | None) -> DocumentTotals | None:
    if raw is None:
        return None
    return DocumentTotals(
        subtotal=money_from_raw(raw["subtotal"]),  # type: ignore[arg-type]
        item_discount_total=money_from_raw(raw["item_discount_total"]),  # type: ignore[arg-type]
        document_discount_total=money_from_raw(raw["document_discount_total"]),  # type: ignore[arg-type]
        tax_total=money_from_raw(raw["tax_total"]),  # type: ignore[arg-type]
        charges_total=money_from_raw(raw["charges_total"]),  # type: ignore[arg-type]
        total=money_from_raw(raw["total"]),  # type: ignore[arg-type]
        tax_breakdown=tuple(
            (Decimal(rate), money_from_raw(amount)) for rate, amount in raw.get("tax_breakdown", [])
        ),
        accounting_total=money_from_raw(raw.get("accounting_total")),
    )


def summary_to_raw(summary: PaymentSummary | None) -> dict | None:
    if summary is None:
        return None
    return {
        "paid_amount": money_to_raw(summary.paid_amount),
        "balance_due": money_to_raw(summary.balance_due),
        "payment_status": summary.payment_status.value,
    }


def summary_from_raw(raw: dict | None) -> PaymentSummary | None:
    if raw is None:
        return None
    return PaymentSummary(
        paid_amount=money_from_raw(raw["paid_amount"]),  # type: ignore[arg-type]
        balance_due=money_from_raw(raw["balance_due"]),  # type: ignore[arg-type]
        payment_status=PaymentStatus(raw["payment_status"]),
    )


def document_to_raw(doc: FinancialDocument) -> dict:
    """Fields every financial document carries."""
    return {
        "id": doc.id,
        "version": doc.version,
        "currency": doc.currency,
        "items": [line_item_to_raw(item) for item in doc.items],
        "discounts": [discount_to_raw(d) for d in doc.discounts],
        "shipping_cost": money_to_raw(doc.shipping_cost),
        "extra_charges": money_to_raw(doc.extra_charges),
        "payments": [payment_to_raw(p) for p in doc.payments],
        "totals": totals_to_raw(doc.totals),
        "payment_summary": summary_to_raw(doc.payment_summary),
    }


def document_fields_from_raw(raw: dict) -> dict:
    """Keyword arguments for rebuilding a FinancialDocument subclass."""
    return {
        "id": raw["id"],
        "version": raw["version"],
        "currency": raw["currency"],
        "items": [line_item_from_raw(i) for i in raw["items"]],
        "discounts": [discount_from_raw(d) for d in raw["discounts"]],
        "shipping_cost": money_from_raw(raw.get("shipping_cost")),
        "extra_charges": money_from_raw(raw.get("extra_charges")),
        "payments": [payment_from_raw(p) for p in raw["payments"]],
        "totals": totals_from_raw(raw.get("totals")),
        "payment_summary": summary_from_raw(raw.get("payment_summary")),
    }
