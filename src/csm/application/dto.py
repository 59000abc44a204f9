"""Data Transfer Objects — plain containers that cross layer boundaries.

DTOs carry data between the CLI and application layers without
exposing domain internals to the outside world.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from csm.domain.model.value_objects import Discount


@dataclass(frozen=True)
class OrderItemSpec:
    """Input: what the customer asked for."""

    product_id: str
    quantity: int
    discount: Discount | None = None
    tax_rate: Decimal | None = None


@dataclass(frozen=True)
class OrderLineItemDTO:
    """Output: a single line item as displayed to the user."""

    description: str
    quantity: int
    unit_price: str  # formatted, e.g. "15.00 EUR"
    discount: str
    tax: str
    line_total: str


@dataclass(frozen=True)
class OrderDTO:
    """Output: a complete order as displayed to the user."""

    id: int
    order_number: str
    customer_name: str
    status: str
    payment_status: str
    items: list[OrderLineItemDTO]
    subtotal: str
    discount_total: str
    tax_total: str
    charges_total: str
    total: str
    paid: str
    balance_due: str
    overpaid: str
    created_at: str
    return_deadline: str | None


@dataclass(frozen=True)
class InvoiceDTO:
    """Output: an invoice as displayed to the user."""

    id: int
    invoice_number: str
    type: str
    issued_to: str
    status: str
    items: list[OrderLineItemDTO]
    total: str
    paid: str
    balance_due: str
    issue_date: str
    due_date: str


@dataclass(frozen=True)
class InventoryLineDTO:
    product_id: str
    product_name: str
    price: str
    total: int
    reserved: int
    available: int
    purchase_price: str | None
    margin: str | None
