"""Domain service: Status Deriver.

Order, invoice and batch statuses are functions of recorded facts
(milestones, payment state, status history) rather than fields that get
set.  Each has a ``StateMachine`` describing the legal moves; callers
check a move with ``check_*`` *before* recording the fact that causes it.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import datetime
from enum import Enum
from typing import Generic, TypeVar

from csm.domain.exceptions import IllegalTransition
from csm.domain.model.batch import Batch, BatchStatus
from csm.domain.model.invoice import Invoice, InvoiceMilestone, InvoiceStatus
from csm.domain.model.order import Order, OrderMilestone, OrderStatus
from csm.domain.model.payment import PaymentStatus

logger = logging.getLogger(__name__)

S = TypeVar("S", bound=Enum)


class StateMachine(Generic[S]):

    def __init__(
        self,
        name: str,
        initial: S,
        transitions: Mapping[S, frozenset[S]],
        terminal: frozenset[S],
    ) -> None:
        self.name = name
        self.initial = initial
        self._transitions = transitions
        self.terminal = terminal

    def can(self, current: S, target: S) -> bool:
        if current in self.terminal:
            return False
        return target in self._transitions.get(current, frozenset())

    def check(self, current: S, target: S) -> None:
        if not self.can(current, target):
            logger.warning("Rejected %s transition %s -> %s", self.name, current.value, target.value)
            raise IllegalTransition(self.name, current.value, target.value)


# --- Order --------------------------------------------------------------------

_O = OrderStatus

ORDER_MACHINE: StateMachine[OrderStatus] = StateMachine(
    "order",
    initial=_O.DRAFT,
    transitions={
        _O.DRAFT: frozenset({_O.PENDING_PAYMENT, _O.CANCELLED}),
        _O.PENDING_PAYMENT: frozenset({_O.PAYMENT_RECEIVED, _O.CANCELLED}),
        _O.PAYMENT_RECEIVED: frozenset({_O.PROCESSING, _O.CANCELLED}),
        _O.PROCESSING: frozenset({_O.PACKED, _O.CANCELLED}),
        _O.PACKED: frozenset({_O.SHIPPED, _O.CANCELLED}),
        _O.SHIPPED: frozenset({_O.DELIVERED}),
        _O.DELIVERED: frozenset({_O.COMPLETED, _O.RETURNED, _O.REFUNDED}),
        _O.RETURNED: frozenset({_O.REFUNDED}),
    },
    terminal=frozenset({_O.COMPLETED, _O.CANCELLED, _O.REFUNDED}),
)

# Later milestones win; exits override the forward path.
_ORDER_PRECEDENCE: tuple[tuple[OrderMilestone, OrderStatus], ...] = (
    (OrderMilestone.REFUNDED, _O.REFUNDED),
    (OrderMilestone.CANCELLED, _O.CANCELLED),
    (OrderMilestone.RETURNED, _O.RETURNED),
    (OrderMilestone.COMPLETED, _O.COMPLETED),
    (OrderMilestone.DELIVERED, _O.DELIVERED),
    (OrderMilestone.SHIPPED, _O.SHIPPED),
    (OrderMilestone.PACKED, _O.PACKED),
    (OrderMilestone.PROCESSING, _O.PROCESSING),
)

_MILESTONE_TARGET: dict[OrderMilestone, OrderStatus] = {
    OrderMilestone.PLACED: _O.PENDING_PAYMENT,
    **{milestone: status for milestone, status in _ORDER_PRECEDENCE},
}


def order_status(order: Order) -> OrderStatus:
    reached = {record.milestone for record in order.milestones}
    for milestone, status in _ORDER_PRECEDENCE:
        if milestone in reached:
            return status
    if OrderMilestone.PLACED not in reached:
        return _O.DRAFT
    summary = order.payment_summary
    if summary is not None and summary.payment_status is PaymentStatus.PAID and order.items:
        return _O.PAYMENT_RECEIVED
    return _O.PENDING_PAYMENT


def can_be_cancelled(order: Order) -> bool:
    return ORDER_MACHINE.can(order_status(order), _O.CANCELLED)


def can_be_returned(order: Order, now: datetime) -> bool:
    deadline = order.return_deadline
    return (
        order_status(order) is _O.DELIVERED
        and deadline is not None
        and now <= deadline
    )


def check_order_milestone(order: Order, milestone: OrderMilestone, now: datetime) -> None:
    """Raise IllegalTransition unless *milestone* may be recorded now."""
    current = order_status(order)
    target = _MILESTONE_TARGET[milestone]
    ORDER_MACHINE.check(current, target)
    if milestone in (OrderMilestone.RETURNED, OrderMilestone.REFUNDED):
        deadline = order.return_deadline
        if deadline is None or now > deadline:
            logger.warning("Order %s is past its return window", order.id)
            raise IllegalTransition("order", current.value, f"{target.value} (return window closed)")


# --- Invoice ------------------------------------------------------------------

_I = InvoiceStatus

INVOICE_MACHINE: StateMachine[InvoiceStatus] = StateMachine(
    "invoice",
    initial=_I.DRAFT,
    transitions={
        _I.DRAFT: frozenset({_I.SENT, _I.CANCELLED}),
        _I.SENT: frozenset({_I.VIEWED, _I.PARTIALLY_PAID, _I.PAID, _I.OVERDUE, _I.CANCELLED}),
        _I.VIEWED: frozenset({_I.PARTIALLY_PAID, _I.PAID, _I.OVERDUE, _I.CANCELLED}),
        _I.OVERDUE: frozenset({_I.VIEWED, _I.PARTIALLY_PAID, _I.PAID, _I.CANCELLED}),
        _I.PARTIALLY_PAID: frozenset({_I.PAID, _I.REFUNDED}),
        _I.PAID: frozenset({_I.PARTIALLY_PAID, _I.REFUNDED}),
    },
    terminal=frozenset({_I.CANCELLED, _I.REFUNDED}),
)

_INVOICE_MILESTONE_TARGET: dict[InvoiceMilestone, InvoiceStatus] = {
    InvoiceMilestone.SENT: _I.SENT,
    InvoiceMilestone.VIEWED: _I.VIEWED,
    InvoiceMilestone.CANCELLED: _I.CANCELLED,
    InvoiceMilestone.REFUNDED: _I.REFUNDED,
}

_ACCEPTS_PAYMENT = frozenset({_I.SENT, _I.VIEWED, _I.OVERDUE, _I.PARTIALLY_PAID, _I.PAID})


def invoice_status(invoice: Invoice, now: datetime) -> InvoiceStatus:
    """Derive an invoice's status; OVERDUE is an overlay computed from *now*."""
    if invoice.reached(InvoiceMilestone.REFUNDED):
        return _I.REFUNDED
    if invoice.reached(InvoiceMilestone.CANCELLED):
        return _I.CANCELLED
    if not invoice.reached(InvoiceMilestone.SENT):
        return _I.DRAFT
    summary = invoice.payment_summary
    if summary is not None:
        if summary.paid_amount.amount > 0 and summary.payment_status is PaymentStatus.PAID:
            return _I.PAID
        if summary.payment_status is PaymentStatus.PARTIALLY_PAID:
            return _I.PARTIALLY_PAID
    if now > invoice.due_date:
        return _I.OVERDUE
    if invoice.reached(InvoiceMilestone.VIEWED):
        return _I.VIEWED
    return _I.SENT


def check_invoice_milestone(invoice: Invoice, milestone: InvoiceMilestone, now: datetime) -> None:
    current = invoice_status(invoice, now)
    target = _INVOICE_MILESTONE_TARGET[milestone]
    if milestone is InvoiceMilestone.VIEWED and invoice.reached(InvoiceMilestone.VIEWED):
        raise IllegalTransition("invoice", current.value, target.value)
    INVOICE_MACHINE.check(current, target)


def check_invoice_accepts_payment(invoice: Invoice, now: datetime) -> None:
    current = invoice_status(invoice, now)
    if current not in _ACCEPTS_PAYMENT:
        logger.warning("Invoice %s in %s cannot take payments", invoice.id, current.value)
        raise IllegalTransition("invoice", current.value, "PAYMENT")


# --- Batch --------------------------------------------------------------------

_B = BatchStatus

BATCH_MACHINE: StateMachine[BatchStatus] = StateMachine(
    "batch",
    initial=_B.ORDERED,
    transitions={
        _B.ORDERED: frozenset({_B.IN_TRANSIT, _B.CANCELLED}),
        _B.IN_TRANSIT: frozenset({_B.RECEIVED, _B.CANCELLED}),
        _B.RECEIVED: frozenset({_B.IN_SORTING}),
        _B.IN_SORTING: frozenset({_B.PARTIALLY_SORTED, _B.SORTED}),
        _B.PARTIALLY_SORTED: frozenset({_B.SORTED}),
        _B.SORTED: frozenset({_B.IN_STORAGE}),
        _B.IN_STORAGE: frozenset({_B.COMPLETED}),
    },
    terminal=frozenset({_B.COMPLETED, _B.CANCELLED}),
)

_PRE_RECEIPT = frozenset({_B.ORDERED, _B.IN_TRANSIT})


def batch_status(batch: Batch) -> BatchStatus:
    return batch.status


def check_batch_transition(batch: Batch, target: BatchStatus) -> None:
    BATCH_MACHINE.check(batch.status, target)


def batch_has_arrived(batch: Batch) -> bool:
    """True once a batch is received and not cancelled."""
    return batch.status not in _PRE_RECEIPT and batch.status is not _B.CANCELLED
