"""Application service: Show Order use case (query).

The view is reconciled against the current clock and rate table but
never saved.
"""

from __future__ import annotations

from csm.application.context import UseCaseContext
from csm.application.documents import load_order
from csm.application.dto import OrderDTO, OrderLineItemDTO
from csm.domain.model.line_item import LineItem
from csm.domain.model.order import Order
from csm.domain.service.status_deriver import order_status

_TIMESTAMP = "%Y-%m-%d %H:%M UTC"


class ShowOrderHandler:

    def __init__(self, ctx: UseCaseContext) -> None:
        self._ctx = ctx

    def handle(self, order_id: int) -> OrderDTO:
        order = load_order(self._ctx, order_id)
        self._ctx.reconciler().reconcile(order, self._ctx.clock.now())
        return self._to_dto(order)

    @staticmethod
    def _to_dto(order: Order) -> OrderDTO:
        totals = order.totals
        summary = order.payment_summary
        deadline = order.return_deadline
        return OrderDTO(
            id=order.id,  # type: ignore[arg-type]
            order_number=order.order_number or "",
            customer_name=order.customer_name,
            status=order_status(order).value,
            payment_status=summary.payment_status.value,  # type: ignore[union-attr]
            items=[line_item_dto(item) for item in order.items],
            subtotal=str(totals.subtotal),  # type: ignore[union-attr]
            discount_total=str(totals.discount_total),  # type: ignore[union-attr]
            tax_total=str(totals.tax_total),  # type: ignore[union-attr]
            charges_total=str(totals.charges_total),  # type: ignore[union-attr]
            total=str(order.total),
            paid=str(order.paid_amount),
            balance_due=str(order.balance_due),
            overpaid=str(summary.overpaid_amount),  # type: ignore[union-attr]
            created_at=order.created_at.strftime(_TIMESTAMP),
            return_deadline=deadline.strftime(_TIMESTAMP) if deadline else None,
        )


def line_item_dto(item: LineItem) -> OrderLineItemDTO:
    return OrderLineItemDTO(
        description=item.description or (item.product_id or ""),
        quantity=item.quantity,
        unit_price=str(item.unit_price),
        discount=str(item.discount_amount),
        tax=str(item.tax_amount),
        line_total=str(item.total),
    )
