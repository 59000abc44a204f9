"""Application service: Advance Order use case.

Records the warehouse and carrier milestones that need no stock
movement: processing started, packed, delivered, completed.
"""

from __future__ import annotations

from csm.application.context import UseCaseContext
from csm.application.documents import check_stock_secured, load_order
from csm.domain.exceptions import ValidationError
from csm.domain.model.order import Order, OrderMilestone
from csm.domain.service.status_deriver import check_order_milestone

ADVANCEABLE = (
    OrderMilestone.PROCESSING,
    OrderMilestone.PACKED,
    OrderMilestone.DELIVERED,
    OrderMilestone.COMPLETED,
)


class AdvanceOrderHandler:

    def __init__(self, ctx: UseCaseContext) -> None:
        self._ctx = ctx

    def handle(self, order_id: int, milestone: OrderMilestone, note: str = "") -> Order:
        if milestone not in ADVANCEABLE:
            raise ValidationError(
                f"{milestone.value} has its own operation and cannot be recorded directly"
            )
        ctx = self._ctx
        now = ctx.clock.now()
        order = load_order(ctx, order_id)

        check_order_milestone(order, milestone, now)
        if milestone in (OrderMilestone.PROCESSING, OrderMilestone.PACKED):
            check_stock_secured(ctx, order)
        order.record(milestone, now, note=note)
        ctx.reconciler().reconcile(order, now)
        ctx.orders.save(order)
        return order
