"""Application service: Fulfill Order use case.

Ships a packed order: its reservations become permanent stock
deductions and the order is marked SHIPPED.
"""

from __future__ import annotations

import logging

from csm.application.context import UseCaseContext
from csm.application.documents import check_stock_secured, load_order
from csm.domain.model.order import Order, OrderMilestone
from csm.domain.service.status_deriver import check_order_milestone

logger = logging.getLogger(__name__)


class FulfillOrderHandler:

    def __init__(self, ctx: UseCaseContext) -> None:
        self._ctx = ctx

    def handle(self, order_id: int) -> Order:
        ctx = self._ctx
        now = ctx.clock.now()
        order = load_order(ctx, order_id)

        check_order_milestone(order, OrderMilestone.SHIPPED, now)
        check_stock_secured(ctx, order)

        manager = ctx.reservation_manager()
        for token in order.reservation_tokens:
            manager.commit(token)  # idempotent

        order.record(OrderMilestone.SHIPPED, now)
        ctx.reconciler().reconcile(order, now)
        ctx.orders.save(order)

        logger.info("Order %s shipped", order_id)
        return order
