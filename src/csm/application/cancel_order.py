"""Application service: Cancel Order use case.

Releases every reservation the order still holds, then records the
cancellation.  Only allowed before the order ships.
"""

from __future__ import annotations

import logging

from csm.application.context import UseCaseContext
from csm.application.documents import load_order
from csm.domain.model.order import Order, OrderMilestone
from csm.domain.service.status_deriver import check_order_milestone

logger = logging.getLogger(__name__)


class CancelOrderHandler:

    def __init__(self, ctx: UseCaseContext) -> None:
        self._ctx = ctx

    def handle(self, order_id: int, reason: str = "") -> Order:
        ctx = self._ctx
        now = ctx.clock.now()
        order = load_order(ctx, order_id)

        check_order_milestone(order, OrderMilestone.CANCELLED, now)

        # Stored before any stock moves; a concurrent payment loses the version check.
        order.record(OrderMilestone.CANCELLED, now, note=reason)
        ctx.reconciler().reconcile(order, now)
        ctx.orders.save(order)

        manager = ctx.reservation_manager()
        for token in order.reservation_tokens:
            manager.release(token)  # idempotent

        logger.info("Cancelled order %s%s", order_id, f" ({reason})" if reason else "")
        return order
