"""Application services: Return Order and Refund Order use cases.

Both are only possible after delivery and within the order's return
window.  A return puts the goods back on the shelf; the refund itself is
money and arrives through ``RecordPaymentHandler`` as REFUNDED events.
"""

from __future__ import annotations

import logging

from csm.application.context import UseCaseContext
from csm.application.documents import load_order
from csm.domain.model.inventory_movement import MovementType
from csm.domain.model.order import Order, OrderMilestone
from csm.domain.service.status_deriver import check_order_milestone

logger = logging.getLogger(__name__)


class ReturnOrderHandler:

    def __init__(self, ctx: UseCaseContext) -> None:
        self._ctx = ctx

    def handle(self, order_id: int, reason: str) -> Order:
        ctx = self._ctx
        now = ctx.clock.now()
        order = load_order(ctx, order_id)

        check_order_milestone(order, OrderMilestone.RETURNED, now)

        order.record(OrderMilestone.RETURNED, now, note=reason)
        ctx.reconciler().reconcile(order, now)
        ctx.orders.save(order)

        manager = ctx.reservation_manager()
        for product_id, quantity in order.quantities_by_product.items():
            manager.adjust(
                product_id,
                quantity,
                reason=f"return of order {order.order_number or order_id}: {reason}",
                movement_type=MovementType.RETURN,
                order_id=order_id,
            )
        logger.info("Order %s returned and restocked", order_id)
        return order


class RefundOrderHandler:

    def __init__(self, ctx: UseCaseContext) -> None:
        self._ctx = ctx

    def handle(self, order_id: int, note: str = "") -> Order:
        ctx = self._ctx
        now = ctx.clock.now()
        order = load_order(ctx, order_id)

        check_order_milestone(order, OrderMilestone.REFUNDED, now)
        order.record(OrderMilestone.REFUNDED, now, note=note)
        ctx.reconciler().reconcile(order, now)
        ctx.orders.save(order)
        logger.info("Order %s refunded", order_id)
        return order
