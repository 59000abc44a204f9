"""Application service: expired-reservation sweep.

Meant to run periodically in the background.  Releases every active
reservation past its expiry and cancels the unpaid orders that owned
them (abandoned checkouts).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from csm.application.context import UseCaseContext
from csm.domain.exceptions import ConcurrencyConflict
from csm.domain.model.order import OrderMilestone
from csm.domain.service.status_deriver import can_be_cancelled

logger = logging.getLogger(__name__)


@dataclass
class SweepResult:
    released_tokens: list[str] = field(default_factory=list)
    cancelled_orders: list[int] = field(default_factory=list)


class SweepExpiredReservationsHandler:

    def __init__(self, ctx: UseCaseContext) -> None:
        self._ctx = ctx

    def handle(self) -> SweepResult:
        ctx = self._ctx
        now = ctx.clock.now()
        manager = ctx.reservation_manager()
        result = SweepResult()

        order_ids: list[int] = []
        for reservation in manager.release_expired(now):
            result.released_tokens.append(reservation.token)
            if reservation.order_id is not None and reservation.order_id not in order_ids:
                order_ids.append(reservation.order_id)

        for order_id in order_ids:
            order = ctx.orders.get_by_id(order_id)
            if order is None or not can_be_cancelled(order):
                continue
            if order.payment_summary is not None and order.payment_summary.paid_amount.amount > 0:
                logger.warning("Order %s has payments but its reservation expired", order_id)
                continue
            order.record(OrderMilestone.CANCELLED, now, note="reservation expired")
            ctx.reconciler().reconcile(order, now)
            try:
                ctx.orders.save(order)
            except ConcurrencyConflict:
                # Saved concurrently, usually by a payment; leave the order to that writer.
                logger.info("Order %s changed during sweep; skipping", order_id)
                continue
            for token in order.reservation_tokens:
                manager.release(token)
            result.cancelled_orders.append(order_id)

        if result.released_tokens:
            logger.info(
                "Sweep released %d reservation(s), cancelled %d order(s)",
                len(result.released_tokens), len(result.cancelled_orders),
            )
        return result
