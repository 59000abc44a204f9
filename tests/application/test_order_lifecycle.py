"""Integration tests for paying, shipping, cancelling and returning orders."""

from datetime import timedelta

import pytest

from csm.application.advance_order import AdvanceOrderHandler
from csm.application.cancel_order import CancelOrderHandler
from csm.application.documents import DocumentKind
from csm.application.dto import OrderItemSpec
from csm.application.fulfill_order import FulfillOrderHandler
from csm.application.place_order import PlaceOrderHandler
from csm.application.record_payment import RecordPaymentHandler
from csm.application.return_order import RefundOrderHandler, ReturnOrderHandler
from csm.application.show_order import ShowOrderHandler
from csm.application.sweep_reservations import SweepExpiredReservationsHandler
from csm.domain.exceptions import (
    ConcurrencyConflict,
    EntityNotFoundError,
    IllegalTransition,
    InsufficientStock,
    ValidationError,
)
from csm.domain.model.inventory_movement import MovementType
from csm.domain.model.order import OrderMilestone, OrderStatus
from csm.domain.model.payment import PaymentEvent, PaymentEventStatus, PaymentMethod
from csm.domain.model.product import Product
from csm.domain.model.reservation import ReservationState
from csm.domain.model.value_objects import Money
from csm.domain.service.status_deriver import order_status
from tests.fakes import StaleOrderRepository, make_context


def _setup(**overrides):
    ctx = make_context(
        products=[
            Product(id="1", name="Denim Jacket", price=Money.of("40.00"), quantity=10),
            Product(id="2", name="Wool Scarf", price=Money.of("15.00"), quantity=5),
        ],
        **overrides,
    )
    order = PlaceOrderHandler(ctx).handle(
        "Alice", [OrderItemSpec("1", 2), OrderItemSpec("2", 1)]
    )
    return ctx, order.id


def _pay(ctx, order_id: int, amount: str, payment_id: str | None = None):
    extra = {"payment_id": payment_id} if payment_id else {}
    event = PaymentEvent(
        amount=Money.of(amount),
        status=PaymentEventStatus.COMPLETED,
        timestamp=ctx.clock.now(),
        method=PaymentMethod.CREDIT_CARD,
        **extra,
    )
    return RecordPaymentHandler(ctx).handle(DocumentKind.ORDER, order_id, event)


def _ship(ctx, order_id: int) -> None:
    advance = AdvanceOrderHandler(ctx)
    advance.handle(order_id, OrderMilestone.PROCESSING)
    advance.handle(order_id, OrderMilestone.PACKED)
    FulfillOrderHandler(ctx).handle(order_id)


class TestPayment:

    def test_full_payment_marks_order_paid(self):
        ctx, order_id = _setup()
        order = _pay(ctx, order_id, "95.00")

        assert order_status(order) is OrderStatus.PAYMENT_RECEIVED
        assert order.balance_due.is_zero()
        saved = ctx.orders.get_by_id(order_id)
        assert order_status(saved) is OrderStatus.PAYMENT_RECEIVED

    def test_full_payment_pins_reservations(self):
        ctx, order_id = _setup()
        _pay(ctx, order_id, "95.00")
        states = {r.state for r in ctx.reservations.list_for_order(order_id)}
        assert states == {ReservationState.HELD}

    def test_partial_payment(self):
        ctx, order_id = _setup()
        order = _pay(ctx, order_id, "50.00")
        assert order_status(order) is OrderStatus.PENDING_PAYMENT
        assert order.balance_due == Money.of("45.00")

    def test_redelivered_payment_counted_once(self):
        ctx, order_id = _setup()
        _pay(ctx, order_id, "50.00", payment_id="gw-1")
        order = _pay(ctx, order_id, "50.00", payment_id="gw-1")
        assert order.paid_amount == Money.of("50.00")
        assert len(ctx.orders.get_by_id(order_id).payments) == 1

    def test_unknown_order(self):
        ctx, _ = _setup()
        with pytest.raises(EntityNotFoundError, match="Order #42 not found"):
            _pay(ctx, 42, "1.00")

    def test_late_payment_re_reserves_released_stock(self):
        ctx, order_id = _setup()
        _pay(ctx, order_id, "50.00")
        ctx.clock.advance(timedelta(minutes=31))
        ctx.reservation_manager().release_expired()
        assert ctx.products.get_by_id("1").reserved_quantity == 0

        order = _pay(ctx, order_id, "45.00")

        assert ctx.products.get_by_id("1").reserved_quantity == 2
        assert ctx.products.get_by_id("2").reserved_quantity == 1
        held = [ctx.reservations.get(t) for t in order.reservation_tokens]
        assert all(r.state is ReservationState.HELD for r in held)


class TestFulfillment:

    def test_ship_commits_stock(self):
        ctx, order_id = _setup()
        _pay(ctx, order_id, "95.00")
        _ship(ctx, order_id)

        jacket = ctx.products.get_by_id("1")
        assert jacket.quantity == 8
        assert jacket.reserved_quantity == 0
        assert order_status(ctx.orders.get_by_id(order_id)) is OrderStatus.SHIPPED

    def test_cannot_process_unpaid_order(self):
        ctx, order_id = _setup()
        with pytest.raises(IllegalTransition, match="PENDING_PAYMENT to PROCESSING"):
            AdvanceOrderHandler(ctx).handle(order_id, OrderMilestone.PROCESSING)

    def test_cannot_ship_before_packing(self):
        ctx, order_id = _setup()
        _pay(ctx, order_id, "95.00")
        AdvanceOrderHandler(ctx).handle(order_id, OrderMilestone.PROCESSING)
        with pytest.raises(IllegalTransition):
            FulfillOrderHandler(ctx).handle(order_id)
        assert ctx.products.get_by_id("1").quantity == 10

    def test_shipping_has_its_own_operation(self):
        ctx, order_id = _setup()
        with pytest.raises(ValidationError, match="has its own operation"):
            AdvanceOrderHandler(ctx).handle(order_id, OrderMilestone.SHIPPED)


class TestCancel:

    def test_cancel_releases_stock(self):
        ctx, order_id = _setup()
        CancelOrderHandler(ctx).handle(order_id, "changed mind")

        assert ctx.products.get_by_id("1").reserved_quantity == 0
        assert ctx.products.get_by_id("2").reserved_quantity == 0
        assert order_status(ctx.orders.get_by_id(order_id)) is OrderStatus.CANCELLED

    def test_cancel_paid_order_before_shipping(self):
        ctx, order_id = _setup()
        _pay(ctx, order_id, "95.00")
        CancelOrderHandler(ctx).handle(order_id)
        assert ctx.products.get_by_id("1").reserved_quantity == 0

    def test_cannot_cancel_shipped_order(self):
        ctx, order_id = _setup()
        _pay(ctx, order_id, "95.00")
        _ship(ctx, order_id)
        with pytest.raises(IllegalTransition, match="SHIPPED to CANCELLED"):
            CancelOrderHandler(ctx).handle(order_id)

    def test_cannot_cancel_twice(self):
        ctx, order_id = _setup()
        CancelOrderHandler(ctx).handle(order_id)
        with pytest.raises(IllegalTransition):
            CancelOrderHandler(ctx).handle(order_id)


class TestReturns:

    def _delivered(self):
        ctx, order_id = _setup()
        _pay(ctx, order_id, "95.00")
        _ship(ctx, order_id)
        AdvanceOrderHandler(ctx).handle(order_id, OrderMilestone.DELIVERED)
        return ctx, order_id

    def test_return_restocks(self):
        ctx, order_id = self._delivered()
        ctx.clock.advance(timedelta(days=3))
        ReturnOrderHandler(ctx).handle(order_id, "wrong size")

        assert ctx.products.get_by_id("1").quantity == 10
        assert ctx.products.get_by_id("2").quantity == 5
        movement = ctx.movements.list_for_product("1")[-1]
        assert movement.type is MovementType.RETURN
        assert movement.delta == 2
        assert order_status(ctx.orders.get_by_id(order_id)) is OrderStatus.RETURNED

    def test_refund_after_return(self):
        ctx, order_id = self._delivered()
        ReturnOrderHandler(ctx).handle(order_id, "wrong size")
        RefundOrderHandler(ctx).handle(order_id)
        assert order_status(ctx.orders.get_by_id(order_id)) is OrderStatus.REFUNDED

    def test_return_window_closed(self):
        ctx, order_id = self._delivered()
        ctx.clock.advance(timedelta(days=15))
        with pytest.raises(IllegalTransition, match="return window closed"):
            ReturnOrderHandler(ctx).handle(order_id, "too late")
        assert ctx.products.get_by_id("1").quantity == 8

    def test_completed_orders_cannot_be_returned(self):
        ctx, order_id = self._delivered()
        AdvanceOrderHandler(ctx).handle(order_id, OrderMilestone.COMPLETED)
        with pytest.raises(IllegalTransition):
            ReturnOrderHandler(ctx).handle(order_id, "changed mind")


class TestLostReservation:

    def _paid_after_scarf_sold(self):
        ctx, order_id = _setup()
        _pay(ctx, order_id, "50.00")
        ctx.clock.advance(timedelta(minutes=31))
        SweepExpiredReservationsHandler(ctx).handle()
        PlaceOrderHandler(ctx).handle("Bob", [OrderItemSpec("2", 5)])
        order = _pay(ctx, order_id, "45.00")
        assert order_status(order) is OrderStatus.PAYMENT_RECEIVED
        return ctx, order_id

    def test_cannot_start_processing(self):
        ctx, order_id = self._paid_after_scarf_sold()
        with pytest.raises(InsufficientStock, match="product '2'"):
            AdvanceOrderHandler(ctx).handle(order_id, OrderMilestone.PROCESSING)
        assert order_status(ctx.orders.get_by_id(order_id)) is OrderStatus.PAYMENT_RECEIVED

    def test_fulfillment_ships_nothing(self):
        ctx, order_id = self._paid_after_scarf_sold()
        order = ctx.orders.get_by_id(order_id)
        order.record(OrderMilestone.PROCESSING, ctx.clock.now())
        order.record(OrderMilestone.PACKED, ctx.clock.now())
        ctx.orders.save(order)

        with pytest.raises(InsufficientStock, match="product '2'"):
            FulfillOrderHandler(ctx).handle(order_id)

        jacket = ctx.products.get_by_id("1")
        assert (jacket.quantity, jacket.reserved_quantity) == (10, 2)
        assert ctx.movements.list_for_product("1") == []
        assert order_status(ctx.orders.get_by_id(order_id)) is OrderStatus.PACKED

    def test_order_can_still_be_cancelled(self):
        ctx, order_id = self._paid_after_scarf_sold()
        with pytest.raises(InsufficientStock):
            AdvanceOrderHandler(ctx).handle(order_id, OrderMilestone.PROCESSING)

        CancelOrderHandler(ctx).handle(order_id, "out of stock")

        jacket = ctx.products.get_by_id("1")
        assert (jacket.quantity, jacket.reserved_quantity) == (10, 0)
        assert ctx.products.get_by_id("2").reserved_quantity == 5
        assert order_status(ctx.orders.get_by_id(order_id)) is OrderStatus.CANCELLED


class TestConcurrentWriters:

    def test_cancel_loses_to_a_payment(self):
        ctx, order_id = _setup(orders=StaleOrderRepository())
        snapshot = ctx.orders.get_by_id(order_id)
        _pay(ctx, order_id, "95.00")
        ctx.orders.stale[order_id] = snapshot

        with pytest.raises(ConcurrencyConflict):
            CancelOrderHandler(ctx).handle(order_id)

        assert ctx.products.get_by_id("1").reserved_quantity == 2
        assert ctx.products.get_by_id("2").reserved_quantity == 1
        states = {r.state for r in ctx.reservations.list_for_order(order_id)}
        assert states == {ReservationState.HELD}
        assert order_status(ctx.orders.get_by_id(order_id)) is OrderStatus.PAYMENT_RECEIVED

    def test_paid_order_ships_after_losing_cancel(self):
        ctx, order_id = _setup(orders=StaleOrderRepository())
        snapshot = ctx.orders.get_by_id(order_id)
        _pay(ctx, order_id, "95.00")
        ctx.orders.stale[order_id] = snapshot
        with pytest.raises(ConcurrencyConflict):
            CancelOrderHandler(ctx).handle(order_id)

        _ship(ctx, order_id)

        assert ctx.products.get_by_id("1").quantity == 8
        assert order_status(ctx.orders.get_by_id(order_id)) is OrderStatus.SHIPPED

    def test_return_restocks_only_once_saved(self):
        ctx, order_id = _setup(orders=StaleOrderRepository())
        _pay(ctx, order_id, "95.00")
        _ship(ctx, order_id)
        AdvanceOrderHandler(ctx).handle(order_id, OrderMilestone.DELIVERED)
        snapshot = ctx.orders.get_by_id(order_id)
        _pay(ctx, order_id, "5.00")
        ctx.orders.stale[order_id] = snapshot

        with pytest.raises(ConcurrencyConflict):
            ReturnOrderHandler(ctx).handle(order_id, "wrong size")

        assert ctx.products.get_by_id("1").quantity == 8
        movements = ctx.movements.list_for_product("1")
        assert all(m.type is not MovementType.RETURN for m in movements)

        ReturnOrderHandler(ctx).handle(order_id, "wrong size")
        assert ctx.products.get_by_id("1").quantity == 10


class TestShowOrder:

    def test_dto(self):
        ctx, order_id = _setup()
        _pay(ctx, order_id, "100.00")
        dto = ShowOrderHandler(ctx).handle(order_id)

        assert dto.order_number == "ORD-20240315-0001"
        assert dto.status == "PAYMENT_RECEIVED"
        assert dto.payment_status == "PAID"
        assert dto.total == "95.00 EUR"
        assert dto.balance_due == "-5.00 EUR"
        assert dto.overpaid == "5.00 EUR"
        assert [i.description for i in dto.items] == ["Denim Jacket", "Wool Scarf"]
        assert dto.return_deadline is None
