"""Integration tests for the PlaceOrder use case.

Uses in-memory fake repositories — no file I/O.
"""

from decimal import Decimal

import pytest

from csm.application.dto import OrderItemSpec
from csm.application.place_order import PlaceOrderHandler
from csm.domain.exceptions import (
    EntityNotFoundError,
    InsufficientStock,
    InvalidLineItem,
    NoRateFound,
    ValidationError,
)
from csm.domain.model.order import OrderStatus
from csm.domain.model.product import Product
from csm.domain.model.reservation import ReservationState
from csm.domain.model.value_objects import Discount, Money
from csm.domain.service.status_deriver import order_status
from tests.fakes import make_context


def _setup():
    ctx = make_context(
        products=[
            Product(id="1", name="Denim Jacket", price=Money.of("40.00"), quantity=10),
            Product(id="2", name="Wool Scarf", price=Money.of("15.00"), quantity=5),
        ]
    )
    return PlaceOrderHandler(ctx), ctx


class TestPlaceOrderHappyPath:

    def test_totals_and_status(self):
        handler, ctx = _setup()
        order = handler.handle("Alice", [OrderItemSpec("1", 2), OrderItemSpec("2", 1)])

        assert order.total == Money.of("95.00")
        assert order_status(order) is OrderStatus.PENDING_PAYMENT
        assert order.order_number == "ORD-20240315-0001"

    def test_persists_order(self):
        handler, ctx = _setup()
        order = handler.handle("Alice", [OrderItemSpec("1", 1)])
        saved = ctx.orders.get_by_id(order.id)
        assert saved is not None
        assert saved.customer_name == "Alice"
        assert saved.version == 1

    def test_reserves_stock(self):
        handler, ctx = _setup()
        order = handler.handle("Alice", [OrderItemSpec("1", 2), OrderItemSpec("2", 1)])

        assert ctx.products.get_by_id("1").available_quantity == 8
        assert ctx.products.get_by_id("2").available_quantity == 4
        reservations = ctx.reservations.list_for_order(order.id)
        assert len(reservations) == 2
        assert {r.token for r in reservations} == set(order.reservation_tokens)
        assert all(r.state is ReservationState.ACTIVE for r in reservations)

    def test_price_is_snapshotted(self):
        handler, ctx = _setup()
        order = handler.handle("Alice", [OrderItemSpec("1", 1)])

        product = ctx.products.get_by_id("1")
        product.price = Money.of("99.00")
        ctx.products.save(product)

        assert ctx.orders.get_by_id(order.id).items[0].unit_price == Money.of("40.00")

    def test_daily_numbering(self):
        handler, _ = _setup()
        first = handler.handle("Alice", [OrderItemSpec("1", 1)])
        second = handler.handle("Bob", [OrderItemSpec("2", 1)])
        assert first.order_number == "ORD-20240315-0001"
        assert second.order_number == "ORD-20240315-0002"

    def test_discounts_tax_and_charges(self):
        handler, _ = _setup()
        order = handler.handle(
            "Alice",
            [OrderItemSpec("1", 1, discount=Discount.percent(25), tax_rate=Decimal("19"))],
            discounts=[Discount.fixed("5")],
            shipping_cost=Money.of("4.90"),
            handling_fee=Money.of("1.10"),
        )
        # 40 - 10 item discount = 30, +5.70 tax, -5 order discount, +6 charges
        assert order.total == Money.of("36.70")


class TestPlaceOrderValidation:

    def test_insufficient_stock_reserves_nothing(self):
        handler, ctx = _setup()
        with pytest.raises(InsufficientStock, match="product '2'"):
            handler.handle("Alice", [OrderItemSpec("1", 2), OrderItemSpec("2", 6)])

        assert ctx.products.get_by_id("1").reserved_quantity == 0
        assert ctx.products.get_by_id("2").reserved_quantity == 0
        assert ctx.orders.count_created_on(ctx.clock.now().date()) == 0

    def test_unknown_product(self):
        handler, _ = _setup()
        with pytest.raises(EntityNotFoundError, match="Product not found"):
            handler.handle("Alice", [OrderItemSpec("99", 1)])

    def test_zero_quantity_rejected_before_reserving(self):
        handler, ctx = _setup()
        with pytest.raises(InvalidLineItem):
            handler.handle("Alice", [OrderItemSpec("1", 0)])
        assert ctx.products.get_by_id("1").reserved_quantity == 0

    def test_empty_customer_rejected(self):
        handler, _ = _setup()
        with pytest.raises(ValidationError, match="Customer name is required"):
            handler.handle("  ", [OrderItemSpec("1", 1)])

    def test_no_items_rejected(self):
        handler, _ = _setup()
        with pytest.raises(ValidationError, match="at least one item"):
            handler.handle("Alice", [])

    def test_foreign_currency_needs_a_rate(self):
        handler, ctx = _setup()
        with pytest.raises(NoRateFound):
            handler.handle("Alice", [OrderItemSpec("1", 1)], currency="USD")
        assert ctx.products.get_by_id("1").reserved_quantity == 0
