"""Unit tests for the InventoryReservationManager domain service."""

from concurrent.futures import ThreadPoolExecutor
from datetime import timedelta

import pytest

from csm.domain.exceptions import (
    ConcurrencyConflict,
    EntityNotFoundError,
    IllegalTransition,
    InsufficientStock,
    ValidationError,
)
from csm.domain.model.inventory_movement import MovementType
from csm.domain.model.product import Product
from csm.domain.model.reservation import ReservationState
from csm.domain.model.value_objects import Money
from csm.domain.service.inventory_reservation_manager import (
    InventoryReservationManager,
)
from tests.fakes import (
    FakeInventoryMovementRepository,
    FakeProductRepository,
    FakeReservationRepository,
    FixedClock,
)


def _setup(*stock: tuple[str, int], max_retries: int = 50):
    """Manager over fakes with (product_id, quantity) tuples."""
    products = FakeProductRepository(
        [Product(id=pid, name=f"Item {pid}", price=Money.of("10"), quantity=qty) for pid, qty in stock]
    )
    reservations = FakeReservationRepository()
    movements = FakeInventoryMovementRepository()
    clock = FixedClock()
    manager = InventoryReservationManager(
        products, reservations, movements, clock, max_retries=max_retries
    )
    return manager, products, reservations, movements, clock


class _FlakyProducts(FakeProductRepository):
    """Product repository whose saves can be made to fail on demand."""

    failing = False

    def save(self, product):
        if self.failing:
            raise ConcurrencyConflict("stale")
        super().save(product)


class TestReserve:

    def test_reserve_holds_stock(self):
        manager, products, reservations, _, clock = _setup(("1", 10))
        reservation = manager.reserve("1", 4, order_id=7)

        product = products.get_by_id("1")
        assert product.reserved_quantity == 4
        assert product.available_quantity == 6
        assert reservation.state is ReservationState.ACTIVE
        assert reservation.order_id == 7
        assert reservation.expires_at == clock.now() + timedelta(minutes=30)
        assert reservations.get(reservation.token) == reservation

    def test_insufficient_stock_is_not_clamped(self):
        manager, products, _, _, _ = _setup(("1", 3))
        with pytest.raises(InsufficientStock) as exc_info:
            manager.reserve("1", 5)
        assert exc_info.value.available == 3
        assert products.get_by_id("1").reserved_quantity == 0

    def test_unknown_product(self):
        manager, *_ = _setup()
        with pytest.raises(EntityNotFoundError, match="not found"):
            manager.reserve("missing", 1)

    def test_reserve_many_rolls_back_on_failure(self):
        manager, products, reservations, _, _ = _setup(("1", 10), ("2", 2))
        with pytest.raises(InsufficientStock):
            manager.reserve_many({"1": 5, "2": 3}, order_id=1)

        assert products.get_by_id("1").reserved_quantity == 0
        assert products.get_by_id("2").reserved_quantity == 0
        assert reservations.list_in_state(ReservationState.ACTIVE) == []


class TestReleaseAndCommit:

    def test_reserve_then_release_restores_counters(self):
        manager, products, _, _, _ = _setup(("1", 10))
        reservation = manager.reserve("1", 4)
        assert manager.release(reservation.token) is True

        product = products.get_by_id("1")
        assert product.quantity == 10
        assert product.reserved_quantity == 0

    def test_release_is_idempotent(self):
        manager, products, _, _, _ = _setup(("1", 10))
        token = manager.reserve("1", 4).token
        manager.release(token)
        assert manager.release(token) is False
        assert products.get_by_id("1").reserved_quantity == 0

    def test_commit_deducts_stock(self):
        manager, products, _, movements, _ = _setup(("1", 10))
        token = manager.reserve("1", 4).token
        assert manager.commit(token) is True

        product = products.get_by_id("1")
        assert product.quantity == 6
        assert product.reserved_quantity == 0
        [movement] = movements.list_for_product("1")
        assert movement.type is MovementType.OUTBOUND
        assert movement.delta == -4
        assert movement.quantity_after == 6

    def test_commit_is_idempotent(self):
        manager, products, _, _, _ = _setup(("1", 10))
        token = manager.reserve("1", 4).token
        manager.commit(token)
        assert manager.commit(token) is False
        assert products.get_by_id("1").quantity == 6

    def test_release_after_commit_is_illegal(self):
        manager, _, _, _, _ = _setup(("1", 10))
        token = manager.reserve("1", 4).token
        manager.commit(token)
        with pytest.raises(IllegalTransition, match="COMMITTED to RELEASED"):
            manager.release(token)

    def test_commit_after_release_is_illegal(self):
        manager, _, _, _, _ = _setup(("1", 10))
        token = manager.reserve("1", 4).token
        manager.release(token)
        with pytest.raises(IllegalTransition):
            manager.commit(token)

    def test_unknown_token(self):
        manager, *_ = _setup(("1", 10))
        with pytest.raises(EntityNotFoundError, match="Unknown reservation token"):
            manager.release("nope")

    def test_held_reservation_can_be_committed(self):
        manager, products, _, _, _ = _setup(("1", 10))
        token = manager.reserve("1", 2).token
        assert manager.hold(token) is True
        assert manager.commit(token) is True
        assert products.get_by_id("1").quantity == 8


class TestExpiry:

    def test_expired_active_reservations_are_released(self):
        manager, products, reservations, _, clock = _setup(("1", 10))
        expired = manager.reserve("1", 3)
        clock.advance(timedelta(minutes=20))
        fresh = manager.reserve("1", 2)
        clock.advance(timedelta(minutes=11))

        released = manager.release_expired()

        assert [r.token for r in released] == [expired.token]
        assert products.get_by_id("1").reserved_quantity == 2
        assert reservations.get(fresh.token).state is ReservationState.ACTIVE

    def test_held_reservations_survive_the_sweep(self):
        manager, products, _, _, clock = _setup(("1", 10))
        token = manager.reserve("1", 3).token
        manager.hold(token)
        clock.advance(timedelta(hours=2))

        assert manager.release_expired() == []
        assert products.get_by_id("1").reserved_quantity == 3


class TestConcurrency:

    def test_hundred_buyers_for_ten_items(self):
        manager, products, _, _, _ = _setup(("1", 10))

        def attempt(_):
            try:
                manager.reserve("1", 1)
            except InsufficientStock:
                return False
            return True

        with ThreadPoolExecutor(max_workers=16) as pool:
            results = list(pool.map(attempt, range(100)))

        assert results.count(True) == 10
        product = products.get_by_id("1")
        assert product.reserved_quantity == 10
        assert product.available_quantity == 0

    def test_concurrent_settlement_wins_once(self):
        manager, products, _, _, _ = _setup(("1", 10))
        token = manager.reserve("1", 5).token

        def settle(action):
            try:
                return getattr(manager, action)(token)
            except IllegalTransition:
                return False

        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(settle, ["release", "commit"] * 10))

        assert results.count(True) == 1
        product = products.get_by_id("1")
        assert product.reserved_quantity == 0
        assert product.quantity in (5, 10)

    def test_gives_up_after_max_retries(self):
        class AlwaysStale(FakeProductRepository):
            def save(self, product):
                raise ConcurrencyConflict("stale")

        products = AlwaysStale(
            [Product(id="1", name="Scarf", price=Money.of("5"), quantity=10)]
        )
        manager = InventoryReservationManager(
            products,
            FakeReservationRepository(),
            FakeInventoryMovementRepository(),
            FixedClock(),
            max_retries=3,
        )
        with pytest.raises(ConcurrencyConflict, match="after 3 attempts"):
            manager.reserve("1", 1)

    def test_failed_release_reopens_the_token(self):
        products = _FlakyProducts(
            [Product(id="1", name="Scarf", price=Money.of("5"), quantity=10)]
        )
        reservations = FakeReservationRepository()
        manager = InventoryReservationManager(
            products, reservations, FakeInventoryMovementRepository(), FixedClock(), max_retries=3
        )
        reservation = manager.reserve("1", 4)

        products.failing = True
        with pytest.raises(ConcurrencyConflict):
            manager.release(reservation.token)
        assert reservations.get(reservation.token).state is ReservationState.ACTIVE
        assert products.get_by_id("1").reserved_quantity == 4

        products.failing = False
        assert manager.release(reservation.token) is True
        assert products.get_by_id("1").reserved_quantity == 0

    def test_failed_commit_keeps_the_hold(self):
        products = _FlakyProducts(
            [Product(id="1", name="Scarf", price=Money.of("5"), quantity=10)]
        )
        reservations = FakeReservationRepository()
        movements = FakeInventoryMovementRepository()
        manager = InventoryReservationManager(
            products, reservations, movements, FixedClock(), max_retries=2
        )
        reservation = manager.reserve("1", 4)
        manager.hold(reservation.token)

        products.failing = True
        with pytest.raises(ConcurrencyConflict):
            manager.commit(reservation.token)
        assert reservations.get(reservation.token).state is ReservationState.HELD
        assert movements.list_for_product("1") == []

        products.failing = False
        assert manager.commit(reservation.token) is True
        assert products.get_by_id("1").quantity == 6

    def test_failed_rollback_keeps_the_original_error(self, caplog):
        class ReleaseFails(FakeProductRepository):
            def save(self, product):
                if product.id == "1" and product.reserved_quantity == 0:
                    raise ConcurrencyConflict("stale")
                super().save(product)

        products = ReleaseFails(
            [
                Product(id="1", name="Coat", price=Money.of("50"), quantity=10),
                Product(id="2", name="Hat", price=Money.of("8"), quantity=2),
            ]
        )
        reservations = FakeReservationRepository()
        manager = InventoryReservationManager(
            products, reservations, FakeInventoryMovementRepository(), FixedClock(), max_retries=2
        )

        with caplog.at_level("ERROR"), pytest.raises(InsufficientStock, match="product '2'"):
            manager.reserve_many({"1": 5, "2": 3}, order_id=1)

        assert "Could not roll back reservation" in caplog.text
        assert [r.product_id for r in reservations.list_in_state(ReservationState.ACTIVE)] == ["1"]


class TestAdjust:

    def test_adjust_records_movement(self):
        manager, products, _, movements, _ = _setup(("1", 10))
        manager.adjust("1", -2, "water damage", movement_type=MovementType.DAMAGE)

        assert products.get_by_id("1").quantity == 8
        [movement] = movements.list_for_product("1")
        assert movement.type is MovementType.DAMAGE
        assert movement.reason == "water damage"
        assert movement.quantity_after == 8

    def test_reason_required(self):
        manager, *_ = _setup(("1", 10))
        with pytest.raises(ValidationError, match="needs a reason"):
            manager.adjust("1", 1, "  ")

    def test_cannot_adjust_away_reserved_stock(self):
        manager, products, _, movements, _ = _setup(("1", 10))
        manager.reserve("1", 8)
        with pytest.raises(InsufficientStock):
            manager.adjust("1", -5, "recount")
        assert products.get_by_id("1").quantity == 10
        assert movements.list_for_product("1") == []

    def test_audit_log(self, caplog):
        manager, *_ = _setup(("1", 10))
        with caplog.at_level("INFO"):
            manager.adjust("1", 3, "found in back room")
        assert "Inventory adjusted: product=1 delta=+3" in caplog.text
