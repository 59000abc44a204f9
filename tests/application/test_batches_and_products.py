"""Integration tests for supplier batches, landed cost and product creation."""

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from csm.application.add_exchange_rate import AddExchangeRateHandler
from csm.application.advance_batch import AdvanceBatchHandler
from csm.application.create_batch import CreateBatchHandler
from csm.application.create_product import CreateProductHandler
from csm.application.reallocate_batch_costs import ReallocateBatchCostsHandler
from csm.application.receive_batch import ReceiveBatchHandler
from csm.domain.exceptions import (
    EntityNotFoundError,
    IllegalTransition,
    NoRateFound,
    ValidationError,
)
from csm.domain.model.batch import BatchCosts, BatchStatus, BatchUnit
from csm.domain.model.exchange_rate import ExchangeRate
from csm.domain.model.inventory_movement import MovementType
from csm.domain.model.value_objects import Money
from csm.domain.service.status_deriver import batch_status
from tests.fakes import make_context


def _costs(currency: str = "EUR") -> BatchCosts:
    return BatchCosts(
        purchase_price=Money.of("50.00", currency),
        shipping_cost=Money.of("5.00", currency),
    )


def _received_batch(ctx, costs: BatchCosts | None = None, kg: str = "25"):
    batch = CreateBatchHandler(ctx).handle(
        "Textile Recycling GmbH", Decimal("30"), BatchUnit.KG, costs or _costs()
    )
    AdvanceBatchHandler(ctx).handle(batch.id, BatchStatus.IN_TRANSIT)
    allocation = ReceiveBatchHandler(ctx).handle(batch.id, Decimal(kg))
    return batch.id, allocation


class TestBatchLifecycle:

    def test_create_numbers_per_month(self):
        ctx = make_context()
        first = CreateBatchHandler(ctx).handle("Supplier A", Decimal("10"), BatchUnit.KG, _costs())
        second = CreateBatchHandler(ctx).handle("Supplier B", Decimal("3"), BatchUnit.BALES, _costs())

        assert first.batch_number == "BATCH-202403-0001"
        assert second.batch_number == "BATCH-202403-0002"
        assert batch_status(first) is BatchStatus.ORDERED

    def test_receive_allocates_cost(self):
        ctx = make_context()
        batch_id, allocation = _received_batch(ctx)

        assert allocation.total_cost == Money.of("55.00")
        assert allocation.cost_per_unit == Money.of("2.20")
        batch = ctx.batches.get_by_id(batch_id)
        assert batch_status(batch) is BatchStatus.RECEIVED
        assert batch.received_quantity == Decimal("25")
        assert batch.cost_per_unit == Money.of("2.20")

    def test_receive_zero_quantity_leaves_cost_unknown(self):
        ctx = make_context()
        _, allocation = _received_batch(ctx, kg="0")
        assert not allocation.is_known
        assert allocation.cost_for(Decimal("1")) is None

    def test_cannot_skip_transit(self):
        ctx = make_context()
        batch = CreateBatchHandler(ctx).handle("Supplier", Decimal("10"), BatchUnit.KG, _costs())
        with pytest.raises(IllegalTransition, match="ORDERED to RECEIVED"):
            ReceiveBatchHandler(ctx).handle(batch.id, Decimal("10"))

    def test_receipt_has_its_own_operation(self):
        ctx = make_context()
        batch = CreateBatchHandler(ctx).handle("Supplier", Decimal("10"), BatchUnit.KG, _costs())
        with pytest.raises(ValidationError, match="batch receipt"):
            AdvanceBatchHandler(ctx).handle(batch.id, BatchStatus.RECEIVED)

    def test_sorting_path(self):
        ctx = make_context()
        batch_id, _ = _received_batch(ctx)
        advance = AdvanceBatchHandler(ctx)
        for status in (BatchStatus.IN_SORTING, BatchStatus.SORTED, BatchStatus.IN_STORAGE):
            advance.handle(batch_id, status)
        assert batch_status(ctx.batches.get_by_id(batch_id)) is BatchStatus.IN_STORAGE

    def test_unknown_batch(self):
        ctx = make_context()
        with pytest.raises(EntityNotFoundError, match="Batch 'nope' not found"):
            AdvanceBatchHandler(ctx).handle("nope", BatchStatus.IN_TRANSIT)

    def test_foreign_costs_need_a_rate(self):
        ctx = make_context()
        batch = CreateBatchHandler(ctx).handle(
            "US Supplier", Decimal("10"), BatchUnit.KG, _costs("USD")
        )
        AdvanceBatchHandler(ctx).handle(batch.id, BatchStatus.IN_TRANSIT)
        with pytest.raises(NoRateFound):
            ReceiveBatchHandler(ctx).handle(batch.id, Decimal("10"))


class TestCreateProduct:

    def test_standalone_product(self):
        ctx = make_context()
        product = CreateProductHandler(ctx).handle("Linen Shirt", Money.of("22.00"), 4)

        assert product.id == "1"
        assert product.purchase_price is None
        movement = ctx.movements.list_for_product("1")[0]
        assert movement.type is MovementType.INBOUND
        assert movement.delta == 4

    def test_product_from_batch_is_stamped(self):
        ctx = make_context()
        batch_id, _ = _received_batch(ctx)

        product = CreateProductHandler(ctx).handle(
            "Vintage Blouse", Money.of("12.00"), 1,
            batch_id=batch_id, batch_units=Decimal("0.25"),
        )

        assert product.purchase_price == Money.of("0.55")
        assert product.batch_id == batch_id
        assert ctx.batches.get_by_id(batch_id).products_created == [product.id]
        assert ctx.movements.list_for_product(product.id)[0].batch_id == batch_id

    def test_batch_must_have_arrived(self):
        ctx = make_context()
        batch = CreateBatchHandler(ctx).handle("Supplier", Decimal("10"), BatchUnit.KG, _costs())
        with pytest.raises(ValidationError, match="ORDERED"):
            CreateProductHandler(ctx).handle(
                "Early Bird", Money.of("9.00"), 1, batch_id=batch.id
            )
        assert ctx.products.list_all() == []

    def test_duplicate_name(self):
        ctx = make_context()
        CreateProductHandler(ctx).handle("Linen Shirt", Money.of("22.00"), 4)
        with pytest.raises(ValidationError, match="already exists"):
            CreateProductHandler(ctx).handle("linen shirt", Money.of("20.00"), 1)

    @pytest.mark.parametrize(
        "name, price, quantity",
        [("", "10.00", 1), ("Coat", "-1.00", 1), ("Coat", "10.00", -1)],
    )
    def test_invalid_input(self, name, price, quantity):
        ctx = make_context()
        with pytest.raises(ValidationError):
            CreateProductHandler(ctx).handle(name, Money.of(price), quantity)


class TestReallocateBatchCosts:

    def _usd_setup(self):
        ctx = make_context(
            rates=[
                ExchangeRate(
                    "USD", "EUR", Decimal("1.0"),
                    valid_from=datetime(2024, 2, 1, tzinfo=timezone.utc),
                )
            ]
        )
        batch_id, _ = _received_batch(
            ctx, costs=BatchCosts(purchase_price=Money.of("55.00", "USD"))
        )
        product = CreateProductHandler(ctx).handle(
            "Vintage Blouse", Money.of("12.00"), 1,
            batch_id=batch_id, batch_units=Decimal("0.25"),
        )
        return ctx, batch_id, product.id

    def test_corrected_rate_restamps_products(self):
        ctx, batch_id, product_id = self._usd_setup()
        assert ctx.products.get_by_id(product_id).purchase_price == Money.of("0.55")

        AddExchangeRateHandler(ctx).handle(
            "usd", "eur", Decimal("0.9"),
            valid_from=datetime(2024, 3, 1, tzinfo=timezone.utc),
            source="correction",
        )
        report = ReallocateBatchCostsHandler(ctx).handle(batch_id)

        assert report.allocation.total_cost == Money.of("49.50")
        assert [c.product_id for c in report.corrections] == [product_id]
        assert report.corrections[0].old_purchase_price == Money.of("0.55")
        assert ctx.products.get_by_id(product_id).purchase_price == Money.of("0.50")
        assert ctx.batches.get_by_id(batch_id).cost_per_unit == Money.of("1.98")

    def test_second_run_changes_nothing(self):
        ctx, batch_id, _ = self._usd_setup()
        AddExchangeRateHandler(ctx).handle(
            "USD", "EUR", Decimal("0.9"),
            valid_from=datetime(2024, 3, 1, tzinfo=timezone.utc),
        )
        ReallocateBatchCostsHandler(ctx).handle(batch_id)
        assert ReallocateBatchCostsHandler(ctx).handle(batch_id).corrections == []
