"""Batch aggregate — a supplier lot of unsorted goods and its landed cost."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum

from csm.domain.exceptions import ValidationError
from csm.domain.model.value_objects import Money, validate_currency_code


class BatchStatus(Enum):
    ORDERED = "ORDERED"
    IN_TRANSIT = "IN_TRANSIT"
    RECEIVED = "RECEIVED"
    IN_SORTING = "IN_SORTING"
    PARTIALLY_SORTED = "PARTIALLY_SORTED"
    SORTED = "SORTED"
    IN_STORAGE = "IN_STORAGE"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class BatchUnit(Enum):
    KG = "KG"
    PIECES = "PIECES"
    BALES = "BALES"
    CONTAINERS = "CONTAINERS"


@dataclass(frozen=True)
class BatchStatusRecord:
    status: BatchStatus
    at: datetime


@dataclass(frozen=True)
class BatchCosts:
    """The four landed-cost components, each in its own source currency."""

    purchase_price: Money
    shipping_cost: Money | None = None
    customs_duty: Money | None = None
    other_costs: Money | None = None

    def __post_init__(self) -> None:
        for component in self.components():
            if component.is_negative():
                raise ValidationError("Batch cost components cannot be negative")

    def components(self) -> list[Money]:
        return [
            c
            for c in (self.purchase_price, self.shipping_cost, self.customs_duty, self.other_costs)
            if c is not None
        ]


@dataclass
class Batch:
    """A batch records which products it produced; it does not own them."""

    id: str
    supplier: str
    ordered_quantity: Decimal
    unit: BatchUnit
    order_date: datetime
    costs: BatchCosts
    batch_number: str | None = None
    received_quantity: Decimal | None = None
    received_at: datetime | None = None
    history: list[BatchStatusRecord] = field(default_factory=list)
    products_created: list[str] = field(default_factory=list)
    version: int = 0

    # Last allocation result, kept for display; recomputable at any time.
    total_cost: Money | None = None
    cost_per_unit: Money | None = None

    @staticmethod
    def create(
        batch_id: str,
        supplier: str,
        ordered_quantity: Decimal,
        unit: BatchUnit,
        order_date: datetime,
        costs: BatchCosts,
    ) -> Batch:
        if not supplier or not supplier.strip():
            raise ValidationError("Supplier is required")
        if ordered_quantity <= 0:
            raise ValidationError("Ordered quantity must be positive")
        for component in costs.components():
            validate_currency_code(component.currency)
        batch = Batch(
            id=batch_id,
            supplier=supplier.strip(),
            ordered_quantity=ordered_quantity,
            unit=unit,
            order_date=order_date,
            costs=costs,
        )
        batch.history.append(BatchStatusRecord(BatchStatus.ORDERED, order_date))
        return batch

    @property
    def status(self) -> BatchStatus:
        """The latest recorded status; batches start ORDERED."""
        if not self.history:
            return BatchStatus.ORDERED
        return self.history[-1].status

    def record(self, status: BatchStatus, at: datetime) -> None:
        """Append a status record.  Callers validate the transition first."""
        self.history.append(BatchStatusRecord(status, at))

    def receive(self, received_quantity: Decimal, costs: BatchCosts, at: datetime) -> None:
        if received_quantity < 0:
            raise ValidationError("Received quantity cannot be negative")
        self.received_quantity = received_quantity
        self.received_at = at
        self.costs = costs
