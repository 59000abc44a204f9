"""Order aggregate — a customer order over products held in inventory.

The Order is an aggregate root that owns its line items and payments.
Its status is never stored: it is derived from the fulfillment
milestones recorded here plus the reconciled payment state (see
``csm.domain.service.status_deriver``).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum

from csm.domain.exceptions import ValidationError
from csm.domain.model.document import FinancialDocument
from csm.domain.model.line_item import LineItem
from csm.domain.model.value_objects import Money


class OrderStatus(Enum):
    DRAFT = "DRAFT"
    PENDING_PAYMENT = "PENDING_PAYMENT"
    PAYMENT_RECEIVED = "PAYMENT_RECEIVED"
    PROCESSING = "PROCESSING"
    PACKED = "PACKED"
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    RETURNED = "RETURNED"
    REFUNDED = "REFUNDED"


class OrderMilestone(Enum):
    """Facts recorded against an order by external events."""

    PLACED = "PLACED"
    PROCESSING = "PROCESSING"
    PACKED = "PACKED"
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    RETURNED = "RETURNED"
    REFUNDED = "REFUNDED"


@dataclass(frozen=True)
class MilestoneRecord:
    milestone: OrderMilestone
    at: datetime
    note: str = ""


DEFAULT_RETURN_WINDOW_DAYS = 14


@dataclass
class Order(FinancialDocument):
    """Aggregate root for customer orders.

    Use the ``Order.create()`` factory for new orders — it enforces all
    business rules.  The ``__init__`` is intentionally simple so the
    repository can reconstitute persisted orders without re-validating.

    ``extra_charges`` holds the handling fee.
    """

    customer_name: str = ""
    order_number: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    milestones: list[MilestoneRecord] = field(default_factory=list)
    reservation_tokens: list[str] = field(default_factory=list)
    return_window_days: int = DEFAULT_RETURN_WINDOW_DAYS

    # --- Factory (used for NEW orders only) -----------------------------------

    @staticmethod
    def create(
        customer_name: str,
        items: list[LineItem],
        currency: str,
        created_at: datetime,
        return_window_days: int = DEFAULT_RETURN_WINDOW_DAYS,
    ) -> Order:
        """Create a new order, enforcing all invariants."""
        if not customer_name or not customer_name.strip():
            raise ValidationError("Customer name is required")

        if not items:
            raise ValidationError("Order must contain at least one item")

        if return_window_days < 0:
            raise ValidationError("Return window cannot be negative")

        return Order(
            id=None,
            currency=currency,
            customer_name=customer_name.strip(),
            items=list(items),
            created_at=created_at,
            return_window_days=return_window_days,
        )

    # --- Milestones -----------------------------------------------------------

    def record(self, milestone: OrderMilestone, at: datetime, note: str = "") -> None:
        """Append a milestone.  Callers validate the transition first."""
        self.milestones.append(MilestoneRecord(milestone=milestone, at=at, note=note))

    def reached(self, milestone: OrderMilestone) -> MilestoneRecord | None:
        for record in self.milestones:
            if record.milestone is milestone:
                return record
        return None

    @property
    def handling_fee(self) -> Money | None:
        return self.extra_charges

    @property
    def document_date(self) -> datetime:
        return self.created_at

    @property
    def return_deadline(self) -> datetime | None:
        delivered = self.reached(OrderMilestone.DELIVERED)
        if delivered is None:
            return None
        return delivered.at + timedelta(days=self.return_window_days)

    @property
    def quantities_by_product(self) -> dict[str, int]:
        """Total ordered units per product, in first-seen order."""
        result: dict[str, int] = {}
        for item in self.items:
            if item.product_id is None:
                continue
            result[item.product_id] = result.get(item.product_id, 0) + item.quantity
        return result
