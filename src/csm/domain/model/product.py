"""Product aggregate — a sellable inventory unit and its stock counters.

Products are created by sorting a batch (or directly by an operator) and
live independently of orders.  The three counters obey
``available_quantity == quantity - reserved_quantity`` and
``0 <= reserved_quantity <= quantity`` at all times; every mutator checks
before it writes.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from csm.domain.exceptions import InsufficientStock, ValidationError
from csm.domain.model.value_objects import Money


@dataclass
class Product:
    """Aggregate root for stock tracking.

    ``version`` is bumped by the repository on every successful save and
    is the basis of optimistic concurrency control.
    """

    id: str
    name: str
    price: Money
    quantity: int = 0
    reserved_quantity: int = 0
    purchase_price: Money | None = None
    batch_id: str | None = None
    batch_units: Decimal = Decimal("1")
    version: int = 0

    def __post_init__(self) -> None:
        if self.quantity < 0:
            raise ValidationError("Product quantity cannot be negative")
        if not 0 <= self.reserved_quantity <= self.quantity:
            raise ValidationError(
                f"Reserved quantity {self.reserved_quantity} outside 0..{self.quantity}"
            )

    @property
    def available_quantity(self) -> int:
        return self.quantity - self.reserved_quantity

    @property
    def is_depleted(self) -> bool:
        return self.quantity == 0

    @property
    def profit_margin(self) -> Decimal | None:
        """Margin of the selling price over the purchase cost, in percent."""
        if self.purchase_price is None or self.purchase_price.is_zero():
            return None
        if self.purchase_price.currency != self.price.currency:
            return None
        margin = (self.price.amount - self.purchase_price.amount) / self.purchase_price.amount
        return (margin * 100).quantize(Decimal("0.01"))

    # --- Stock counters -------------------------------------------------------

    def reserve(self, quantity: int) -> None:
        """Hold stock for an order.

        Raises InsufficientStock rather than clamping.
        """
        _require_positive(quantity, "Reservation")
        if quantity > self.available_quantity:
            raise InsufficientStock(self.id, quantity, self.available_quantity)
        self.reserved_quantity += quantity

    def release(self, quantity: int) -> None:
        """Return previously held stock to the available pool."""
        _require_positive(quantity, "Release")
        if quantity > self.reserved_quantity:
            raise ValidationError(
                f"Cannot release {quantity} of {self.name} "
                f"— only {self.reserved_quantity} currently reserved"
            )
        self.reserved_quantity -= quantity

    def commit(self, quantity: int) -> None:
        """Permanently deduct held stock.

        Both ``quantity`` and ``reserved_quantity`` decrease by the same
        amount, so ``available_quantity`` is unchanged.
        """
        _require_positive(quantity, "Commit")
        if quantity > self.reserved_quantity:
            raise ValidationError(
                f"Cannot commit {quantity} of {self.name} "
                f"— only {self.reserved_quantity} currently reserved"
            )
        self.reserved_quantity -= quantity
        self.quantity -= quantity

    def adjust(self, delta: int) -> None:
        """Administrative correction of the on-hand quantity.

        Stock that is already reserved cannot be adjusted away.
        """
        if delta == 0:
            raise ValidationError("Adjustment delta must be non-zero")
        if self.quantity + delta < self.reserved_quantity:
            raise InsufficientStock(self.id, -delta, self.available_quantity)
        self.quantity += delta


def _require_positive(quantity: int, what: str) -> None:
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise ValidationError(f"{what} quantity must be positive")
