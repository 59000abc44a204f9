"""Domain-level exceptions.

All business rule violations are expressed as subclasses of DomainException
so the CLI layer can catch them uniformly and display user-friendly messages.
"""

from __future__ import annotations

from datetime import datetime


class DomainException(Exception):
    """Base class for all domain errors."""


class ValidationError(DomainException):
    """A business rule or invariant was violated."""


class InvalidLineItem(ValidationError):
    """A line item has a non-positive quantity, a negative price or a bad discount."""


class EntityNotFoundError(DomainException):
    """A requested entity does not exist."""


class InsufficientStock(DomainException):
    """A product cannot supply the requested quantity."""

    def __init__(self, product_id: str, requested: int, available: int) -> None:
        self.product_id = product_id
        self.requested = requested
        self.available = available
        super().__init__(
            f"Insufficient stock for product '{product_id}' "
            f"(need {requested}, have {available} available)"
        )


class NoRateFound(DomainException):
    """No exchange rate is valid for a currency pair at a given instant."""

    def __init__(self, from_currency: str, to_currency: str, as_of: datetime) -> None:
        self.from_currency = from_currency
        self.to_currency = to_currency
        self.as_of = as_of
        super().__init__(
            f"No exchange rate {from_currency}->{to_currency} valid at {as_of.isoformat()}"
        )


class IllegalTransition(DomainException):
    """A status change is not allowed from the entity's current status."""

    def __init__(self, entity: str, current: str, target: str) -> None:
        self.entity = entity
        self.current = current
        self.target = target
        super().__init__(f"Cannot move {entity} from {current} to {target}")


class ConcurrencyConflict(DomainException):
    """An optimistic version check failed because another writer got there first."""
