"""Abstract repository for Order aggregate."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date

from csm.domain.model.order import Order


class OrderRepository(ABC):

    @abstractmethod
    def next_id(self) -> int:
        """Generate the next unique order ID."""

    @abstractmethod
    def get_by_id(self, order_id: int) -> Order | None:
        """Return a detached copy of an order, or None if not found."""

    @abstractmethod
    def count_created_on(self, day: date) -> int:
        """Number of orders created on *day* (UTC), for order numbering."""

    @abstractmethod
    def save(self, order: Order) -> None:
        """Persist a new or updated order; raise ConcurrencyConflict on a stale version."""
