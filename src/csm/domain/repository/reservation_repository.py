"""Abstract repository for stock reservations."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Collection

from csm.domain.model.reservation import Reservation, ReservationState


class ReservationRepository(ABC):

    @abstractmethod
    def add(self, reservation: Reservation) -> None:
        """Store a new reservation."""

    @abstractmethod
    def get(self, token: str) -> Reservation | None:
        """Return a reservation by token, or None if unknown."""

    @abstractmethod
    def list_in_state(self, state: ReservationState) -> list[Reservation]:
        """Return every reservation currently in *state*."""

    @abstractmethod
    def list_for_order(self, order_id: int) -> list[Reservation]:
        """Return every reservation made for an order."""

    @abstractmethod
    def transition_state(
        self,
        token: str,
        from_states: Collection[ReservationState],
        to_state: ReservationState,
    ) -> Reservation | None:
        """Atomically move a reservation from one of *from_states* to *to_state*.

        Returns the updated reservation, or None if the reservation was
        not in any of *from_states* (someone else settled it first).
        """
