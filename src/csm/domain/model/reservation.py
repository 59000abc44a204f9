"""Reservation — a temporary hold on a product's stock for one order."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class ReservationState(Enum):
    ACTIVE = "ACTIVE"  # expires at ``expires_at`` unless held
    HELD = "HELD"  # order is paid; no expiry
    RELEASED = "RELEASED"
    COMMITTED = "COMMITTED"


OPEN_STATES = frozenset({ReservationState.ACTIVE, ReservationState.HELD})


@dataclass(frozen=True)
class Reservation:
    """Returned to callers as the reservation token.

    State changes go through the repository's atomic
    ``transition_state`` so a token is settled exactly once.
    """

    token: str
    product_id: str
    quantity: int
    created_at: datetime
    expires_at: datetime | None
    order_id: int | None = None
    state: ReservationState = ReservationState.ACTIVE

    @property
    def is_open(self) -> bool:
        return self.state in OPEN_STATES

    def is_expired(self, now: datetime) -> bool:
        return (
            self.state is ReservationState.ACTIVE
            and self.expires_at is not None
            and now >= self.expires_at
        )
