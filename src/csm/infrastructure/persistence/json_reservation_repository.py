"""JSON-file-backed implementation of ReservationRepository."""

from __future__ import annotations

from collections.abc import Collection
from dataclasses import replace

from csm.domain.exceptions import ValidationError
from csm.domain.model.reservation import Reservation, ReservationState
from csm.domain.repository.reservation_repository import ReservationRepository
from csm.infrastructure.persistence.codec import datetime_from_raw, datetime_to_raw
from csm.infrastructure.persistence.json_store import JsonFileStore


class JsonReservationRepository(JsonFileStore, ReservationRepository):

    def add(self, reservation: Reservation) -> None:
        with self._locked() as records:
            if any(raw["token"] == reservation.token for raw in records):
                raise ValidationError(f"Reservation '{reservation.token}' already exists")
            records.append(self._to_raw(reservation))

    def get(self, token: str) -> Reservation | None:
        for reservation in self._all():
            if reservation.token == token:
                return reservation
        return None

    def list_in_state(self, state: ReservationState) -> list[Reservation]:
        return [r for r in self._all() if r.state is state]

    def list_for_order(self, order_id: int) -> list[Reservation]:
        return [r for r in self._all() if r.order_id == order_id]

    def transition_state(
        self,
        token: str,
        from_states: Collection[ReservationState],
        to_state: ReservationState,
    ) -> Reservation | None:
        with self._locked() as records:
            for i, raw in enumerate(records):
                if raw["token"] != token:
                    continue
                current = self._to_domain(raw)
                if current.state not in from_states:
                    return None
                updated = replace(current, state=to_state)
                records[i] = self._to_raw(updated)
                return updated
        return None

    def _all(self) -> list[Reservation]:
        with self._lock:
            records = self._load_raw()
        return [self._to_domain(raw) for raw in records]

    @staticmethod
    def _to_raw(reservation: Reservation) -> dict:
        return {
            "token": reservation.token,
            "product_id": reservation.product_id,
            "quantity": reservation.quantity,
            "created_at": datetime_to_raw(reservation.created_at),
            "expires_at": datetime_to_raw(reservation.expires_at),
            "order_id": reservation.order_id,
            "state": reservation.state.value,
        }

    @staticmethod
    def _to_domain(raw: dict) -> Reservation:
        return Reservation(
            token=raw["token"],
            product_id=raw["product_id"],
            quantity=raw["quantity"],
            created_at=datetime_from_raw(raw["created_at"]),  # type: ignore[arg-type]
            expires_at=datetime_from_raw(raw.get("expires_at")),
            order_id=raw.get("order_id"),
            state=ReservationState(raw["state"]),
        )
