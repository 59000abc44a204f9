"""JSON-file-backed implementation of OrderRepository."""

from __future__ import annotations

from datetime import date, timezone
from pathlib import Path

from csm.domain.model.order import MilestoneRecord, Order, OrderMilestone
from csm.domain.repository.order_repository import OrderRepository
from csm.infrastructure.persistence.codec import (
    datetime_from_raw,
    datetime_to_raw,
    document_fields_from_raw,
    document_to_raw,
)
from csm.infrastructure.persistence.json_store import JsonFileStore


class JsonOrderRepository(JsonFileStore, OrderRepository):

    def __init__(self, file_path: Path) -> None:
        super().__init__(file_path)
        self._last_issued = 0

    # --- OrderRepository interface --------------------------------------------

    def next_id(self) -> int:
        with self._lock:
            orders = self._load_raw()
            stored = max((o["id"] for o in orders), default=0)
            self._last_issued = max(stored, self._last_issued) + 1
            return self._last_issued

    def get_by_id(self, order_id: int) -> Order | None:
        with self._lock:
            for raw in self._load_raw():
                if raw["id"] == order_id:
                    return self._to_domain(raw)
        return None

    def count_created_on(self, day: date) -> int:
        with self._lock:
            orders = [self._to_domain(raw) for raw in self._load_raw()]
        return sum(1 for o in orders if o.created_at.astimezone(timezone.utc).date() == day)

    def save(self, order: Order) -> None:
        if order.id is None:
            order.id = self.next_id()
        self._compare_and_swap(order, "id", order.id, lambda: self._to_raw(order), "Order")

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _to_raw(order: Order) -> dict:
        raw = document_to_raw(order)
        raw.update(
            {
                "customer_name": order.customer_name,
                "order_number": order.order_number,
                "created_at": datetime_to_raw(order.created_at),
                "return_window_days": order.return_window_days,
                "reservation_tokens": list(order.reservation_tokens),
                "milestones": [
                    {
                        "milestone": m.milestone.value,
                        "at": datetime_to_raw(m.at),
                        "note": m.note,
                    }
                    for m in order.milestones
                ],
            }
        )
        return raw

    @staticmethod
    def _to_domain(raw: dict) -> Order:
        return Order(
            **document_fields_from_raw(raw),
            customer_name=raw["customer_name"],
            order_number=raw.get("order_number"),
            created_at=datetime_from_raw(raw["created_at"]),  # type: ignore[arg-type]
            return_window_days=raw["return_window_days"],
            reservation_tokens=list(raw.get("reservation_tokens", [])),
            milestones=[
                MilestoneRecord(
                    milestone=OrderMilestone(m["milestone"]),
                    at=datetime_from_raw(m["at"]),  # type: ignore[arg-type]
                    note=m.get("note", ""),
                )
                for m in raw.get("milestones", [])
            ],
        )
