"""JSON-file-backed implementation of BatchRepository."""

from __future__ import annotations

from decimal import Decimal

from csm.domain.model.batch import (
    Batch,
    BatchCosts,
    BatchStatus,
    BatchStatusRecord,
    BatchUnit,
)
from csm.domain.repository.batch_repository import BatchRepository
from csm.infrastructure.persistence.codec import (
    datetime_from_raw,
    datetime_to_raw,
    decimal_from_raw,
    decimal_to_raw,
    money_from_raw,
    money_to_raw,
)
from csm.infrastructure.persistence.json_store import JsonFileStore


class JsonBatchRepository(JsonFileStore, BatchRepository):

    def get_by_id(self, batch_id: str) -> Batch | None:
        for batch in self.list_all():
            if batch.id == batch_id:
                return batch
        return None

    def list_all(self) -> list[Batch]:
        with self._lock:
            records = self._load_raw()
        return [self._to_domain(raw) for raw in records]

    def count_ordered_in(self, year: int, month: int) -> int:
        return sum(
            1
            for b in self.list_all()
            if (b.order_date.year, b.order_date.month) == (year, month)
        )

    def save(self, batch: Batch) -> None:
        self._compare_and_swap(batch, "id", batch.id, lambda: self._to_raw(batch), "Batch")

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _to_raw(batch: Batch) -> dict:
        return {
            "id": batch.id,
            "version": batch.version,
            "batch_number": batch.batch_number,
            "supplier": batch.supplier,
            "ordered_quantity": str(batch.ordered_quantity),
            "unit": batch.unit.value,
            "order_date": datetime_to_raw(batch.order_date),
            "costs": {
                "purchase_price": money_to_raw(batch.costs.purchase_price),
                "shipping_cost": money_to_raw(batch.costs.shipping_cost),
                "customs_duty": money_to_raw(batch.costs.customs_duty),
                "other_costs": money_to_raw(batch.costs.other_costs),
            },
            "received_quantity": decimal_to_raw(batch.received_quantity),
            "received_at": datetime_to_raw(batch.received_at),
            "history": [
                {"status": r.status.value, "at": datetime_to_raw(r.at)} for r in batch.history
            ],
            "products_created": list(batch.products_created),
            "total_cost": money_to_raw(batch.total_cost),
            "cost_per_unit": money_to_raw(batch.cost_per_unit),
        }

    @staticmethod
    def _to_domain(raw: dict) -> Batch:
        costs = raw["costs"]
        return Batch(
            id=raw["id"],
            supplier=raw["supplier"],
            ordered_quantity=Decimal(raw["ordered_quantity"]),
            unit=BatchUnit(raw["unit"]),
            order_date=datetime_from_raw(raw["order_date"]),  # type: ignore[arg-type]
            costs=BatchCosts(
                purchase_price=money_from_raw(costs["purchase_price"]),  # type: ignore[arg-type]
                shipping_cost=money_from_raw(costs.get("shipping_cost")),
                customs_duty=money_from_raw(costs.get("customs_duty")),
                other_costs=money_from_raw(costs.get("other_costs")),
            ),
            batch_number=raw.get("batch_number"),
            received_quantity=decimal_from_raw(raw.get("received_quantity")),
            received_at=datetime_from_raw(raw.get("received_at")),
            history=[
                BatchStatusRecord(BatchStatus(r["status"]), datetime_from_raw(r["at"]))  # type: ignore[arg-type]
                for r in raw.get("history", [])
            ],
            products_created=list(raw.get("products_created", [])),
            version=raw["version"],
            total_cost=money_from_raw(raw.get("total_cost")),
            cost_per_unit=money_from_raw(raw.get("cost_per_unit")),
        )
