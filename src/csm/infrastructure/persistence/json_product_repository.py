"""JSON-file-backed implementation of ProductRepository."""

from __future__ import annotations

from decimal import Decimal

from csm.domain.model.product import Product
from csm.domain.repository.product_repository import ProductRepository
from csm.infrastructure.persistence.codec import money_from_raw, money_to_raw
from csm.infrastructure.persistence.json_store import JsonFileStore


class JsonProductRepository(JsonFileStore, ProductRepository):

    # --- ProductRepository interface ------------------------------------------

    def get_by_id(self, product_id: str) -> Product | None:
        return self._load().get(product_id)

    def get_by_name(self, name: str) -> Product | None:
        for product in self._load().values():
            if product.name.lower() == name.lower():
                return product
        return None

    def list_all(self) -> list[Product]:
        return list(self._load().values())

    def list_by_batch(self, batch_id: str) -> list[Product]:
        return [p for p in self._load().values() if p.batch_id == batch_id]

    def save(self, product: Product) -> None:
        self._compare_and_swap(
            product, "id", product.id, lambda: self._to_raw(product), "Product"
        )

    # --- Serialization helpers ------------------------------------------------

    def _load(self) -> dict[str, Product]:
        with self._lock:
            raw = self._load_raw()
        return {item["id"]: self._to_domain(item) for item in raw}

    @staticmethod
    def _to_raw(product: Product) -> dict:
        return {
            "id": product.id,
            "version": product.version,
            "name": product.name,
            "price": money_to_raw(product.price),
            "quantity": product.quantity,
            "reserved_quantity": product.reserved_quantity,
            "purchase_price": money_to_raw(product.purchase_price),
            "batch_id": product.batch_id,
            "batch_units": str(product.batch_units),
        }

    @staticmethod
    def _to_domain(item: dict) -> Product:
        return Product(
            id=item["id"],
            name=item["name"],
            price=money_from_raw(item["price"]),  # type: ignore[arg-type]
            quantity=item["quantity"],
            reserved_quantity=item["reserved_quantity"],
            purchase_price=money_from_raw(item.get("purchase_price")),
            batch_id=item.get("batch_id"),
            batch_units=Decimal(item.get("batch_units", "1")),
            version=item["version"],
        )
