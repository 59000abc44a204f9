"""Composition root — wires concrete implementations to domain interfaces.

This is the only place in the codebase that knows about *all* layers.
Every other module depends only on abstractions.
"""

from __future__ import annotations

from datetime import timedelta

from csm.application.context import UseCaseContext
from csm.domain.clock import Clock, SystemClock
from csm.infrastructure.persistence.json_batch_repository import JsonBatchRepository
from csm.infrastructure.persistence.json_exchange_rate_repository import (
    JsonExchangeRateRepository,
)
from csm.infrastructure.persistence.json_inventory_movement_repository import (
    JsonInventoryMovementRepository,
)
from csm.infrastructure.persistence.json_invoice_repository import (
    JsonInvoiceRepository,
)
from csm.infrastructure.persistence.json_order_repository import (
    JsonOrderRepository,
)
from csm.infrastructure.persistence.json_product_repository import (
    JsonProductRepository,
)
from csm.infrastructure.persistence.json_reservation_repository import (
    JsonReservationRepository,
)
from csm.infrastructure.settings import Settings, get_settings


def build_context(settings: Settings | None = None, clock: Clock | None = None) -> UseCaseContext:
    settings = settings or get_settings()
    data_dir = settings.data_dir
    return UseCaseContext(
        products=JsonProductRepository(data_dir / "products.json"),
        orders=JsonOrderRepository(data_dir / "orders.json"),
        invoices=JsonInvoiceRepository(data_dir / "invoices.json"),
        batches=JsonBatchRepository(data_dir / "batches.json"),
        rates=JsonExchangeRateRepository(data_dir / "exchange_rates.json"),
        reservations=JsonReservationRepository(data_dir / "reservations.json"),
        movements=JsonInventoryMovementRepository(data_dir / "inventory_movements.json"),
        clock=clock or SystemClock(),
        accounting_currency=settings.accounting_currency,
        reservation_ttl=timedelta(minutes=settings.reservation_ttl_minutes),
        max_reservation_retries=settings.max_reservation_retries,
        return_window_days=settings.return_window_days,
        payment_terms_days=settings.invoice_payment_terms_days,
    )
