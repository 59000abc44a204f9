"""Everything a use case needs, wired once by the composition root.

Handlers build their domain services from this per call, so a service
always sees the current rate table.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta

from csm.domain.clock import Clock
from csm.domain.model.value_objects import ACCOUNTING_CURRENCY
from csm.domain.repository.batch_repository import BatchRepository
from csm.domain.repository.exchange_rate_repository import ExchangeRateRepository
from csm.domain.repository.inventory_movement_repository import (
    InventoryMovementRepository,
)
from csm.domain.repository.invoice_repository import InvoiceRepository
from csm.domain.repository.order_repository import OrderRepository
from csm.domain.repository.product_repository import ProductRepository
from csm.domain.repository.reservation_repository import ReservationRepository
from csm.domain.service.batch_cost_allocator import BatchCostAllocator
from csm.domain.service.currency_converter import CurrencyConverter
from csm.domain.service.document_reconciler import DocumentReconciler
from csm.domain.service.document_totals import DocumentTotalsAggregator
from csm.domain.service.inventory_reservation_manager import (
    DEFAULT_MAX_RETRIES,
    DEFAULT_RESERVATION_TTL,
    InventoryReservationManager,
)
from csm.domain.service.payment_ledger import PaymentLedger


@dataclass(frozen=True)
class UseCaseContext:
    products: ProductRepository
    orders: OrderRepository
    invoices: InvoiceRepository
    batches: BatchRepository
    rates: ExchangeRateRepository
    reservations: ReservationRepository
    movements: InventoryMovementRepository
    clock: Clock
    accounting_currency: str = ACCOUNTING_CURRENCY
    reservation_ttl: timedelta = DEFAULT_RESERVATION_TTL
    max_reservation_retries: int = DEFAULT_MAX_RETRIES
    return_window_days: int = 14
    payment_terms_days: int = 14

    def converter(self) -> CurrencyConverter:
        return CurrencyConverter.from_repository(self.rates)

    def reconciler(self) -> DocumentReconciler:
        converter = self.converter()
        return DocumentReconciler(
            DocumentTotalsAggregator(converter, accounting_currency=self.accounting_currency),
            PaymentLedger(converter),
        )

    def reservation_manager(self) -> InventoryReservationManager:
        return InventoryReservationManager(
            product_repo=self.products,
            reservation_repo=self.reservations,
            movement_repo=self.movements,
            clock=self.clock,
            reservation_ttl=self.reservation_ttl,
            max_retries=self.max_reservation_retries,
        )

    def cost_allocator(self) -> BatchCostAllocator:
        return BatchCostAllocator(self.converter(), accounting_currency=self.accounting_currency)
