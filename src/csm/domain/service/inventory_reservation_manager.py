"""Domain service: Inventory Reservation Manager.

Reserves, releases and commits stock against a product's counters, and
applies audited administrative adjustments.

Every counter update is an optimistic compare-and-swap: load a detached
copy of the product, mutate it, and save it only if the stored version
is unchanged; on conflict, reload and try again.  Two updates of the
same product are therefore serialized by the repository's version check,
while updates of different products never contend.  Business failures
(``InsufficientStock``) are raised on the first attempt that observes
them and are never retried or clamped.

A reservation token is settled exactly once: release and commit first
claim the token through the reservation repository's atomic state
transition, and only the caller that wins the claim touches the product.
If that product update fails, the token is put back in the state it was
claimed from so the units are not stranded.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable, Mapping
from datetime import datetime, timedelta

from csm.domain.clock import Clock
from csm.domain.exceptions import (
    ConcurrencyConflict,
    EntityNotFoundError,
    IllegalTransition,
    ValidationError,
)
from csm.domain.model.inventory_movement import InventoryMovement, MovementType
from csm.domain.model.product import Product
from csm.domain.model.reservation import Reservation, ReservationState
from csm.domain.repository.inventory_movement_repository import (
    InventoryMovementRepository,
)
from csm.domain.repository.product_repository import ProductRepository
from csm.domain.repository.reservation_repository import ReservationRepository

logger = logging.getLogger(__name__)

DEFAULT_MAX_RETRIES = 50
DEFAULT_RESERVATION_TTL = timedelta(minutes=30)


class InventoryReservationManager:

    def __init__(
        self,
        product_repo: ProductRepository,
        reservation_repo: ReservationRepository,
        movement_repo: InventoryMovementRepository,
        clock: Clock,
        reservation_ttl: timedelta = DEFAULT_RESERVATION_TTL,
        max_retries: int = DEFAULT_MAX_RETRIES,
    ) -> None:
        if max_retries < 1:
            raise ValueError("max_retries must be at least 1")
        self._product_repo = product_repo
        self._reservation_repo = reservation_repo
        self._movement_repo = movement_repo
        self._clock = clock
        self._reservation_ttl = reservation_ttl
        self._max_retries = max_retries

    # --- Reservations ---------------------------------------------------------

    def reserve(self, product_id: str, quantity: int, order_id: int | None = None) -> Reservation:
        """Hold *quantity* units of a product.

        Raises InsufficientStock if fewer units are available at the
        instant of the check-and-update.
        """
        self._update_product(product_id, lambda p: p.reserve(quantity))

        now = self._clock.now()
        reservation = Reservation(
            token=uuid.uuid4().hex,
            product_id=product_id,
            quantity=quantity,
            created_at=now,
            expires_at=now + self._reservation_ttl,
            order_id=order_id,
        )
        self._reservation_repo.add(reservation)
        logger.info(
            "Reserved %d of product %s (token=%s, order=%s)",
            quantity, product_id, reservation.token, order_id,
        )
        return reservation

    def reserve_many(
        self, quantities: Mapping[str, int], order_id: int | None = None
    ) -> list[Reservation]:
        """Reserve several products for one order, all or nothing.

        Each product is reserved independently; if any reservation fails,
        the ones already made are released before the error propagates.
        """
        reservations: list[Reservation] = []
        try:
            for product_id, quantity in quantities.items():
                reservations.append(self.reserve(product_id, quantity, order_id))
        except Exception:
            for reservation in reversed(reservations):
                try:
                    self.release(reservation.token)
                except Exception:
                    logger.exception(
                        "Could not roll back reservation %s of product %s",
                        reservation.token, reservation.product_id,
                    )
            logger.info(
                "Rolled back %d reservation(s) for order %s", len(reservations), order_id
            )
            raise
        return reservations

    def release(self, token: str) -> bool:
        """Return a reservation's units to the available pool.

        Idempotent: releasing an already-released token is a no-op and
        returns False.  Releasing a committed token is illegal.
        """
        claim = self._claim(token, ReservationState.RELEASED)
        if claim is None:
            return False
        reservation, previous = claim
        self._settle(reservation, previous, lambda p: p.release(reservation.quantity))
        logger.info(
            "Released %d of product %s (token=%s)",
            reservation.quantity, reservation.product_id, token,
        )
        return True

    def commit(self, token: str) -> bool:
        """Turn a reservation into a permanent deduction.

        Idempotent: committing an already-committed token returns False.
        Committing a released (or expired and swept) token is illegal.
        """
        claim = self._claim(token, ReservationState.COMMITTED)
        if claim is None:
            return False
        reservation, previous = claim
        product = self._settle(reservation, previous, lambda p: p.commit(reservation.quantity))
        self._movement_repo.add(
            InventoryMovement(
                product_id=reservation.product_id,
                delta=-reservation.quantity,
                type=MovementType.OUTBOUND,
                reason="order fulfilled",
                at=self._clock.now(),
                quantity_after=product.quantity,
                order_id=reservation.order_id,
            )
        )
        logger.info(
            "Committed %d of product %s (token=%s)",
            reservation.quantity, reservation.product_id, token,
        )
        return True

    def hold(self, token: str) -> bool:
        """Pin an active reservation so the expiry sweep leaves it alone."""
        held = self._reservation_repo.transition_state(
            token, {ReservationState.ACTIVE}, ReservationState.HELD
        )
        if held is not None:
            logger.debug("Holding reservation %s", token)
        return held is not None

    def release_expired(self, now: datetime | None = None) -> list[Reservation]:
        """Release every ACTIVE reservation whose expiry has passed.

        Returns the reservations this sweep released.  A reservation
        settled concurrently (committed, held or released) is skipped.
        """
        now = now or self._clock.now()
        released: list[Reservation] = []
        for reservation in self._reservation_repo.list_in_state(ReservationState.ACTIVE):
            if not reservation.is_expired(now):
                continue
            claimed = self._reservation_repo.transition_state(
                reservation.token, {ReservationState.ACTIVE}, ReservationState.RELEASED
            )
            if claimed is None:
                continue
            self._settle(claimed, ReservationState.ACTIVE, lambda p: p.release(claimed.quantity))
            released.append(claimed)
            logger.info(
                "Expired reservation %s released %d of product %s",
                claimed.token, claimed.quantity, claimed.product_id,
            )
        return released

    # --- Administrative adjustments -------------------------------------------

    def adjust(
        self,
        product_id: str,
        delta: int,
        reason: str,
        movement_type: MovementType = MovementType.ADJUSTMENT,
        order_id: int | None = None,
        batch_id: str | None = None,
    ) -> Product:
        """Correct a product's on-hand quantity outside the reservation flow.

        Always audit-logged and recorded as an inventory movement.
        """
        if not reason or not reason.strip():
            raise ValidationError("An inventory adjustment needs a reason")
        product = self._update_product(product_id, lambda p: p.adjust(delta))
        self._movement_repo.add(
            InventoryMovement(
                product_id=product_id,
                delta=delta,
                type=movement_type,
                reason=reason.strip(),
                at=self._clock.now(),
                quantity_after=product.quantity,
                order_id=order_id,
                batch_id=batch_id,
            )
        )
        logger.info(
            "Inventory adjusted: product=%s delta=%+d type=%s reason=%r quantity=%d",
            product_id, delta, movement_type.value, reason.strip(), product.quantity,
        )
        return product

    # --- Internal helpers -----------------------------------------------------

    def _claim(
        self, token: str, target: ReservationState
    ) -> tuple[Reservation, ReservationState] | None:
        """Settle an open token; returns it with the state it was claimed from."""
        reservation = self._reservation_repo.get(token)
        if reservation is None:
            raise EntityNotFoundError(f"Unknown reservation token '{token}'")
        for source in (ReservationState.ACTIVE, ReservationState.HELD):
            claimed = self._reservation_repo.transition_state(token, {source}, target)
            if claimed is not None:
                return claimed, source
        current = self._reservation_repo.get(token)
        if current is not None and current.state is target:
            return None
        state = current.state.value if current is not None else "UNKNOWN"
        raise IllegalTransition("reservation", state, target.value)

    def _settle(
        self,
        claimed: Reservation,
        previous: ReservationState,
        mutate: Callable[[Product], None],
    ) -> Product:
        """Apply a settled token to its product, reopening the token on failure."""
        try:
            return self._update_product(claimed.product_id, mutate)
        except Exception:
            reopened = self._reservation_repo.transition_state(
                claimed.token, {claimed.state}, previous
            )
            logger.warning(
                "Could not apply %s of reservation %s to product %s; token %s",
                claimed.state.value, claimed.token, claimed.product_id,
                f"reopened as {previous.value}" if reopened else "left settled",
            )
            raise

    def _update_product(self, product_id: str, mutate: Callable[[Product], None]) -> Product:
        for attempt in range(1, self._max_retries + 1):
            product = self._product_repo.get_by_id(product_id)
            if product is None:
                raise EntityNotFoundError(f"Product '{product_id}' not found")
            mutate(product)
            try:
                self._product_repo.save(product)
            except ConcurrencyConflict:
                logger.debug(
                    "Version conflict on product %s (attempt %d/%d)",
                    product_id, attempt, self._max_retries,
                )
                continue
            return product
        logger.warning(
            "Gave up updating product %s after %d conflicting attempts",
            product_id, self._max_retries,
        )
        raise ConcurrencyConflict(
            f"Product '{product_id}' kept changing; gave up after {self._max_retries} attempts"
        )
