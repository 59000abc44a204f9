"""Abstract repository for Batch aggregate."""

from __future__ import annotations

from abc import ABC, abstractmethod

from csm.domain.model.batch import Batch


class BatchRepository(ABC):

    @abstractmethod
    def get_by_id(self, batch_id: str) -> Batch | None:
        """Return a detached copy of a batch, or None if not found."""

    @abstractmethod
    def list_all(self) -> list[Batch]:
        """Return every batch."""

    @abstractmethod
    def count_ordered_in(self, year: int, month: int) -> int:
        """Number of batches ordered in the given month, for batch numbering."""

    @abstractmethod
    def save(self, batch: Batch) -> None:
        """Persist a new or updated batch; raise ConcurrencyConflict on a stale version."""
