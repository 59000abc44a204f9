"""Application service: Advance Batch use case.

Moves a batch along transit, sorting and storage, or cancels it before
receipt.  Receipt itself is ``ReceiveBatchHandler``.
"""

from __future__ import annotations

from csm.application.context import UseCaseContext
from csm.domain.exceptions import EntityNotFoundError, ValidationError
from csm.domain.model.batch import Batch, BatchStatus
from csm.domain.service.status_deriver import check_batch_transition


class AdvanceBatchHandler:

    def __init__(self, ctx: UseCaseContext) -> None:
        self._ctx = ctx

    def handle(self, batch_id: str, status: BatchStatus) -> Batch:
        if status is BatchStatus.RECEIVED:
            raise ValidationError("Use batch receipt to record arrival and costs")
        batch = self._ctx.batches.get_by_id(batch_id)
        if batch is None:
            raise EntityNotFoundError(f"Batch '{batch_id}' not found")

        check_batch_transition(batch, status)
        batch.record(status, self._ctx.clock.now())
        self._ctx.batches.save(batch)
        return batch
