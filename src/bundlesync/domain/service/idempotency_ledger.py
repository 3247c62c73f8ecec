"""Domain service: Idempotency Ledger.

Guards the non-idempotent delta call against at-least-once delivery.
Before any delta is issued for an (event, line item, component) triple
the caller must obtain ADMITTED from ``try_begin``; every later attempt
for the same triple sees the recorded outcome instead.

The check-and-reserve runs under the triple's key in the shared
KeyedSerializer, and new entries go through ``insert_if_absent`` so a
storage backend with a uniqueness constraint stays correct across
processes too.
"""

from __future__ import annotations

import structlog

from bundlesync.domain.exceptions import EntityNotFoundError
from bundlesync.domain.model.adjustment import AdjustmentFailure
from bundlesync.domain.model.ledger import (
    Admission,
    LedgerKey,
    ProcessingRecord,
    ProcessingStatus,
    Reservation,
)
from bundlesync.domain.repository.processing_record_repository import (
    ProcessingRecordRepository,
)
from bundlesync.domain.service.keyed_serializer import KeyedSerializer

logger = structlog.get_logger(__name__)


class IdempotencyLedger:

    def __init__(
        self,
        record_repo: ProcessingRecordRepository,
        serializer: KeyedSerializer,
    ) -> None:
        self._record_repo = record_repo
        self._serializer = serializer

    def try_begin(
        self,
        event_id: str,
        line_item_id: str,
        component_product_id: str,
    ) -> Reservation:
        """Reserve the triple for one delta attempt.

        Outcomes:
          ADMITTED       : no prior attempt, or the prior one provably
                           did not land; a PENDING entry now exists.
          ALREADY_APPLIED: the delta is recorded as applied; skip it.
          IN_PROGRESS    : another attempt holds the entry.
          BLOCKED        : a prior attempt ended ambiguously and needs
                           manual reconciliation.
        """
        key = LedgerKey(event_id, line_item_id, component_product_id)
        with self._serializer.locked(("ledger", key)):
            return self._reserve(key)

    def finish(
        self,
        key: LedgerKey,
        status: ProcessingStatus,
        applied_delta: int = 0,
        failure: AdjustmentFailure | None = None,
    ) -> ProcessingRecord:
        """Record the terminal outcome of an admitted attempt."""
        with self._serializer.locked(("ledger", key)):
            record = self._record_repo.get(key)
            if record is None:
                raise EntityNotFoundError(f"No ledger entry for {key}")

            if status == ProcessingStatus.APPLIED:
                record.mark_applied(applied_delta)
            elif status == ProcessingStatus.FAILED:
                if failure is None:
                    raise ValueError("A failed ledger entry needs a failure reason")
                record.mark_failed(failure)
            else:
                raise ValueError(f"Cannot finish a ledger entry as {status.value}")

            self._record_repo.save(record)
            return record

    def get(self, key: LedgerKey) -> ProcessingRecord | None:
        return self._record_repo.get(key)

    # --- Internal helpers -----------------------------------------------------

    def _reserve(self, key: LedgerKey) -> Reservation:
        fresh = ProcessingRecord(key=key)
        if self._record_repo.insert_if_absent(fresh):
            return Reservation(Admission.ADMITTED, fresh)

        existing = self._record_repo.get(key)
        if existing is None:
            # Removed between insert and read; treat as contended.
            return Reservation(Admission.IN_PROGRESS, fresh)

        if existing.status == ProcessingStatus.APPLIED:
            logger.info(
                "Duplicate delivery; component delta already applied",
                ledger_key=str(key),
                applied_delta=existing.applied_delta,
            )
            return Reservation(Admission.ALREADY_APPLIED, existing)

        if existing.status == ProcessingStatus.PENDING:
            logger.warning("Component delta already in flight", ledger_key=str(key))
            return Reservation(Admission.IN_PROGRESS, existing)

        if existing.can_readmit:
            existing.readmit()
            self._record_repo.save(existing)
            logger.info(
                "Retrying component delta that did not land",
                ledger_key=str(key),
                attempt=existing.attempts,
            )
            return Reservation(Admission.ADMITTED, existing)

        logger.warning(
            "Component delta outcome unknown; manual reconciliation required",
            ledger_key=str(key),
        )
        return Reservation(Admission.BLOCKED, existing)
