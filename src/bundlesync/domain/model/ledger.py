"""ProcessingRecord aggregate — one entry in the idempotency ledger.

A record exists per (event, line item, component) triple.  It is created
PENDING before the delta is sent and finalized once the call resolves.
Redeliveries of the same event find the record and do not re-apply.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from bundlesync.domain.exceptions import ValidationError
from bundlesync.domain.model.adjustment import AdjustmentFailure


class ProcessingStatus(Enum):
    PENDING = "PENDING"
    APPLIED = "APPLIED"
    FAILED = "FAILED"


class Admission(Enum):
    """Answer of the ledger to ``try_begin``."""

    ADMITTED = "ADMITTED"
    ALREADY_APPLIED = "ALREADY_APPLIED"
    IN_PROGRESS = "IN_PROGRESS"
    BLOCKED = "BLOCKED"


@dataclass(frozen=True)
class LedgerKey:
    event_id: str
    line_item_id: str
    component_product_id: str

    def __str__(self) -> str:
        return f"{self.event_id}/{self.line_item_id}/{self.component_product_id}"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class ProcessingRecord:
    """Aggregate root for one logical component change.

    Valid transitions::

        PENDING -> APPLIED
        PENDING -> FAILED
        FAILED  -> PENDING   (only when the failure proves nothing landed)
    """

    key: LedgerKey
    status: ProcessingStatus = ProcessingStatus.PENDING
    applied_delta: int = 0
    failure: AdjustmentFailure | None = None
    attempts: int = 1
    updated_at: datetime = field(default_factory=_utcnow)

    @property
    def can_readmit(self) -> bool:
        return (
            self.status == ProcessingStatus.FAILED
            and self.failure is not None
            and self.failure.delta_not_applied
        )

    def mark_applied(self, delta: int) -> None:
        self._assert_pending()
        self.status = ProcessingStatus.APPLIED
        self.applied_delta = delta
        self.failure = None
        self.updated_at = _utcnow()

    def mark_failed(self, failure: AdjustmentFailure) -> None:
        self._assert_pending()
        self.status = ProcessingStatus.FAILED
        self.applied_delta = 0
        self.failure = failure
        self.updated_at = _utcnow()

    def readmit(self) -> None:
        """Put a provably-unapplied failure back in flight for another try."""
        if not self.can_readmit:
            raise ValidationError(
                f"Ledger entry {self.key} cannot be retried "
                f"(status={self.status.value}, failure={self._failure_name})"
            )
        self.status = ProcessingStatus.PENDING
        self.failure = None
        self.attempts += 1
        self.updated_at = _utcnow()

    # --- Internal helpers -----------------------------------------------------

    @property
    def _failure_name(self) -> str:
        return self.failure.value if self.failure else "none"

    def _assert_pending(self) -> None:
        if self.status != ProcessingStatus.PENDING:
            raise ValidationError(
                f"Ledger entry {self.key} is already {self.status.value}"
            )


@dataclass(frozen=True)
class Reservation:
    admission: Admission
    record: ProcessingRecord
