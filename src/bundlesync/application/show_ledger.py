"""Application service: Show Ledger use case (query)."""

from __future__ import annotations

from bundlesync.application.dto import LedgerEntryDTO
from bundlesync.domain.model.ledger import ProcessingStatus
from bundlesync.domain.repository.processing_record_repository import (
    ProcessingRecordRepository,
)


class ShowLedgerHandler:

    def __init__(self, record_repo: ProcessingRecordRepository) -> None:
        self._record_repo = record_repo

    def handle(
        self,
        event_id: str | None = None,
        status: ProcessingStatus | None = None,
    ) -> list[LedgerEntryDTO]:
        records = self._record_repo.list_all()
        return [
            LedgerEntryDTO(
                key=str(record.key),
                status=record.status.value,
                applied_delta=record.applied_delta,
                failure=record.failure.value if record.failure else None,
                attempts=record.attempts,
                updated_at=record.updated_at.strftime("%Y-%m-%d %H:%M:%S UTC"),
            )
            for record in sorted(records, key=lambda r: r.updated_at)
            if (event_id is None or record.key.event_id == event_id)
            and (status is None or record.status == status)
        ]
