"""Abstract repository for idempotency ledger entries."""

from __future__ import annotations

from abc import ABC, abstractmethod

from bundlesync.domain.model.ledger import LedgerKey, ProcessingRecord


class ProcessingRecordRepository(ABC):

    @abstractmethod
    def get(self, key: LedgerKey) -> ProcessingRecord | None:
        """Return the ledger entry for a triple, or None."""

    @abstractmethod
    def insert_if_absent(self, record: ProcessingRecord) -> bool:
        """Store a new entry unless one exists for the same key.

        Returns True if the record was inserted.  Backends with a
        uniqueness constraint implement this atomically.
        """

    @abstractmethod
    def save(self, record: ProcessingRecord) -> None:
        """Persist an updated entry."""

    @abstractmethod
    def list_all(self) -> list[ProcessingRecord]:
        """Return every ledger entry."""
