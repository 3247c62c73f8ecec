"""JSON-file-backed implementation of ProcessingRecordRepository.

Suitable for a single-instance deployment: a process-wide lock makes
``insert_if_absent`` atomic within the process.  Multi-instance
deployments need a store with a real uniqueness constraint.
"""

from __future__ import annotations

import json
import threading
from datetime import datetime
from pathlib import Path

from bundlesync.domain.model.adjustment import AdjustmentFailure
from bundlesync.domain.model.ledger import LedgerKey, ProcessingRecord, ProcessingStatus
from bundlesync.domain.repository.processing_record_repository import (
    ProcessingRecordRepository,
)


class JsonProcessingRecordRepository(ProcessingRecordRepository):

    def __init__(self, file_path: Path) -> None:
        self._file_path = file_path
        self._lock = threading.Lock()
        self._ensure_file()

    # --- ProcessingRecordRepository interface ---------------------------------

    def get(self, key: LedgerKey) -> ProcessingRecord | None:
        with self._lock:
            raw = self._load_raw().get(str(key))
        return self._to_domain(raw) if raw is not None else None

    def insert_if_absent(self, record: ProcessingRecord) -> bool:
        with self._lock:
            records = self._load_raw()
            if str(record.key) in records:
                return False
            records[str(record.key)] = self._to_raw(record)
            self._persist_raw(records)
            return True

    def save(self, record: ProcessingRecord) -> None:
        with self._lock:
            records = self._load_raw()
            records[str(record.key)] = self._to_raw(record)
            self._persist_raw(records)

    def list_all(self) -> list[ProcessingRecord]:
        with self._lock:
            return [self._to_domain(raw) for raw in self._load_raw().values()]

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _to_raw(record: ProcessingRecord) -> dict:
        return {
            "event_id": record.key.event_id,
            "line_item_id": record.key.line_item_id,
            "component_product_id": record.key.component_product_id,
            "status": record.status.value,
            "applied_delta": record.applied_delta,
            "failure": record.failure.value if record.failure else None,
            "attempts": record.attempts,
            "updated_at": record.updated_at.isoformat(),
        }

    @staticmethod
    def _to_domain(raw: dict) -> ProcessingRecord:
        return ProcessingRecord(
            key=LedgerKey(
                event_id=raw["event_id"],
                line_item_id=raw["line_item_id"],
                component_product_id=raw["component_product_id"],
            ),
            status=ProcessingStatus(raw["status"]),
            applied_delta=raw.get("applied_delta", 0),
            failure=AdjustmentFailure(raw["failure"]) if raw.get("failure") else None,
            attempts=raw.get("attempts", 1),
            updated_at=datetime.fromisoformat(raw["updated_at"]),
        )

    # --- File helpers ---------------------------------------------------------

    def _load_raw(self) -> dict[str, dict]:
        return json.loads(self._file_path.read_text(encoding="utf-8"))

    def _persist_raw(self, records: dict[str, dict]) -> None:
        tmp = self._file_path.with_suffix(".tmp")
        tmp.write_text(json.dumps(records, indent=2) + "\n", encoding="utf-8")
        tmp.replace(self._file_path)

    def _ensure_file(self) -> None:
        if not self._file_path.exists():
            self._file_path.parent.mkdir(parents=True, exist_ok=True)
            self._file_path.write_text("{}", encoding="utf-8")
