"""JSON-file-backed implementation of DeferredBundleRepository."""

from __future__ import annotations

import json
import threading
from datetime import datetime
from pathlib import Path

from bundlesync.domain.model.deferred import DeferredBundle
from bundlesync.domain.repository.deferred_bundle_repository import (
    DeferredBundleRepository,
)


class JsonDeferredBundleRepository(DeferredBundleRepository):

    def __init__(self, file_path: Path) -> None:
        self._file_path = file_path
        self._lock = threading.Lock()
        self._ensure_file()

    # --- DeferredBundleRepository interface -----------------------------------

    def get(self, bundle_product_id: str) -> DeferredBundle | None:
        with self._lock:
            for raw in self._load_raw():
                if raw["bundle_product_id"] == bundle_product_id:
                    return self._to_domain(raw)
        return None

    def save(self, deferred: DeferredBundle) -> None:
        with self._lock:
            records = self._load_raw()
            replaced = False
            for i, raw in enumerate(records):
                if raw["bundle_product_id"] == deferred.bundle_product_id:
                    records[i] = self._to_raw(deferred)
                    replaced = True
                    break
            if not replaced:
                records.append(self._to_raw(deferred))
            self._persist_raw(records)

    def remove(self, bundle_product_id: str) -> None:
        with self._lock:
            records = [
                raw
                for raw in self._load_raw()
                if raw["bundle_product_id"] != bundle_product_id
            ]
            self._persist_raw(records)

    def list_all(self) -> list[DeferredBundle]:
        with self._lock:
            return [self._to_domain(raw) for raw in self._load_raw()]

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _to_raw(deferred: DeferredBundle) -> dict:
        return {
            "bundle_product_id": deferred.bundle_product_id,
            "reason": deferred.reason,
            "deferred_at": deferred.deferred_at.isoformat(),
            "attempts": deferred.attempts,
            "revision": deferred.revision,
        }

    @staticmethod
    def _to_domain(raw: dict) -> DeferredBundle:
        return DeferredBundle(
            bundle_product_id=raw["bundle_product_id"],
            reason=raw.get("reason", ""),
            deferred_at=datetime.fromisoformat(raw["deferred_at"]),
            attempts=raw.get("attempts", 0),
            revision=raw.get("revision") or f"{raw['deferred_at']}#{raw.get('attempts', 0)}",
        )

    # --- File helpers ---------------------------------------------------------

    def _load_raw(self) -> list[dict]:
        return json.loads(self._file_path.read_text(encoding="utf-8"))

    def _persist_raw(self, records: list[dict]) -> None:
        self._file_path.write_text(
            json.dumps(records, indent=2) + "\n", encoding="utf-8"
        )

    def _ensure_file(self) -> None:
        if not self._file_path.exists():
            self._file_path.parent.mkdir(parents=True, exist_ok=True)
            self._file_path.write_text("[]", encoding="utf-8")
