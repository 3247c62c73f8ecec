"""In-memory fakes for testing.

These implement the same abstract interfaces as the Shopify adapters and
JSON repositories but keep everything in dicts.  No network, no file
I/O.  The fake inventory service is thread-safe and can be scripted to
fail specific calls.
"""

from __future__ import annotations

import threading
from collections import defaultdict, deque

from bundlesync.domain.exceptions import ConfigFetchError, InventoryKeyNotFound
from bundlesync.domain.model.bundle import BundleConfig, ComponentRef
from bundlesync.domain.model.deferred import DeferredBundle
from bundlesync.domain.model.inventory import InventoryKey, InventoryLevel
from bundlesync.domain.model.ledger import LedgerKey, ProcessingRecord
from bundlesync.domain.repository.bundle_config_store import BundleConfigStore
from bundlesync.domain.repository.deferred_bundle_repository import (
    DeferredBundleRepository,
)
from bundlesync.domain.repository.inventory_service import InventoryService
from bundlesync.domain.repository.processing_record_repository import (
    ProcessingRecordRepository,
)

LOCATION = "gid://shopify/Location/1"


def bundle(*components: tuple[str, int]) -> BundleConfig:
    """Build a bundle config from (product_id, quantity) pairs."""
    return BundleConfig(
        is_bundle=True,
        components=tuple(ComponentRef(pid, qty) for pid, qty in components),
    )


class FakeBundleConfigStore(BundleConfigStore):

    def __init__(self, configs: dict[str, BundleConfig] | None = None) -> None:
        self._store: dict[str, BundleConfig] = dict(configs or {})
        self.unreachable = False
        self.invalid: dict[str, Exception] = {}
        self.gets: list[str] = []

    def get(self, product_id: str) -> BundleConfig | None:
        self.gets.append(product_id)
        if self.unreachable:
            raise ConfigFetchError("config store unreachable")
        if product_id in self.invalid:
            raise self.invalid[product_id]
        return self._store.get(product_id)

    def put(self, product_id: str, config: BundleConfig) -> None:
        self._store[product_id] = config

    def delete(self, product_id: str) -> None:
        self._store.pop(product_id, None)


class FakeInventoryService(InventoryService):
    """Inventory service double.

    ``levels`` maps product ID to available quantity.  Products in
    ``untracked`` report tracked=False.  ``fail(op, product_id, *errors)``
    queues exceptions raised by the next calls of that operation for
    that product; a queued error raised by ``apply_delta`` with
    ``lands=True`` is raised *after* applying the delta, mimicking a
    timeout on a request that actually succeeded.
    """

    def __init__(
        self,
        levels: dict[str, int] | None = None,
        untracked: set[str] | None = None,
    ) -> None:
        self._lock = threading.Lock()
        self.levels: dict[str, int] = dict(levels or {})
        self.untracked: set[str] = set(untracked or ())
        self.calls: list[tuple[str, str, int | None]] = []
        self.sets: list[tuple[str, int]] = []
        self._failures: dict[tuple[str, str], deque] = defaultdict(deque)

    def fail(self, op: str, product_id: str, *errors: Exception, lands: bool = False) -> None:
        for error in errors:
            self._failures[(op, product_id)].append((error, lands))

    # --- InventoryService interface -------------------------------------------

    def resolve_inventory_key(self, product_id: str) -> InventoryKey:
        with self._lock:
            self.calls.append(("resolve", product_id, None))
            self._maybe_fail("resolve", product_id)
            if product_id not in self.levels and product_id not in self.untracked:
                raise InventoryKeyNotFound(f"No inventory item for {product_id}")
            return InventoryKey(inventory_item_id=product_id, location_id=LOCATION)

    def get_level(self, key: InventoryKey) -> InventoryLevel:
        pid = key.inventory_item_id
        with self._lock:
            self.calls.append(("get_level", pid, None))
            self._maybe_fail("get_level", pid)
            if pid in self.untracked:
                return InventoryLevel(quantity=0, tracked=False)
            return InventoryLevel(quantity=self.levels[pid])

    def apply_delta(self, key: InventoryKey, delta: int) -> int | None:
        pid = key.inventory_item_id
        with self._lock:
            self.calls.append(("apply_delta", pid, delta))
            queued = self._failures.get(("apply_delta", pid))
            if queued:
                error, lands = queued.popleft()
                if lands:
                    self.levels[pid] += delta
                raise error
            self.levels[pid] += delta
            return self.levels[pid]

    def set_level(self, key: InventoryKey, quantity: int) -> None:
        pid = key.inventory_item_id
        with self._lock:
            self.calls.append(("set_level", pid, quantity))
            self._maybe_fail("set_level", pid)
            self.levels[pid] = quantity
            self.sets.append((pid, quantity))

    # --- Test helpers ---------------------------------------------------------

    def count(self, op: str, product_id: str | None = None) -> int:
        return sum(
            1
            for call_op, pid, _ in self.calls
            if call_op == op and (product_id is None or pid == product_id)
        )

    def _maybe_fail(self, op: str, product_id: str) -> None:
        queued = self._failures.get((op, product_id))
        if queued:
            error, _ = queued.popleft()
            raise error


class FakeProcessingRecordRepository(ProcessingRecordRepository):

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._store: dict[LedgerKey, ProcessingRecord] = {}

    def get(self, key: LedgerKey) -> ProcessingRecord | None:
        with self._lock:
            return self._store.get(key)

    def insert_if_absent(self, record: ProcessingRecord) -> bool:
        with self._lock:
            if record.key in self._store:
                return False
            self._store[record.key] = record
            return True

    def save(self, record: ProcessingRecord) -> None:
        with self._lock:
            self._store[record.key] = record

    def list_all(self) -> list[ProcessingRecord]:
        with self._lock:
            return list(self._store.values())


class FakeDeferredBundleRepository(DeferredBundleRepository):

    def __init__(self) -> None:
        self._store: dict[str, DeferredBundle] = {}

    def get(self, bundle_product_id: str) -> DeferredBundle | None:
        return self._store.get(bundle_product_id)

    def save(self, deferred: DeferredBundle) -> None:
        self._store[deferred.bundle_product_id] = deferred

    def remove(self, bundle_product_id: str) -> None:
        self._store.pop(bundle_product_id, None)

    def list_all(self) -> list[DeferredBundle]:
        return list(self._store.values())
