"""Per-key serializer.

Gives exclusive access per key while letting disjoint keys run in
parallel.  Callers for the same key are served strictly in arrival
order: each caller takes a ticket, joins the key's queue, and runs only
when its ticket reaches the head.

Queues are created on first use and dropped as soon as they drain, so
the map only ever holds keys that are busy.  The lock is not
re-entrant; a thread that asks for a key it already holds deadlocks.
"""

from __future__ import annotations

import threading
from collections import deque
from collections.abc import Callable, Hashable, Iterator
from contextlib import contextmanager
from typing import TypeVar

T = TypeVar("T")


class KeyedSerializer:

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._turn = threading.Condition(self._guard)
        self._queues: dict[Hashable, deque[object]] = {}

    @contextmanager
    def locked(self, key: Hashable) -> Iterator[None]:
        ticket = object()
        with self._guard:
            queue = self._queues.setdefault(key, deque())
            queue.append(ticket)
            while queue[0] is not ticket:
                self._turn.wait()
        try:
            yield
        finally:
            with self._guard:
                queue.popleft()
                if not queue:
                    del self._queues[key]
                self._turn.notify_all()

    def with_lock(self, key: Hashable, fn: Callable[[], T]) -> T:
        """Run ``fn`` while holding exclusive access to ``key``."""
        with self.locked(key):
            return fn()

    def queued(self, key: Hashable) -> int:
        """Number of callers holding or waiting for ``key``."""
        with self._guard:
            return len(self._queues.get(key, ()))

    @property
    def active_keys(self) -> int:
        with self._guard:
            return len(self._queues)
