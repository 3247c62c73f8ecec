"""Concurrent dispatch of sale events.

Each event is an independent task on a thread pool.  No ordering is
imposed across events; the handler's per-key serializer does the rest.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor

import structlog

from bundlesync.application.handle_sale_event import HandleSaleEventHandler
from bundlesync.domain.model.outcome import ProcessingOutcome
from bundlesync.domain.model.sale import SaleEvent

logger = structlog.get_logger(__name__)


class SaleEventDispatcher:

    def __init__(self, handler: HandleSaleEventHandler, max_workers: int = 4) -> None:
        self._handler = handler
        self._max_workers = max_workers

    def dispatch(self, events: list[SaleEvent]) -> list[ProcessingOutcome]:
        """Process events concurrently; results come back in input order."""
        if not events:
            return []
        workers = min(self._max_workers, len(events))
        logger.info("Dispatching sale events", events=len(events), workers=workers)
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="bundlesync") as pool:
            return list(pool.map(self._handler.handle, events))
