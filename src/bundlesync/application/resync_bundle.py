"""Application service: Resync Bundle use case.

Out-of-band recovery for bundles whose availability could not be
published during event processing.  Re-runs only the recompute-then-set
cycle, which is idempotent and safe to repeat until it completes.
"""

from __future__ import annotations

import structlog

from bundlesync.domain.exceptions import BundleConfigError
from bundlesync.domain.model.outcome import RecomputeResult
from bundlesync.domain.service.config_resolver import (
    NOT_A_BUNDLE,
    BundleConfigResolver,
)
from bundlesync.domain.service.recomputation import BundleRecomputationEngine
from bundlesync.domain.service.resync_queue import ResyncQueue

logger = structlog.get_logger(__name__)


class ResyncBundleHandler:

    def __init__(
        self,
        resolver: BundleConfigResolver,
        engine: BundleRecomputationEngine,
        resync_queue: ResyncQueue,
    ) -> None:
        self._resolver = resolver
        self._engine = engine
        self._resync_queue = resync_queue

    def handle(self, bundle_product_id: str) -> RecomputeResult:
        try:
            resolved = self._resolver.resolve(bundle_product_id)
        except BundleConfigError as exc:
            reason = f"config unavailable: {exc}"
            self._resync_queue.defer(bundle_product_id, reason)
            return RecomputeResult.incomplete(bundle_product_id, reason)

        if resolved is NOT_A_BUNDLE:
            logger.info(
                "Product is no longer a bundle; dropping resync",
                bundle_product_id=bundle_product_id,
            )
            self._resync_queue.clear(bundle_product_id)
            return RecomputeResult(bundle_product_id, True, None, "not a bundle")

        seen_revision = self._resync_queue.revision(bundle_product_id)
        result = self._engine.recompute(bundle_product_id, resolved)
        if result.complete:
            self._resync_queue.clear_if_unchanged(bundle_product_id, seen_revision)
        else:
            self._resync_queue.defer(bundle_product_id, result.reason)
        return result


class ResyncDeferredHandler:
    """Drain the resync queue once, attempting every deferred bundle."""

    def __init__(self, resync: ResyncBundleHandler, resync_queue: ResyncQueue) -> None:
        self._resync = resync
        self._resync_queue = resync_queue

    def handle(self) -> list[RecomputeResult]:
        pending = self._resync_queue.pending()
        logger.info("Resyncing deferred bundles", count=len(pending))
        return [self._resync.handle(deferred.bundle_product_id) for deferred in pending]
