"""Domain service: bookkeeping for bundles that need an out-of-band resync."""

from __future__ import annotations

import structlog

from bundlesync.domain.model.deferred import DeferredBundle
from bundlesync.domain.repository.deferred_bundle_repository import (
    DeferredBundleRepository,
)
from bundlesync.domain.service.keyed_serializer import KeyedSerializer

logger = structlog.get_logger(__name__)


class ResyncQueue:

    def __init__(
        self,
        deferred_repo: DeferredBundleRepository,
        serializer: KeyedSerializer,
    ) -> None:
        self._deferred_repo = deferred_repo
        self._serializer = serializer

    def defer(self, bundle_product_id: str, reason: str) -> DeferredBundle:
        """Mark a bundle stale, or bump the attempt count if it already is."""
        with self._serializer.locked(("deferred", bundle_product_id)):
            deferred = self._deferred_repo.get(bundle_product_id)
            if deferred is None:
                deferred = DeferredBundle(bundle_product_id=bundle_product_id, reason=reason)
            else:
                deferred.record_attempt(reason)
            self._deferred_repo.save(deferred)

        logger.warning(
            "Bundle deferred for resync",
            bundle_product_id=bundle_product_id,
            reason=reason,
            attempts=deferred.attempts,
        )
        return deferred

    def revision(self, bundle_product_id: str) -> str | None:
        """Snapshot of the marker, taken before a recompute starts reading."""
        deferred = self._deferred_repo.get(bundle_product_id)
        return deferred.revision if deferred is not None else None

    def clear(self, bundle_product_id: str) -> None:
        """Drop the marker whatever its state."""
        with self._serializer.locked(("deferred", bundle_product_id)):
            if self._deferred_repo.get(bundle_product_id) is None:
                return
            self._deferred_repo.remove(bundle_product_id)
        logger.info("Bundle resync complete", bundle_product_id=bundle_product_id)

    def clear_if_unchanged(self, bundle_product_id: str, seen_revision: str | None) -> bool:
        """Drop the marker only if nobody deferred the bundle since ``seen_revision``.

        A deferral that lands while a recompute is running may reflect a
        delta the recompute never read, so its marker has to survive.
        Returns False when the marker was kept.
        """
        with self._serializer.locked(("deferred", bundle_product_id)):
            deferred = self._deferred_repo.get(bundle_product_id)
            if deferred is None:
                return True
            if deferred.revision != seen_revision:
                logger.info(
                    "Bundle deferred again during recompute; keeping marker",
                    bundle_product_id=bundle_product_id,
                    reason=deferred.reason,
                )
                return False
            self._deferred_repo.remove(bundle_product_id)
        logger.info("Bundle resync complete", bundle_product_id=bundle_product_id)
        return True

    def pending(self) -> list[DeferredBundle]:
        return self._deferred_repo.list_all()

    def is_deferred(self, bundle_product_id: str) -> bool:
        return self._deferred_repo.get(bundle_product_id) is not None
