"""Domain service: Bundle Recomputation Engine.

Reads every component's current level, derives how many bundles they
can supply, and publishes that number as the bundle's own level with an
absolute set.

The whole read-then-set sequence runs under the bundle's key so two
events for the same bundle can never interleave one's reads with the
other's set.  Levels are always read fresh; nothing is cached between
cycles.  If any read fails the bundle is left untouched: a partial
snapshot would publish a wrong number.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TypeVar

import structlog

from bundlesync.domain.exceptions import (
    AmbiguousResponseError,
    InventoryServiceError,
    ServiceUnavailableError,
    ThrottledError,
)
from bundlesync.domain.model.bundle import BundleConfig
from bundlesync.domain.model.inventory import InventoryLevel, derived_availability
from bundlesync.domain.model.outcome import RecomputeResult
from bundlesync.domain.repository.inventory_service import InventoryService
from bundlesync.domain.service.keyed_serializer import KeyedSerializer
from bundlesync.domain.service.retry import RetryPolicy

logger = structlog.get_logger(__name__)

T = TypeVar("T")

_READ_RETRYABLE = (ThrottledError, ServiceUnavailableError)
_SET_RETRYABLE = (ThrottledError, ServiceUnavailableError, AmbiguousResponseError)


class BundleRecomputationEngine:

    def __init__(
        self,
        inventory_service: InventoryService,
        serializer: KeyedSerializer,
        retry_policy: RetryPolicy | None = None,
    ) -> None:
        self._inventory_service = inventory_service
        self._serializer = serializer
        self._retry_policy = retry_policy or RetryPolicy()

    def recompute(self, bundle_product_id: str, config: BundleConfig) -> RecomputeResult:
        """Recompute and publish the bundle's availability.

        Returns an incomplete result (without touching the bundle) when
        any component read fails or the final set cannot be made.
        """
        with self._serializer.locked(("bundle", bundle_product_id)):
            return self._recompute_locked(bundle_product_id, config)

    def read_levels(
        self, config: BundleConfig
    ) -> list[tuple[InventoryLevel, int]]:
        """Read every component's level, in config order.

        Raises InventoryServiceError from the first component that cannot
        be read.
        """
        levels: list[tuple[InventoryLevel, int]] = []
        for component in config.components:
            level = self._call(
                _READ_RETRYABLE,
                lambda pid=component.product_id: self._read_level(pid),
            )
            logger.debug(
                "Component level read",
                product_id=component.product_id,
                quantity=level.quantity,
                tracked=level.tracked,
                per_bundle=component.quantity,
            )
            levels.append((level, component.quantity))
        return levels

    # --- Internal helpers -----------------------------------------------------

    def _recompute_locked(
        self, bundle_product_id: str, config: BundleConfig
    ) -> RecomputeResult:
        try:
            levels = self.read_levels(config)
        except InventoryServiceError as exc:
            logger.warning(
                "Bundle recompute incomplete; component read failed",
                bundle_product_id=bundle_product_id,
                error=str(exc),
            )
            return RecomputeResult.incomplete(
                bundle_product_id, f"component read failed: {exc}"
            )

        availability = derived_availability(levels)
        if availability is None:
            logger.info(
                "No tracked components; bundle availability is unbounded",
                bundle_product_id=bundle_product_id,
            )
            return RecomputeResult.done(bundle_product_id, None)

        try:
            self._call(
                _SET_RETRYABLE,
                lambda: self._set_bundle_level(bundle_product_id, availability),
            )
        except InventoryServiceError as exc:
            logger.warning(
                "Bundle recompute incomplete; set failed",
                bundle_product_id=bundle_product_id,
                availability=availability,
                error=str(exc),
            )
            return RecomputeResult.incomplete(bundle_product_id, f"set failed: {exc}")

        logger.info(
            "Bundle availability published",
            bundle_product_id=bundle_product_id,
            availability=availability,
        )
        return RecomputeResult.done(bundle_product_id, availability)

    def _read_level(self, product_id: str) -> InventoryLevel:
        key = self._inventory_service.resolve_inventory_key(product_id)
        return self._inventory_service.get_level(key)

    def _set_bundle_level(self, bundle_product_id: str, quantity: int) -> None:
        key = self._inventory_service.resolve_inventory_key(bundle_product_id)
        self._inventory_service.set_level(key, quantity)

    def _call(
        self,
        retryable: tuple[type[InventoryServiceError], ...],
        fn: Callable[[], T],
    ) -> T:
        return self._retry_policy.call(fn, retryable)
