"""Application service: Show Bundle use case (query).

Reads live component levels and reports how many bundles they can
supply.  Never writes to the inventory service.
"""

from __future__ import annotations

from bundlesync.application.dto import BundleViewDTO, ComponentLevelDTO
from bundlesync.domain.exceptions import EntityNotFoundError
from bundlesync.domain.model.inventory import derived_availability
from bundlesync.domain.service.config_resolver import (
    NOT_A_BUNDLE,
    BundleConfigResolver,
)
from bundlesync.domain.service.recomputation import BundleRecomputationEngine
from bundlesync.domain.service.resync_queue import ResyncQueue


class ShowBundleHandler:

    def __init__(
        self,
        resolver: BundleConfigResolver,
        engine: BundleRecomputationEngine,
        resync_queue: ResyncQueue,
    ) -> None:
        self._resolver = resolver
        self._engine = engine
        self._resync_queue = resync_queue

    def handle(self, bundle_product_id: str) -> BundleViewDTO:
        config = self._resolver.resolve(bundle_product_id)
        if config is NOT_A_BUNDLE:
            raise EntityNotFoundError(f"Product '{bundle_product_id}' is not a bundle")

        levels = self._engine.read_levels(config)
        components = [
            ComponentLevelDTO(
                product_id=component.product_id,
                title=component.label,
                per_bundle=component.quantity,
                level=level.quantity,
                tracked=level.tracked,
                bundles_supported=level.bundles_supported(component.quantity),
            )
            for component, (level, _) in zip(config.components, levels)
        ]
        return BundleViewDTO(
            product_id=bundle_product_id,
            components=components,
            availability=derived_availability(levels),
            deferred=self._resync_queue.is_deferred(bundle_product_id),
        )
