"""Application service: Set / Remove Bundle Config use cases.

The write path normally driven by the authoring extension.  Configs are
replaced wholesale; the reconciliation core only ever reads them.
"""

from __future__ import annotations

import structlog

from bundlesync.application.dto import ComponentSpec
from bundlesync.domain.exceptions import ConfigInvalid, ValidationError
from bundlesync.domain.model.bundle import BundleConfig, ComponentRef
from bundlesync.domain.repository.bundle_config_store import BundleConfigStore

logger = structlog.get_logger(__name__)


class SetBundleConfigHandler:

    def __init__(self, config_store: BundleConfigStore) -> None:
        self._config_store = config_store

    def handle(self, bundle_product_id: str, specs: list[ComponentSpec]) -> BundleConfig:
        """Validate and store a bundle definition.

        Authoring fields the caller leaves unset (``tracks_inventory``)
        are carried over from the stored config for the same component.
        """
        if not specs:
            raise ValidationError("A bundle needs at least one component")
        for spec in specs:
            if spec.product_id == bundle_product_id:
                raise ValidationError("A bundle cannot contain itself")

        previous = self._stored_components(bundle_product_id)
        config = BundleConfig(
            is_bundle=True,
            components=tuple(
                ComponentRef(
                    product_id=spec.product_id,
                    quantity=spec.quantity,
                    display_title=spec.title,
                    tracks_inventory=(
                        spec.tracks_inventory
                        if spec.tracks_inventory is not None
                        else _previous_tracking(previous, spec.product_id)
                    ),
                )
                for spec in specs
            ),
        )
        self._config_store.put(bundle_product_id, config)
        return config

    def _stored_components(self, bundle_product_id: str) -> dict[str, ComponentRef]:
        try:
            stored = self._config_store.get(bundle_product_id)
        except ConfigInvalid as exc:
            logger.warning(
                "Replacing unreadable bundle config",
                bundle_product_id=bundle_product_id,
                error=str(exc),
            )
            return {}
        if stored is None:
            return {}
        return {component.product_id: component for component in stored.components}


def _previous_tracking(previous: dict[str, ComponentRef], product_id: str) -> bool | None:
    component = previous.get(product_id)
    return component.tracks_inventory if component else None


class RemoveBundleConfigHandler:

    def __init__(self, config_store: BundleConfigStore) -> None:
        self._config_store = config_store

    def handle(self, bundle_product_id: str) -> None:
        self._config_store.delete(bundle_product_id)
