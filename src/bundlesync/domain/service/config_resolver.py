"""Domain service: Bundle Config Resolver.

Turns a product ID into an actionable BundleConfig or the NOT_A_BUNDLE
sentinel.  "The store could not tell us" (ConfigFetchError) is never
reported as "not a bundle"; callers must be able to skip a regular
product without ever mistaking an outage for one.
"""

from __future__ import annotations

from enum import Enum

import structlog

from bundlesync.domain.exceptions import ConfigInvalid
from bundlesync.domain.model.bundle import BundleConfig
from bundlesync.domain.repository.bundle_config_store import BundleConfigStore

logger = structlog.get_logger(__name__)


class _NotABundle(Enum):
    NOT_A_BUNDLE = "NOT_A_BUNDLE"


NOT_A_BUNDLE = _NotABundle.NOT_A_BUNDLE


class BundleConfigResolver:

    def __init__(self, config_store: BundleConfigStore) -> None:
        self._config_store = config_store

    def resolve(self, product_id: str) -> BundleConfig | _NotABundle:
        """Return the product's actionable config or NOT_A_BUNDLE.

        Raises ConfigFetchError when the lookup fails and ConfigInvalid
        (after logging a warning) when the stored value is malformed.
        """
        try:
            config = self._config_store.get(product_id)
        except ConfigInvalid as exc:
            logger.warning(
                "Unparseable bundle config",
                product_id=product_id,
                error=str(exc),
            )
            raise

        if config is None:
            logger.debug("No bundle config found", product_id=product_id)
            return NOT_A_BUNDLE
        if not config.is_actionable:
            logger.debug(
                "Bundle config present but not actionable",
                product_id=product_id,
                is_bundle=config.is_bundle,
                components=len(config.components),
            )
            return NOT_A_BUNDLE
        return config
