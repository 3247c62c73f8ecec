"""Abstract store for bundle configurations.

Defined in the domain layer so the domain never depends on
infrastructure.  The concrete store keeps configs in a product
metafield; the reconciliation core only ever calls ``get``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from bundlesync.domain.model.bundle import BundleConfig


class BundleConfigStore(ABC):

    @abstractmethod
    def get(self, product_id: str) -> BundleConfig | None:
        """Return the product's bundle config, or None if it has none.

        Raises ConfigFetchError if the store cannot be reached and
        ConfigInvalid if the stored value does not parse.
        """

    @abstractmethod
    def put(self, product_id: str, config: BundleConfig) -> None:
        """Replace the product's bundle config."""

    @abstractmethod
    def delete(self, product_id: str) -> None:
        """Remove the product's bundle config, if any."""
