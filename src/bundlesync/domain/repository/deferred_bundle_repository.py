"""Abstract repository for bundles awaiting resync."""

from __future__ import annotations

from abc import ABC, abstractmethod

from bundlesync.domain.model.deferred import DeferredBundle


class DeferredBundleRepository(ABC):

    @abstractmethod
    def get(self, bundle_product_id: str) -> DeferredBundle | None:
        """Return the deferral marker for a bundle, or None."""

    @abstractmethod
    def save(self, deferred: DeferredBundle) -> None:
        """Persist a new or updated marker."""

    @abstractmethod
    def remove(self, bundle_product_id: str) -> None:
        """Drop the marker; no-op if there is none."""

    @abstractmethod
    def list_all(self) -> list[DeferredBundle]:
        """Return every deferred bundle."""
