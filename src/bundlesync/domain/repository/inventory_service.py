"""Abstract client for the external inventory service.

Every call is blocking I/O, may be rate-limited and may fail
transiently.  Implementations raise the InventoryServiceError subclasses
from ``bundlesync.domain.exceptions`` so callers can tell a call that
never landed from one whose outcome is unknown.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from bundlesync.domain.model.inventory import InventoryKey, InventoryLevel


class InventoryService(ABC):

    @abstractmethod
    def resolve_inventory_key(self, product_id: str) -> InventoryKey:
        """Map a product to the inventory item/location pair it stocks.

        Raises InventoryKeyNotFound if the product has no inventory item.
        """

    @abstractmethod
    def get_level(self, key: InventoryKey) -> InventoryLevel:
        """Read the current available quantity.

        Raises InventoryKeyNotFound if the item is not stocked at the
        location.
        """

    @abstractmethod
    def apply_delta(self, key: InventoryKey, delta: int) -> int | None:
        """Apply a signed change.  Not idempotent.

        Returns the new level when the service reports it, else None.
        """

    @abstractmethod
    def set_level(self, key: InventoryKey, quantity: int) -> None:
        """Overwrite the available quantity.  Idempotent."""
