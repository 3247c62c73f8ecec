"""Inventory value objects and the bundle availability rule."""

from __future__ import annotations

from dataclasses import dataclass

from bundlesync.domain.exceptions import ValidationError


@dataclass(frozen=True)
class InventoryKey:
    """The unit the external service mutates: one item at one location."""

    inventory_item_id: str
    location_id: str

    def __str__(self) -> str:
        return f"{self.inventory_item_id}@{self.location_id}"


@dataclass(frozen=True)
class InventoryLevel:
    """Available quantity for one InventoryKey, as last read.

    ``tracked=False`` means the service does not track stock for the
    item at all; such an item never limits a bundle.
    """

    quantity: int
    tracked: bool = True

    def bundles_supported(self, per_bundle: int) -> int | None:
        """How many bundles this level can supply, or None if unbounded."""
        if per_bundle < 1:
            raise ValidationError("Per-bundle quantity must be at least 1")
        if not self.tracked:
            return None
        return max(self.quantity, 0) // per_bundle


def derived_availability(levels: list[tuple[InventoryLevel, int]]) -> int | None:
    """Compute ``min_i floor(level_i / quantity_i)`` over tracked components.

    ``levels`` pairs each component's current level with its per-bundle
    quantity.  Returns None when no component is tracked (availability
    is unbounded and there is nothing to publish).
    """
    limits = [
        supported
        for level, per_bundle in levels
        if (supported := level.bundles_supported(per_bundle)) is not None
    ]
    if not limits:
        return None
    return min(limits)
