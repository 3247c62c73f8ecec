"""SaleEvent — what the event source hands to the reconciliation engine."""

from __future__ import annotations

from dataclasses import dataclass, field

from bundlesync.domain.exceptions import ValidationError


@dataclass(frozen=True)
class LineItem:
    """A single sold product within an event."""

    line_item_id: str
    product_id: str
    quantity_sold: int
    title: str | None = None

    def __post_init__(self) -> None:
        if not self.line_item_id:
            raise ValidationError("Line item ID is required")
        if not self.product_id:
            raise ValidationError("Line item product ID is required")
        if not isinstance(self.quantity_sold, int) or self.quantity_sold < 1:
            raise ValidationError(
                f"Quantity sold must be a positive integer, got {self.quantity_sold!r}"
            )

    @property
    def label(self) -> str:
        return self.title or self.product_id


@dataclass(frozen=True)
class SaleEvent:
    """A sale delivered at-least-once by the event source.

    The same ``event_id`` may arrive more than once and in any order
    relative to other events.  ``shop`` identifies the tenant.
    """

    event_id: str
    shop: str
    line_items: tuple[LineItem, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        if not self.event_id:
            raise ValidationError("Event ID is required")
