"""Results reported back from reconciliation and recomputation."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from bundlesync.domain.model.adjustment import AdjustmentFailure
from bundlesync.domain.model.ledger import Admission


@dataclass(frozen=True)
class RecomputeResult:
    """Outcome of one recompute-then-set cycle for a bundle.

    ``complete`` is False whenever any component read (or the final set)
    failed; in that case the bundle's published level was not touched.
    ``availability`` is None on a complete result when no component is
    tracked.
    """

    bundle_product_id: str
    complete: bool
    availability: int | None = None
    reason: str = ""

    @staticmethod
    def done(bundle_product_id: str, availability: int | None) -> RecomputeResult:
        return RecomputeResult(bundle_product_id, True, availability)

    @staticmethod
    def incomplete(bundle_product_id: str, reason: str) -> RecomputeResult:
        return RecomputeResult(bundle_product_id, False, None, reason)


class LineItemStatus(Enum):
    NOT_BUNDLE = "NOT_BUNDLE"
    APPLIED = "APPLIED"
    ALREADY_APPLIED = "ALREADY_APPLIED"
    PARTIALLY_APPLIED = "PARTIALLY_APPLIED"
    DEFERRED = "DEFERRED"
    CONFIG_ERROR = "CONFIG_ERROR"


@dataclass(frozen=True)
class ComponentOutcome:
    product_id: str
    delta: int
    admission: Admission
    failure: AdjustmentFailure | None = None
    message: str = ""

    @property
    def succeeded(self) -> bool:
        """The component's delta is known to be in place (now or earlier)."""
        if self.admission == Admission.ALREADY_APPLIED:
            return True
        return self.admission == Admission.ADMITTED and self.failure is None


@dataclass(frozen=True)
class LineItemOutcome:
    line_item_id: str
    product_id: str
    status: LineItemStatus
    components: tuple[ComponentOutcome, ...] = ()
    recompute: RecomputeResult | None = None
    detail: str = ""
    transient: bool = False


@dataclass(frozen=True)
class ProcessingOutcome:
    """Per line item result of ``handle_sale_event``.

    The event itself is always acknowledged; deferral is internal state.
    """

    event_id: str
    line_items: tuple[LineItemOutcome, ...] = field(default_factory=tuple)

    @property
    def has_transient_errors(self) -> bool:
        return any(item.transient for item in self.line_items)

    def by_status(self, status: LineItemStatus) -> list[LineItemOutcome]:
        return [item for item in self.line_items if item.status == status]
