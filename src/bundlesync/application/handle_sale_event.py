"""Application service: Handle Sale Event use case.

The reconciliation orchestrator.  For each line item of a sale:

1. Resolve the product's bundle config (regular products stop here).
2. For every component, reserve the (event, line item, component)
   triple in the idempotency ledger, apply the signed delta, and record
   the outcome.  Components are independent: one failing never stops
   its siblings or other line items.
3. If every component delta is in place, recompute and publish the
   bundle's availability.  Otherwise, or if the recompute cannot
   finish, defer the bundle for an out-of-band resync.

The event is always acknowledged; anything left undone is reported in
the returned ProcessingOutcome and the resync queue.
"""

from __future__ import annotations

import structlog

from bundlesync.domain.exceptions import (
    ConfigFetchError,
    ConfigInvalid,
    InventoryKeyNotFound,
    InventoryServiceError,
    PermanentServiceError,
    ServiceUnavailableError,
    ThrottledError,
)
from bundlesync.domain.model.adjustment import AdjustmentFailure
from bundlesync.domain.model.bundle import BundleConfig, ComponentRef
from bundlesync.domain.model.ledger import Admission, ProcessingStatus
from bundlesync.domain.model.outcome import (
    ComponentOutcome,
    LineItemOutcome,
    LineItemStatus,
    ProcessingOutcome,
)
from bundlesync.domain.model.sale import LineItem, SaleEvent
from bundlesync.domain.repository.inventory_service import InventoryService
from bundlesync.domain.service.adjustment_executor import ComponentAdjustmentExecutor
from bundlesync.domain.service.config_resolver import (
    NOT_A_BUNDLE,
    BundleConfigResolver,
)
from bundlesync.domain.service.idempotency_ledger import IdempotencyLedger
from bundlesync.domain.service.keyed_serializer import KeyedSerializer
from bundlesync.domain.service.recomputation import BundleRecomputationEngine
from bundlesync.domain.service.resync_queue import ResyncQueue
from bundlesync.domain.service.retry import RetryPolicy

logger = structlog.get_logger(__name__)

_RESOLVE_RETRYABLE = (ThrottledError, ServiceUnavailableError)


class HandleSaleEventHandler:

    def __init__(
        self,
        resolver: BundleConfigResolver,
        ledger: IdempotencyLedger,
        executor: ComponentAdjustmentExecutor,
        engine: BundleRecomputationEngine,
        inventory_service: InventoryService,
        resync_queue: ResyncQueue,
        serializer: KeyedSerializer,
        retry_policy: RetryPolicy | None = None,
    ) -> None:
        self._resolver = resolver
        self._ledger = ledger
        self._executor = executor
        self._engine = engine
        self._inventory_service = inventory_service
        self._resync_queue = resync_queue
        self._serializer = serializer
        self._retry_policy = retry_policy or RetryPolicy()

    def handle(self, event: SaleEvent) -> ProcessingOutcome:
        log = logger.bind(event_id=event.event_id, shop=event.shop)
        log.info("Processing sale event", line_items=len(event.line_items))

        outcomes = tuple(self._process_line_item(event, line) for line in event.line_items)

        log.info(
            "Sale event processed",
            statuses=[outcome.status.value for outcome in outcomes],
        )
        return ProcessingOutcome(event_id=event.event_id, line_items=outcomes)

    # --- Line items -----------------------------------------------------------

    def _process_line_item(self, event: SaleEvent, line: LineItem) -> LineItemOutcome:
        log = logger.bind(
            event_id=event.event_id,
            line_item_id=line.line_item_id,
            product_id=line.product_id,
        )

        try:
            resolved = self._resolver.resolve(line.product_id)
        except ConfigInvalid as exc:
            return self._config_error(line, str(exc), transient=False)
        except ConfigFetchError as exc:
            log.error("Could not fetch bundle config", error=str(exc))
            return self._config_error(line, str(exc), transient=True)

        if resolved is NOT_A_BUNDLE:
            return LineItemOutcome(line.line_item_id, line.product_id, LineItemStatus.NOT_BUNDLE)

        config: BundleConfig = resolved
        log.info(
            "Line item is a bundle",
            title=line.label,
            components=len(config.components),
            quantity_sold=line.quantity_sold,
        )

        components = tuple(
            self._process_component(event, line, component)
            for component in config.components
        )

        if not all(component.succeeded for component in components):
            failed = [c.product_id for c in components if not c.succeeded]
            reason = f"component adjustment incomplete: {', '.join(failed)}"
            self._resync_queue.defer(line.product_id, reason)
            return LineItemOutcome(
                line.line_item_id,
                line.product_id,
                LineItemStatus.PARTIALLY_APPLIED,
                components=components,
                detail=reason,
            )

        if all(c.admission == Admission.ALREADY_APPLIED for c in components):
            return LineItemOutcome(
                line.line_item_id,
                line.product_id,
                LineItemStatus.ALREADY_APPLIED,
                components=components,
            )

        seen_revision = self._resync_queue.revision(line.product_id)
        recompute = self._engine.recompute(line.product_id, config)
        if not recompute.complete:
            self._resync_queue.defer(line.product_id, recompute.reason)
            return LineItemOutcome(
                line.line_item_id,
                line.product_id,
                LineItemStatus.DEFERRED,
                components=components,
                recompute=recompute,
                detail=recompute.reason,
            )

        self._resync_queue.clear_if_unchanged(line.product_id, seen_revision)
        return LineItemOutcome(
            line.line_item_id,
            line.product_id,
            LineItemStatus.APPLIED,
            components=components,
            recompute=recompute,
        )

    # --- Components -----------------------------------------------------------

    def _process_component(
        self,
        event: SaleEvent,
        line: LineItem,
        component: ComponentRef,
    ) -> ComponentOutcome:
        delta = -(component.quantity * line.quantity_sold)

        with self._serializer.locked(("component", component.product_id)):
            reservation = self._ledger.try_begin(
                event.event_id, line.line_item_id, component.product_id
            )
            if reservation.admission != Admission.ADMITTED:
                return ComponentOutcome(
                    product_id=component.product_id,
                    delta=delta,
                    admission=reservation.admission,
                    failure=reservation.record.failure,
                )

            ledger_key = reservation.record.key
            try:
                inventory_key = self._retry_policy.call(
                    lambda: self._inventory_service.resolve_inventory_key(component.product_id),
                    _RESOLVE_RETRYABLE,
                )
            except InventoryServiceError as exc:
                failure = _resolve_failure(exc)
                logger.warning(
                    "Could not resolve component inventory item",
                    product_id=component.product_id,
                    title=component.label,
                    error=str(exc),
                )
                self._ledger.finish(ledger_key, ProcessingStatus.FAILED, failure=failure)
                return ComponentOutcome(
                    component.product_id, delta, Admission.ADMITTED, failure, str(exc)
                )

            result = self._executor.apply(inventory_key, delta)
            if result.applied:
                self._ledger.finish(ledger_key, ProcessingStatus.APPLIED, applied_delta=delta)
            else:
                self._ledger.finish(ledger_key, ProcessingStatus.FAILED, failure=result.failure)

            return ComponentOutcome(
                component.product_id,
                delta,
                Admission.ADMITTED,
                result.failure,
                result.message,
            )

    # --- Helpers --------------------------------------------------------------

    @staticmethod
    def _config_error(line: LineItem, detail: str, transient: bool) -> LineItemOutcome:
        return LineItemOutcome(
            line.line_item_id,
            line.product_id,
            LineItemStatus.CONFIG_ERROR,
            detail=detail,
            transient=transient,
        )


def _resolve_failure(exc: InventoryServiceError) -> AdjustmentFailure:
    """Classify a failed item lookup.  No delta was sent, so none is ambiguous."""
    if isinstance(exc, InventoryKeyNotFound):
        return AdjustmentFailure.KEY_NOT_FOUND
    if isinstance(exc, ThrottledError):
        return AdjustmentFailure.THROTTLED
    if isinstance(exc, PermanentServiceError):
        return AdjustmentFailure.PERMANENT
    return AdjustmentFailure.UNAVAILABLE
