"""Domain service: Component Adjustment Executor.

Sends one signed delta to the inventory service and classifies the
result.  The caller must already hold the ledger reservation for the
change.

Retry policy by failure kind:
  throttled / unavailable: nothing landed; back off and retry up to
                           the policy's attempt bound
  permanent / not found  : refused; not retried
  ambiguous              : may have landed; never retried, because a
                           second delta could double-apply
"""

from __future__ import annotations

import structlog

from bundlesync.domain.exceptions import (
    AmbiguousResponseError,
    InventoryKeyNotFound,
    InventoryServiceError,
    PermanentServiceError,
    ServiceUnavailableError,
    ThrottledError,
)
from bundlesync.domain.model.adjustment import AdjustmentFailure, AdjustmentResult
from bundlesync.domain.model.inventory import InventoryKey
from bundlesync.domain.repository.inventory_service import InventoryService
from bundlesync.domain.service.retry import RetryPolicy

logger = structlog.get_logger(__name__)


class ComponentAdjustmentExecutor:

    def __init__(
        self,
        inventory_service: InventoryService,
        retry_policy: RetryPolicy | None = None,
    ) -> None:
        self._inventory_service = inventory_service
        self._retry_policy = retry_policy or RetryPolicy()

    def apply(self, key: InventoryKey, delta: int) -> AdjustmentResult:
        if delta == 0:
            return AdjustmentResult.ok(delta)

        policy = self._retry_policy
        attempt = 0
        while True:
            attempt += 1
            try:
                new_level = self._inventory_service.apply_delta(key, delta)
            except (ThrottledError, ServiceUnavailableError) as exc:
                failure = (
                    AdjustmentFailure.THROTTLED
                    if isinstance(exc, ThrottledError)
                    else AdjustmentFailure.UNAVAILABLE
                )
                if attempt >= policy.max_attempts:
                    logger.error(
                        "Giving up on inventory adjustment",
                        inventory_key=str(key),
                        delta=delta,
                        attempts=attempt,
                        failure=failure.value,
                    )
                    return AdjustmentResult.failed(delta, failure, str(exc))
                waited = policy.wait(attempt, getattr(exc, "retry_after", None))
                logger.warning(
                    "Inventory adjustment not accepted; backing off",
                    inventory_key=str(key),
                    delta=delta,
                    attempt=attempt,
                    wait_seconds=waited,
                    failure=failure.value,
                )
                continue
            except InventoryKeyNotFound as exc:
                logger.warning(
                    "Inventory item not found for adjustment",
                    inventory_key=str(key),
                    error=str(exc),
                )
                return AdjustmentResult.failed(delta, AdjustmentFailure.KEY_NOT_FOUND, str(exc))
            except PermanentServiceError as exc:
                logger.error(
                    "Inventory adjustment rejected",
                    inventory_key=str(key),
                    delta=delta,
                    error=str(exc),
                )
                return AdjustmentResult.failed(delta, AdjustmentFailure.PERMANENT, str(exc))
            except (AmbiguousResponseError, InventoryServiceError) as exc:
                logger.error(
                    "Inventory adjustment outcome unknown; not retrying",
                    inventory_key=str(key),
                    delta=delta,
                    error=str(exc),
                )
                return AdjustmentResult.failed(delta, AdjustmentFailure.AMBIGUOUS, str(exc))

            logger.info(
                "Inventory adjusted",
                inventory_key=str(key),
                delta=delta,
                new_level=new_level,
            )
            return AdjustmentResult.ok(delta, new_level)
