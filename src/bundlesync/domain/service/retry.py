"""Bounded exponential backoff shared by everything that calls the inventory service."""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TypeVar

import structlog

logger = structlog.get_logger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """How many times to try a retryable call, and how long to wait between.

    The wait before attempt ``n + 1`` is ``base_delay * 2 ** (n - 1)``,
    capped at ``max_delay``.  A server-supplied retry-after wins when it
    is longer.
    """

    max_attempts: int = 5
    base_delay: float = 0.5
    max_delay: float = 8.0
    sleep: Callable[[float], None] = field(default=time.sleep, compare=False)

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

    def delay(self, attempt: int, retry_after: float | None = None) -> float:
        backoff = min(self.base_delay * (2 ** (attempt - 1)), self.max_delay)
        if retry_after is not None and retry_after > backoff:
            return retry_after
        return backoff

    def wait(self, attempt: int, retry_after: float | None = None) -> float:
        seconds = self.delay(attempt, retry_after)
        self.sleep(seconds)
        return seconds

    def call(
        self,
        fn: Callable[[], T],
        retryable: tuple[type[Exception], ...],
    ) -> T:
        """Run ``fn``, backing off and retrying on ``retryable`` errors.

        The last error propagates once the attempts are used up; anything
        not in ``retryable`` propagates at once.
        """
        attempt = 0
        while True:
            attempt += 1
            try:
                return fn()
            except retryable as exc:
                if attempt >= self.max_attempts:
                    raise
                waited = self.wait(attempt, getattr(exc, "retry_after", None))
                logger.warning(
                    "Inventory call failed transiently; backing off",
                    attempt=attempt,
                    wait_seconds=waited,
                    error=str(exc),
                )
