"""Tagged result of a single component delta adjustment."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class AdjustmentFailure(Enum):
    """Why a delta did not (or may not have) landed."""

    AMBIGUOUS = "AMBIGUOUS"
    PERMANENT = "PERMANENT"
    THROTTLED = "THROTTLED"
    UNAVAILABLE = "UNAVAILABLE"
    KEY_NOT_FOUND = "KEY_NOT_FOUND"

    @property
    def delta_not_applied(self) -> bool:
        """True when the failure proves the service did not apply the delta."""
        return self is not AdjustmentFailure.AMBIGUOUS


@dataclass(frozen=True)
class AdjustmentResult:
    delta: int
    failure: AdjustmentFailure | None = None
    new_level_hint: int | None = None
    message: str = ""

    @property
    def applied(self) -> bool:
        return self.failure is None

    @staticmethod
    def ok(delta: int, new_level_hint: int | None = None) -> AdjustmentResult:
        return AdjustmentResult(delta=delta, new_level_hint=new_level_hint)

    @staticmethod
    def failed(delta: int, failure: AdjustmentFailure, message: str) -> AdjustmentResult:
        return AdjustmentResult(delta=delta, failure=failure, message=message)
