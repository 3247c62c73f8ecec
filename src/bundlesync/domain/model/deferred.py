"""DeferredBundle — a bundle whose published level is known to be stale."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone


def _new_revision() -> str:
    return uuid.uuid4().hex


@dataclass
class DeferredBundle:
    """Marker left behind when a bundle could not be recomputed.

    Stays until a resync completes for the bundle.  ``revision`` changes
    every time the bundle is deferred, so a recompute can tell whether
    someone deferred it again while it was running.
    """

    bundle_product_id: str
    reason: str
    deferred_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    attempts: int = 0
    revision: str = field(default_factory=_new_revision)

    def record_attempt(self, reason: str) -> None:
        self.reason = reason
        self.attempts += 1
        self.revision = _new_revision()
