"""Data Transfer Objects — plain containers that cross layer boundaries.

DTOs carry data between the CLI and application layers without
exposing domain internals to the outside world.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ComponentSpec:
    """Input: one component of a bundle being authored."""

    product_id: str
    quantity: int
    title: str | None = None
    tracks_inventory: bool | None = None  # None keeps the stored value


@dataclass(frozen=True)
class ComponentLevelDTO:
    """Output: a component with its live stock, as displayed to the user."""

    product_id: str
    title: str
    per_bundle: int
    level: int
    tracked: bool
    bundles_supported: int | None  # None when not tracked


@dataclass(frozen=True)
class BundleViewDTO:
    """Output: a bundle's config and what its components can supply."""

    product_id: str
    components: list[ComponentLevelDTO]
    availability: int | None
    deferred: bool


@dataclass(frozen=True)
class LedgerEntryDTO:
    """Output: one idempotency ledger entry."""

    key: str
    status: str
    applied_delta: int
    failure: str | None
    attempts: int
    updated_at: str
