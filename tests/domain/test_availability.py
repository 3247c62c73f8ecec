"""Unit tests for the bundle availability rule."""

import pytest

from bundlesync.domain.exceptions import ValidationError
from bundlesync.domain.model.inventory import InventoryLevel, derived_availability


class TestBundlesSupported:

    def test_floor_division(self):
        assert InventoryLevel(10).bundles_supported(3) == 3

    def test_untracked_is_unbounded(self):
        assert InventoryLevel(0, tracked=False).bundles_supported(5) is None

    def test_negative_stock_supports_nothing(self):
        assert InventoryLevel(-4).bundles_supported(1) == 0

    def test_zero_per_bundle_rejected(self):
        with pytest.raises(ValidationError):
            InventoryLevel(10).bundles_supported(0)


class TestDerivedAvailability:

    def test_scarcest_component_wins(self):
        levels = [(InventoryLevel(8), 2), (InventoryLevel(2), 1)]
        assert derived_availability(levels) == 2

    def test_matches_min_floor_formula(self):
        cases = [
            ([(10, 2), (3, 1)], 3),
            ([(7, 3), (100, 1)], 2),
            ([(0, 1), (50, 5)], 0),
            ([(9, 4)], 2),
            ([(6, 2), (1, 1)], 1),
        ]
        for pairs, expected in cases:
            levels = [(InventoryLevel(level), qty) for level, qty in pairs]
            assert derived_availability(levels) == min(l // q for l, q in pairs) == expected

    def test_untracked_components_ignored(self):
        levels = [
            (InventoryLevel(0, tracked=False), 1),
            (InventoryLevel(9), 3),
        ]
        assert derived_availability(levels) == 3

    def test_all_untracked_is_none(self):
        levels = [(InventoryLevel(0, tracked=False), 1)]
        assert derived_availability(levels) is None
