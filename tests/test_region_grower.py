"""
Unit tests for region growth.

Tests cover:
- Target size and ownership of grown cells
- Water budget
- Skipping cells owned by other states
- Land bridging across a strait
- Hole filling
- Isolation pruning
"""

import pytest
import numpy as np

from py_realms.core.alea_prng import AleaPRNG
from py_realms.core.grid import Grid
from py_realms.core.region_grower import GrowthOptions, RegionGrower, _GrowthState


class TestGrowthOptions:
    """Test growth option defaults and the water budget."""

    def test_defaults(self):
        options = GrowthOptions()
        assert options.min_water_budget == 3
        assert options.water_budget_divisor == 4
        assert options.bridging_interval == 15
        assert options.bridging_max_radius == 10
        assert options.isolation_min_neighbors == 2

    def test_water_budget(self):
        options = GrowthOptions()
        assert options.water_budget(1) == 3
        assert options.water_budget(12) == 3
        assert options.water_budget(40) == 10


class TestBasicGrowth:
    """Test plain expansion on open land."""

    def setup_method(self):
        self.grid = Grid(np.ones((10, 10), dtype=bool))
        self.prng = AleaPRNG("grow")

    def test_reaches_target_exactly(self):
        grower = RegionGrower(self.grid, self.prng, GrowthOptions(prune_isolated=False))
        txn = self.grid.transaction()
        result = grower.grow((5, 5), 10, txn, 1, 1)
        assert len(result) == 10
        assert result.cells[0] == (5, 5)
        assert result.water_count == 0
        assert sorted(result.cells) == sorted(txn.claimed)
        for pos in result:
            assert self.grid.owner(pos) == 1
            assert self.grid.region_of(pos) == 1

    def test_never_exceeds_target(self):
        grower = RegionGrower(self.grid, self.prng)
        txn = self.grid.transaction()
        result = grower.grow((0, 0), 25, txn, 1, 1)
        assert 1 <= len(result) <= 25
        assert np.count_nonzero(self.grid.cell_state) == len(result)

    def test_target_one(self):
        grower = RegionGrower(self.grid, self.prng)
        result = grower.grow((3, 3), 1, self.grid.transaction(), 1, 1)
        assert result.cells == [(3, 3)]

    def test_invalid_target(self):
        grower = RegionGrower(self.grid, self.prng)
        with pytest.raises(ValueError):
            grower.grow((0, 0), 0, self.grid.transaction(), 1, 1)

    def test_claimed_seed_yields_empty_result(self):
        self.grid.claim((4, 4), 2, 2)
        grower = RegionGrower(self.grid, self.prng)
        result = grower.grow((4, 4), 10, self.grid.transaction(), 1, 1)
        assert len(result) == 0
        assert self.grid.owner((4, 4)) == 2

    def test_skips_other_states(self):
        for col in range(10):
            self.grid.claim((5, col), 99, 99)
        options = GrowthOptions(prune_isolated=False, bridge_land=False)
        grower = RegionGrower(self.grid, self.prng, options)
        result = grower.grow((0, 0), 80, self.grid.transaction(), 1, 1)
        # The wall cuts the grid in half; only the top 50 cells are reachable
        assert len(result) == 50
        assert all(row < 5 for row, _ in result)
        assert all(self.grid.owner((5, col)) == 99 for col in range(10))

    def test_same_seed_same_cells(self):
        other = Grid(np.ones((10, 10), dtype=bool))
        first = RegionGrower(self.grid, AleaPRNG("same")).grow(
            (2, 2), 30, self.grid.transaction(), 1, 1
        )
        second = RegionGrower(other, AleaPRNG("same")).grow(
            (2, 2), 30, other.transaction(), 1, 1
        )
        assert first.cells == second.cells


class TestWaterBudget:
    """Test the water cap."""

    def test_single_land_cell_in_sea(self):
        land = np.zeros((7, 7), dtype=bool)
        land[3, 3] = True
        grid = Grid(land)
        grower = RegionGrower(grid, AleaPRNG("sea"))
        result = grower.grow((3, 3), 20, grid.transaction(), 1, 1)
        assert result.water_budget == 5
        assert result.water_count == 5
        assert len(result) == 6
        assert grid.owner((3, 3)) == 1

    def test_zero_budget_keeps_to_land(self):
        grid = Grid.from_rows(["TTMTT", "TTMTT"])
        options = GrowthOptions(min_water_budget=0, water_budget_divisor=1000)
        grower = RegionGrower(grid, AleaPRNG("dry"), options)
        result = grower.grow((0, 0), 10, grid.transaction(), 1, 1)
        assert result.water_count == 0
        assert sorted(result.cells) == [(0, 0), (0, 1), (1, 0), (1, 1)]

    def test_budget_never_exceeded_on_archipelago(self):
        rows = []
        for row in range(20):
            rows.append("".join("T" if (row // 3 + col // 3) % 2 == 0 else "M" for col in range(20)))
        grid = Grid.from_rows(rows)
        grower = RegionGrower(grid, AleaPRNG("islands"))
        for target in (4, 12, 40, 100):
            txn = grid.transaction()
            result = grower.grow((0, 0), target, txn, 1, 1)
            water = sum(1 for pos in result if not grid.land[pos])
            assert water == result.water_count
            assert water <= GrowthOptions().water_budget(target)
            txn.rollback()


class TestLandBridging:
    """Test splicing in land across a strait."""

    def setup_method(self):
        # Left island cols 0-4, strait cols 5-6, right island cols 7-11
        self.grid = Grid.from_rows(["TTTTTMMTTTTT"] * 3)

    def test_bridge_reaches_far_shore_before_water(self):
        grower = RegionGrower(
            self.grid, AleaPRNG("strait"), GrowthOptions(prune_isolated=False)
        )
        result = grower.grow((1, 0), 60, self.grid.transaction(), 1, 1)
        assert result.bridged == 1
        assert all(col <= 4 for _, col in result.cells[:15])
        # Nearest far-shore cell, ties broken row-major
        assert result.cells[15] == (0, 7)
        assert all(self.grid.land[pos] for pos in result.cells[:30])
        assert len(result) == 36

    def test_no_bridge_when_disabled(self):
        options = GrowthOptions(prune_isolated=False, bridge_land=False)
        grower = RegionGrower(self.grid, AleaPRNG("strait"), options)
        result = grower.grow((1, 0), 60, self.grid.transaction(), 1, 1)
        assert result.bridged == 0
        # Water is crossed instead of bridged
        assert not self.grid.land[result.cells[15]]

    def test_no_bridge_once_size_reaches_a_third(self):
        # 47 // 3 == 15, so the 15th land cell no longer qualifies
        grower = RegionGrower(
            self.grid, AleaPRNG("strait"), GrowthOptions(prune_isolated=False)
        )
        result = grower.grow((1, 0), 47, self.grid.transaction(), 1, 1)
        assert result.bridged == 0


class TestHoleFilling:
    """Test claiming enclosed gaps."""

    def setup_method(self):
        self.grid = Grid(np.ones((3, 3), dtype=bool))
        self.grower = RegionGrower(self.grid, AleaPRNG("holes"))
        self.ring = [(0, 0), (0, 1), (0, 2), (1, 0), (1, 2), (2, 0), (2, 1), (2, 2)]

    def test_enclosed_cell_is_filled(self):
        txn = self.grid.transaction()
        for pos in self.ring:
            txn.claim(pos, 1, 1)
        growth = _GrowthState(
            state_id=1, region_id=1, target=20, max_water=5, members=list(self.ring)
        )
        assert self.grower._fill_holes(growth, txn) == 1
        assert self.grid.owner((1, 1)) == 1
        assert growth.members[-1] == (1, 1)

    def test_gap_enclosed_by_other_state_is_claimed(self):
        for pos in self.ring:
            self.grid.claim(pos, 2, 2)
        txn = self.grid.transaction()
        growth = _GrowthState(state_id=1, region_id=1, target=20, max_water=5)
        assert self.grower._fill_holes(growth, txn) == 1
        assert self.grid.owner((1, 1)) == 1
        assert (1, 1) in txn

    def test_distant_gap_claimed_during_growth(self):
        grid = Grid(np.ones((3, 7), dtype=bool))
        for row in range(3):
            for col in range(2, 7):
                if (row, col) != (1, 5):
                    grid.claim((row, col), 99, 99)
        grower = RegionGrower(grid, AleaPRNG("gap"), GrowthOptions(prune_isolated=False))
        result = grower.grow((0, 0), 20, grid.transaction(), 1, 1)
        assert result.holes_filled == 1
        assert grid.owner((1, 5)) == 1
        assert len(result) == 7

    def test_border_cells_never_holes(self):
        grid = Grid(np.ones((3, 3), dtype=bool))
        grower = RegionGrower(grid, AleaPRNG("holes"))
        txn = grid.transaction()
        for pos in [(0, 1), (1, 0), (1, 1)]:
            txn.claim(pos, 1, 1)
        growth = _GrowthState(state_id=1, region_id=1, target=20, max_water=5)
        assert grower._fill_holes(growth, txn) == 0
        assert not grid.is_claimed((0, 0))

    def test_water_hole_respects_budget(self):
        grid = Grid.from_rows(["TTT", "TMT", "TTT"])
        grower = RegionGrower(grid, AleaPRNG("holes"))
        txn = grid.transaction()
        for pos in self.ring:
            txn.claim(pos, 1, 1)
        growth = _GrowthState(
            state_id=1, region_id=1, target=20, max_water=0, members=list(self.ring)
        )
        assert grower._fill_holes(growth, txn) == 0
        assert not grid.is_claimed((1, 1))


class TestIsolationPruning:
    """Test eviction of weakly attached land cells."""

    def test_tail_cell_pruned(self):
        grid = Grid.from_rows(["TTTM", "TTTM", "TTTM", "TMMM"])
        options = GrowthOptions(min_water_budget=0, water_budget_divisor=1000)
        grower = RegionGrower(grid, AleaPRNG("tail"), options)
        txn = grid.transaction()
        result = grower.grow((1, 1), 10, txn, 1, 1)
        assert result.pruned == 1
        assert len(result) == 9
        assert (3, 0) not in result.cells
        assert not grid.is_claimed((3, 0))
        assert (3, 0) not in txn

    def test_small_regions_not_pruned(self):
        grid = Grid.from_rows(["TTTTT"])
        grower = RegionGrower(grid, AleaPRNG("line"))
        result = grower.grow((0, 0), 5, grid.transaction(), 1, 1)
        assert result.pruned == 0
        assert len(result) == 5
