"""
Tests for seat selection.
"""

import pytest

from py_realms.core.alea_prng import AleaPRNG
from py_realms.core.errors import NoLandSeatFound
from py_realms.core.grid import Grid
from py_realms.core.seat_selector import select_seat


class TestSelectSeat:
    """Test seat placement rules."""

    def setup_method(self):
        self.grid = Grid.from_rows(["TTTTTTTTTT", "MMMMMMMMMM"])
        self.prng = AleaPRNG("seats")

    def test_water_only_region_raises(self):
        with pytest.raises(NoLandSeatFound):
            select_seat(self.grid, [(1, 0), (1, 1)], self.prng)

    def test_empty_region_raises(self):
        with pytest.raises(NoLandSeatFound):
            select_seat(self.grid, [], self.prng)

    def test_small_region_takes_first_land(self):
        cells = [(1, 0), (0, 4), (0, 5), (1, 1)]
        assert select_seat(self.grid, cells, self.prng) == (0, 4)

    def test_seat_from_middle_half(self):
        cells = [(1, 3)] + [(0, col) for col in range(8)]
        # 8 land cells: index in [2, 5]
        allowed = {(0, col) for col in range(2, 6)}
        for _ in range(100):
            assert select_seat(self.grid, cells, self.prng) in allowed

    def test_seat_is_member_land(self):
        cells = [(0, col) for col in range(10)] + [(1, col) for col in range(10)]
        for _ in range(50):
            seat = select_seat(self.grid, cells, self.prng)
            assert seat in cells
            assert self.grid.land[seat]
