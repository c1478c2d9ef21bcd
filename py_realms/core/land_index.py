"""
Land availability index: unclaimed land cells used as seed candidates.

Built once per generation pass and then trimmed as seeds are used or cells are
claimed, so attempts never rescan the whole grid.
"""

from typing import Dict, Iterable, List, Optional

import numpy as np

from .alea_prng import AleaPRNG
from .grid import Grid, Position


class LandAvailabilityIndex:
    """Ordered pool of unclaimed land positions."""

    def __init__(self, grid: Grid):
        self.grid = grid
        # dict as an ordered set: row-major order, O(1) removal
        self._cells: Dict[Position, None] = {}

    def scan_unclaimed_land(self) -> List[Position]:
        """Rebuild the pool from the grid and return it in row-major order."""
        mask = self.grid.unclaimed_land_mask()
        self._cells = {(int(r), int(c)): None for r, c in np.argwhere(mask)}
        return list(self._cells)

    def is_empty(self) -> bool:
        return not self._cells

    def __len__(self) -> int:
        return len(self._cells)

    def __contains__(self, pos) -> bool:
        return pos in self._cells

    def remove(self, pos: Position) -> bool:
        """Drop one position. Returns False if it was not in the pool."""
        if pos not in self._cells:
            return False
        del self._cells[pos]
        return True

    def discard_many(self, cells: Iterable[Position]) -> int:
        """Drop every given position that is in the pool. Returns how many."""
        removed = 0
        for pos in cells:
            if pos in self._cells:
                del self._cells[pos]
                removed += 1
        return removed

    def discard_claimed(self) -> int:
        """Drop positions that were claimed since the last scan."""
        claimed = [pos for pos in self._cells if self.grid.cell_state[pos] != 0]
        return self.discard_many(claimed)

    def draw(
        self, prng: AleaPRNG, exclude: Optional[Iterable[Position]] = None
    ) -> Optional[Position]:
        """
        Pick a random candidate, skipping ``exclude``.

        The pool itself is not modified; callers remove the seed once it is
        actually used. Returns None when no eligible candidate is left.
        """
        excluded = set(exclude or ())
        if excluded:
            eligible = [pos for pos in self._cells if pos not in excluded]
        else:
            eligible = list(self._cells)
        if not eligible:
            return None
        return eligible[prng.next_int(len(eligible))]
