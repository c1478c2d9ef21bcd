"""
Region growth: bounded flood fill from a seed cell.

Growth turns one seed into a mostly-land, mostly-contiguous set of cells of at
most ``target`` size. Cells are claimed in the shared grid as they are
accepted, through the caller's ClaimTransaction, so a failed attempt can be
rolled back by the caller.

Process:
1. Main expansion - land candidates from a priority heap ranked by claimed
   neighbours (compact growth), water candidates from a FIFO queue, water
   capped by a budget of max(3, target // 4)
2. Land bridging - every 15th accepted land cell while the region is under a
   third of its target, splice in the nearest disconnected land cell within
   reach of the remaining water budget
3. Hole filling - claim unclaimed interior cells mostly enclosed by claims of
   any state, then expand from them (land first) until the target is met
4. Isolation pruning - evict land cells with fewer than two claimed neighbours
"""

import heapq
import itertools

from collections import deque
from dataclasses import dataclass, field
from typing import List, Optional, Set

import numpy as np
import structlog

from pydantic import BaseModel, Field
from scipy import ndimage
from sklearn.neighbors import KDTree

from .alea_prng import AleaPRNG
from .grid import ClaimTransaction, Grid, Position

logger = structlog.get_logger()

# 4-neighbourhood, used to count enclosed sides
_CROSS = np.array([[0, 1, 0], [1, 0, 1], [0, 1, 0]], dtype=np.int8)


class GrowthOptions(BaseModel):
    """Tuning knobs for region growth."""

    min_water_budget: int = Field(default=3, ge=0, description="Floor of the water budget")
    water_budget_divisor: int = Field(
        default=4, ge=1, description="Water budget is target // this"
    )
    bridging_interval: int = Field(
        default=15, ge=1, description="Run bridging every Nth accepted land cell"
    )
    bridging_max_radius: int = Field(
        default=10, ge=0, description="Manhattan radius cap for bridging"
    )
    bridging_size_divisor: int = Field(
        default=3, ge=1, description="Bridge only while size < target // this"
    )
    isolation_min_region_size: int = Field(
        default=5, ge=0, description="Prune only regions larger than this"
    )
    isolation_min_neighbors: int = Field(
        default=2, ge=0, description="Land cells with fewer claimed neighbours are pruned"
    )
    fill_holes: bool = Field(default=True, description="Run the hole-filling pass")
    bridge_land: bool = Field(default=True, description="Run the land-bridging pass")
    prune_isolated: bool = Field(default=True, description="Run isolation pruning")

    def water_budget(self, target: int) -> int:
        """Maximum number of water cells a region of this target may hold."""
        return max(self.min_water_budget, target // self.water_budget_divisor)


@dataclass
class GrowthResult:
    """Cells claimed by one growth, in claim order."""

    cells: List[Position]
    target: int
    water_count: int = 0
    holes_filled: int = 0
    bridged: int = 0
    pruned: int = 0
    water_budget: int = 0

    def __len__(self) -> int:
        return len(self.cells)

    def __iter__(self):
        return iter(self.cells)


@dataclass
class _GrowthState:
    """Mutable bookkeeping for a single grow() call."""

    state_id: int
    region_id: int
    target: int
    max_water: int
    members: List[Position] = field(default_factory=list)
    water: int = 0
    land_accepted: int = 0
    land_heap: list = field(default_factory=list)
    pending_land: Set[Position] = field(default_factory=set)
    water_queue: deque = field(default_factory=deque)

    @property
    def full(self) -> bool:
        return len(self.members) >= self.target

    @property
    def water_left(self) -> int:
        return self.max_water - self.water


class RegionGrower:
    """Grows regions on a shared grid."""

    def __init__(
        self,
        grid: Grid,
        prng: AleaPRNG,
        options: Optional[GrowthOptions] = None,
    ) -> None:
        """
        Initialize the grower.

        Args:
            grid: Grid whose claims are mutated
            prng: Seeded source used for heap tie-breaks
            options: GrowthOptions, defaults when omitted
        """
        self.grid = grid
        self.prng = prng
        self.options = options or GrowthOptions()
        self._sequence = itertools.count()

    def grow(
        self,
        start: Position,
        target: int,
        transaction: ClaimTransaction,
        state_id: int,
        region_id: int,
    ) -> GrowthResult:
        """
        Grow a region from ``start`` toward ``target`` cells.

        Args:
            start: Seed position
            target: Desired region size
            transaction: Claim log for the current attempt
            state_id: Owner state id written into claimed cells
            region_id: Region id written into claimed cells; must be unique
                to this growth

        Returns:
            GrowthResult; empty when nothing could be claimed
        """
        if target < 1:
            raise ValueError(f"target must be >= 1, got {target}")

        growth = _GrowthState(
            state_id=state_id,
            region_id=region_id,
            target=target,
            max_water=self.options.water_budget(target),
        )
        growth.water_queue.append(start)

        bridged = self._expand(growth, transaction)

        holes = 0
        if not growth.full and growth.members and self.options.fill_holes:
            holes = self._fill_holes(growth, transaction)

        pruned = 0
        if (
            self.options.prune_isolated
            and len(growth.members) > self.options.isolation_min_region_size
        ):
            pruned = self._prune_isolated(growth, transaction)

        result = GrowthResult(
            cells=list(growth.members),
            target=target,
            water_count=growth.water,
            holes_filled=holes,
            bridged=bridged,
            pruned=pruned,
            water_budget=growth.max_water,
        )
        logger.debug(
            "Region grown",
            start=start,
            target=target,
            size=len(result),
            water=result.water_count,
            holes=holes,
            bridged=bridged,
            pruned=pruned,
        )
        return result

    def _push_land(self, growth: _GrowthState, pos: Position) -> None:
        priority = -self.grid.count_claimed_neighbors(pos)
        heapq.heappush(
            growth.land_heap,
            (priority, self.prng.random(), next(self._sequence), pos),
        )
        growth.pending_land.add(pos)

    def _accept(
        self, growth: _GrowthState, transaction: ClaimTransaction, pos: Position
    ) -> bool:
        """Claim pos for the region if it is free and within the water budget."""
        if self.grid.cell_state[pos] != 0:
            return False
        is_land = bool(self.grid.land[pos])
        if not is_land and growth.water >= growth.max_water:
            return False

        transaction.claim(pos, growth.state_id, growth.region_id)
        growth.members.append(pos)
        if is_land:
            growth.land_accepted += 1
        else:
            growth.water += 1
        return True

    def _expand(self, growth: _GrowthState, transaction: ClaimTransaction) -> int:
        """Main expansion loop. Returns the number of bridged cells."""
        bridged = 0
        options = self.options

        while (growth.land_heap or growth.water_queue) and not growth.full:
            if growth.land_heap and growth.members:
                pos = heapq.heappop(growth.land_heap)[-1]
                growth.pending_land.discard(pos)
            elif growth.water_queue:
                pos = growth.water_queue.popleft()
            else:
                break

            if not self._accept(growth, transaction, pos):
                continue

            for neighbor in self.grid.neighbors4(pos):
                if self.grid.cell_state[neighbor] != 0:
                    continue
                if self.grid.land[neighbor]:
                    self._push_land(growth, neighbor)
                elif growth.water < growth.max_water:
                    growth.water_queue.append(neighbor)

            if (
                options.bridge_land
                and self.grid.land[pos]
                and len(growth.members) < growth.target // options.bridging_size_divisor
                and growth.land_accepted % options.bridging_interval == 0
            ):
                bridge = self._find_bridge(growth)
                if bridge is not None:
                    self._push_land(growth, bridge)
                    bridged += 1
                    logger.debug("Queued land bridge", cell=bridge)

        return bridged

    def _find_bridge(self, growth: _GrowthState) -> Optional[Position]:
        """
        Nearest unclaimed, not-yet-queued land cell within reach of the region.

        Reach is the Manhattan radius min(bridging_max_radius, water left).
        Ties go to the first cell in row-major order.
        """
        radius = min(self.options.bridging_max_radius, growth.water_left)
        if radius < 1 or not growth.members:
            return None

        members = np.array(growth.members, dtype=np.int64)
        top, left = members.min(axis=0) - radius
        bottom, right = members.max(axis=0) + radius

        window = self.grid.unclaimed_land_mask()[
            max(top, 0) : bottom + 1, max(left, 0) : right + 1
        ]
        candidates = np.argwhere(window) + [max(top, 0), max(left, 0)]
        if growth.pending_land and len(candidates):
            keep = [
                (int(r), int(c)) not in growth.pending_land for r, c in candidates
            ]
            candidates = candidates[np.array(keep, dtype=bool)]
        if not len(candidates):
            return None

        tree = KDTree(members, metric="manhattan")
        distances, _ = tree.query(candidates, k=1)
        distances = distances[:, 0]

        within = np.flatnonzero(distances <= radius)
        if not within.size:
            return None
        best = within[np.argmin(distances[within])]
        row, col = candidates[best]
        return (int(row), int(col))

    def _fill_holes(self, growth: _GrowthState, transaction: ClaimTransaction) -> int:
        """Claim enclosed gaps anywhere on the grid, then expand from them."""
        grid = self.grid
        claimed = grid.claimed_mask()

        enclosed = ndimage.convolve(claimed.astype(np.int8), _CROSS, mode="constant", cval=0)

        # Border cells are never holes
        interior = np.zeros_like(claimed)
        interior[1:-1, 1:-1] = True

        holes_mask = (
            interior
            & ~claimed
            & ((enclosed >= 3) | (grid.land & (enclosed >= 2)))
        )

        filled: List[Position] = []
        for row, col in np.argwhere(holes_mask):
            if growth.full:
                break
            pos = (int(row), int(col))
            if self._accept(growth, transaction, pos):
                filled.append(pos)

        if not filled:
            return 0

        # Breadth expansion out of the filled holes, land first
        heap: list = []

        def push(pos: Position) -> None:
            is_water = 0 if grid.land[pos] else 1
            heapq.heappush(
                heap,
                (is_water, -grid.count_claimed_neighbors(pos), next(self._sequence), pos),
            )

        for hole in filled:
            for neighbor in grid.neighbors4(hole):
                if grid.cell_state[neighbor] == 0:
                    push(neighbor)

        while heap and not growth.full:
            pos = heapq.heappop(heap)[-1]
            if not self._accept(growth, transaction, pos):
                continue
            for neighbor in grid.neighbors4(pos):
                if grid.cell_state[neighbor] == 0:
                    push(neighbor)

        logger.debug("Filled holes", holes=len(filled), size=len(growth.members))
        return len(filled)

    def _prune_isolated(
        self, growth: _GrowthState, transaction: ClaimTransaction
    ) -> int:
        """Evict land cells with too few claimed neighbours."""
        threshold = self.options.isolation_min_neighbors
        evicted: Set[Position] = set()

        for pos in growth.members:
            if not self.grid.land[pos]:
                continue
            if self.grid.count_claimed_neighbors(pos) < threshold:
                transaction.release([pos])
                evicted.add(pos)

        if evicted:
            growth.members = [pos for pos in growth.members if pos not in evicted]
            logger.debug("Pruned isolated cells", count=len(evicted))
        return len(evicted)
