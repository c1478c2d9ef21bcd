"""
State assembly: seed selection, capital and satellite growth, commit/rollback.

Each requested state runs through up to ``max_attempts`` attempts:

1. SelectingSeed - draw an unused unclaimed-land seed
2. GrowingCapital - grow the capital region from the seed
3. SelectingCapitalSeat - seat the capital on a land cell
4. GrowingSatellites - grow satellite regions from the state's frontier
5. Committed (enough regions) or RolledBack (every claim of the attempt undone)

Every claim of an attempt goes through one ClaimTransaction, so a failed
attempt leaves the grid exactly as it found it. Region and State objects are
only built for committed attempts.
"""

from collections import Counter
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Protocol, Set

import numpy as np
import structlog

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..utils.random import SeedLike, resolve_prng
from .entities import CapitalSettlement, Region, RegionalSeat, State
from .errors import (
    AttemptFailure,
    GenerationCancelled,
    InsufficientSatellites,
    InvalidGridError,
    NoLandAvailable,
    NoLandSeatFound,
    RegionTooSmall,
    SeedUnavailable,
)
from .grid import ClaimTransaction, Grid, Position
from .land_index import LandAvailabilityIndex
from .names import NameProvider
from .region_grower import GrowthOptions, RegionGrower
from .seat_selector import select_seat

logger = structlog.get_logger()

ProgressCallback = Callable[[int, int], None]


class CancelToken(Protocol):
    """Anything with ``is_set()``, e.g. threading.Event."""

    def is_set(self) -> bool: ...


class GenerationOptions(BaseModel):
    """State generation options."""

    max_attempts: int = Field(default=3, ge=1, description="Attempts per state")
    min_regions: int = Field(default=3, ge=1, description="Fewest regions wanted per state")
    max_regions: int = Field(default=6, ge=1, description="Most regions wanted per state")
    variance_min: float = Field(default=0.8, gt=0, description="Lower size variance")
    variance_max: float = Field(default=1.2, gt=0, description="Upper size variance")
    capital_size_factor: float = Field(
        default=1.4, gt=0, description="Capital target = average region size * this"
    )
    satellite_base_factor: float = Field(default=0.7, ge=0)
    satellite_step_factor: float = Field(
        default=0.1, ge=0, description="Added per region already created"
    )
    satellite_jitter: float = Field(default=0.5, ge=0)
    satellite_tries_per_region: int = Field(
        default=5, ge=1, description="Satellite try budget = regions wanted * this"
    )
    min_satellite_size: int = Field(default=5, ge=1, description="Smallest accepted satellite")
    seed_candidates_per_state: int = Field(
        default=3, ge=1, description="Attempted states capped at land cells // this"
    )
    growth: GrowthOptions = Field(default_factory=GrowthOptions)

    @model_validator(mode="after")
    def _check_ranges(self) -> "GenerationOptions":
        if self.min_regions > self.max_regions:
            raise ValueError("min_regions must not exceed max_regions")
        if self.variance_min > self.variance_max:
            raise ValueError("variance_min must not exceed variance_max")
        return self


class GenerationResult(BaseModel):
    """Outcome of one generation pass."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    requested: int = Field(description="States asked for")
    attempted: int = Field(default=0, description="States actually attempted")
    states: List[State] = Field(default_factory=list, description="Committed states")
    failures: Dict[str, int] = Field(
        default_factory=dict, description="Attempt failure counts by reason"
    )
    cancelled: bool = Field(default=False)

    @property
    def committed(self) -> int:
        return len(self.states)


@dataclass
class _PendingRegion:
    """A region accepted inside an open attempt."""

    region_id: int
    cells: List[Position]
    seat: Position
    is_capital: bool


class StateAssembler:
    """Runs generation passes against one grid."""

    def __init__(
        self,
        grid: Grid,
        prng: SeedLike = None,
        options: Optional[GenerationOptions] = None,
        names: Optional[NameProvider] = None,
    ) -> None:
        """
        Initialize the assembler.

        Args:
            grid: Grid to claim on; must not be shared with a concurrent pass
            prng: Seed or AleaPRNG threaded through every random decision
            options: GenerationOptions, defaults when omitted
            names: NameProvider, synthesized names when omitted
        """
        if not isinstance(grid, Grid):
            raise InvalidGridError(f"expected a Grid, got {type(grid).__name__}")

        self.grid = grid
        self.prng = resolve_prng(prng)
        self.options = options or GenerationOptions()
        self.names = names or NameProvider()
        self.grower = RegionGrower(grid, self.prng, self.options.growth)
        self.index = LandAvailabilityIndex(grid)

        # Ids continue past anything already on the grid
        self._next_state_id = int(grid.cell_state.max()) + 1
        self._next_region_id = int(grid.cell_region.max()) + 1
        self._next_settlement_id = 1

    def generate(
        self,
        requested: int,
        progress: Optional[ProgressCallback] = None,
        cancel: Optional[CancelToken] = None,
    ) -> GenerationResult:
        """
        Generate up to ``requested`` states.

        Args:
            requested: Number of states wanted
            progress: Called as progress(states_done, states_total) once per state
            cancel: Checked once per state and once per satellite try

        Returns:
            GenerationResult; ``committed`` may be lower than ``requested``
        """
        if requested < 0:
            raise ValueError(f"requested state count must be >= 0, got {requested}")

        result = GenerationResult(requested=requested)
        if requested == 0:
            return result

        candidates = self.index.scan_unclaimed_land()
        if not candidates:
            logger.warning("No unclaimed land available", requested=requested)
            result.failures[NoLandAvailable.reason] = 1
            return result

        total_land = len(candidates)
        attempted = min(requested, total_land // self.options.seed_candidates_per_state)
        if attempted < requested:
            logger.info(
                "Capping attempted states", requested=requested, attempted=attempted
            )
        result.attempted = attempted
        share = total_land / requested
        self.names.reset()
        failures: Counter = Counter()

        logger.info(
            "Starting state generation",
            requested=requested,
            attempted=attempted,
            unclaimed_land=total_land,
            share_per_state=round(share, 2),
        )

        for index in range(attempted):
            if progress is not None:
                progress(index, attempted)
            if cancel is not None and cancel.is_set():
                result.cancelled = True
                break
            if self.index.is_empty():
                logger.info("Land exhausted", remaining_states=attempted - index)
                failures[NoLandAvailable.reason] += 1
                break

            try:
                state = self._assemble_state(index, share, failures, cancel)
            except GenerationCancelled:
                result.cancelled = True
                break

            if state is not None:
                result.states.append(state)

        if progress is not None and not result.cancelled:
            progress(attempted, attempted)

        result.failures = dict(failures)
        logger.info(
            "State generation finished",
            committed=result.committed,
            attempted=attempted,
            requested=requested,
            cancelled=result.cancelled,
            failures=result.failures,
        )
        return result

    def _allocate_region_id(self) -> int:
        region_id = self._next_region_id
        self._next_region_id += 1
        return region_id

    def _assemble_state(
        self,
        index: int,
        share: float,
        failures: Counter,
        cancel: Optional[CancelToken],
    ) -> Optional[State]:
        """Run up to max_attempts attempts for one state."""
        name = self.names.state_name(index)
        state_id = self._next_state_id
        variance = self.prng.uniform(self.options.variance_min, self.options.variance_max)
        tried: Set[Position] = set()

        for attempt in range(1, self.options.max_attempts + 1):
            seed = self.index.draw(self.prng, exclude=tried)
            if seed is None:
                failures[NoLandAvailable.reason] += 1
                logger.info("No seed left for state", state=name, attempt=attempt)
                break
            tried.add(seed)

            try:
                with self.grid.transaction() as transaction:
                    pending = self._attempt(
                        transaction, state_id, seed, share, variance, failures, cancel
                    )
            except AttemptFailure as failure:
                failures[failure.reason] += 1
                logger.info(
                    "State attempt failed",
                    state=name,
                    attempt=attempt,
                    seed=seed,
                    reason=failure.reason,
                    detail=str(failure),
                )
                continue

            self.index.remove(seed)
            self.index.discard_claimed()
            state = self._materialize(index, state_id, name, pending)
            self._next_state_id += 1
            logger.info(
                "State committed",
                state=name,
                state_id=state_id,
                attempt=attempt,
                regions=len(state.regions),
                cells=state.cell_count,
            )
            return state

        logger.info("State failed", state=name, attempts=len(tried))
        return None

    def _attempt(
        self,
        transaction: ClaimTransaction,
        state_id: int,
        seed: Position,
        share: float,
        variance: float,
        failures: Counter,
        cancel: Optional[CancelToken],
    ) -> List[_PendingRegion]:
        """
        One attempt: capital, capital seat, satellites.

        Raises an AttemptFailure subclass on failure; the caller's transaction
        context rolls every claim back. Commits the transaction on success.
        """
        options = self.options
        if self.grid.cell_state[seed] != 0:
            raise SeedUnavailable(f"seed {seed} was claimed")

        num_regions = self.prng.randint(options.min_regions, options.max_regions)
        average_size = max(1, int(share * variance / num_regions))
        capital_target = max(1, int(average_size * options.capital_size_factor))

        capital_id = self._allocate_region_id()
        capital = self.grower.grow(seed, capital_target, transaction, state_id, capital_id)
        if not capital:
            raise RegionTooSmall(f"capital from {seed} claimed nothing")

        capital_seat = select_seat(self.grid, capital.cells, self.prng)
        pending = [_PendingRegion(capital_id, capital.cells, capital_seat, True)]

        frontier = self._frontier(capital.cells)
        tries = 0
        max_tries = num_regions * options.satellite_tries_per_region

        while len(pending) < num_regions and frontier and tries < max_tries:
            if cancel is not None and cancel.is_set():
                raise GenerationCancelled()
            tries += 1

            point = frontier.pop(self.prng.next_int(len(frontier)))
            if self.grid.cell_state[point] != 0:
                continue

            factor = (
                options.satellite_base_factor
                + options.satellite_step_factor * len(pending)
                + self.prng.random() * options.satellite_jitter
            )
            target = max(1, int(average_size * factor))
            region_id = self._allocate_region_id()
            satellite = self.grower.grow(point, target, transaction, state_id, region_id)

            if len(satellite) < options.min_satellite_size:
                transaction.release(satellite.cells)
                continue

            try:
                seat = select_seat(self.grid, satellite.cells, self.prng)
            except NoLandSeatFound:
                transaction.release(satellite.cells)
                failures[NoLandSeatFound.reason] += 1
                logger.debug("Discarded seatless satellite", start=point)
                continue

            pending.append(_PendingRegion(region_id, satellite.cells, seat, False))
            frontier.extend(self._frontier(satellite.cells))

        if len(pending) < num_regions // 2:
            raise InsufficientSatellites(
                f"{len(pending)} of {num_regions} regions accepted"
            )

        transaction.commit()
        return pending

    def _frontier(self, cells: List[Position]) -> List[Position]:
        """Unclaimed neighbours of the given cells. Duplicates are kept."""
        frontier = []
        for pos in cells:
            for neighbor in self.grid.neighbors4(pos):
                if self.grid.cell_state[neighbor] == 0:
                    frontier.append(neighbor)
        return frontier

    def _materialize(
        self, index: int, state_id: int, name: str, pending: List[_PendingRegion]
    ) -> State:
        """Build the Region/State objects and write cell metadata for a commit."""
        leader = self.names.leader(index, self.prng)
        seat_pool = self.names.seat_pool(index)
        regions = []

        for ordinal, item in enumerate(pending):
            self._populate_cells(item, ordinal)
            if item.is_capital:
                settlement = self._capital_settlement(index, state_id, item)
                region_name = self.names.capital_region_name(name)
            else:
                settlement = self._regional_seat(seat_pool, state_id, item)
                region_name = self.names.region_name(ordinal + 1, name)

            rows, cols = np.array(item.cells).T
            regions.append(
                Region(
                    id=item.region_id,
                    name=region_name,
                    state_id=state_id,
                    cells=list(item.cells),
                    seat=item.seat,
                    is_capital=item.is_capital,
                    land_cells=int(np.count_nonzero(self.grid.land[rows, cols])),
                    population=int(self.grid.cell_population[rows, cols].sum()),
                    military_bases=int(self.grid.cell_bases[rows, cols].sum()),
                    settlement=settlement,
                )
            )

        return State(
            id=state_id,
            name=name,
            leader=leader,
            regions=regions,
            capital_region_id=pending[0].region_id,
        )

    def _populate_cells(self, item: _PendingRegion, ordinal: int) -> None:
        """Civilians and military bases for the cells of a committed region."""
        prng = self.prng
        for pos in item.cells:
            if item.is_capital:
                self.grid.cell_population[pos] = 2000 + prng.next_int(8000)
                if prng.chance(0.25):
                    self.grid.cell_bases[pos] = 1 + prng.next_int(2)
            else:
                self.grid.cell_population[pos] = 800 + prng.next_int(5000)
                if prng.chance(0.1 + ordinal * 0.02):
                    self.grid.cell_bases[pos] = 1

    def _next_settlement(self) -> int:
        settlement_id = self._next_settlement_id
        self._next_settlement_id += 1
        return settlement_id

    def _capital_settlement(
        self, index: int, state_id: int, item: _PendingRegion
    ) -> CapitalSettlement:
        return CapitalSettlement(
            id=self._next_settlement(),
            name=self.names.capital_name(index),
            cell=item.seat,
            state_id=state_id,
            region_id=item.region_id,
            population=50000 + self.prng.next_int(150000),
            strategic_importance=10,
            defense_level=9,
            political_level=10,
        )

    def _regional_seat(
        self, seat_pool: List[str], state_id: int, item: _PendingRegion
    ) -> RegionalSeat:
        prng = self.prng
        seat = RegionalSeat(
            id=self._next_settlement(),
            name=self.names.next_seat_name(seat_pool),
            cell=item.seat,
            state_id=state_id,
            region_id=item.region_id,
            population=20000 + prng.next_int(80000),
            strategic_importance=6 + prng.next_int(3),
            defense_level=5 + prng.next_int(3),
            economic_level=6 + prng.next_int(3),
            cultural_level=5 + prng.next_int(4),
        )
        self.grid.cell_population[item.seat] = seat.population
        return seat
