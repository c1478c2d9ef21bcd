"""
Grid model: terrain matrix, cell ownership and adjacency.

The grid owns all per-cell data as numpy arrays (terrain, owning state, owning
region and the metadata written for committed regions). Callers address cells
by ``(row, col)`` positions and mutate ownership only through ``claim`` /
``unclaim`` or a ``ClaimTransaction``.

Ids are positive ints; 0 in the ownership arrays means "unowned".
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Tuple, Union

import numpy as np
import structlog

from .errors import (
    AlreadyClaimedError,
    InvalidGridError,
    NotClaimedError,
    OutOfBoundsError,
)

logger = structlog.get_logger()

Position = Tuple[int, int]

# N, S, W, E
NEIGHBOR_OFFSETS = ((-1, 0), (1, 0), (0, -1), (0, 1))


class Terrain(str, Enum):
    """Terrain kind of a cell, valued by its single-character map code."""

    LAND = "T"
    WATER = "M"

    @classmethod
    def from_code(cls, code: str) -> "Terrain":
        """Parse a map code, ignoring case and surrounding whitespace."""
        normalized = str(code).strip().upper()
        for terrain in cls:
            if terrain.value == normalized:
                return terrain
        raise InvalidGridError(f"unknown terrain code {code!r}")


@dataclass(frozen=True)
class Cell:
    """Snapshot of one cell. Ownership fields are None when unclaimed."""

    row: int
    col: int
    terrain: Terrain
    state_id: Optional[int] = None
    region_id: Optional[int] = None

    @property
    def position(self) -> Position:
        return (self.row, self.col)

    @property
    def is_land(self) -> bool:
        return self.terrain is Terrain.LAND

    @property
    def is_water(self) -> bool:
        return self.terrain is Terrain.WATER

    @property
    def is_claimed(self) -> bool:
        return self.state_id is not None


class Grid:
    """Fixed-size rows x cols terrain grid with 4-connected adjacency."""

    def __init__(self, land: Union[np.ndarray, Sequence[Sequence[bool]]]):
        """
        Initialize from a boolean land mask.

        Args:
            land: 2D array-like, True for land and False for water
        """
        land = np.array(land, dtype=bool)
        if land.ndim != 2 or land.shape[0] == 0 or land.shape[1] == 0:
            raise InvalidGridError(
                f"terrain must be a non-empty 2D matrix, got shape {land.shape}"
            )
        land.setflags(write=False)

        self.land = land
        self.rows, self.cols = land.shape

        self.cell_state = np.zeros(land.shape, dtype=np.int32)
        self.cell_region = np.zeros(land.shape, dtype=np.int32)

        # Written only when a region is committed
        self.cell_population = np.zeros(land.shape, dtype=np.int64)
        self.cell_bases = np.zeros(land.shape, dtype=np.int16)

    @classmethod
    def from_rows(cls, rows: Iterable[Union[str, Sequence[str]]]) -> "Grid":
        """
        Build a grid from rows of terrain codes ('T' land, 'M' water).

        A row may be a string of codes ("TTM") or a sequence of codes.
        """
        parsed: List[List[bool]] = []
        for index, row in enumerate(rows):
            codes = list(row)
            if not codes:
                raise InvalidGridError(f"row {index} is empty")
            parsed.append([Terrain.from_code(code) is Terrain.LAND for code in codes])

        if not parsed:
            raise InvalidGridError("terrain has no rows")

        width = len(parsed[0])
        for index, row in enumerate(parsed):
            if len(row) != width:
                raise InvalidGridError(
                    f"row {index} has {len(row)} cells, expected {width}"
                )

        return cls(np.array(parsed, dtype=bool))

    @property
    def shape(self) -> Tuple[int, int]:
        return (self.rows, self.cols)

    @property
    def size(self) -> int:
        return self.rows * self.cols

    @property
    def land_count(self) -> int:
        return int(np.count_nonzero(self.land))

    @property
    def water_count(self) -> int:
        return self.size - self.land_count

    def in_bounds(self, row: int, col: int) -> bool:
        return 0 <= row < self.rows and 0 <= col < self.cols

    def _check(self, row: int, col: int) -> None:
        if not self.in_bounds(row, col):
            raise OutOfBoundsError(row, col, self.shape)

    def cell_at(self, row: int, col: int) -> Cell:
        """Return a snapshot of the cell at (row, col)."""
        self._check(row, col)
        state_id = int(self.cell_state[row, col])
        return Cell(
            row=row,
            col=col,
            terrain=Terrain.LAND if self.land[row, col] else Terrain.WATER,
            state_id=state_id or None,
            region_id=int(self.cell_region[row, col]) or None,
        )

    def is_land(self, pos: Position) -> bool:
        self._check(*pos)
        return bool(self.land[pos])

    def is_water(self, pos: Position) -> bool:
        return not self.is_land(pos)

    def is_claimed(self, pos: Position) -> bool:
        self._check(*pos)
        return self.cell_state[pos] != 0

    def owner(self, pos: Position) -> Optional[int]:
        """Owning state id, or None."""
        self._check(*pos)
        return int(self.cell_state[pos]) or None

    def region_of(self, pos: Position) -> Optional[int]:
        """Owning region id, or None."""
        self._check(*pos)
        return int(self.cell_region[pos]) or None

    def claim(self, pos: Position, state_id: int, region_id: int) -> None:
        """Assign a free cell to a state and region."""
        row, col = pos
        self._check(row, col)
        if state_id <= 0 or region_id <= 0:
            raise ValueError(
                f"state and region ids must be positive, got {state_id}, {region_id}"
            )
        current = int(self.cell_state[row, col])
        if current:
            raise AlreadyClaimedError(row, col, current)
        self.cell_state[row, col] = state_id
        self.cell_region[row, col] = region_id

    def unclaim(self, pos: Position) -> None:
        """Release a claimed cell and clear its metadata."""
        row, col = pos
        self._check(row, col)
        if not self.cell_state[row, col]:
            raise NotClaimedError(row, col)
        self.cell_state[row, col] = 0
        self.cell_region[row, col] = 0
        self.cell_population[row, col] = 0
        self.cell_bases[row, col] = 0

    def neighbors4(self, pos: Position) -> Iterator[Position]:
        """Yield the in-bounds N/S/W/E neighbours of a cell."""
        row, col = pos
        self._check(row, col)
        for d_row, d_col in NEIGHBOR_OFFSETS:
            n_row, n_col = row + d_row, col + d_col
            if 0 <= n_row < self.rows and 0 <= n_col < self.cols:
                yield (n_row, n_col)

    def count_claimed_neighbors(self, pos: Position) -> int:
        """Number of 4-neighbours claimed by any state."""
        return sum(1 for n in self.neighbors4(pos) if self.cell_state[n] != 0)

    def claimed_mask(self) -> np.ndarray:
        return self.cell_state != 0

    def unclaimed_land_mask(self) -> np.ndarray:
        return self.land & (self.cell_state == 0)

    def transaction(self) -> "ClaimTransaction":
        """Open a claim log for one all-or-nothing attempt."""
        return ClaimTransaction(self)

    def __repr__(self) -> str:
        return (
            f"Grid(rows={self.rows}, cols={self.cols}, land={self.land_count}, "
            f"claimed={int(np.count_nonzero(self.cell_state))})"
        )


class ClaimTransaction:
    """
    Scratch log of the claims made during one state attempt.

    ``rollback`` replays the log in reverse, so undoing an attempt costs
    O(claims made) instead of a grid rescan. Used as a context manager, an
    exception escaping the block rolls the open transaction back.
    """

    def __init__(self, grid: Grid):
        self.grid = grid
        # dict keeps claim order and gives O(1) removal on release
        self._log: Dict[Position, None] = {}
        self.closed = False

    def _ensure_open(self) -> None:
        if self.closed:
            raise RuntimeError("transaction already committed or rolled back")

    def claim(self, pos: Position, state_id: int, region_id: int) -> None:
        self._ensure_open()
        self.grid.claim(pos, state_id, region_id)
        self._log[pos] = None

    def release(self, cells: Iterable[Position]) -> None:
        """Unclaim cells made through this transaction, keeping the rest."""
        self._ensure_open()
        for pos in cells:
            if pos not in self._log:
                raise NotClaimedError(*pos)
            self.grid.unclaim(pos)
            del self._log[pos]

    def rollback(self) -> int:
        """Unclaim everything this transaction claimed. Returns the count."""
        self._ensure_open()
        released = list(self._log)
        for pos in reversed(released):
            self.grid.unclaim(pos)
        self._log.clear()
        self.closed = True
        logger.debug("Rolled back claims", cells=len(released))
        return len(released)

    def commit(self) -> List[Position]:
        """Keep all claims. Returns them in claim order."""
        self._ensure_open()
        self.closed = True
        return list(self._log)

    @property
    def claimed(self) -> List[Position]:
        return list(self._log)

    def __len__(self) -> int:
        return len(self._log)

    def __contains__(self, pos) -> bool:
        return pos in self._log

    def __enter__(self) -> "ClaimTransaction":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        if exc_type is not None and not self.closed:
            self.rollback()
        return False
