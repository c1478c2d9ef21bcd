"""
Reporting helpers for a finished generation pass.
"""

from typing import List, Optional

import numpy as np
import structlog

from pydantic import BaseModel, Field

from .grid import Grid
from .state_assembler import GenerationResult

logger = structlog.get_logger()


class StateSummary(BaseModel):
    """Flat per-state figures, suitable for JSON output."""

    id: int
    name: str
    leader: Optional[str] = None
    capital_region: str = Field(description="Capital region name")
    capital: Optional[str] = Field(default=None, description="Capital settlement name")
    regions: int = Field(description="Region count, capital included")
    cells: int
    land_cells: int
    water_cells: int
    population: int
    power: int


def summarize_states(result: GenerationResult, grid: Grid) -> List[StateSummary]:
    """
    Summarize each committed state of a pass.

    Cell counts are read back from the grid so they reflect the claims that
    are actually present.
    """
    summaries = []
    for state in result.states:
        owned = grid.cell_state == state.id
        cells = int(np.count_nonzero(owned))
        land = int(np.count_nonzero(owned & grid.land))
        capital = state.capital
        summaries.append(
            StateSummary(
                id=state.id,
                name=state.name,
                leader=state.leader.full_name if state.leader else None,
                capital_region=capital.name,
                capital=capital.settlement.name if capital.settlement else None,
                regions=len(state.regions),
                cells=cells,
                land_cells=land,
                water_cells=cells - land,
                population=state.population,
                power=state.power,
            )
        )
    return summaries


def log_state_statistics(result: GenerationResult, grid: Grid) -> List[StateSummary]:
    """Log one event per committed state plus a pass total."""
    summaries = summarize_states(result, grid)
    for summary in summaries:
        logger.info("State statistics", **summary.model_dump())

    claimed = int(np.count_nonzero(grid.cell_state))
    logger.info(
        "Pass statistics",
        states=len(summaries),
        requested=result.requested,
        claimed_cells=claimed,
        unclaimed_land=int(np.count_nonzero(grid.unclaimed_land_mask())),
        coverage=round(claimed / grid.size, 3),
    )
    return summaries


def ownership_matrix(grid: Grid) -> np.ndarray:
    """Copy of the (rows, cols) state-id array; 0 means unowned."""
    return grid.cell_state.copy()
