"""
Terrain map loading from delimited text.

Each line is one grid row; cells are 'T' (land) or 'M' (water) separated by a
delimiter. Blank lines at the end of the input are ignored.
"""

from pathlib import Path
from typing import List, Union

import structlog

from .errors import InvalidGridError
from .grid import Grid

logger = structlog.get_logger()


def _split_rows(text: str, delimiter: str) -> List[List[str]]:
    lines = text.splitlines()
    while lines and not lines[-1].strip():
        lines.pop()

    rows = []
    for index, line in enumerate(lines):
        if not line.strip():
            raise InvalidGridError(f"line {index + 1} is blank")
        rows.append([code.strip() for code in line.split(delimiter)])
    return rows


def parse_terrain_text(text: str, delimiter: str = ",") -> Grid:
    """
    Parse delimited terrain text into a Grid.

    Args:
        text: Terrain rows, one per line
        delimiter: Cell separator

    Returns:
        Grid built from the codes

    Raises:
        InvalidGridError: empty input, ragged rows or unknown codes
    """
    rows = _split_rows(text, delimiter)
    if not rows:
        raise InvalidGridError("terrain map is empty")
    return Grid.from_rows(rows)


def load_terrain_csv(path: Union[str, Path], delimiter: str = ",") -> Grid:
    """Load a terrain CSV file into a Grid."""
    path = Path(path)
    grid = parse_terrain_text(path.read_text(encoding="utf-8"), delimiter=delimiter)
    logger.info(
        "Loaded terrain map",
        path=str(path),
        rows=grid.rows,
        cols=grid.cols,
        land=grid.land_count,
    )
    return grid
