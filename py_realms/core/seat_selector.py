"""Seat selection: pick the administrative cell of a grown region."""

from typing import Iterable

from .alea_prng import AleaPRNG
from .errors import NoLandSeatFound
from .grid import Grid, Position


def select_seat(grid: Grid, cells: Iterable[Position], prng: AleaPRNG) -> Position:
    """
    Choose a land cell of the region to act as its seat.

    With more than three land cells the pick comes from the middle half of the
    region's claim order (index ``n // 4 + rand(n // 2)``), which keeps seats
    off the region's first and last grown edges.

    Raises:
        NoLandSeatFound: the region holds no land cell
    """
    land = [pos for pos in cells if grid.land[pos]]
    if not land:
        raise NoLandSeatFound("region has no land cell for a seat")

    if len(land) <= 3:
        return land[0]

    index = len(land) // 4 + prng.next_int(len(land) // 2)
    return land[min(index, len(land) - 1)]
