"""
Error taxonomy for claim generation.

Grid contract violations and invalid input are real errors and propagate.
Attempt failures (``AttemptFailure`` subclasses) are expected outcomes of a
single state attempt: the assembler catches them, rolls the attempt back and
moves on.
"""


class RealmsError(Exception):
    """Base class for all py_realms errors."""


class OutOfBoundsError(RealmsError, IndexError):
    """Cell coordinates fall outside the grid."""

    def __init__(self, row: int, col: int, shape):
        self.row = row
        self.col = col
        self.shape = tuple(shape)
        super().__init__(f"cell ({row}, {col}) outside grid of shape {self.shape}")


class AlreadyClaimedError(RealmsError):
    """Tried to claim a cell that already has an owner."""

    def __init__(self, row: int, col: int, state_id: int):
        self.row = row
        self.col = col
        self.state_id = state_id
        super().__init__(f"cell ({row}, {col}) already claimed by state {state_id}")


class NotClaimedError(RealmsError):
    """Tried to unclaim a free cell. Always indicates a rollback bug."""

    def __init__(self, row: int, col: int):
        self.row = row
        self.col = col
        super().__init__(f"cell ({row}, {col}) is not claimed")


class InvalidGridError(RealmsError, ValueError):
    """Terrain input is empty, ragged or holds unknown codes. Fatal for a pass."""


class GenerationCancelled(RealmsError):
    """A cooperative cancellation checkpoint fired."""


class AttemptFailure(RealmsError):
    """A single state attempt could not complete."""

    reason = "attempt_failed"

    def __init__(self, message: str = ""):
        super().__init__(message or self.reason)


class NoLandAvailable(AttemptFailure):
    """No unclaimed land cell is left to seed from."""

    reason = "no_land_available"


class SeedUnavailable(AttemptFailure):
    """The drawn seed cell was claimed in the meantime."""

    reason = "seed_unavailable"


class RegionTooSmall(AttemptFailure):
    """Region growth produced nothing usable."""

    reason = "region_too_small"


class NoLandSeatFound(AttemptFailure):
    """A grown region holds no land cell to seat an administration on."""

    reason = "no_land_seat"


class InsufficientSatellites(AttemptFailure):
    """Too few regions were accepted for the state to stand."""

    reason = "insufficient_satellites"
