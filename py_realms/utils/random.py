"""
Random source helpers.

Every random decision in a pass goes through one AleaPRNG instance that is
handed to the assembler explicitly. Python's random and NumPy's random are not
used, so a seed fully determines the claims a pass makes.
"""

from typing import TYPE_CHECKING, Optional, Union

if TYPE_CHECKING:
    from ..core.alea_prng import AleaPRNG

SeedLike = Union[str, int, "AleaPRNG", None]


def resolve_prng(seed: SeedLike = None, default_seed: Optional[str] = None) -> "AleaPRNG":
    """
    Turn a seed or an existing generator into an AleaPRNG.

    Args:
        seed: Seed string/int, an AleaPRNG to reuse as-is, or None
        default_seed: Seed used when ``seed`` is None; falls back to the
            configured default

    Returns:
        AleaPRNG instance
    """
    from ..core.alea_prng import AleaPRNG

    if isinstance(seed, AleaPRNG):
        return seed
    if seed is None:
        if default_seed is None:
            from ..config import settings

            default_seed = settings.default_seed
        seed = default_seed
    return AleaPRNG(str(seed))
