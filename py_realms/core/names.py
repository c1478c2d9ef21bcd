"""
Name supply for states, leaders, capitals and regional seats.

Names come from ordered lists supplied by the caller. When a list runs short
the provider synthesizes ``<Role>_<index>`` names so generation never stalls
on missing text.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr

from .alea_prng import AleaPRNG
from .entities import Leader


def _entry(names: List[str], index: int) -> Optional[str]:
    if 0 <= index < len(names):
        value = names[index].strip()
        return value or None
    return None


class NameProvider(BaseModel):
    """Ordered name lists with synthesized fallbacks."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    state_names: List[str] = Field(default_factory=list, description="One per state")
    leader_first_names: List[str] = Field(default_factory=list, description="One per state")
    leader_last_names: List[str] = Field(default_factory=list, description="One per state")
    capital_names: List[str] = Field(default_factory=list, description="One per state")
    seat_names: List[str] = Field(
        default_factory=list,
        description="One entry per state; an entry may hold several ';'-separated names",
    )

    _seats_named: int = PrivateAttr(default=0)

    def reset(self) -> None:
        """Restart the running seat counter for a new pass."""
        self._seats_named = 0

    def state_name(self, index: int) -> str:
        """Name of the index-th requested state (0-based)."""
        return _entry(self.state_names, index) or f"State_{index + 1}"

    def leader(self, index: int, prng: Optional[AleaPRNG] = None) -> Leader:
        """Leader of the index-th state."""
        first = _entry(self.leader_first_names, index) or ""
        last = _entry(self.leader_last_names, index) or ""
        full_name = f"{first} {last}".strip() or f"Leader_{index + 1}"
        return Leader.from_full_name(full_name, prng)

    def capital_name(self, index: int) -> str:
        """Name of the index-th state's capital settlement."""
        return _entry(self.capital_names, index) or f"Capital_{index + 1}"

    def seat_pool(self, index: int) -> List[str]:
        """Seat names supplied for the index-th state, in order."""
        entry = _entry(self.seat_names, index)
        if entry is None:
            return []
        return [name.strip() for name in entry.split(";") if name.strip()]

    def next_seat_name(self, pool: List[str]) -> str:
        """
        Take the next seat name from ``pool`` (consumed in place).

        Falls back to ``Seat_<n>``, n counting seats named in this pass.
        Purely numeric names are prefixed so they read as places.
        """
        self._seats_named += 1
        name = pool.pop(0) if pool else f"Seat_{self._seats_named}"
        if name.isdigit():
            name = f"Town_{name}"
        return name

    @staticmethod
    def capital_region_name(state_name: str) -> str:
        return f"Capital Region of {state_name}"

    @staticmethod
    def region_name(ordinal: int, state_name: str) -> str:
        return f"Region {ordinal} of {state_name}"
