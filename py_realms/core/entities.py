"""
Political entities produced by a generation pass.

Regions and states are materialized only when a state attempt commits, so
every instance here describes claims that really exist on the grid. Ids are
issued by the assembler for one run.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Callable, Dict, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .alea_prng import AleaPRNG

Position = Tuple[int, int]


def _clamp_level(value: int) -> int:
    return max(1, min(10, int(value)))


class SettlementKind(str, Enum):
    """Kinds of settlement that can sit on a region seat."""

    CAPITAL = "capital"
    REGIONAL_SEAT = "regional_seat"


BASE_IMPORTANCE: Dict[SettlementKind, int] = {
    SettlementKind.CAPITAL: 10,
    SettlementKind.REGIONAL_SEAT: 7,
}


class SettlementBase(BaseModel):
    """Fields shared by every settlement kind."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    id: int = Field(description="Unique settlement identifier within a run")
    name: str = Field(description="Settlement name")
    cell: Position = Field(description="Seat cell (row, col)")
    state_id: int = Field(description="Owning state")
    region_id: int = Field(description="Owning region")
    population: int = Field(default=0, ge=0, description="Settlement population")
    strategic_importance: int = Field(default=1, description="Importance, 1-10")
    defense_level: int = Field(default=1, description="Defense, 1-10")

    @field_validator("strategic_importance", "defense_level", mode="before")
    @classmethod
    def _clamp(cls, value):
        return _clamp_level(value)

    @property
    def strategic_value(self) -> int:
        return (
            BASE_IMPORTANCE[self.kind] * self.strategic_importance
            + self.defense_level * 2
        )


class CapitalSettlement(SettlementBase):
    """Seat of a state's capital region."""

    kind: Literal[SettlementKind.CAPITAL] = SettlementKind.CAPITAL
    political_level: int = Field(default=10, description="Political level, 1-10")
    political_stability: int = Field(default=50, ge=0, le=100)

    @field_validator("political_level", mode="before")
    @classmethod
    def _clamp_political(cls, value):
        return _clamp_level(value)


class RegionalSeat(SettlementBase):
    """Seat of a satellite region."""

    kind: Literal[SettlementKind.REGIONAL_SEAT] = SettlementKind.REGIONAL_SEAT
    economic_level: int = Field(default=5, description="Economic level, 1-10")
    cultural_level: int = Field(default=5, description="Cultural level, 1-10")

    @field_validator("economic_level", "cultural_level", mode="before")
    @classmethod
    def _clamp_levels(cls, value):
        return _clamp_level(value)


Settlement = Annotated[
    Union[CapitalSettlement, RegionalSeat], Field(discriminator="kind")
]


_RESOURCE_RULES: Dict[SettlementKind, Callable[..., int]] = {
    SettlementKind.CAPITAL: lambda s: s.population // 1000 * s.political_level // 2,
    SettlementKind.REGIONAL_SEAT: lambda s: s.population // 2000 * s.economic_level,
}

_INFLUENCE_RULES: Dict[SettlementKind, Callable[..., int]] = {
    SettlementKind.CAPITAL: lambda s: 10 + s.political_level,
    SettlementKind.REGIONAL_SEAT: lambda s: 5 + s.cultural_level // 2,
}


def settlement_resources(settlement: Union[CapitalSettlement, RegionalSeat]) -> int:
    """Resources a settlement produces per turn."""
    return _RESOURCE_RULES[settlement.kind](settlement)


def influence_radius(settlement: Union[CapitalSettlement, RegionalSeat]) -> int:
    """Radius, in cells, of a settlement's influence."""
    return _INFLUENCE_RULES[settlement.kind](settlement)


class Leader(BaseModel):
    """Head of a state."""

    first_name: str = Field(description="First name")
    last_name: str = Field(default="", description="Last name")
    nickname: str = Field(default="", description="Anything after the last name")
    age: int = Field(default=50, ge=0, description="Age in years")

    @classmethod
    def from_full_name(cls, full_name: str, prng: Optional[AleaPRNG] = None) -> "Leader":
        """
        Split a full name on whitespace.

        The first token is the first name, the second the last name and the
        rest the nickname. An empty name yields "Leader". Age is 35-79 when a
        PRNG is given.
        """
        parts = full_name.split()
        age = 35 + prng.next_int(45) if prng is not None else 50
        if not parts:
            return cls(first_name="Leader", age=age)
        return cls(
            first_name=parts[0],
            last_name=parts[1] if len(parts) > 1 else "",
            nickname=" ".join(parts[2:]),
            age=age,
        )

    @property
    def full_name(self) -> str:
        return " ".join(p for p in (self.first_name, self.last_name) if p)

    def __str__(self) -> str:
        text = self.full_name
        if self.nickname:
            text += f' "{self.nickname}"'
        return f"{text}, {self.age}"


class Region(BaseModel):
    """A contiguous (mostly land) administrative region of one state."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    id: int = Field(description="Unique region identifier within a run")
    name: str = Field(description="Region name")
    state_id: int = Field(description="Owning state id")
    cells: List[Position] = Field(min_length=1, description="Owned cells, claim order")
    seat: Position = Field(description="Seat cell; always land and in cells")
    is_capital: bool = Field(default=False, description="Capital region of its state")
    land_cells: int = Field(default=0, ge=0, description="Land cells in the region")
    population: int = Field(default=0, ge=0, description="Civilians over all cells")
    military_bases: int = Field(default=0, ge=0, description="Bases over all cells")
    settlement: Optional[Settlement] = Field(default=None, description="Seat settlement")

    @property
    def size(self) -> int:
        return len(self.cells)

    @property
    def water_cells(self) -> int:
        return len(self.cells) - self.land_cells

    @property
    def power(self) -> int:
        strategic = self.settlement.strategic_value if self.settlement else 0
        return self.military_bases * 10 + strategic


class State(BaseModel):
    """A committed state: capital region plus satellite regions."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    id: int = Field(description="Unique state identifier within a run")
    name: str = Field(description="State name")
    leader: Optional[Leader] = Field(default=None, description="Head of state")
    regions: List[Region] = Field(default_factory=list, description="Creation order")
    capital_region_id: int = Field(description="Id of the capital region")

    @property
    def capital(self) -> Region:
        for region in self.regions:
            if region.id == self.capital_region_id:
                return region
        raise LookupError(f"state {self.id} has no region {self.capital_region_id}")

    @property
    def satellites(self) -> List[Region]:
        return [r for r in self.regions if r.id != self.capital_region_id]

    @property
    def population(self) -> int:
        return sum(region.population for region in self.regions)

    @property
    def power(self) -> int:
        return sum(region.power for region in self.regions)

    @property
    def cell_count(self) -> int:
        return sum(region.size for region in self.regions)

    @property
    def land_cells(self) -> int:
        return sum(region.land_cells for region in self.regions)
