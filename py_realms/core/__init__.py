"""
Core state generation functionality.
"""

from .grid import Grid, Cell, Terrain, ClaimTransaction
from .map_loader import parse_terrain_text, load_terrain_csv
from .land_index import LandAvailabilityIndex
from .region_grower import RegionGrower, GrowthOptions, GrowthResult
from .seat_selector import select_seat
from .names import NameProvider
from .entities import Region, State, Leader, CapitalSettlement, RegionalSeat
from .state_assembler import StateAssembler, GenerationOptions, GenerationResult

__all__ = ['Grid', 'Cell', 'Terrain', 'ClaimTransaction',
           'parse_terrain_text', 'load_terrain_csv', 'LandAvailabilityIndex',
           'RegionGrower', 'GrowthOptions', 'GrowthResult', 'select_seat',
           'NameProvider', 'Region', 'State', 'Leader', 'CapitalSettlement',
           'RegionalSeat', 'StateAssembler', 'GenerationOptions', 'GenerationResult']
