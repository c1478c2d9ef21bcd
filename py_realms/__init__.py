"""
py-realms: partition land/water grids into states, regions and seats.
"""

__version__ = "0.1.0"
