"""Stations module: Overpass query client and distance ranking."""

from .models import RankingResult, Station
from .overpass import OverpassClient, build_query, normalize_elements, station_from_element
from .ranking import rank_stations

__all__ = [
    "Station",
    "RankingResult",
    "OverpassClient",
    "build_query",
    "normalize_elements",
    "station_from_element",
    "rank_stations",
]
