"""Geodesy helpers: coordinates, distances and distance formatting."""

from .coordinate import Coordinate, parse_coordinate
from .distance import format_distance, haversine_meters, haversine_meters_array

__all__ = [
    "Coordinate",
    "parse_coordinate",
    "haversine_meters",
    "haversine_meters_array",
    "format_distance",
]
