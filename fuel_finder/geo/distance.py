"""Distance calculation utilities using Haversine formula."""

import math
from collections.abc import Sequence

import numpy as np

from .coordinate import Coordinate

# Earth's mean radius in meters
EARTH_RADIUS_M = 6_371_000.0


def haversine_meters(a: Coordinate, b: Coordinate) -> float:
    """
    Calculate the great-circle distance between two points on Earth.

    Uses the atan2 form of the Haversine formula, which stays stable for
    antipodal points.

    Args:
        a: First point
        b: Second point

    Returns:
        Distance in meters
    """
    lat1_rad = math.radians(a.lat)
    lat2_rad = math.radians(b.lat)
    delta_lat = math.radians(b.lat - a.lat)
    delta_lon = math.radians(b.lon - a.lon)

    h = (
        math.sin(delta_lat / 2) ** 2
        + math.cos(lat1_rad) * math.cos(lat2_rad) * math.sin(delta_lon / 2) ** 2
    )
    # Rounding can push h a hair above 1 near the antipode
    h = min(1.0, h)
    c = 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))

    return EARTH_RADIUS_M * c


def haversine_meters_array(
    origin: Coordinate, lats: Sequence[float], lons: Sequence[float]
) -> np.ndarray:
    """
    Vectorized Haversine distance from one origin to many points.

    Args:
        origin: Reference point
        lats: Latitudes of the target points (degrees)
        lons: Longitudes of the target points (degrees)

    Returns:
        Array of distances in meters, one per target point
    """
    lats_rad = np.radians(np.asarray(lats, dtype=float))
    lons_rad = np.radians(np.asarray(lons, dtype=float))
    lat0 = math.radians(origin.lat)
    lon0 = math.radians(origin.lon)

    h = (
        np.sin((lats_rad - lat0) / 2) ** 2
        + math.cos(lat0) * np.cos(lats_rad) * np.sin((lons_rad - lon0) / 2) ** 2
    )
    h = np.clip(h, 0.0, 1.0)
    c = 2 * np.arctan2(np.sqrt(h), np.sqrt(1 - h))

    return EARTH_RADIUS_M * c


def format_distance(meters: float | None) -> str:
    """
    Format a distance for display.

    Below 1 km the value is rounded to whole meters ("500 m"), otherwise it is
    shown in kilometers with two decimals ("1.50 km"). Formatting never depends
    on the locale.
    """
    if meters is None or math.isnan(meters):
        return ""
    if meters < 1000:
        # Half-up, not Python's round-half-to-even
        return f"{math.floor(meters + 0.5)} m"
    return f"{meters / 1000:.2f} km"
