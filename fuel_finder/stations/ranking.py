"""Rank stations by distance from the user."""

from collections.abc import Sequence
from dataclasses import replace

import numpy as np

from ..geo.coordinate import Coordinate
from ..geo.distance import haversine_meters_array
from .models import RankingResult, Station


def rank_stations(
    origin: Coordinate, stations: Sequence[Station], stale: bool = False
) -> RankingResult:
    """
    Attach distances to `origin` and sort nearest first.

    The sort is stable: stations at equal distance keep their response order.
    Existing distances on the input stations are ignored and recomputed.

    Args:
        origin: Current user coordinate
        stations: Normalized stations, in response order
        stale: Mark the result as built from an older response

    Returns:
        A new RankingResult bound to `origin`
    """
    if not stations:
        return RankingResult(origin=origin, stations=(), stale=stale)

    distances = haversine_meters_array(
        origin,
        [s.lat for s in stations],
        [s.lon for s in stations],
    )
    order = np.argsort(distances, kind="stable")

    ranked = tuple(
        replace(stations[idx], distance_meters=float(distances[idx]))
        for idx in order
    )
    return RankingResult(origin=origin, stations=ranked, stale=stale)
