"""Station and ranking result data."""

from collections.abc import Iterator
from dataclasses import dataclass

from ..geo.coordinate import Coordinate


@dataclass(frozen=True)
class Station:
    """Fuel station data."""

    id: str  # "<osm type>/<osm id>", e.g. "node/42"
    lat: float
    lon: float
    name: str | None = None
    brand: str | None = None
    address: str = ""
    distance_meters: float | None = None  # Set by the ranking pass

    @property
    def coordinate(self) -> Coordinate:
        return Coordinate(self.lat, self.lon)


@dataclass(frozen=True)
class RankingResult:
    """
    Stations ordered by distance from `origin`, nearest first.

    Only valid for the coordinate that produced it.
    """

    origin: Coordinate
    stations: tuple[Station, ...] = ()
    stale: bool = False  # Re-ranked from an older response after a failed fetch

    def __len__(self) -> int:
        return len(self.stations)

    def __iter__(self) -> Iterator[Station]:
        return iter(self.stations)

    @property
    def nearest(self) -> Station | None:
        return self.stations[0] if self.stations else None

    def find(self, station_id: str) -> Station | None:
        """Find a station by id."""
        for station in self.stations:
            if station.id == station_id:
                return station
        return None

    def __contains__(self, station_id: object) -> bool:
        return self.find(station_id) is not None
