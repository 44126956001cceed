"""
Fuel finder session: location -> Overpass query -> ranking -> view state.

One FuelFinder per user session. It listens to the resolver, fetches stations
whenever a new coordinate becomes current, ranks them and exposes the
presentation callbacks. Station fetches cannot be cancelled, so each carries a
generation number; a response is applied only if it is still the latest fetch
and the coordinate it was issued for is still current.
"""

import asyncio
import logging

from .config import FinderConfig
from .errors import StationFetchError
from .geo.coordinate import Coordinate
from .location.geolocation import GeolocationOptions, GeolocationProvider
from .location.resolver import LocationResolver, Locating, ResolverState, resolved_coordinate
from .stations.models import RankingResult, Station
from .stations.overpass import OverpassClient
from .stations.ranking import rank_stations
from .theme import FileThemeStore, Theme, ThemeService
from .view.coordinator import ViewCoordinator, ViewState

logger = logging.getLogger(__name__)


class FuelFinder:
    """Wire the resolver, the station client and the view coordinator together."""

    def __init__(
        self,
        resolver: LocationResolver,
        client: OverpassClient,
        radius_meters: int = 2000,
        theme: ThemeService | None = None,
        coordinator: ViewCoordinator | None = None,
    ):
        self.resolver = resolver
        self.client = client
        self.radius_meters = radius_meters
        self.theme = theme
        self.coordinator = coordinator or ViewCoordinator()

        self._ranking: RankingResult | None = None
        self._last_good: tuple[Station, ...] | None = None  # Raw stations of the last successful fetch
        self._fetch_error: str | None = None
        self._fetch_generation = 0
        self._fetch_task: asyncio.Task | None = None
        self._requested_for: Coordinate | None = None

        self.resolver.subscribe(self.coordinator.on_resolver_transition)
        self.resolver.subscribe(self._on_resolver_transition)

    @classmethod
    def from_config(
        cls,
        config: FinderConfig,
        provider: GeolocationProvider | None,
        theme: ThemeService | None = None,
    ) -> "FuelFinder":
        """Build a session from a FinderConfig."""
        options = GeolocationOptions(
            high_accuracy=config.geo_high_accuracy,
            timeout_s=config.geo_timeout_s,
            maximum_age_s=config.geo_max_age_s,
        )
        client = OverpassClient(
            url=config.overpass_url,
            amenity=config.amenity,
            query_timeout_s=config.query_timeout_s,
            fetch_timeout_s=config.fetch_timeout_s,
            user_agent=config.user_agent,
        )
        if theme is None:
            theme = ThemeService(FileThemeStore(config.theme_file))
        return cls(
            LocationResolver(provider, options),
            client,
            radius_meters=config.radius_meters,
            theme=theme,
        )

    @property
    def ranking(self) -> RankingResult | None:
        return self._ranking

    @property
    def fetching(self) -> bool:
        return self._fetch_task is not None and not self._fetch_task.done()

    @property
    def fetch_error(self) -> str | None:
        return self._fetch_error

    def _set_ranking(self, ranking: RankingResult | None) -> None:
        self._ranking = ranking
        self.coordinator.on_ranking(ranking)

    def _on_resolver_transition(self, old: ResolverState, new: ResolverState) -> None:
        coordinate = resolved_coordinate(new)

        if coordinate is None:
            if isinstance(new, Locating):
                self._fetch_error = None
            # Whatever was ranked belongs to a coordinate that is no longer current
            self._requested_for = None
            if self._ranking is not None or self.fetching:
                self._fetch_generation += 1
                self._set_ranking(None)
            return

        # Opening or cancelling the manual form keeps the coordinate
        if coordinate != self._requested_for:
            self._start_fetch(coordinate)

    def _start_fetch(self, coordinate: Coordinate) -> asyncio.Task:
        self._fetch_generation += 1
        generation = self._fetch_generation
        self._requested_for = coordinate
        if self._ranking is not None and self._ranking.origin != coordinate:
            self._set_ranking(None)
        self._fetch_task = asyncio.get_running_loop().create_task(
            self._fetch(generation, coordinate)
        )
        return self._fetch_task

    def _is_current(self, generation: int, coordinate: Coordinate) -> bool:
        return generation == self._fetch_generation and self.resolver.coordinate == coordinate

    def _fetch_failed(
        self, generation: int, coordinate: Coordinate, error: StationFetchError
    ) -> RankingResult | None:
        if not self._is_current(generation, coordinate):
            logger.debug("Discarding superseded station fetch failure")
            return None
        self._fetch_error = error.message
        if self._last_good is not None:
            # Keep showing the last good stations, re-ranked for this coordinate
            self._set_ranking(rank_stations(coordinate, self._last_good, stale=True))
        return self._ranking

    async def _fetch(self, generation: int, coordinate: Coordinate) -> RankingResult | None:
        try:
            stations = await self.client.fetch_stations(coordinate, self.radius_meters)
        except StationFetchError as e:
            return self._fetch_failed(generation, coordinate, e)
        except Exception as e:
            logger.exception("Station fetch raised an unexpected error")
            return self._fetch_failed(generation, coordinate, StationFetchError(str(e)))

        if not self._is_current(generation, coordinate):
            logger.debug("Discarding superseded station fetch (request %d)", generation)
            return None

        self._last_good = tuple(stations)
        self._fetch_error = None
        self._set_ranking(rank_stations(coordinate, stations))
        return self._ranking

    async def settle(self) -> None:
        """Wait until no location request or station fetch is in flight."""
        while True:
            pending = [
                task
                for task in (self.resolver.pending_task, self._fetch_task)
                if task is not None and not task.done()
            ]
            if not pending:
                return
            await asyncio.gather(*pending, return_exceptions=True)

    # Presentation callbacks

    def start(self) -> asyncio.Task | None:
        """Initial location request."""
        if self.theme is not None:
            self.theme.init()
        return self.resolver.locate()

    def retry_locate(self) -> asyncio.Task | None:
        return self.resolver.locate()

    def request_manual_entry(self) -> None:
        self.resolver.request_manual_entry()

    def cancel_manual_entry(self) -> None:
        self.resolver.cancel_manual_entry()

    def submit_manual_coordinate(self, lat: object, lon: object) -> Coordinate:
        """
        Resolve to a manually entered coordinate.

        Raises:
            CoordinateValidationError: input rejected; nothing is fetched
        """
        generation = self._fetch_generation
        coordinate = self.resolver.submit_manual(lat, lon)
        if self._fetch_generation == generation:
            # Same coordinate submitted again: search again
            self._start_fetch(coordinate)
        return coordinate

    def refresh_stations(self) -> asyncio.Task | None:
        """Fetch again for the current coordinate."""
        coordinate = self.resolver.coordinate
        if coordinate is None:
            return None
        return self._start_fetch(coordinate)

    def select_station(self, station_id: str) -> Station | None:
        return self.coordinator.select(station_id, self.view_ranking())

    def toggle_theme(self) -> Theme | None:
        if self.theme is None:
            return None
        return self.theme.toggle()

    def view_ranking(self) -> RankingResult | None:
        """The ranking if it belongs to the current coordinate."""
        ranking = self._ranking
        if ranking is None or ranking.origin != self.resolver.coordinate:
            return None
        return ranking

    def view(self) -> ViewState:
        return self.coordinator.derive(
            self.resolver.state,
            self._ranking,
            fetching=self.fetching,
            fetch_error=self._fetch_error,
            theme=self.theme.theme.value if self.theme is not None else None,
        )
