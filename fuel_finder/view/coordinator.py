"""Derive map/list display state from the resolver and the current ranking."""

import logging
from collections.abc import Callable
from dataclasses import dataclass

from ..geo.coordinate import Coordinate
from ..location.resolver import (
    Failed,
    Idle,
    Locating,
    ManualEntryPending,
    Resolved,
    ResolverState,
    resolved_coordinate,
)
from ..stations.models import RankingResult, Station

logger = logging.getLogger(__name__)

LOCATING_LABEL = "Getting your location…"
FETCHING_LABEL = "Loading map and nearby stations…"


@dataclass(frozen=True)
class RouteOverlay:
    """Straight line from the user to the nearest station."""

    start: Coordinate
    end: Coordinate
    station_id: str

    def as_path(self) -> list[list[float]]:
        return [self.start.as_pair(), self.end.as_pair()]


@dataclass(frozen=True)
class CenterOnUser:
    """One-shot request to center the map on the user and highlight the marker."""

    coordinate: Coordinate


@dataclass(frozen=True)
class ViewState:
    """Read-only snapshot consumed by the presentation layer."""

    resolver_state: ResolverState
    map_center: Coordinate | None = None
    stations: tuple[Station, ...] = ()
    selected_station_id: str | None = None
    route_overlay: RouteOverlay | None = None
    loading_label: str | None = None
    error_message: str | None = None
    stale: bool = False
    theme: str | None = None

    @property
    def manual_entry_open(self) -> bool:
        return isinstance(self.resolver_state, ManualEntryPending)


SignalListener = Callable[[CenterOnUser], None]


class ViewCoordinator:
    """
    Hold the selection and the center-once flag, and derive ViewState.

    The ranking itself is owned by the pipeline; the coordinator only reads it.
    """

    def __init__(self):
        self._selected_id: str | None = None
        self._centered = False
        self._listeners: list[SignalListener] = []

    @property
    def selected_station_id(self) -> str | None:
        return self._selected_id

    @property
    def has_centered(self) -> bool:
        return self._centered

    def on_signal(self, listener: SignalListener) -> None:
        """Register a consumer for CenterOnUser signals."""
        self._listeners.append(listener)

    def on_resolver_transition(self, old: ResolverState, new: ResolverState) -> None:
        """
        Track resolver transitions for the center-once signal.

        The signal fires on the first Resolved state only and is re-armed when
        the resolver passes through Idle or Failed.
        """
        if isinstance(new, ManualEntryPending):
            # The form can open over a failure, or a failure can land under it
            if isinstance(new.previous, (Idle, Failed)):
                self._centered = False
            return
        if isinstance(new, (Idle, Failed)):
            self._centered = False
            return
        if isinstance(new, Resolved) and not self._centered:
            self._centered = True
            signal = CenterOnUser(new.coordinate)
            logger.debug("Centering on user at %s", new.coordinate)
            for listener in list(self._listeners):
                listener(signal)

    def on_ranking(self, ranking: RankingResult | None) -> None:
        """Drop the selection if the new ranking no longer contains it."""
        if self._selected_id is None:
            return
        if ranking is None or self._selected_id not in ranking:
            self._selected_id = None

    def select(self, station_id: str, ranking: RankingResult | None) -> Station | None:
        """
        Select a station from the current ranking.

        Unknown ids are ignored.

        Returns:
            The selected station, or None if the id is not in the ranking
        """
        if ranking is None:
            return None
        station = ranking.find(station_id)
        if station is not None:
            self._selected_id = station_id
        return station

    def derive(
        self,
        resolver_state: ResolverState,
        ranking: RankingResult | None,
        fetching: bool = False,
        fetch_error: str | None = None,
        theme: str | None = None,
    ) -> ViewState:
        """Build the ViewState for the current resolver state and ranking."""
        center = resolved_coordinate(resolver_state)

        # A ranking from another coordinate is never shown
        if ranking is not None and (center is None or ranking.origin != center):
            ranking = None

        stations = ranking.stations if ranking is not None else ()

        route = None
        if center is not None and ranking is not None and ranking.nearest is not None:
            nearest = ranking.nearest
            route = RouteOverlay(start=center, end=nearest.coordinate, station_id=nearest.id)

        shown_state = resolver_state
        if isinstance(shown_state, ManualEntryPending):
            shown_state = shown_state.previous

        if isinstance(shown_state, Locating):
            loading_label = LOCATING_LABEL
        elif fetching:
            loading_label = FETCHING_LABEL
        else:
            loading_label = None

        if isinstance(shown_state, Failed):
            error_message = shown_state.message
        else:
            error_message = fetch_error

        selected = self._selected_id
        if selected is not None and (ranking is None or selected not in ranking):
            selected = None

        return ViewState(
            resolver_state=resolver_state,
            map_center=center,
            stations=stations,
            selected_station_id=selected,
            route_overlay=route,
            loading_label=loading_label,
            error_message=error_message,
            stale=ranking.stale if ranking is not None else False,
            theme=theme,
        )
