"""
Location resolver state machine.

Resolves the user's position from the device, with manual coordinate entry as
a fallback. States:

    Idle --locate--> Locating --ok--> Resolved(coordinate)
                              --error--> Failed(kind)
    Failed / Resolved --locate--> Locating
    any --request_manual_entry--> ManualEntryPending(previous)
    ManualEntryPending --submit_manual--> Resolved(coordinate)
    ManualEntryPending --cancel_manual_entry--> previous

Device requests cannot be cancelled, so each one carries a generation number
and a completion is applied only if no newer request (device or manual) has
started since.
"""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import ClassVar, Union

from ..errors import GEO_ERROR_MESSAGES, GeoErrorKind, GeolocationError
from ..geo.coordinate import Coordinate, parse_coordinate
from .geolocation import GeolocationOptions, GeolocationProvider

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Idle:
    """Nothing requested yet."""

    name: ClassVar[str] = "idle"


@dataclass(frozen=True)
class Locating:
    """A device request is in flight."""

    generation: int
    name: ClassVar[str] = "locating"


@dataclass(frozen=True)
class Resolved:
    """The current user position is known."""

    coordinate: Coordinate
    source: str = "device"  # "device" or "manual"
    name: ClassVar[str] = "resolved"


@dataclass(frozen=True)
class Failed:
    """The last device request failed."""

    kind: GeoErrorKind
    name: ClassVar[str] = "failed"

    @property
    def message(self) -> str:
        return GEO_ERROR_MESSAGES[self.kind]


@dataclass(frozen=True)
class ManualEntryPending:
    """The coordinate form is open; `previous` is restored on cancel."""

    previous: "ResolverState"
    name: ClassVar[str] = "manual_entry_pending"


ResolverState = Union[Idle, Locating, Resolved, Failed, ManualEntryPending]

StateListener = Callable[[ResolverState, ResolverState], None]


def resolved_coordinate(state: ResolverState) -> Coordinate | None:
    """
    Coordinate that is current in `state`, if any.

    While the manual form is open the position shown behind it stays current.
    """
    if isinstance(state, ManualEntryPending):
        state = state.previous
    if isinstance(state, Resolved):
        return state.coordinate
    return None


class LocationResolver:
    """
    Produce a confirmed user coordinate.

    Transitions are synchronous and notify listeners immediately; only the
    device request itself runs as an asyncio task.
    """

    def __init__(
        self,
        provider: GeolocationProvider | None,
        options: GeolocationOptions | None = None,
    ):
        """
        Initialize the resolver.

        Args:
            provider: Device geolocation, or None when the platform has none
            options: Options sent with every device request
        """
        self.provider = provider
        self.options = options or GeolocationOptions()
        self._state: ResolverState = Idle()
        self._generation = 0
        self._task: asyncio.Task | None = None
        self._listeners: list[StateListener] = []

    @property
    def state(self) -> ResolverState:
        return self._state

    @property
    def coordinate(self) -> Coordinate | None:
        return resolved_coordinate(self._state)

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def pending_task(self) -> asyncio.Task | None:
        """Task of the latest device request, if one was issued."""
        return self._task

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Call `listener(old, new)` on every transition. Returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _transition(self, new_state: ResolverState) -> None:
        old_state = self._state
        self._state = new_state
        logger.debug("Resolver %s -> %s", old_state.name, new_state.name)
        for listener in list(self._listeners):
            listener(old_state, new_state)

    def locate(self) -> asyncio.Task | None:
        """
        Start (or retry) a device location request.

        Must be called from inside a running event loop. A call while a request
        is already in flight is coalesced into it; if the manual form covers
        that request, the form is closed.

        Returns:
            The task for the in-flight request, or None if the platform has no
            geolocation and the resolver moved straight to Failed(UNSUPPORTED)
        """
        if isinstance(self._state, Locating):
            return self._task
        if isinstance(self._state, ManualEntryPending) and isinstance(self._state.previous, Locating):
            self._transition(self._state.previous)
            return self._task

        if self.provider is None:
            logger.info("No geolocation capability available")
            self._transition(Failed(GeoErrorKind.UNSUPPORTED))
            return None

        self._generation += 1
        generation = self._generation
        self._transition(Locating(generation))
        self._task = asyncio.get_running_loop().create_task(self._request(generation))
        return self._task

    async def _request(self, generation: int) -> ResolverState:
        try:
            coordinate = await self.provider.get_current_position(self.options)
        except GeolocationError as e:
            logger.warning("Geolocation failed: %s", e.kind.value)
            outcome: ResolverState = Failed(e.kind)
        except Exception:
            logger.exception("Geolocation provider raised an unexpected error")
            outcome = Failed(GeoErrorKind.UNKNOWN)
        else:
            outcome = Resolved(coordinate)

        self._complete(generation, outcome)
        return outcome

    def _complete(self, generation: int, outcome: ResolverState) -> None:
        if generation != self._generation:
            logger.debug(
                "Discarding superseded location response (request %d, latest %d)",
                generation,
                self._generation,
            )
            return

        if isinstance(self._state, ManualEntryPending):
            # Keep the form open; the outcome is what cancelling returns to
            self._transition(ManualEntryPending(previous=outcome))
            return

        if isinstance(self._state, Locating):
            self._transition(outcome)

    def request_manual_entry(self) -> None:
        """Open manual coordinate entry from any state."""
        if isinstance(self._state, ManualEntryPending):
            return
        self._transition(ManualEntryPending(previous=self._state))

    def cancel_manual_entry(self) -> None:
        """Close manual entry and return to the state it was opened from."""
        if isinstance(self._state, ManualEntryPending):
            self._transition(self._state.previous)

    def submit_manual(self, lat: object, lon: object) -> Coordinate:
        """
        Resolve to a manually entered coordinate.

        Opens manual entry first if it is not open. Any in-flight device
        request is superseded.

        Raises:
            CoordinateValidationError: input rejected; state stays ManualEntryPending
        """
        self.request_manual_entry()
        coordinate = parse_coordinate(lat, lon)

        self._generation += 1
        self._transition(Resolved(coordinate, source="manual"))
        return coordinate
