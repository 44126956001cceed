"""Geolocation provider answered by the browser over the HTTP API."""

import asyncio
import logging
from dataclasses import dataclass

from ..errors import GeoErrorKind, GeolocationError
from ..geo.coordinate import Coordinate
from ..location.geolocation import GeolocationOptions, classify_error_code

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PendingRequest:
    """A position request waiting for the browser."""

    request_id: int
    options: GeolocationOptions


class BrowserGeolocation:
    """
    Bridge between the resolver and navigator.geolocation in the page.

    The page polls `pending()`, runs getCurrentPosition with the published
    options and reports back with the same request id. Reports for any other
    id are ignored.
    """

    def __init__(self):
        self._next_id = 0
        self._pending: PendingRequest | None = None
        self._future: asyncio.Future | None = None

    def pending(self) -> PendingRequest | None:
        return self._pending

    async def get_current_position(self, options: GeolocationOptions) -> Coordinate:
        self._next_id += 1
        request = PendingRequest(self._next_id, options)
        future = asyncio.get_running_loop().create_future()
        if self._future is not None and not self._future.done():
            # Only the latest request is published to the page
            self._future.set_exception(
                GeolocationError(GeoErrorKind.UNKNOWN, "superseded by a newer request")
            )
        self._pending = request
        self._future = future

        try:
            return await asyncio.wait_for(future, timeout=options.timeout_s)
        except asyncio.TimeoutError:
            raise GeolocationError(GeoErrorKind.TIMEOUT, "no answer from browser") from None
        finally:
            if self._pending is request:
                self._pending = None
                self._future = None

    def _take(self, request_id: int) -> asyncio.Future | None:
        if self._pending is None or self._pending.request_id != request_id:
            logger.debug("Ignoring browser report for stale request %s", request_id)
            return None
        future = self._future
        if future is None or future.done():
            return None
        return future

    def report_position(self, request_id: int, lat: float, lon: float) -> bool:
        """Deliver a position. Returns False if the request is no longer pending."""
        future = self._take(request_id)
        if future is None:
            return False
        future.set_result(Coordinate(lat=float(lat), lon=float(lon)))
        return True

    def report_error(self, request_id: int, code: int, message: str = "") -> bool:
        """Deliver a browser error code (1 denied, 2 unavailable, 3 timeout)."""
        future = self._take(request_id)
        if future is None:
            return False
        future.set_exception(GeolocationError(classify_error_code(code), message))
        return True

    def report_unsupported(self, request_id: int) -> bool:
        """The page has no navigator.geolocation."""
        future = self._take(request_id)
        if future is None:
            return False
        future.set_exception(GeolocationError(GeoErrorKind.UNSUPPORTED))
        return True
