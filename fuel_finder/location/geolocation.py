"""Device geolocation capability consumed by the resolver."""

from dataclasses import dataclass
from typing import Protocol

from ..errors import GeoErrorKind
from ..geo.coordinate import Coordinate

# Browser Geolocation API error codes
PERMISSION_DENIED = 1
POSITION_UNAVAILABLE = 2
TIMEOUT = 3

_ERROR_CODES = {
    PERMISSION_DENIED: GeoErrorKind.PERMISSION_DENIED,
    POSITION_UNAVAILABLE: GeoErrorKind.POSITION_UNAVAILABLE,
    TIMEOUT: GeoErrorKind.TIMEOUT,
}


@dataclass(frozen=True)
class GeolocationOptions:
    """Options passed with every position request."""

    high_accuracy: bool = True
    timeout_s: float = 30.0
    maximum_age_s: float = 60.0

    @property
    def timeout_ms(self) -> int:
        return int(self.timeout_s * 1000)

    @property
    def maximum_age_ms(self) -> int:
        return int(self.maximum_age_s * 1000)


class GeolocationProvider(Protocol):
    """Something that can report where the device is."""

    async def get_current_position(self, options: GeolocationOptions) -> Coordinate:
        """
        Return the device position.

        Raises:
            GeolocationError: when the position cannot be obtained
        """
        ...


def classify_error_code(code: object) -> GeoErrorKind:
    """Map a platform error code to a GeoErrorKind (UNKNOWN if unrecognized)."""
    try:
        return _ERROR_CODES.get(int(code), GeoErrorKind.UNKNOWN)
    except (TypeError, ValueError):
        return GeoErrorKind.UNKNOWN
