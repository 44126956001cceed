"""Error taxonomy shared by the location and station pipelines."""

from enum import Enum


class GeoErrorKind(str, Enum):
    """Why a device location request failed."""

    PERMISSION_DENIED = "permission_denied"
    POSITION_UNAVAILABLE = "position_unavailable"
    TIMEOUT = "timeout"
    UNSUPPORTED = "unsupported"
    UNKNOWN = "unknown"


class FetchErrorKind(str, Enum):
    """Why a station query failed."""

    FETCH_FAILED = "fetch_failed"


class ValidationErrorKind(str, Enum):
    """Why a manually entered coordinate was rejected."""

    OUT_OF_RANGE = "out_of_range"
    NOT_A_NUMBER = "not_a_number"


GEO_ERROR_MESSAGES = {
    GeoErrorKind.PERMISSION_DENIED: "Location access denied. Please allow location permission and try again.",
    GeoErrorKind.POSITION_UNAVAILABLE: "Location unavailable. Please check your GPS/network connection.",
    GeoErrorKind.TIMEOUT: "Location request timed out. Please try again.",
    GeoErrorKind.UNSUPPORTED: "Geolocation is not supported by your browser.",
    GeoErrorKind.UNKNOWN: "Unable to retrieve your location.",
}

FETCH_ERROR_MESSAGE = "Failed to load nearby petrol stations. Please try again later."

VALIDATION_ERROR_MESSAGE = "Please enter valid coordinates (Lat: -90 to 90, Lon: -180 to 180)"


class FuelFinderError(Exception):
    """Base class for recoverable pipeline errors."""

    message = "Unexpected error."

    def __str__(self) -> str:
        return self.message


class GeolocationError(FuelFinderError):
    """A device location request ended without a position."""

    def __init__(self, kind: GeoErrorKind, detail: str = ""):
        super().__init__(kind, detail)
        self.kind = kind
        self.detail = detail
        self.message = GEO_ERROR_MESSAGES[kind]


class StationFetchError(FuelFinderError):
    """The POI service could not deliver a station list."""

    message = FETCH_ERROR_MESSAGE

    def __init__(self, detail: str = "", status_code: int | None = None):
        super().__init__(detail, status_code)
        self.kind = FetchErrorKind.FETCH_FAILED
        self.detail = detail
        self.status_code = status_code


class CoordinateValidationError(FuelFinderError, ValueError):
    """Manual coordinate input was rejected."""

    message = VALIDATION_ERROR_MESSAGE

    def __init__(self, kind: ValidationErrorKind, field: str = ""):
        super().__init__(kind, field)
        self.kind = kind
        self.field = field
