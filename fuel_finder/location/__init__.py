"""Location module: device geolocation and the resolver state machine."""

from .geolocation import GeolocationOptions, GeolocationProvider, classify_error_code
from .resolver import (
    Failed,
    Idle,
    LocationResolver,
    Locating,
    ManualEntryPending,
    Resolved,
    ResolverState,
)

__all__ = [
    "GeolocationOptions",
    "GeolocationProvider",
    "classify_error_code",
    "LocationResolver",
    "ResolverState",
    "Idle",
    "Locating",
    "Resolved",
    "Failed",
    "ManualEntryPending",
]
