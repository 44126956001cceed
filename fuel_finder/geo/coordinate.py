"""Coordinate value type and manual input validation."""

import math
from dataclasses import dataclass

from ..errors import CoordinateValidationError, ValidationErrorKind

LAT_RANGE = (-90.0, 90.0)
LON_RANGE = (-180.0, 180.0)


@dataclass(frozen=True)
class Coordinate:
    """A latitude/longitude pair in decimal degrees."""

    lat: float
    lon: float

    def as_pair(self) -> list[float]:
        """Return [lat, lon], the order map libraries expect."""
        return [self.lat, self.lon]


def _to_float(value: object, field: str) -> float:
    if isinstance(value, bool):
        raise CoordinateValidationError(ValidationErrorKind.NOT_A_NUMBER, field)
    if isinstance(value, str):
        value = value.strip()
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise CoordinateValidationError(ValidationErrorKind.NOT_A_NUMBER, field) from None
    if math.isnan(number):
        raise CoordinateValidationError(ValidationErrorKind.NOT_A_NUMBER, field)
    return number


def parse_coordinate(lat: object, lon: object) -> Coordinate:
    """
    Build a Coordinate from raw user input.

    Accepts numbers or numeric strings (as typed in a form field).

    Raises:
        CoordinateValidationError: NOT_A_NUMBER for non-numeric or NaN input,
            OUT_OF_RANGE when lat is outside [-90, 90] or lon outside [-180, 180]
    """
    lat_value = _to_float(lat, "lat")
    lon_value = _to_float(lon, "lon")

    if not LAT_RANGE[0] <= lat_value <= LAT_RANGE[1]:
        raise CoordinateValidationError(ValidationErrorKind.OUT_OF_RANGE, "lat")
    if not LON_RANGE[0] <= lon_value <= LON_RANGE[1]:
        raise CoordinateValidationError(ValidationErrorKind.OUT_OF_RANGE, "lon")

    return Coordinate(lat=lat_value, lon=lon_value)
