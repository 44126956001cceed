"""Runtime configuration, overridable through FUEL_FINDER_* environment variables."""

import os
from dataclasses import dataclass
from pathlib import Path

# Defaults
OVERPASS_URL = "https://overpass-api.de/api/interpreter"
AMENITY = "fuel"
RADIUS_METERS = 2000
QUERY_TIMEOUT_S = 25
USER_AGENT = "FuelFinder/0.1"
THEME_FILE = Path.home() / ".config" / "fuel-finder" / "theme.json"

GEO_HIGH_ACCURACY = True
GEO_TIMEOUT_S = 30.0
GEO_MAX_AGE_S = 60.0

ENV_PREFIX = "FUEL_FINDER_"


def _get_env(name: str, default: str | None = None) -> str | None:
    value = os.getenv(ENV_PREFIX + name)
    if value is None or value.strip() == "":
        return default
    return value.strip()


def _get_float(name: str, default: float | None) -> float | None:
    value = _get_env(name)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        raise ValueError(f"Invalid number in {ENV_PREFIX}{name}: {value!r}") from None


def _get_bool(name: str, default: bool) -> bool:
    value = _get_env(name)
    if value is None:
        return default
    return value.lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class FinderConfig:
    """Settings for one finder session."""

    overpass_url: str = OVERPASS_URL
    amenity: str = AMENITY
    radius_meters: int = RADIUS_METERS
    query_timeout_s: int = QUERY_TIMEOUT_S
    fetch_timeout_s: float | None = None  # None: wait for the server
    user_agent: str = USER_AGENT
    theme_file: Path = THEME_FILE
    geo_high_accuracy: bool = GEO_HIGH_ACCURACY
    geo_timeout_s: float = GEO_TIMEOUT_S
    geo_max_age_s: float = GEO_MAX_AGE_S

    @classmethod
    def from_env(cls) -> "FinderConfig":
        """Build a config from defaults overridden by the environment."""
        return cls(
            overpass_url=_get_env("OVERPASS_URL", OVERPASS_URL),
            amenity=_get_env("AMENITY", AMENITY),
            radius_meters=int(_get_float("RADIUS_METERS", RADIUS_METERS)),
            query_timeout_s=int(_get_float("QUERY_TIMEOUT_S", QUERY_TIMEOUT_S)),
            fetch_timeout_s=_get_float("FETCH_TIMEOUT_S", None),
            user_agent=_get_env("USER_AGENT", USER_AGENT),
            theme_file=Path(_get_env("THEME_FILE", str(THEME_FILE))),
            geo_high_accuracy=_get_bool("HIGH_ACCURACY", GEO_HIGH_ACCURACY),
            geo_timeout_s=_get_float("GEO_TIMEOUT_S", GEO_TIMEOUT_S),
            geo_max_age_s=_get_float("GEO_MAX_AGE_S", GEO_MAX_AGE_S),
        )
