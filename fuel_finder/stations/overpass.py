"""
Overpass API client for nearby fuel stations.

Builds an `around:` query for nodes, ways and relations tagged with the
configured amenity, asks for centroids and tags, and normalizes the returned
elements into Station objects.

Overpass element shapes:
    node:     {"type": "node", "id": 1, "lat": .., "lon": .., "tags": {..}}
    way:      {"type": "way", "id": 2, "center": {"lat": .., "lon": ..}, "tags": {..}}
    relation: {"type": "relation", "id": 3, "center": {...}, "tags": {..}}
"""

import logging
from collections.abc import Iterable
from typing import Any

import httpx

from ..config import AMENITY, OVERPASS_URL, QUERY_TIMEOUT_S, RADIUS_METERS, USER_AGENT
from ..errors import StationFetchError
from ..geo.coordinate import Coordinate
from .models import Station

logger = logging.getLogger(__name__)

ADDRESS_TAGS = ("addr:street", "addr:housenumber", "addr:city")


def build_query(
    coordinate: Coordinate,
    radius_meters: int = RADIUS_METERS,
    amenity: str = AMENITY,
    timeout_s: int = QUERY_TIMEOUT_S,
) -> str:
    """
    Build the Overpass QL query for amenities around a point.

    Args:
        coordinate: Search center
        radius_meters: Search radius
        amenity: Value of the amenity tag to match
        timeout_s: Server-side timeout hint

    Returns:
        Overpass QL query string
    """
    around = f"around:{int(radius_meters)},{coordinate.lat},{coordinate.lon}"
    selector = f'["amenity"="{amenity}"]({around});'
    return (
        f"[out:json][timeout:{int(timeout_s)}];\n"
        "(\n"
        f"  node{selector}\n"
        f"  way{selector}\n"
        f"  relation{selector}\n"
        ");\n"
        "out center tags;"
    )


def format_address(tags: dict[str, Any]) -> str:
    """Join street, house number and city with spaces, skipping missing parts."""
    parts = []
    for key in ADDRESS_TAGS:
        value = tags.get(key)
        if value is None:
            continue
        value = str(value).strip()
        if value:
            parts.append(value)
    return " ".join(parts)


def _element_position(element: dict[str, Any]) -> tuple[float, float] | None:
    if element.get("type") == "node":
        source = element
    else:
        source = element.get("center")
    if not isinstance(source, dict):
        return None
    try:
        return float(source["lat"]), float(source["lon"])
    except (KeyError, TypeError, ValueError):
        return None


def _optional_tag(tags: dict[str, Any], key: str) -> str | None:
    value = tags.get(key)
    return value if isinstance(value, str) and value else None


def station_from_element(element: dict[str, Any]) -> Station | None:
    """
    Normalize one Overpass element.

    Returns:
        Station without a distance, or None when the element has no usable
        coordinate (nodes need lat/lon, ways and relations need a center)
    """
    if not isinstance(element, dict) or "id" not in element:
        return None
    position = _element_position(element)
    if position is None:
        return None

    tags = element.get("tags")
    if not isinstance(tags, dict):
        tags = {}

    lat, lon = position
    return Station(
        id=f"{element.get('type', 'node')}/{element['id']}",
        lat=lat,
        lon=lon,
        name=_optional_tag(tags, "name"),
        brand=_optional_tag(tags, "brand"),
        address=format_address(tags),
    )


def parse_elements(payload: Any) -> list[dict[str, Any]]:
    """Extract the element list from an Overpass JSON response."""
    if not isinstance(payload, dict):
        return []
    elements = payload.get("elements", [])
    if not isinstance(elements, list):
        return []
    return elements


def normalize_elements(elements: Iterable[dict[str, Any]]) -> list[Station]:
    """Normalize elements in response order, skipping malformed ones."""
    stations = []
    skipped = 0
    for element in elements:
        station = station_from_element(element)
        if station is None:
            skipped += 1
            continue
        stations.append(station)
    if skipped:
        logger.debug("Skipped %d elements without a coordinate", skipped)
    return stations


class OverpassClient:
    """
    Fetch nearby stations from an Overpass API endpoint.

    An httpx.AsyncClient can be injected (shared connection pool, tests);
    otherwise a client is opened per request.
    """

    def __init__(
        self,
        url: str = OVERPASS_URL,
        amenity: str = AMENITY,
        query_timeout_s: int = QUERY_TIMEOUT_S,
        fetch_timeout_s: float | None = None,
        user_agent: str = USER_AGENT,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.url = url
        self.amenity = amenity
        self.query_timeout_s = query_timeout_s
        self.fetch_timeout_s = fetch_timeout_s
        self.user_agent = user_agent
        self._http_client = http_client

    async def _post(self, client: httpx.AsyncClient, query: str) -> httpx.Response:
        return await client.post(
            self.url,
            data={"data": query},
            headers={"User-Agent": self.user_agent, "Accept": "application/json"},
        )

    async def fetch_elements(
        self, coordinate: Coordinate, radius_meters: int = RADIUS_METERS
    ) -> list[dict[str, Any]]:
        """
        Run the query and return the raw elements.

        Raises:
            StationFetchError: on transport errors, non-success status or invalid JSON
        """
        query = build_query(coordinate, radius_meters, self.amenity, self.query_timeout_s)

        try:
            if self._http_client is not None:
                response = await self._post(self._http_client, query)
            else:
                async with httpx.AsyncClient(timeout=self.fetch_timeout_s) as client:
                    response = await self._post(client, query)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.warning("Overpass request failed: %s", e)
            raise StationFetchError(str(e)) from e

        if not response.is_success:
            logger.warning("Overpass returned HTTP %d", response.status_code)
            raise StationFetchError(
                f"HTTP {response.status_code}", status_code=response.status_code
            )

        try:
            payload = response.json()
        except ValueError as e:
            logger.warning("Overpass returned invalid JSON: %s", e)
            raise StationFetchError("invalid JSON", status_code=response.status_code) from e

        return parse_elements(payload)

    async def fetch_stations(
        self, coordinate: Coordinate, radius_meters: int = RADIUS_METERS
    ) -> list[Station]:
        """
        Fetch and normalize stations around `coordinate`.

        Returns:
            Stations in response order, without distances (empty if none found)
        """
        elements = await self.fetch_elements(coordinate, radius_meters)
        stations = normalize_elements(elements)
        logger.info(
            "Overpass: %d stations (%d elements) within %d m of %.5f,%.5f",
            len(stations),
            len(elements),
            radius_meters,
            coordinate.lat,
            coordinate.lon,
        )
        return stations
