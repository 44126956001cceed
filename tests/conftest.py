"""Shared fixtures: a controllable geolocation provider and a fake Overpass API."""

import asyncio
import json

import httpx
import pytest

from fuel_finder.errors import GeoErrorKind, GeolocationError
from fuel_finder.geo.coordinate import Coordinate

USER = Coordinate(12.97, 77.59)

OVERPASS_PAYLOAD = {
    "version": 0.6,
    "elements": [
        {
            "type": "node",
            "id": 1,
            "lat": 12.975,
            "lon": 77.595,
            "tags": {
                "amenity": "fuel",
                "name": "Indian Oil",
                "brand": "IndianOil",
                "addr:street": "MG Road",
                "addr:housenumber": "12",
                "addr:city": "Bengaluru",
            },
        },
        {
            "type": "way",
            "id": 2,
            "center": {"lat": 12.971, "lon": 77.591},
            "tags": {"amenity": "fuel", "name": "HP Petrol Pump"},
        },
    ],
}


class FakeGeolocation:
    """Geolocation provider whose requests are answered by the test."""

    def __init__(self):
        self.requests: list[asyncio.Future] = []
        self.options = []

    async def get_current_position(self, options):
        future = asyncio.get_running_loop().create_future()
        self.requests.append(future)
        self.options.append(options)
        return await future

    def succeed(self, index: int, lat: float, lon: float) -> None:
        self.requests[index].set_result(Coordinate(lat, lon))

    def fail(self, index: int, kind: GeoErrorKind) -> None:
        self.requests[index].set_exception(GeolocationError(kind))


class FakeOverpass:
    """httpx transport answering Overpass queries from a queue of responses."""

    def __init__(self, *responses):
        self.responses = list(responses) or [(200, OVERPASS_PAYLOAD)]
        self.requests: list[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        status, payload = self.responses[0] if len(self.responses) == 1 else self.responses.pop(0)
        if isinstance(payload, (dict, list)):
            return httpx.Response(status, content=json.dumps(payload).encode())
        return httpx.Response(status, content=payload or b"")

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))


@pytest.fixture
def geolocation():
    return FakeGeolocation()


@pytest.fixture
def overpass():
    return FakeOverpass()


@pytest.fixture
def user():
    return USER


@pytest.fixture
def make_overpass():
    """Build a FakeOverpass with specific (status, payload) responses."""
    return FakeOverpass
