"""Tests for the HTTP API."""

import asyncio

import httpx
import pytest

from fuel_finder.errors import GeoErrorKind, GeolocationError
from fuel_finder.finder import FuelFinder
from fuel_finder.location.geolocation import GeolocationOptions
from fuel_finder.location.resolver import LocationResolver
from fuel_finder.stations.overpass import OverpassClient
from fuel_finder.theme import MemoryThemeStore, ThemeService
from fuel_finder.web import app as web_app
from fuel_finder.web.browser_geolocation import BrowserGeolocation


def api_client() -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.ASGITransport(app=web_app.app), base_url="http://test")


def make_session(provider, http) -> FuelFinder:
    return FuelFinder(
        LocationResolver(provider),
        OverpassClient(http_client=http),
        theme=ThemeService(MemoryThemeStore()),
    )


@pytest.fixture
def install(monkeypatch):
    """Install a session (and optional bridge) as the app's globals."""

    def _install(session, bridge=None):
        monkeypatch.setattr(web_app, "finder", session)
        monkeypatch.setattr(web_app, "browser_geolocation", bridge)

    return _install


class TestManualLocation:
    """Tests for /api/manual."""

    def test_manual_location_lists_stations(self, install, overpass):
        async def scenario():
            async with overpass.client() as http:
                session = make_session(None, http)
                install(session)
                async with api_client() as client:
                    response = await client.post("/api/manual", json={"lat": "12.97", "lon": 77.59})
                    assert response.status_code == 200
                    await session.settle()
                    return (await client.get("/api/view")).json()

        view = asyncio.run(scenario())
        assert view["resolver_state"] == "resolved"
        assert view["map_center"] == {"lat": 12.97, "lon": 77.59}
        assert [s["id"] for s in view["stations"]] == ["way/2", "node/1"]
        assert view["stations"][0]["distance_label"].endswith(" m")
        assert view["stations"][1]["brand"] == "IndianOil"
        assert view["route_overlay"] == {
            "station_id": "way/2",
            "path": [[12.97, 77.59], [12.971, 77.591]],
        }

    @pytest.mark.parametrize(
        "payload, kind, field",
        [
            ({"lat": 200, "lon": 0}, "out_of_range", "lat"),
            ({"lat": 0, "lon": "east"}, "not_a_number", "lon"),
        ],
    )
    def test_invalid_coordinates(self, install, overpass, payload, kind, field):
        async def scenario():
            async with overpass.client() as http:
                session = make_session(None, http)
                install(session)
                async with api_client() as client:
                    return await client.post("/api/manual", json=payload)

        response = asyncio.run(scenario())
        assert response.status_code == 422
        detail = response.json()["detail"]
        assert detail["kind"] == kind
        assert detail["field"] == field
        assert "Lat: -90 to 90" in detail["message"]
        assert overpass.requests == []

    def test_open_and_cancel_form(self, install, overpass):
        async def scenario():
            async with overpass.client() as http:
                install(make_session(None, http))
                async with api_client() as client:
                    opened = (await client.post("/api/manual/open")).json()
                    cancelled = (await client.post("/api/manual/cancel")).json()
                    return opened, cancelled

        opened, cancelled = asyncio.run(scenario())
        assert opened["manual_entry_open"]
        assert opened["resolver_state"] == "manual_entry_pending"
        assert not cancelled["manual_entry_open"]
        assert cancelled["resolver_state"] == "idle"


class TestSessionEndpoints:
    """Tests for selection, theme and refresh."""

    def test_select_station_by_path_id(self, install, overpass):
        async def scenario():
            async with overpass.client() as http:
                session = make_session(None, http)
                install(session)
                async with api_client() as client:
                    await client.post("/api/manual", json={"lat": 12.97, "lon": 77.59})
                    await session.settle()
                    selected = (await client.post("/api/stations/node/1/select")).json()
                    unknown = (await client.post("/api/stations/node/404/select")).json()
                    return selected, unknown

        selected, unknown = asyncio.run(scenario())
        assert selected["selected_station_id"] == "node/1"
        assert unknown["selected_station_id"] == "node/1"

    def test_toggle_theme(self, install, overpass):
        async def scenario():
            async with overpass.client() as http:
                install(make_session(None, http))
                async with api_client() as client:
                    return (await client.post("/api/theme/toggle")).json()

        assert asyncio.run(scenario())["theme"] == "dark"

    def test_refresh_fetches_again(self, install, overpass):
        async def scenario():
            async with overpass.client() as http:
                session = make_session(None, http)
                install(session)
                async with api_client() as client:
                    await client.post("/api/manual", json={"lat": 12.97, "lon": 77.59})
                    await session.settle()
                    await client.post("/api/refresh")
                    await session.settle()

        asyncio.run(scenario())
        assert len(overpass.requests) == 2

    def test_locate_without_geolocation(self, install, overpass):
        async def scenario():
            async with overpass.client() as http:
                install(make_session(None, http))
                async with api_client() as client:
                    return (await client.post("/api/locate")).json()

        view = asyncio.run(scenario())
        assert view["resolver_state"] == "failed"
        assert view["error_kind"] == "unsupported"

    def test_not_initialized(self, install):
        install(None)

        async def scenario():
            async with api_client() as client:
                return await client.get("/api/view")

        assert asyncio.run(scenario()).status_code == 503


class TestGeolocationBridge:
    """Tests for answering position requests from the page."""

    def test_position_report(self, install, overpass):
        async def scenario():
            async with overpass.client() as http:
                bridge = BrowserGeolocation()
                session = make_session(bridge, http)
                install(session, bridge)
                async with api_client() as client:
                    session.start()
                    await asyncio.sleep(0)

                    request = (await client.get("/api/geolocation/request")).json()
                    assert request["pending"]
                    assert request["high_accuracy"] is True
                    assert request["timeout_ms"] == 30000
                    assert request["maximum_age_ms"] == 60000

                    path = f"/api/geolocation/{request['request_id']}"
                    first = (await client.post(path, json={"lat": 12.97, "lon": 77.59})).json()
                    second = (await client.post(path, json={"lat": 1.0, "lon": 1.0})).json()
                    await session.settle()

                    after = (await client.get("/api/geolocation/request")).json()
                    view = (await client.get("/api/view")).json()
                    return first, second, after, view

        first, second, after, view = asyncio.run(scenario())
        assert first == {"accepted": True}
        assert second == {"accepted": False}
        assert after["pending"] is False
        assert view["map_center"] == {"lat": 12.97, "lon": 77.59}
        assert len(view["stations"]) == 2

    @pytest.mark.parametrize(
        "report, kind",
        [
            ({"error_code": 1, "message": "User denied Geolocation"}, "permission_denied"),
            ({"error_code": 3}, "timeout"),
            ({"unsupported": True}, "unsupported"),
        ],
    )
    def test_error_report(self, install, overpass, report, kind):
        async def scenario():
            async with overpass.client() as http:
                bridge = BrowserGeolocation()
                session = make_session(bridge, http)
                install(session, bridge)
                async with api_client() as client:
                    session.start()
                    await asyncio.sleep(0)
                    request_id = bridge.pending().request_id
                    await client.post(f"/api/geolocation/{request_id}", json=report)
                    await session.settle()
                    return (await client.get("/api/view")).json()

        view = asyncio.run(scenario())
        assert view["resolver_state"] == "failed"
        assert view["error_kind"] == kind
        assert view["error_message"]
        assert overpass.requests == []

    def test_newer_request_releases_older_one(self):
        async def scenario():
            bridge = BrowserGeolocation()
            first = asyncio.ensure_future(bridge.get_current_position(GeolocationOptions()))
            await asyncio.sleep(0)
            second = asyncio.ensure_future(bridge.get_current_position(GeolocationOptions()))
            await asyncio.sleep(0)

            assert bridge.pending().request_id == 2
            assert not bridge.report_position(1, 0.0, 0.0)
            with pytest.raises(GeolocationError):
                await first

            assert bridge.report_position(2, 1.0, 2.0)
            return await second

        coordinate = asyncio.run(scenario())
        assert (coordinate.lat, coordinate.lon) == (1.0, 2.0)

    def test_empty_report_is_rejected(self, install):
        bridge = BrowserGeolocation()
        install(None, bridge)

        async def scenario():
            async with api_client() as client:
                return await client.post("/api/geolocation/1", json={})

        assert asyncio.run(scenario()).status_code == 400

    def test_bridge_times_out(self):
        async def scenario():
            bridge = BrowserGeolocation()
            await bridge.get_current_position(GeolocationOptions(timeout_s=0.01))

        with pytest.raises(GeolocationError) as exc_info:
            asyncio.run(scenario())
        assert exc_info.value.kind is GeoErrorKind.TIMEOUT
