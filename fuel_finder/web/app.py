"""
FastAPI interface for Fuel Finder.

Exposes the session's view state and callbacks to the page, plus the
endpoints the page uses to answer geolocation requests.
"""

import logging

from fastapi import Depends, FastAPI, HTTPException
from pydantic import BaseModel

from ..config import FinderConfig
from ..errors import CoordinateValidationError
from ..finder import FuelFinder
from ..geo.distance import format_distance
from ..location.resolver import Failed, ManualEntryPending
from ..stations.models import Station
from ..view.coordinator import ViewState
from .browser_geolocation import BrowserGeolocation

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Fuel Finder",
    description="Nearby fuel stations ranked by distance",
    version="0.1.0",
)

# Session state (created on startup)
finder: FuelFinder | None = None
browser_geolocation: BrowserGeolocation | None = None


def build_finder(provider: BrowserGeolocation) -> FuelFinder:
    """Create the session from environment configuration."""
    return FuelFinder.from_config(FinderConfig.from_env(), provider)


@app.on_event("startup")
async def startup_event():
    """Create the session and ask the browser for a first position."""
    global finder, browser_geolocation

    browser_geolocation = BrowserGeolocation()
    finder = build_finder(browser_geolocation)
    finder.start()
    logger.info("Fuel Finder session started")


def get_finder() -> FuelFinder:
    if finder is None:
        raise HTTPException(status_code=503, detail="Fuel Finder is not initialized")
    return finder


def get_browser_geolocation() -> BrowserGeolocation:
    if browser_geolocation is None:
        raise HTTPException(status_code=503, detail="Geolocation bridge is not initialized")
    return browser_geolocation


class CoordinateModel(BaseModel):
    lat: float
    lon: float


class StationModel(BaseModel):
    """A ranked station as shown in the list and on the map."""

    id: str
    name: str | None = None
    brand: str | None = None
    address: str = ""
    lat: float
    lon: float
    distance_meters: float | None = None
    distance_label: str = ""


class RouteModel(BaseModel):
    """Line from the user to the nearest station, as [[lat, lon], [lat, lon]]."""

    station_id: str
    path: list[list[float]]


class ViewResponse(BaseModel):
    """Everything the page needs to render the map and the list."""

    resolver_state: str
    error_kind: str | None = None
    manual_entry_open: bool = False
    map_center: CoordinateModel | None = None
    stations: list[StationModel] = []
    selected_station_id: str | None = None
    route_overlay: RouteModel | None = None
    loading_label: str | None = None
    error_message: str | None = None
    stale: bool = False
    theme: str | None = None


class ManualLocationRequest(BaseModel):
    """Raw form values; validated by the resolver."""

    lat: float | str
    lon: float | str


class PositionReport(BaseModel):
    """Outcome of navigator.geolocation.getCurrentPosition in the page."""

    lat: float | None = None
    lon: float | None = None
    error_code: int | None = None
    message: str = ""
    unsupported: bool = False


class GeolocationRequestResponse(BaseModel):
    pending: bool
    request_id: int | None = None
    high_accuracy: bool = True
    timeout_ms: int | None = None
    maximum_age_ms: int | None = None


def station_to_model(station: Station) -> StationModel:
    return StationModel(
        id=station.id,
        name=station.name,
        brand=station.brand,
        address=station.address,
        lat=station.lat,
        lon=station.lon,
        distance_meters=station.distance_meters,
        distance_label=format_distance(station.distance_meters),
    )


def view_to_response(view: ViewState) -> ViewResponse:
    """Convert a ViewState into the API response model."""
    state = view.resolver_state
    shown = state.previous if isinstance(state, ManualEntryPending) else state

    center = None
    if view.map_center is not None:
        center = CoordinateModel(lat=view.map_center.lat, lon=view.map_center.lon)

    route = None
    if view.route_overlay is not None:
        route = RouteModel(
            station_id=view.route_overlay.station_id,
            path=view.route_overlay.as_path(),
        )

    return ViewResponse(
        resolver_state=state.name,
        error_kind=shown.kind.value if isinstance(shown, Failed) else None,
        manual_entry_open=view.manual_entry_open,
        map_center=center,
        stations=[station_to_model(s) for s in view.stations],
        selected_station_id=view.selected_station_id,
        route_overlay=route,
        loading_label=view.loading_label,
        error_message=view.error_message,
        stale=view.stale,
        theme=view.theme,
    )


@app.get("/api/view", response_model=ViewResponse)
async def api_view(session: FuelFinder = Depends(get_finder)) -> ViewResponse:
    """Current view state."""
    return view_to_response(session.view())


@app.post("/api/locate", response_model=ViewResponse)
async def api_locate(session: FuelFinder = Depends(get_finder)) -> ViewResponse:
    """Retry device geolocation (no-op while a request is in flight)."""
    session.retry_locate()
    return view_to_response(session.view())


@app.post("/api/refresh", response_model=ViewResponse)
async def api_refresh(session: FuelFinder = Depends(get_finder)) -> ViewResponse:
    """Fetch stations again for the current position."""
    session.refresh_stations()
    return view_to_response(session.view())


@app.post("/api/manual/open", response_model=ViewResponse)
async def api_manual_open(session: FuelFinder = Depends(get_finder)) -> ViewResponse:
    session.request_manual_entry()
    return view_to_response(session.view())


@app.post("/api/manual/cancel", response_model=ViewResponse)
async def api_manual_cancel(session: FuelFinder = Depends(get_finder)) -> ViewResponse:
    session.cancel_manual_entry()
    return view_to_response(session.view())


@app.post("/api/manual", response_model=ViewResponse)
async def api_manual(
    location: ManualLocationRequest,
    session: FuelFinder = Depends(get_finder),
) -> ViewResponse:
    """Use a manually entered position."""
    try:
        session.submit_manual_coordinate(location.lat, location.lon)
    except CoordinateValidationError as e:
        raise HTTPException(
            status_code=422,
            detail={"message": e.message, "kind": e.kind.value, "field": e.field},
        ) from e
    return view_to_response(session.view())


@app.post("/api/stations/{station_id:path}/select", response_model=ViewResponse)
async def api_select_station(
    station_id: str,
    session: FuelFinder = Depends(get_finder),
) -> ViewResponse:
    """Select a station; unknown ids leave the selection unchanged."""
    session.select_station(station_id)
    return view_to_response(session.view())


@app.post("/api/theme/toggle", response_model=ViewResponse)
async def api_toggle_theme(session: FuelFinder = Depends(get_finder)) -> ViewResponse:
    session.toggle_theme()
    return view_to_response(session.view())


@app.get("/api/geolocation/request", response_model=GeolocationRequestResponse)
async def api_geolocation_request(
    bridge: BrowserGeolocation = Depends(get_browser_geolocation),
) -> GeolocationRequestResponse:
    """Position request the page should answer, if any."""
    pending = bridge.pending()
    if pending is None:
        return GeolocationRequestResponse(pending=False)
    return GeolocationRequestResponse(
        pending=True,
        request_id=pending.request_id,
        high_accuracy=pending.options.high_accuracy,
        timeout_ms=pending.options.timeout_ms,
        maximum_age_ms=pending.options.maximum_age_ms,
    )


@app.post("/api/geolocation/{request_id}")
async def api_geolocation_report(
    request_id: int,
    report: PositionReport,
    bridge: BrowserGeolocation = Depends(get_browser_geolocation),
) -> dict[str, bool]:
    """Answer a position request from the page."""
    if report.unsupported:
        accepted = bridge.report_unsupported(request_id)
    elif report.lat is not None and report.lon is not None:
        accepted = bridge.report_position(request_id, report.lat, report.lon)
    elif report.error_code is not None:
        accepted = bridge.report_error(request_id, report.error_code, report.message)
    else:
        raise HTTPException(status_code=400, detail="Report needs lat/lon, error_code or unsupported")
    return {"accepted": accepted}
