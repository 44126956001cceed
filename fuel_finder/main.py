"""
Fuel Finder - command line entry point.

The command line has no device geolocation, so the position is entered
manually and goes through the same validation as the web form.

Usage:
    python -m fuel_finder.main --lat 12.97 --lon 77.59
    python -m fuel_finder.main --lat 12.97 --lon 77.59 --radius 5000 --json
    python -m fuel_finder.main --help
"""

import argparse
import asyncio
import json
import logging
import sys
from dataclasses import replace

from fuel_finder.config import FinderConfig
from fuel_finder.errors import CoordinateValidationError
from fuel_finder.finder import FuelFinder
from fuel_finder.geo.distance import format_distance
from fuel_finder.stations.models import Station
from fuel_finder.theme import MemoryThemeStore, ThemeService
from fuel_finder.view.coordinator import ViewState

# Shown when a station has no name tag
DEFAULT_STATION_NAME = "Petrol Station"


def format_station_line(rank: int, station: Station) -> str:
    """
    Format one ranked station for terminal output.

    Examples:
        "1. Shell (Brand: Shell) - 350 m"
        "2. Petrol Station (MG Road 12 Bengaluru) - 1.20 km"
    """
    name = station.name or DEFAULT_STATION_NAME
    if station.brand:
        detail = f"Brand: {station.brand}"
    else:
        detail = station.address or "—"
    return f"{rank}. {name} ({detail}) - {format_distance(station.distance_meters)}"


def view_to_json(view: ViewState) -> str:
    """Serialize the ranked stations and route overlay."""
    return json.dumps(
        {
            "center": view.map_center.as_pair() if view.map_center else None,
            "stale": view.stale,
            "error": view.error_message,
            "route": view.route_overlay.as_path() if view.route_overlay else None,
            "stations": [
                {
                    "id": s.id,
                    "name": s.name,
                    "brand": s.brand,
                    "address": s.address,
                    "lat": s.lat,
                    "lon": s.lon,
                    "distance_meters": s.distance_meters,
                    "distance": format_distance(s.distance_meters),
                }
                for s in view.stations
            ],
        },
        ensure_ascii=False,
        indent=2,
    )


async def run(args: argparse.Namespace, config: FinderConfig) -> int:
    """Resolve the given position, fetch stations and print them."""
    finder = FuelFinder.from_config(
        config, provider=None, theme=ThemeService(MemoryThemeStore())
    )

    # No geolocation here: the resolver reports it as unsupported
    finder.start()

    try:
        finder.submit_manual_coordinate(args.lat, args.lon)
    except CoordinateValidationError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 1

    await finder.settle()
    view = finder.view()

    if args.json:
        print(view_to_json(view))
    elif view.stations:
        radius_km = round(config.radius_meters / 1000)
        print(f"Nearby stations within {radius_km} km:")
        for rank, station in enumerate(view.stations, start=1):
            print(format_station_line(rank, station))
    elif view.error_message is None:
        print(f"No stations found within {round(config.radius_meters / 1000)} km.")

    if view.error_message:
        print(f"Error: {view.error_message}", file=sys.stderr)
        return 1
    return 0


def main():
    parser = argparse.ArgumentParser(
        description="Fuel Finder - Nearby fuel stations ranked by distance"
    )
    parser.add_argument("--lat", required=True, help="Latitude (-90 to 90)")
    parser.add_argument("--lon", required=True, help="Longitude (-180 to 180)")
    parser.add_argument(
        "--radius",
        type=int,
        default=None,
        help="Search radius in meters (default: 2000)",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the ranked stations as JSON",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable debug logging",
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = FinderConfig.from_env()
    if args.radius is not None:
        config = replace(config, radius_meters=args.radius)

    sys.exit(asyncio.run(run(args, config)))


if __name__ == "__main__":
    main()
