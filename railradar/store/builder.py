"""
Build the precomputed rail data document from a GTFS feed.

Reads an extracted GTFS directory and produces:
- stations (platforms collapsed onto their parent station)
- directed rail edges between consecutive stops of every trip
- transfer edges from transfers.txt
- route_to_stations (stop order of the longest trip of each route)
- closest_stations (stations within a walking radius)
"""

import csv
import logging
from collections import defaultdict
from pathlib import Path

from tqdm import tqdm

from railradar.geo.nearest_station import NearestStationFinder
from railradar.pathfinding.graph import Station

logger = logging.getLogger(__name__)

# GTFS route_type values
ROUTE_TYPE_BUS = 3  # Bus (to exclude)

# GTFS location_type values
LOCATION_STATION = 1

REQUIRED_FILES = ["stops.txt", "routes.txt", "trips.txt", "stop_times.txt"]

DEFAULT_TRANSFER_MINUTES = 2.0
MIN_SEGMENT_MINUTES = 0.5
MAX_SEGMENT_MINUTES = 720


def parse_gtfs_time(time_str: str) -> float | None:
    """Parse GTFS time (HH:MM:SS, hours may exceed 23) to minutes from midnight."""
    if not time_str or not time_str.strip():
        return None
    parts = time_str.strip().split(":")
    hours = int(parts[0])
    minutes = int(parts[1])
    seconds = int(parts[2]) if len(parts) > 2 else 0
    return hours * 60 + minutes + seconds / 60


def load_stops(filepath: str | Path) -> tuple[dict[str, Station], dict[str, str]]:
    """
    Load stations from GTFS stops.txt.

    Returns:
        (stations by id, stop_id -> station_id). Stops with a parent_station
        map to their parent; stops without one are stations themselves.
    """
    stations: dict[str, Station] = {}
    stop_to_station: dict[str, str] = {}

    with open(filepath, encoding="utf-8-sig") as f:
        reader = csv.DictReader(f)
        for row in reader:
            try:
                stop_id = row["stop_id"].strip()
                parent = (row.get("parent_station") or "").strip()
                location_type = int(row.get("location_type") or 0)
                station = Station(
                    station_id=stop_id,
                    name=row["stop_name"].strip(),
                    lat=float(row.get("stop_lat") or 0),
                    lon=float(row.get("stop_lon") or 0),
                )
            except (ValueError, KeyError):
                continue

            if parent:
                stop_to_station[stop_id] = parent
            else:
                stop_to_station[stop_id] = stop_id
                if location_type in (0, LOCATION_STATION):
                    stations[stop_id] = station

    logger.info("Loaded %d stations from %d stops", len(stations), len(stop_to_station))
    return stations, stop_to_station


def load_routes(filepath: str | Path) -> dict[str, dict]:
    """Load rail routes from GTFS routes.txt (exclude buses)."""
    routes = {}
    bus_count = 0

    with open(filepath, encoding="utf-8-sig") as f:
        reader = csv.DictReader(f)
        for row in reader:
            route_type = int(row.get("route_type", 0) or 0)
            if route_type == ROUTE_TYPE_BUS:
                bus_count += 1
                continue

            routes[row["route_id"]] = {
                "short_name": row.get("route_short_name", "") or "",
                "long_name": row.get("route_long_name", "") or "",
                "route_type": route_type,
            }

    logger.info("Loaded %d rail routes (excluded %d bus routes)", len(routes), bus_count)
    return routes


def load_trips(filepath: str | Path, routes: dict) -> dict[str, tuple[str, int]]:
    """Map trip_id -> (route_id, direction_id) for rail routes only."""
    trips = {}

    with open(filepath, encoding="utf-8-sig") as f:
        reader = csv.DictReader(f)
        for row in reader:
            route_id = row["route_id"]
            if route_id in routes:
                trips[row["trip_id"]] = (route_id, int(row.get("direction_id") or 0))

    logger.info("Loaded %d rail trips", len(trips))
    return trips


def process_stop_times(
    filepath: str | Path,
    trips: dict[str, tuple[str, int]],
    stop_to_station: dict[str, str],
) -> tuple[list[dict], dict[str, list[str]]]:
    """
    Extract directed edges between consecutive stations of each trip.

    Returns:
        (edges, route_to_stations). Edge weight is the fastest scheduled
        time in minutes; route ids are merged in first-seen order.
    """
    trip_stops = defaultdict(list)
    skipped = 0

    with open(filepath, encoding="utf-8-sig") as f:
        reader = csv.DictReader(f)
        for row in reader:
            trip_id = row["trip_id"]
            if trip_id not in trips:
                continue
            station_id = stop_to_station.get(row["stop_id"])
            if station_id is None:
                continue
            try:
                stop = {
                    "station_id": station_id,
                    "arrival": parse_gtfs_time(row.get("arrival_time", "")),
                    "departure": parse_gtfs_time(row.get("departure_time", "")),
                    "sequence": int(row.get("stop_sequence", 0)),
                }
            except (ValueError, IndexError):
                skipped += 1
                continue
            trip_stops[trip_id].append(stop)

    if skipped:
        logger.warning("Skipped %d malformed stop_times rows", skipped)
    logger.info("Grouped stops for %d trips", len(trip_stops))

    connections: dict[tuple[str, str], dict] = {}
    route_to_stations: dict[str, list[str]] = {}

    for trip_id, stop_list in tqdm(trip_stops.items(), desc="Extracting edges", disable=None):
        route_id, direction_id = trips[trip_id]
        stop_list.sort(key=lambda x: x["sequence"])

        sequence = [stop["station_id"] for stop in stop_list]
        if len(sequence) > len(route_to_stations.get(route_id, [])):
            route_to_stations[route_id] = sequence

        for stop1, stop2 in zip(stop_list, stop_list[1:]):
            if stop1["station_id"] == stop2["station_id"]:
                continue
            departure = stop1["departure"] if stop1["departure"] is not None else stop1["arrival"]
            arrival = stop2["arrival"] if stop2["arrival"] is not None else stop2["departure"]
            if departure is None or arrival is None:
                continue

            duration = arrival - departure
            # Handle overnight trips
            if duration < 0:
                duration += 24 * 60
            if duration > MAX_SEGMENT_MINUTES:
                continue
            duration = max(duration, MIN_SEGMENT_MINUTES)

            key = (stop1["station_id"], stop2["station_id"])
            connection = connections.get(key)
            if connection is None:
                connections[key] = {
                    "from_station": key[0],
                    "to_station": key[1],
                    "edge_type": "rail",
                    "weight": round(duration, 2),
                    "route_ids": [route_id],
                    "direction_id": direction_id,
                }
                continue
            connection["weight"] = min(connection["weight"], round(duration, 2))
            if route_id not in connection["route_ids"]:
                connection["route_ids"].append(route_id)

    logger.info("Found %d directed rail edges", len(connections))
    return list(connections.values()), route_to_stations


def load_transfers(filepath: str | Path, stop_to_station: dict[str, str]) -> list[dict]:
    """Transfer edges from GTFS transfers.txt (same-station transfers are dropped)."""
    transfers: dict[tuple[str, str], dict] = {}

    with open(filepath, encoding="utf-8-sig") as f:
        reader = csv.DictReader(f)
        for row in reader:
            from_station = stop_to_station.get(row.get("from_stop_id", ""))
            to_station = stop_to_station.get(row.get("to_stop_id", ""))
            if not from_station or not to_station or from_station == to_station:
                continue
            # transfer_type 3: transfers are not possible
            if (row.get("transfer_type") or "").strip() == "3":
                continue

            seconds = (row.get("min_transfer_time") or "").strip()
            try:
                minutes = float(seconds) / 60 if seconds else DEFAULT_TRANSFER_MINUTES
            except ValueError:
                continue
            minutes = round(max(minutes, MIN_SEGMENT_MINUTES), 2)

            key = (from_station, to_station)
            if key not in transfers or minutes < transfers[key]["weight"]:
                transfers[key] = {
                    "from_station": from_station,
                    "to_station": to_station,
                    "edge_type": "transfer",
                    "weight": minutes,
                    "route_ids": [],
                    "direction_id": 0,
                }

    logger.info("Loaded %d transfer edges", len(transfers))
    return list(transfers.values())


def build_closest_stations(
    stations: list[Station], edges: list[dict], radius_km: float
) -> dict[str, list[dict]]:
    """Stations within radius_km of each station, with the routes serving them."""
    routes_by_station: dict[str, list[str]] = defaultdict(list)
    for edge in edges:
        for station_id in (edge["from_station"], edge["to_station"]):
            for route_id in edge["route_ids"]:
                if route_id not in routes_by_station[station_id]:
                    routes_by_station[station_id].append(route_id)

    finder = NearestStationFinder(stations)
    closest = {}
    for station in stations:
        nearby = finder.within_radius(station.station_id, radius_km)
        if nearby:
            closest[station.station_id] = [
                {
                    "station_id": result.station.station_id,
                    "distance": result.distance_km,
                    "route_ids": routes_by_station.get(result.station.station_id, []),
                }
                for result in nearby
            ]
    return closest


def build_rail_data(gtfs_dir: str | Path, closest_radius_km: float = 1.0) -> dict:
    """
    Build the rail data document from an extracted GTFS directory.

    Raises:
        FileNotFoundError: If a required GTFS file is missing
    """
    gtfs_dir = Path(gtfs_dir)
    for name in REQUIRED_FILES:
        if not (gtfs_dir / name).exists():
            raise FileNotFoundError(f"Missing {name} in {gtfs_dir}")

    stations, stop_to_station = load_stops(gtfs_dir / "stops.txt")
    routes = load_routes(gtfs_dir / "routes.txt")
    trips = load_trips(gtfs_dir / "trips.txt", routes)
    edges, route_to_stations = process_stop_times(gtfs_dir / "stop_times.txt", trips, stop_to_station)

    transfers_file = gtfs_dir / "transfers.txt"
    if transfers_file.exists():
        edges.extend(load_transfers(transfers_file, stop_to_station))

    return {
        "stations": {
            station_id: station.to_dict() for station_id, station in stations.items()
        },
        "edges": edges,
        "closest_stations": build_closest_stations(list(stations.values()), edges, closest_radius_km),
        "route_to_stations": route_to_stations,
    }
