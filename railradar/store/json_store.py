"""Rail graph store backed by the precomputed JSON file."""

import json
import logging
from pathlib import Path

from railradar.exceptions import DataLoadError
from railradar.pathfinding.graph import Edge, Station

from .base import ClosestStation, InMemoryGraphStore

logger = logging.getLogger(__name__)


def parse_station(raw: dict) -> Station:
    """Build a Station from a JSON record. Raises KeyError/ValueError/TypeError."""
    return Station(
        station_id=str(raw["station_id"]),
        name=str(raw["name"]).strip(),
        lat=float(raw["lat"]),
        lon=float(raw["lon"]),
    )


def parse_edge(raw: dict) -> Edge:
    """Build an Edge from a JSON record. Raises KeyError/ValueError/TypeError."""
    return Edge(
        from_station=str(raw["from_station"]),
        to_station=str(raw["to_station"]),
        edge_type=str(raw.get("edge_type", "rail")),
        weight=float(raw["weight"]),
        route_ids=tuple(str(r) for r in raw.get("route_ids") or []),
        direction_id=int(raw.get("direction_id") or 0),
    )


def read_json(filepath: str | Path) -> dict:
    """Read the rail data JSON document."""
    filepath = Path(filepath)
    if not filepath.exists():
        raise DataLoadError(f"Rail data file not found: {filepath}")

    try:
        with open(filepath, encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise DataLoadError(f"Failed to read {filepath}: {e}") from e

    if not isinstance(data, dict):
        raise DataLoadError(f"Unexpected top-level JSON type in {filepath}: {type(data).__name__}")
    return data


def _section(data: dict, key: str, expected: type | tuple[type, ...], default):
    """Return data[key] when it has the expected type, else log and use default."""
    value = data.get(key)
    if value is None:
        return default
    if not isinstance(value, expected):
        logger.warning("Ignoring %s: unexpected type %s", key, type(value).__name__)
        return default
    return value


def parse_rail_data(
    data: dict,
) -> tuple[list[Station], list[Edge], list[ClosestStation], dict[str, list[str]]]:
    """
    Convert a rail data document into records.

    Expected keys:
        stations: object keyed by station id, or a list of station records
        edges: list of edge records
        closest_stations (optional): station id -> [{station_id, distance, route_ids}]
        route_to_stations (optional): route id -> [station ids]

    Malformed records are skipped and logged. A section of the wrong type
    is ignored as a whole.
    """
    raw_stations = _section(data, "stations", (dict, list), {})
    if isinstance(raw_stations, dict):
        raw_stations = list(raw_stations.values())

    stations = []
    skipped = 0
    for raw in raw_stations:
        try:
            stations.append(parse_station(raw))
        except (KeyError, ValueError, TypeError):
            skipped += 1
    if skipped:
        logger.warning("Skipped %d malformed station records", skipped)

    edges = []
    skipped = 0
    for raw in _section(data, "edges", list, []):
        try:
            edges.append(parse_edge(raw))
        except (KeyError, ValueError, TypeError):
            skipped += 1
    if skipped:
        logger.warning("Skipped %d malformed edge records", skipped)

    closest = []
    skipped = 0
    for station_id, entries in _section(data, "closest_stations", dict, {}).items():
        if not isinstance(entries, list):
            skipped += 1
            continue
        for entry in entries:
            try:
                closest.append(ClosestStation(
                    station_id=str(station_id),
                    close_station_id=str(entry["station_id"]),
                    distance=float(entry["distance"]),
                    route_ids=tuple(str(r) for r in entry.get("route_ids") or []),
                ))
            except (KeyError, ValueError, TypeError, AttributeError):
                skipped += 1
    if skipped:
        logger.warning("Skipped %d malformed closest station entries", skipped)

    route_stations = {}
    skipped = 0
    for route_id, station_ids in _section(data, "route_to_stations", dict, {}).items():
        if not isinstance(station_ids, list):
            skipped += 1
            continue
        route_stations[str(route_id)] = [str(s) for s in station_ids]
    if skipped:
        logger.warning("Skipped %d malformed route station lists", skipped)

    return stations, edges, closest, route_stations


class JsonGraphStore(InMemoryGraphStore):
    """
    Graph store loaded once from a precomputed rail data JSON file.

    Raises:
        DataLoadError: If the file is missing or is not valid JSON
    """

    def __init__(self, filepath: str | Path):
        self.filepath = Path(filepath)
        stations, edges, closest, route_stations = parse_rail_data(read_json(self.filepath))
        super().__init__(stations, edges, closest, route_stations)

        counts = self.counts()
        logger.info(
            "Loaded %d stations, %d edges, %d closest links, %d route mappings from %s",
            counts["stations"], counts["edges"], counts["closest_stations"],
            counts["route_to_stations"], self.filepath,
        )


def write_rail_data(data: dict, filepath: str | Path) -> None:
    """Write a rail data document to disk."""
    filepath = Path(filepath)
    filepath.parent.mkdir(parents=True, exist_ok=True)
    with open(filepath, "w", encoding="utf-8") as f:
        json.dump(data, f, ensure_ascii=False, indent=2)
    logger.info("Saved rail data to %s", filepath)
