"""Graph store interface and in-memory implementation."""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Protocol

from railradar.pathfinding.graph import Edge, Station


class GraphStore(Protocol):
    """Source of the station/edge snapshot consumed by the path engine."""

    def list_stations(self) -> list[Station]: ...

    def list_edges(self) -> list[Edge]: ...


@dataclass(frozen=True)
class RouteInfo:
    """Route referenced by at least one edge."""

    route_id: str
    short_name: str
    long_name: str


@dataclass(frozen=True)
class ClosestStation:
    """Precomputed nearby station."""

    station_id: str
    close_station_id: str
    distance: float
    route_ids: tuple[str, ...] = field(default_factory=tuple)


class InMemoryGraphStore:
    """
    Rail data held in memory.

    Lists are returned as copies, so callers get a stable snapshot even
    if they modify what they receive.
    """

    def __init__(
        self,
        stations: Iterable[Station],
        edges: Iterable[Edge],
        closest_stations: Iterable[ClosestStation] | None = None,
        route_stations: Mapping[str, list[str]] | None = None,
    ):
        self._stations = list(stations)
        self._edges = list(edges)
        # First record wins for duplicate ids, as in StationGraph
        self._stations_by_id: dict[str, Station] = {}
        for station in self._stations:
            self._stations_by_id.setdefault(station.station_id, station)

        self._closest: dict[str, list[ClosestStation]] = {}
        for entry in closest_stations or []:
            self._closest.setdefault(entry.station_id, []).append(entry)

        self._route_stations = {
            route_id: list(station_ids)
            for route_id, station_ids in (route_stations or {}).items()
        }

    def list_stations(self) -> list[Station]:
        return list(self._stations)

    def list_edges(self) -> list[Edge]:
        return list(self._edges)

    def get_station(self, station_id: str) -> Station | None:
        return self._stations_by_id.get(station_id)

    def list_routes(self) -> list[RouteInfo]:
        """Unique route ids across all edges, in first-seen order."""
        route_ids: dict[str, None] = {}
        for edge in self._edges:
            for route_id in edge.route_ids:
                route_ids.setdefault(route_id, None)

        return [
            RouteInfo(route_id=route_id, short_name=route_id, long_name=f"Route {route_id}")
            for route_id in route_ids
        ]

    def edges_by_route(self, route_id: str) -> list[Edge]:
        """Edges served by a route."""
        return [edge for edge in self._edges if route_id in edge.route_ids]

    def closest_stations(self, station_id: str) -> list[ClosestStation]:
        return list(self._closest.get(station_id, []))

    def route_stations(self, route_id: str) -> list[str] | None:
        """Ordered station ids of a route, or None if the route is unknown."""
        station_ids = self._route_stations.get(route_id)
        return list(station_ids) if station_ids is not None else None

    def counts(self) -> dict[str, int]:
        return {
            "stations": len(self._stations),
            "edges": len(self._edges),
            "closest_stations": sum(len(entries) for entries in self._closest.values()),
            "route_to_stations": len(self._route_stations),
        }
