"""Dijkstra pathfinding for rail routes."""

import heapq
import logging
import math
from dataclasses import dataclass, field
from itertools import islice
from typing import TYPE_CHECKING

import networkx as nx

from .graph import Edge, Station, StationGraph

if TYPE_CHECKING:
    from railradar.store.base import GraphStore

logger = logging.getLogger(__name__)

# How many stations to show past the destination
MAX_NEXT_STATIONS = 3


@dataclass
class NextStation:
    """A station reached after the destination."""

    station: Station
    distance: float  # Cumulative weight from the destination

    def to_dict(self) -> dict:
        data = self.station.to_dict()
        data["distance"] = self.distance
        return data


@dataclass
class PathResult:
    """Result of pathfinding."""

    path: list[Station] = field(default_factory=list)
    edges: list[Edge] = field(default_factory=list)
    next_stations: list[NextStation] = field(default_factory=list)
    next_edges: list[Edge] = field(default_factory=list)
    total_weight: float = 0.0
    found: bool = False

    @classmethod
    def not_found(cls) -> "PathResult":
        return cls()

    @property
    def station_ids(self) -> list[str]:
        return [station.station_id for station in self.path]

    def to_dict(self) -> dict:
        """Serialize to the JSON shape used by the API."""
        return {
            "path": [station.to_dict() for station in self.path],
            "edges": [edge.to_dict() for edge in self.edges],
            "nextStations": [next_station.to_dict() for next_station in self.next_stations],
            "nextEdges": [edge.to_dict() for edge in self.next_edges],
            "totalWeight": self.total_weight,
            "found": self.found,
        }


def shortest_distances(
    graph: StationGraph, start_id: str
) -> tuple[dict[str, float], dict[str, str | None]]:
    """
    Single-source Dijkstra over every station of the graph.

    The unvisited station with the smallest tentative distance is settled
    first; among equal distances the one listed first in the station
    snapshot wins. Relaxation only replaces a distance that is strictly
    larger, so the first edge reaching a given distance is kept.

    Args:
        graph: StationGraph instance
        start_id: Source station id (must be in the graph)

    Returns:
        (distances, previous) keyed by station id. Unreached stations keep
        math.inf and a None predecessor.
    """
    order = {station_id: index for index, station_id in enumerate(graph.stations)}
    distances = {station_id: math.inf for station_id in graph.stations}
    previous: dict[str, str | None] = {station_id: None for station_id in graph.stations}
    distances[start_id] = 0.0

    heap = [(0.0, order[start_id], start_id)]
    visited: set[str] = set()

    while heap:
        distance, _, current = heapq.heappop(heap)
        if current in visited:
            continue
        visited.add(current)

        for edge in graph.outgoing(current):
            new_distance = distance + edge.weight
            if new_distance < distances[edge.to_station]:
                distances[edge.to_station] = new_distance
                previous[edge.to_station] = current
                heapq.heappush(heap, (new_distance, order[edge.to_station], edge.to_station))

    return distances, previous


def _shortest_station_ids(
    graph: StationGraph, start_id: str, end_id: str
) -> tuple[list[str], float] | None:
    """Station ids of the shortest path and its weight, or None if unreachable."""
    if not graph.has_station(start_id) or not graph.has_station(end_id):
        return None
    if start_id == end_id:
        return [start_id], 0.0

    distances, previous = shortest_distances(graph, start_id)

    station_ids = []
    current: str | None = end_id
    while current is not None:
        station_ids.append(current)
        current = previous[current]
    station_ids.reverse()

    if station_ids[0] != start_id:
        return None
    return station_ids, distances[end_id]


def _first_exit(graph: StationGraph, edges, excluded: set[str]) -> Edge | None:
    for edge in edges:
        if edge.to_station not in excluded and graph.has_station(edge.to_station):
            return edge
    return None


def extend_beyond(
    graph: StationGraph,
    end_id: str,
    path_ids: list[str],
    limit: int = MAX_NEXT_STATIONS,
) -> tuple[list[NextStation], list[Edge]]:
    """
    Follow the network past the destination for up to `limit` hops.

    Each hop takes the first outgoing edge leading to a station that is not
    on the path and was not already reached by the extension. When the
    adjacency has no such edge, the full edge list is scanned as a fallback.
    Stops early when no edge qualifies.

    Returns:
        (next_stations, next_edges), always of equal length
    """
    excluded = set(path_ids)
    next_stations: list[NextStation] = []
    next_edges: list[Edge] = []
    current = end_id
    total = 0.0

    for _ in range(limit):
        edge = _first_exit(graph, graph.outgoing(current), excluded)
        # StationGraph puts every edge between known stations in the
        # adjacency, so this only finds something once adjacency was pruned.
        if edge is None:
            edge = _first_exit(
                graph,
                (candidate for candidate in graph.edges if candidate.from_station == current),
                excluded,
            )
        if edge is None:
            break

        total += edge.weight
        next_stations.append(NextStation(station=graph.stations[edge.to_station], distance=total))
        next_edges.append(edge)
        excluded.add(edge.to_station)
        current = edge.to_station

    return next_stations, next_edges


def _build_result(graph: StationGraph, station_ids: list[str], total_weight: float) -> PathResult:
    edges = [
        graph.first_edge(station_ids[i], station_ids[i + 1])
        for i in range(len(station_ids) - 1)
    ]
    next_stations, next_edges = extend_beyond(graph, station_ids[-1], station_ids)

    return PathResult(
        path=[graph.stations[station_id] for station_id in station_ids],
        edges=edges,
        next_stations=next_stations,
        next_edges=next_edges,
        total_weight=total_weight,
        found=True,
    )


def find_path(graph: StationGraph, start_id: str, end_id: str) -> PathResult:
    """
    Find the shortest path between two stations.

    Args:
        graph: StationGraph built from the current snapshot
        start_id: Starting station id
        end_id: Ending station id

    Returns:
        PathResult; found is False for unknown ids or unreachable stations
    """
    shortest = _shortest_station_ids(graph, start_id, end_id)
    if shortest is None:
        return PathResult.not_found()

    station_ids, total_weight = shortest
    return _build_result(graph, station_ids, total_weight)


def find_path_with_waypoints(
    graph: StationGraph, start_id: str, end_id: str, waypoints: list[str]
) -> PathResult:
    """
    Find path through specified waypoints.

    Each leg is a shortest path; legs are joined without repeating the
    waypoint. The extension is computed from the final destination.

    Args:
        graph: StationGraph built from the current snapshot
        start_id: Starting station id
        end_id: Ending station id
        waypoints: Intermediate station ids to pass through, in order

    Returns:
        PathResult with the complete path
    """
    all_points = [start_id] + list(waypoints) + [end_id]
    full_path: list[str] = []
    total_weight = 0.0

    for i in range(len(all_points) - 1):
        leg = _shortest_station_ids(graph, all_points[i], all_points[i + 1])
        if leg is None:
            return PathResult.not_found()

        station_ids, weight = leg
        # Avoid duplicating waypoints in the path
        if full_path:
            full_path.extend(station_ids[1:])
        else:
            full_path.extend(station_ids)
        total_weight += weight

    return _build_result(graph, full_path, total_weight)


def get_alternative_paths(
    graph: StationGraph, start_id: str, end_id: str, k: int = 3
) -> list[PathResult]:
    """
    Find up to k loop-free paths between two stations, lightest first.

    Uses networkx's shortest_simple_paths on the collapsed DiGraph, so each
    hop uses the lightest of its parallel edges. Results carry no
    extension.

    Returns:
        List of PathResult, sorted by total weight
    """
    if not graph.has_station(start_id) or not graph.has_station(end_id):
        return []
    if start_id == end_id:
        return [PathResult(path=[graph.stations[start_id]], found=True)]

    digraph = graph.to_networkx()
    try:
        paths = list(islice(nx.shortest_simple_paths(digraph, start_id, end_id, weight="weight"), k))
    except (nx.NetworkXNoPath, nx.NodeNotFound):
        return []

    results = []
    for path in paths:
        edges = [digraph[path[i]][path[i + 1]]["edge"] for i in range(len(path) - 1)]
        results.append(PathResult(
            path=[graph.stations[station_id] for station_id in path],
            edges=edges,
            total_weight=sum(edge.weight for edge in edges),
            found=True,
        ))
    return results


class PathFinder:
    """
    Find shortest paths in the rail network.

    A fresh StationGraph is built from the store's snapshot on every call,
    so a PathFinder holds no graph state and can serve concurrent callers.
    """

    def __init__(self, store: "GraphStore"):
        """
        Initialize pathfinder with a graph store.

        Args:
            store: Any object providing list_stations() and list_edges()
        """
        self.store = store

    def _graph(self) -> StationGraph:
        return StationGraph.build(self.store.list_stations(), self.store.list_edges())

    def find_path(self, start_id: str, end_id: str) -> PathResult:
        """Shortest path between two station ids, with next stations."""
        result = find_path(self._graph(), start_id, end_id)
        logger.debug(
            "Path %s -> %s: found=%s, %d stations, weight=%s",
            start_id, end_id, result.found, len(result.path), result.total_weight,
        )
        return result

    def find_path_with_waypoints(
        self, start_id: str, end_id: str, waypoints: list[str]
    ) -> PathResult:
        """Shortest path passing through the given waypoints in order."""
        return find_path_with_waypoints(self._graph(), start_id, end_id, waypoints)

    def get_alternative_paths(self, start_id: str, end_id: str, k: int = 3) -> list[PathResult]:
        """Up to k loop-free paths, lightest first."""
        return get_alternative_paths(self._graph(), start_id, end_id, k)
