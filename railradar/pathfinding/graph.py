"""Station graph construction from a station/edge snapshot."""

import logging
import math
from collections.abc import Iterable
from dataclasses import asdict, dataclass, field

import networkx as nx

from railradar.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Station:
    """Rail station."""

    station_id: str
    name: str
    lat: float
    lon: float

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class Edge:
    """Directed connection between two stations."""

    from_station: str
    to_station: str
    edge_type: str
    weight: float
    route_ids: tuple[str, ...] = field(default_factory=tuple)
    direction_id: int = 0

    def to_dict(self) -> dict:
        """Serialize for API output (direction_id is internal)."""
        return {
            "from_station": self.from_station,
            "to_station": self.to_station,
            "edge_type": self.edge_type,
            "weight": self.weight,
            "route_ids": list(self.route_ids),
        }


class StationGraph:
    """
    Adjacency representation of the rail network for a single query.

    Nodes are station ids, each mapped to the list of its outgoing edges in
    the order they appear in the source edge list. Every known station has
    an entry, possibly empty. Edges that reference an unknown station are
    kept in `edges` but never enter the adjacency.
    """

    def __init__(self, stations: Iterable[Station], edges: Iterable[Edge]):
        """
        Build the graph.

        Args:
            stations: Station snapshot (order defines tie-breaking)
            edges: Directed edge snapshot

        Raises:
            ConfigurationError: If an edge weight is negative or not finite
        """
        self.stations: dict[str, Station] = {}
        for station in stations:
            self.stations.setdefault(station.station_id, station)

        self.edges: list[Edge] = list(edges)
        self.adjacency: dict[str, list[Edge]] = {sid: [] for sid in self.stations}
        self._pair_index: dict[tuple[str, str], list[Edge]] = {}

        dangling = 0
        for edge in self.edges:
            # Zero is allowed: Dijkstra only needs non-negative weights. A zero
            # hop repeats the previous next-station distance instead of
            # increasing it. Built data never has one (MIN_SEGMENT_MINUTES).
            if not math.isfinite(edge.weight) or edge.weight < 0:
                raise ConfigurationError(
                    f"Invalid weight {edge.weight!r} on edge "
                    f"{edge.from_station} -> {edge.to_station}"
                )
            if edge.from_station not in self.stations or edge.to_station not in self.stations:
                dangling += 1
                continue
            self.adjacency[edge.from_station].append(edge)
            self._pair_index.setdefault((edge.from_station, edge.to_station), []).append(edge)

        if dangling:
            logger.debug("Ignored %d edges referencing unknown stations", dangling)

    @classmethod
    def build(cls, stations: Iterable[Station], edges: Iterable[Edge]) -> "StationGraph":
        """Alias of the constructor, reads better at call sites."""
        return cls(stations, edges)

    def has_station(self, station_id: str) -> bool:
        """Check if a station exists in the graph."""
        return station_id in self.stations

    def get_station(self, station_id: str) -> Station | None:
        return self.stations.get(station_id)

    def outgoing(self, station_id: str) -> list[Edge]:
        """Outgoing edges of a station, in source order."""
        return self.adjacency.get(station_id, [])

    def first_edge(self, from_station: str, to_station: str) -> Edge | None:
        """First edge of the source list connecting the ordered pair."""
        edges = self._pair_index.get((from_station, to_station))
        return edges[0] if edges else None

    def to_networkx(self) -> nx.DiGraph:
        """
        Collapse into a networkx DiGraph.

        Parallel edges are reduced to the lightest one (first wins on
        equal weight). The kept Edge is stored under the "edge" attribute.
        """
        graph = nx.DiGraph()
        for station in self.stations.values():
            graph.add_node(station.station_id, name=station.name, lat=station.lat, lon=station.lon)
        for station_id, edges in self.adjacency.items():
            for edge in edges:
                current = graph.get_edge_data(station_id, edge.to_station)
                if current is None or edge.weight < current["weight"]:
                    graph.add_edge(station_id, edge.to_station, weight=edge.weight, edge=edge)
        return graph

    def __len__(self) -> int:
        """Return number of stations."""
        return len(self.stations)
