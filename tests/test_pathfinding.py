"""Tests for pathfinding module."""

import math

import pytest

from railradar.exceptions import ConfigurationError
from railradar.pathfinding.dijkstra import (
    MAX_NEXT_STATIONS,
    PathFinder,
    find_path,
    find_path_with_waypoints,
    get_alternative_paths,
)
from railradar.pathfinding.graph import Edge, Station, StationGraph
from railradar.store import InMemoryGraphStore


def make_stations(*ids: str) -> list[Station]:
    return [Station(station_id=sid, name=f"Station {sid}", lat=float(i), lon=float(i)) for i, sid in enumerate(ids)]


def make_edge(from_station: str, to_station: str, weight: float, *route_ids: str) -> Edge:
    return Edge(
        from_station=from_station,
        to_station=to_station,
        edge_type="rail",
        weight=weight,
        route_ids=tuple(route_ids),
    )


def assert_consistent(result):
    assert result.path[0].station_id == result.station_ids[0]
    assert len(result.edges) == len(result.path) - 1
    for i, edge in enumerate(result.edges):
        assert edge.from_station == result.path[i].station_id
        assert edge.to_station == result.path[i + 1].station_id
    assert len(result.next_stations) == len(result.next_edges) <= MAX_NEXT_STATIONS


class TestStationGraph:
    """Tests for StationGraph."""

    def test_every_station_has_adjacency(self):
        graph = StationGraph(make_stations("A", "B", "C"), [make_edge("A", "B", 1)])
        assert graph.outgoing("A") == [make_edge("A", "B", 1)]
        assert graph.outgoing("B") == []
        assert graph.outgoing("C") == []
        assert len(graph) == 3

    def test_keeps_edge_order_and_parallel_edges(self):
        edges = [
            make_edge("A", "C", 4, "r1"),
            make_edge("A", "B", 1, "r2"),
            make_edge("A", "C", 2, "r3"),
        ]
        graph = StationGraph(make_stations("A", "B", "C"), edges)
        assert graph.outgoing("A") == edges
        assert graph.first_edge("A", "C").route_ids == ("r1",)

    def test_empty_edges(self):
        graph = StationGraph(make_stations("A", "B"), [])
        assert graph.has_station("A")
        assert graph.outgoing("A") == []

    def test_dangling_edges_are_ignored(self):
        graph = StationGraph(
            make_stations("A", "B"),
            [make_edge("A", "GHOST", 1), make_edge("GHOST", "B", 1), make_edge("A", "B", 2)],
        )
        assert graph.outgoing("A") == [make_edge("A", "B", 2)]
        assert graph.outgoing("GHOST") == []
        assert len(graph.edges) == 3

    @pytest.mark.parametrize("weight", [-1.0, math.inf, math.nan])
    def test_invalid_weight_raises(self, weight):
        with pytest.raises(ConfigurationError):
            StationGraph(make_stations("A", "B"), [make_edge("A", "B", weight)])

    def test_zero_weight_is_accepted(self):
        graph = StationGraph(make_stations("A", "B"), [make_edge("A", "B", 0)])
        assert graph.outgoing("A")[0].weight == 0

    def test_to_networkx_keeps_lightest_parallel_edge(self):
        graph = StationGraph(
            make_stations("A", "B"),
            [make_edge("A", "B", 3, "slow"), make_edge("A", "B", 1, "fast")],
        )
        digraph = graph.to_networkx()
        assert digraph["A"]["B"]["weight"] == 1
        assert digraph["A"]["B"]["edge"].route_ids == ("fast",)
        assert not digraph.has_edge("B", "A")


class TestFindPath:
    """Tests for find_path."""

    @pytest.fixture
    def graph(self):
        return StationGraph(
            make_stations("A", "B", "C", "D"),
            [
                make_edge("A", "B", 5),
                make_edge("A", "C", 2),
                make_edge("C", "B", 2),
                make_edge("B", "D", 1),
            ],
        )

    def test_shortest_path(self, graph):
        result = find_path(graph, "A", "D")
        assert result.found
        # Should take A -> C -> B -> D (5) instead of A -> B -> D (6)
        assert result.station_ids == ["A", "C", "B", "D"]
        assert result.total_weight == 5
        assert_consistent(result)

    def test_direct_path(self, graph):
        result = find_path(graph, "A", "C")
        assert result.found
        assert result.station_ids == ["A", "C"]
        assert result.edges == [make_edge("A", "C", 2)]
        assert result.total_weight == 2

    def test_same_station(self, graph):
        result = find_path(graph, "A", "A")
        assert result.found
        assert result.station_ids == ["A"]
        assert result.edges == []
        assert result.total_weight == 0

    def test_edges_are_directed(self, graph):
        result = find_path(graph, "D", "A")
        assert not result.found

    def test_no_path(self):
        graph = StationGraph(make_stations("A", "B", "Y", "Z"), [make_edge("A", "B", 1), make_edge("Y", "Z", 1)])
        result = find_path(graph, "A", "Z")
        assert not result.found
        assert result.path == []
        assert result.edges == []
        assert result.next_stations == []
        assert result.next_edges == []
        assert result.total_weight == 0

    @pytest.mark.parametrize("start, end", [("A", "Unknown"), ("Unknown", "A"), ("Unknown", "Unknown")])
    def test_unknown_station(self, graph, start, end):
        result = find_path(graph, start, end)
        assert not result.found
        assert result.path == []

    def test_empty_graph(self):
        result = find_path(StationGraph([], []), "A", "B")
        assert not result.found

    def test_path_edge_is_first_listed_parallel_edge(self):
        graph = StationGraph(
            make_stations("A", "B"),
            [make_edge("A", "B", 3, "r1"), make_edge("A", "B", 1, "r2")],
        )
        result = find_path(graph, "A", "B")
        assert result.total_weight == 1
        assert result.edges[0].route_ids == ("r1",)

    def test_tie_goes_to_first_station_in_snapshot(self):
        edges = [
            make_edge("A", "B", 1),
            make_edge("A", "C", 1),
            make_edge("B", "D", 1),
            make_edge("C", "D", 1),
        ]
        result = find_path(StationGraph(make_stations("A", "B", "C", "D"), edges), "A", "D")
        assert result.station_ids == ["A", "B", "D"]

        result = find_path(StationGraph(make_stations("A", "C", "B", "D"), edges), "A", "D")
        assert result.station_ids == ["A", "C", "D"]

    def test_idempotent(self, graph):
        assert find_path(graph, "A", "D") == find_path(graph, "A", "D")

    def test_to_dict_shape(self, graph):
        data = find_path(graph, "A", "B").to_dict()
        assert set(data) == {"path", "edges", "nextStations", "nextEdges", "totalWeight", "found"}
        assert data["found"] is True
        assert data["totalWeight"] == 4
        assert data["path"][0] == {"station_id": "A", "name": "Station A", "lat": 0.0, "lon": 0.0}
        assert data["edges"][0] == {
            "from_station": "A",
            "to_station": "C",
            "edge_type": "rail",
            "weight": 2,
            "route_ids": [],
        }
        assert data["nextStations"][0]["station_id"] == "D"
        assert data["nextStations"][0]["distance"] == 1

    def test_not_found_to_dict(self, graph):
        data = find_path(graph, "D", "A").to_dict()
        assert data == {
            "path": [],
            "edges": [],
            "nextStations": [],
            "nextEdges": [],
            "totalWeight": 0.0,
            "found": False,
        }


class TestNextStations:
    """Tests for the stations reported past the destination."""

    @pytest.fixture
    def line(self):
        # A <-> B <-> C <-> D <-> E <-> F
        ids = ["A", "B", "C", "D", "E", "F"]
        edges = []
        for a, b in zip(ids, ids[1:]):
            edges.append(make_edge(b, a, 1, "back"))
            edges.append(make_edge(a, b, 1, "forward"))
        return StationGraph(make_stations(*ids), edges)

    def test_at_most_three_stations(self, line):
        result = find_path(line, "A", "B")
        assert [n.station.station_id for n in result.next_stations] == ["C", "D", "E"]
        assert [n.distance for n in result.next_stations] == [1, 2, 3]
        assert [e.to_station for e in result.next_edges] == ["C", "D", "E"]
        assert_consistent(result)

    def test_skips_path_stations(self, line):
        # B's first outgoing edge goes back to A, which is on the path
        result = find_path(line, "A", "B")
        assert result.next_edges[0].route_ids == ("forward",)

    def test_stops_at_end_of_line(self, line):
        result = find_path(line, "A", "E")
        assert [n.station.station_id for n in result.next_stations] == ["F"]

    def test_none_when_destination_is_terminal(self, line):
        result = find_path(line, "A", "F")
        assert result.found
        assert result.next_stations == []
        assert result.next_edges == []

    def test_does_not_revisit_extension_stations(self):
        graph = StationGraph(
            make_stations("A", "B", "C", "D"),
            [
                make_edge("A", "B", 1),
                make_edge("B", "C", 1),
                make_edge("C", "D", 1),
                make_edge("D", "C", 1),
            ],
        )
        result = find_path(graph, "A", "B")
        assert [n.station.station_id for n in result.next_stations] == ["C", "D"]

    def test_ignores_unknown_targets(self):
        graph = StationGraph(
            make_stations("A", "B", "C"),
            [make_edge("A", "B", 1), make_edge("B", "GHOST", 1), make_edge("B", "C", 2)],
        )
        result = find_path(graph, "A", "B")
        assert [n.station.station_id for n in result.next_stations] == ["C"]
        assert result.next_stations[0].distance == 2

    def test_distances_strictly_increase(self, line):
        result = find_path(line, "A", "C")
        distances = [n.distance for n in result.next_stations]
        assert len(distances) == 3
        assert all(a < b for a, b in zip(distances, distances[1:]))

    def test_falls_back_to_edge_list_when_adjacency_is_pruned(self, line):
        line.adjacency["B"] = []
        result = find_path(line, "A", "B")
        assert [n.station.station_id for n in result.next_stations] == ["C", "D", "E"]
        assert result.next_edges[0] is line.edges[3]

    def test_zero_weight_hop_repeats_distance(self):
        graph = StationGraph(
            make_stations("A", "B", "C", "D"),
            [make_edge("A", "B", 1), make_edge("B", "C", 0), make_edge("C", "D", 2)],
        )
        result = find_path(graph, "A", "B")
        assert [n.distance for n in result.next_stations] == [0, 2]


class TestWaypointsAndAlternatives:
    """Tests for waypoint routing and alternative paths."""

    @pytest.fixture
    def graph(self):
        # A -> B -> C -> D (3) and A -> E -> D (2)
        return StationGraph(
            make_stations("A", "B", "C", "D", "E"),
            [
                make_edge("A", "B", 1),
                make_edge("B", "C", 1),
                make_edge("C", "D", 1),
                make_edge("A", "E", 1),
                make_edge("E", "D", 1),
            ],
        )

    def test_without_waypoints(self, graph):
        result = find_path_with_waypoints(graph, "A", "D", [])
        assert result == find_path(graph, "A", "D")
        assert result.station_ids == ["A", "E", "D"]

    def test_single_waypoint(self, graph):
        result = find_path_with_waypoints(graph, "A", "D", ["C"])
        assert result.found
        assert result.station_ids == ["A", "B", "C", "D"]
        assert result.total_weight == 3
        assert_consistent(result)

    def test_invalid_waypoint(self, graph):
        result = find_path_with_waypoints(graph, "A", "D", ["INVALID"])
        assert not result.found
        assert result.path == []

    def test_unreachable_waypoint(self, graph):
        result = find_path_with_waypoints(graph, "B", "D", ["E"])
        assert not result.found

    def test_alternative_paths(self, graph):
        results = get_alternative_paths(graph, "A", "D", k=3)
        assert [r.station_ids for r in results] == [["A", "E", "D"], ["A", "B", "C", "D"]]
        assert [r.total_weight for r in results] == [2, 3]
        for result in results:
            assert_consistent(result)
            assert result.next_stations == []

    def test_alternative_paths_limit(self, graph):
        assert len(get_alternative_paths(graph, "A", "D", k=1)) == 1

    def test_alternative_paths_unknown_or_unreachable(self, graph):
        assert get_alternative_paths(graph, "A", "Unknown") == []
        assert get_alternative_paths(graph, "D", "A") == []


class TestPathFinder:
    """Tests for PathFinder over a store."""

    @pytest.fixture
    def store(self):
        return InMemoryGraphStore(
            make_stations("A", "B", "C", "D"),
            [
                make_edge("A", "B", 5),
                make_edge("A", "C", 2),
                make_edge("C", "B", 2),
                make_edge("B", "D", 1),
            ],
        )

    def test_find_path(self, store):
        result = PathFinder(store).find_path("A", "D")
        assert result.station_ids == ["A", "C", "B", "D"]
        assert result.total_weight == 5

    def test_repeated_calls_are_identical(self, store):
        pathfinder = PathFinder(store)
        assert pathfinder.find_path("A", "D") == pathfinder.find_path("A", "D")

    def test_does_not_mutate_store(self, store):
        before = (store.list_stations(), store.list_edges())
        PathFinder(store).find_path("A", "D")
        assert (store.list_stations(), store.list_edges()) == before

    def test_waypoints_and_alternatives(self, store):
        pathfinder = PathFinder(store)
        assert pathfinder.find_path_with_waypoints("A", "D", ["B"]).station_ids == ["A", "C", "B", "D"]
        assert [r.station_ids for r in pathfinder.get_alternative_paths("A", "D")] == [
            ["A", "C", "B", "D"],
            ["A", "B", "D"],
        ]

    def test_negative_weight_raises(self):
        store = InMemoryGraphStore(make_stations("A", "B"), [make_edge("A", "B", -2)])
        with pytest.raises(ConfigurationError):
            PathFinder(store).find_path("A", "B")
