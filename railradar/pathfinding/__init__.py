"""Pathfinding module for finding rail routes."""

from .dijkstra import (
    MAX_NEXT_STATIONS,
    NextStation,
    PathFinder,
    PathResult,
    find_path,
    find_path_with_waypoints,
    get_alternative_paths,
)
from .graph import Edge, Station, StationGraph

__all__ = [
    "MAX_NEXT_STATIONS",
    "Edge",
    "NextStation",
    "PathFinder",
    "PathResult",
    "Station",
    "StationGraph",
    "find_path",
    "find_path_with_waypoints",
    "get_alternative_paths",
]
