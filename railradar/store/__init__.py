"""Rail data stores feeding the path engine."""

from .base import ClosestStation, GraphStore, InMemoryGraphStore, RouteInfo
from .json_store import JsonGraphStore, parse_rail_data, write_rail_data

__all__ = [
    "ClosestStation",
    "GraphStore",
    "InMemoryGraphStore",
    "JsonGraphStore",
    "RouteInfo",
    "parse_rail_data",
    "write_rail_data",
]
