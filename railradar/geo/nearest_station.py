"""Find nearest stations using a KD-Tree for efficient lookup."""

import math
from collections.abc import Iterable
from dataclasses import dataclass

import numpy as np
from scipy.spatial import cKDTree

from railradar.pathfinding.graph import Station

from .distance import EARTH_RADIUS_KM, haversine


@dataclass
class NearestResult:
    """Result of nearest station search."""

    station: Station
    distance_km: float


class NearestStationFinder:
    """
    Find nearest stations using a KD-Tree for O(log n) lookup.

    The tree is built on coordinates converted to radians; reported
    distances are recomputed with Haversine.
    """

    def __init__(self, stations: Iterable[Station]):
        """
        Initialize finder with station data.

        Args:
            stations: Stations to index
        """
        self.stations: list[Station] = list(stations)
        self.stations_by_id = {s.station_id: s for s in self.stations}
        self.tree: cKDTree | None = None
        self._build_tree()

    def _build_tree(self) -> None:
        """Build KD-Tree from station coordinates."""
        if not self.stations:
            self.tree = None
            return

        coords = np.array([[s.lat, s.lon] for s in self.stations])
        self.tree = cKDTree(np.radians(coords))

    def find_nearest(self, lat: float, lon: float, k: int = 1) -> list[NearestResult]:
        """
        Find the k nearest stations to a given point.

        Args:
            lat: Latitude of the query point (degrees)
            lon: Longitude of the query point (degrees)
            k: Number of nearest stations to return

        Returns:
            List of NearestResult sorted by distance (empty if no stations)
        """
        if self.tree is None or k < 1:
            return []

        k = min(k, len(self.stations))
        _, indices = self.tree.query(np.radians([lat, lon]), k=k)

        results = []
        for idx in np.atleast_1d(indices):
            station = self.stations[int(idx)]
            distance = haversine(lat, lon, station.lat, station.lon)
            results.append(NearestResult(station=station, distance_km=round(distance, 3)))

        results.sort(key=lambda r: r.distance_km)
        return results

    def within_radius(self, station_id: str, radius_km: float) -> list[NearestResult]:
        """
        Other stations within radius_km of a station, nearest first.

        Returns:
            List of NearestResult (empty for an unknown station)
        """
        origin = self.stations_by_id.get(station_id)
        if origin is None or self.tree is None:
            return []

        # Euclidean distance on (lat, lon) radians overstates east-west
        # distance by at most 1/cos(lat); widen the query then filter exactly
        cos_lat = max(math.cos(math.radians(origin.lat)), 1e-6)
        query_radius = radius_km / EARTH_RADIUS_KM / cos_lat * 1.01
        indices = self.tree.query_ball_point(np.radians([origin.lat, origin.lon]), r=query_radius)

        results = []
        for idx in indices:
            station = self.stations[int(idx)]
            if station.station_id == station_id:
                continue
            distance = haversine(origin.lat, origin.lon, station.lat, station.lon)
            if distance <= radius_km:
                results.append(NearestResult(station=station, distance_km=round(distance, 3)))

        results.sort(key=lambda r: r.distance_km)
        return results
