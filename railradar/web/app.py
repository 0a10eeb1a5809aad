"""
FastAPI interface for Rail Radar.

Exposes shortest-path queries and read-only access to the rail data.
"""

import logging

from fastapi import FastAPI, HTTPException, Query
from pydantic import BaseModel

from railradar import __version__
from railradar.config import settings
from railradar.exceptions import ConfigurationError, DataLoadError
from railradar.geo import NearestStationFinder
from railradar.logging_config import setup_logger
from railradar.pathfinding import PathFinder
from railradar.store import InMemoryGraphStore, JsonGraphStore

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Rail Radar",
    description="Shortest paths over the rail station graph",
    version=__version__,
)

# Global instances (loaded on startup)
store: InMemoryGraphStore | None = None
pathfinder: PathFinder | None = None
finder: NearestStationFinder | None = None


def use_store(new_store: InMemoryGraphStore | None) -> None:
    """Swap the data the API serves."""
    global store, pathfinder, finder
    store = new_store
    pathfinder = PathFinder(new_store) if new_store is not None else None
    finder = NearestStationFinder(new_store.list_stations()) if new_store is not None else None


@app.on_event("startup")
async def startup_event():
    """Load rail data on startup."""
    setup_logger()
    if store is not None:
        return
    try:
        use_store(JsonGraphStore(settings.data_file))
    except DataLoadError as e:
        logger.error("Rail data not loaded: %s", e)


def _require_store() -> InMemoryGraphStore:
    if store is None:
        raise HTTPException(status_code=503, detail="Rail data is not loaded")
    return store


class StationModel(BaseModel):
    """Station as exposed by the API."""

    station_id: str
    name: str
    lat: float
    lon: float


class EdgeModel(BaseModel):
    """Directed edge as exposed by the API."""

    from_station: str
    to_station: str
    edge_type: str
    weight: float
    route_ids: list[str]


class NextStationModel(StationModel):
    distance: float  # Cumulative weight from the destination


class PathResponse(BaseModel):
    """Shortest path with the stations that follow the destination."""

    path: list[StationModel]
    edges: list[EdgeModel]
    nextStations: list[NextStationModel]
    nextEdges: list[EdgeModel]
    totalWeight: float
    found: bool


class NearestStationModel(StationModel):
    distance_km: float


class ClosestStationModel(BaseModel):
    station_id: str
    close_station_id: str
    distance: float
    route_ids: list[str]


class RouteModel(BaseModel):
    route_id: str
    route_short_name: str
    route_long_name: str


class CountsResponse(BaseModel):
    stations: int
    edges: int
    closest_stations: int
    route_to_stations: int


@app.get("/api/path", response_model=PathResponse)
async def api_path(
    start: str = Query(..., description="Start station id"),
    end: str = Query(..., description="End station id"),
) -> PathResponse:
    """Shortest path between two stations."""
    _require_store()
    try:
        result = pathfinder.find_path(start, end)
    except ConfigurationError as e:
        logger.error("Path query %s -> %s failed: %s", start, end, e)
        raise HTTPException(status_code=500, detail=str(e))
    return PathResponse.model_validate(result.to_dict())


@app.get("/api/stations", response_model=list[StationModel])
async def api_stations() -> list[StationModel]:
    return [StationModel(**s.to_dict()) for s in _require_store().list_stations()]


@app.get("/api/stations/nearest", response_model=list[NearestStationModel])
async def api_nearest_stations(
    lat: float = Query(..., ge=-90, le=90),
    lon: float = Query(..., ge=-180, le=180),
    k: int | None = Query(default=None, ge=1, le=50),
) -> list[NearestStationModel]:
    """Stations nearest to a coordinate."""
    _require_store()
    results = finder.find_nearest(lat, lon, k=k or settings.nearest_limit)
    return [
        NearestStationModel(**r.station.to_dict(), distance_km=r.distance_km)
        for r in results
    ]


@app.get("/api/stations/{station_id}/closest", response_model=list[ClosestStationModel])
async def api_closest_stations(station_id: str) -> list[ClosestStationModel]:
    """Precomputed stations within walking distance."""
    current = _require_store()
    if current.get_station(station_id) is None:
        raise HTTPException(status_code=404, detail=f"Unknown station: {station_id}")
    return [
        ClosestStationModel(
            station_id=c.station_id,
            close_station_id=c.close_station_id,
            distance=c.distance,
            route_ids=list(c.route_ids),
        )
        for c in current.closest_stations(station_id)
    ]


@app.get("/api/routes", response_model=list[RouteModel])
async def api_routes() -> list[RouteModel]:
    return [
        RouteModel(
            route_id=r.route_id,
            route_short_name=r.short_name,
            route_long_name=r.long_name,
        )
        for r in _require_store().list_routes()
    ]


@app.get("/api/routes/{route_id}/edges", response_model=list[EdgeModel])
async def api_route_edges(route_id: str) -> list[EdgeModel]:
    """Edges served by a route (empty for unknown routes)."""
    return [EdgeModel(**e.to_dict()) for e in _require_store().edges_by_route(route_id)]


@app.get("/api/routes/{route_id}/stations", response_model=list[str])
async def api_route_stations(route_id: str) -> list[str]:
    """Ordered station ids served by a route."""
    station_ids = _require_store().route_stations(route_id)
    if station_ids is None:
        raise HTTPException(status_code=404, detail=f"Unknown route: {route_id}")
    return station_ids


@app.get("/api/counts", response_model=CountsResponse)
async def api_counts() -> CountsResponse:
    return CountsResponse(**_require_store().counts())


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {
        "status": "ok",
        "data_loaded": store is not None,
        "stations": len(store.list_stations()) if store is not None else 0,
    }
