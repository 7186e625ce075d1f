"""Geospatial helper functions."""

from __future__ import annotations

import math

from shapely.geometry import Polygon, box

from ..models.domain import Coordinate

EARTH_RADIUS_KM = 6371.0


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Compute distance between two coordinates using the Haversine formula."""

    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def distance_km(a: Coordinate, b: Coordinate) -> float:
    """Great-circle distance between two coordinates in kilometres."""

    if a == b:
        return 0.0
    return haversine_km(a.latitude, a.longitude, b.latitude, b.longitude)


def circle_area_km2(radius_km: float) -> float:
    return math.pi * radius_km * radius_km


def cell_center(index: tuple[int, int], cell_size_degrees: float) -> Coordinate:
    grid_x, grid_y = index
    return Coordinate(
        latitude=(grid_x + 0.5) * cell_size_degrees,
        longitude=(grid_y + 0.5) * cell_size_degrees,
    )


def cell_polygon(index: tuple[int, int], cell_size_degrees: float) -> Polygon:
    """Square covering a grid cell, in shapely's (lon, lat) axis order."""

    grid_x, grid_y = index
    min_lat = grid_x * cell_size_degrees
    min_lon = grid_y * cell_size_degrees
    return box(min_lon, min_lat, min_lon + cell_size_degrees, min_lat + cell_size_degrees)


def polygon_to_latlon(polygon: Polygon) -> list[tuple[float, float]]:
    """Exterior ring of a polygon as closed (lat, lon) pairs."""

    return [(lat, lon) for lon, lat in polygon.exterior.coords]
