"""Geospatial helper functions."""

from __future__ import annotations

import math
from typing import Sequence

import numpy as np
from sklearn.metrics.pairwise import haversine_distances

from ..models.domain import Location

EARTH_RADIUS_KM = 6371.0
EARTH_RADIUS_M = EARTH_RADIUS_KM * 1000.0


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Compute distance between two coordinates using the Haversine formula."""

    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def haversine_m(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Same as haversine_km, in metres (for fine-grained proximity checks)."""

    return haversine_km(lat1, lon1, lat2, lon2) * 1000.0


def distance_km(a: Location, b: Location) -> float:
    return haversine_km(a.lat, a.lng, b.lat, b.lng)


def distance_matrix_km(locations: Sequence[Location]) -> np.ndarray:
    """Full pairwise great-circle distance matrix in kilometres."""

    if not locations:
        return np.zeros((0, 0))
    radians = np.radians([[loc.lat, loc.lng] for loc in locations])
    matrix = haversine_distances(radians) * EARTH_RADIUS_KM
    np.fill_diagonal(matrix, 0.0)
    return matrix


def mean_location(locations: Sequence[Location]) -> Location:
    """Arithmetic mean of latitudes and longitudes."""

    if not locations:
        raise ValueError("Cannot compute the centroid of an empty location set.")
    coords = np.array([[loc.lat, loc.lng] for loc in locations], dtype=float)
    lat, lng = coords.mean(axis=0)
    return Location(lat=float(lat), lng=float(lng))


def validate_delivery_location(
    courier: Location,
    target: Location,
    max_distance_meters: float = 5.0,
) -> tuple[bool, float]:
    """Check whether a courier stands close enough to a target to mark it delivered.

    Returns (is_valid, distance in metres rounded to 2 decimals).
    """
    distance = haversine_m(courier.lat, courier.lng, target.lat, target.lng)
    return distance <= max_distance_meters, round(distance, 2)


def format_distance(meters: float) -> str:
    if meters < 1000:
        return f"{meters:.1f}m"
    return f"{meters / 1000:.2f}km"
