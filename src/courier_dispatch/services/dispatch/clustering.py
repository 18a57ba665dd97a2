"""Bounded spatial clustering of pickup points."""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

import numpy as np
from sklearn.metrics.pairwise import haversine_distances

from ...models.domain import Cluster, Location, PickupPoint
from ..geospatial import EARTH_RADIUS_KM, distance_km, distance_matrix_km
from .policy import DispatchConfig


def _point_to_centroid_km(coords: np.ndarray, centroids: np.ndarray) -> np.ndarray:
    return haversine_distances(np.radians(coords), np.radians(centroids)) * EARTH_RADIUS_KM


def _seed_farthest(points: Sequence[PickupPoint], k: int) -> np.ndarray:
    """Farthest-point initialisation starting at the first point.

    Each next seed maximises its distance to the nearest seed chosen so far;
    ties go to the lowest index. Returns seed indices.
    """
    matrix = distance_matrix_km([point.location for point in points])
    chosen = [0]
    nearest = matrix[0].copy()
    nearest[0] = -1.0
    while len(chosen) < k:
        candidate = int(np.argmax(nearest))
        chosen.append(candidate)
        nearest = np.minimum(nearest, matrix[candidate])
        nearest[chosen] = -1.0
    return np.array(chosen)


def _seed_random(n: int, k: int, seed: Optional[int]) -> np.ndarray:
    rng = np.random.default_rng(seed)
    return rng.choice(n, size=k, replace=False)


def _enforce_max_size(
    labels: np.ndarray,
    distances: np.ndarray,
    max_size: int,
) -> tuple[np.ndarray, int]:
    """Move members out of overloaded slots into the nearest slot with spare capacity.

    Empty slots count as destinations. Each move picks the globally closest
    (member, slot) pair, so the result does not depend on iteration order.
    Returns the new labels and the number of transfers.
    """
    labels = labels.copy()
    k = distances.shape[1]
    counts = np.bincount(labels, minlength=k)
    transfers = 0

    while (counts > max_size).any():
        movable = counts[labels] > max_size
        open_slots = counts < max_size
        costs = np.where(movable[:, None] & open_slots[None, :], distances, np.inf)
        flat_index = int(np.argmin(costs))
        member, slot = divmod(flat_index, k)
        if not np.isfinite(costs[member, slot]):
            raise ValueError("No cluster has spare capacity for the remaining points.")

        counts[labels[member]] -= 1
        counts[slot] += 1
        labels[member] = slot
        transfers += 1

    return labels, transfers


def _build_cluster(members: Sequence[PickupPoint]) -> Cluster:
    coords = np.array([[point.location.lat, point.location.lng] for point in members], dtype=float)
    lat, lng = coords.mean(axis=0)
    centroid = Location(lat=float(lat), lng=float(lng))
    return Cluster(
        order_ids=[point.order_id for point in members],
        pickup_points=list(members),
        centroid=centroid,
        max_distance_km=max(distance_km(point.location, centroid) for point in members),
        total_prep_time=sum(point.estimated_prep_time for point in members),
    )


def build_clusters(
    points: Sequence[PickupPoint],
    k: int,
    config: DispatchConfig,
    *,
    max_size: Optional[int] = None,
) -> List[Cluster]:
    """Partition pickup points into at most ``k`` clusters of at most ``max_size`` members.

    Iterative centroid clustering (a spatial k-means) over haversine distance,
    followed by a capacity pass that keeps every cluster within ``max_size``
    (``config.max_orders_per_courier`` when omitted). Empty clusters are dropped.
    """
    if k < 1:
        raise ValueError("k must be >= 1")

    n = len(points)
    if n == 0:
        return []

    bound = max_size if max_size is not None else config.max_orders_per_courier
    if bound < 1:
        raise ValueError("max_size must be >= 1")

    if k >= n:
        return [_build_cluster([point]) for point in points]

    if k * bound < n:
        raise ValueError(f"Cannot fit {n} points into {k} clusters of at most {bound}.")

    coords = np.array([[point.location.lat, point.location.lng] for point in points], dtype=float)

    if config.cluster_seeding == "random":
        seeds = _seed_random(n, k, config.cluster_seed)
    else:
        seeds = _seed_farthest(points, k)
    centroids = coords[seeds].copy()

    labels = np.zeros(n, dtype=int)
    for iteration in range(config.cluster_max_iterations):
        distances = _point_to_centroid_km(coords, centroids)
        labels = np.argmin(distances, axis=1)

        updated = centroids.copy()
        for slot in range(k):
            members = labels == slot
            if members.any():
                updated[slot] = coords[members].mean(axis=0)

        movement = float(np.abs(updated - centroids).max())
        centroids = updated
        if movement < config.cluster_epsilon_degrees:
            logging.info(f"Clustering converged after {iteration + 1} iterations (k={k}, n={n})")
            break

    distances = _point_to_centroid_km(coords, centroids)
    labels = np.argmin(distances, axis=1)
    labels, transfers = _enforce_max_size(labels, distances, bound)
    if transfers:
        logging.info(f"Moved {transfers} pickup points to keep clusters within {bound} orders")

    clusters: list[Cluster] = []
    for slot in range(k):
        members = [points[index] for index in np.flatnonzero(labels == slot)]
        if members:
            clusters.append(_build_cluster(members))
    return clusters
