"""Spatial queries over track points for pointer and marker interaction."""

from __future__ import annotations

import logging
import math
from typing import List, Optional, Sequence, Tuple

import numpy as np
import shapely
from numpy.typing import NDArray
from shapely.geometry import LineString, Point
from shapely.strtree import STRtree

from .config import (
    RAY_LINEAR_SCAN_MAX_POINTS,
    RAY_SEARCH_RADIUS_M,
    SPATIAL_CELL_HALF_SIZE_M,
)
from .models import MetricArray, Point2, Ray, TrackPoint, as_position_array

LOGGER = logging.getLogger(__name__)

IndexArray = NDArray[np.intp]

# Direction components smaller than this are treated as parallel to an axis.
_AXIS_EPSILON = 1e-12


class SpatialIndex:
    """Read-only query structure rebuilt wholesale after every structural edit.

    Each point is indexed by a small square planar cell in an ``STRtree``. Ray
    queries use the tree to gather candidates near the ray's planar trace and
    then score their true 3D distance.
    """

    def __init__(
        self,
        points: Sequence[TrackPoint],
        *,
        cell_half_size_m: float = SPATIAL_CELL_HALF_SIZE_M,
        search_radius_m: float = RAY_SEARCH_RADIUS_M,
        linear_scan_max_points: int = RAY_LINEAR_SCAN_MAX_POINTS,
    ) -> None:
        if cell_half_size_m <= 0:
            raise ValueError("cell_half_size_m must be greater than zero")
        if search_radius_m <= 0:
            raise ValueError("search_radius_m must be greater than zero")
        self._points: Tuple[TrackPoint, ...] = tuple(points)
        self._positions: MetricArray = as_position_array(
            point.position for point in self._points
        )
        self._cell_half_size = cell_half_size_m
        self._search_radius = search_radius_m
        self._linear_scan_max = max(0, linear_scan_max_points)
        xs = self._positions[:, 0]
        ys = self._positions[:, 1]
        half = cell_half_size_m
        cells = shapely.box(xs - half, ys - half, xs + half, ys + half)
        self._tree = STRtree(cells)

    @classmethod
    def build(cls, points: Sequence[TrackPoint], **kwargs: float) -> "SpatialIndex":
        return cls(points, **kwargs)

    def __len__(self) -> int:
        return len(self._points)

    def all_near(self, point: Point2) -> List[TrackPoint]:
        """Return every point whose planar cell covers ``point``, in track order."""

        if not self._points:
            return []
        hits = self._tree.query(Point(float(point[0]), float(point[1])), predicate="intersects")
        return [self._points[i] for i in sorted(int(i) for i in hits)]

    def nearest_along_ray(self, ray: Ray) -> Optional[TrackPoint]:
        """Return the point closest to the ray, ties going to the lowest index."""

        if not self._points:
            return None
        origin, direction = _normalise_ray(ray)
        count = len(self._points)
        if count <= self._linear_scan_max:
            return self._best_of(np.arange(count), origin, direction)[0]

        lower = self._positions.min(axis=0)
        upper = self._positions.max(axis=0)
        diagonal = float(np.linalg.norm(upper - lower))
        radius = self._search_radius
        while radius <= max(diagonal, self._search_radius):
            window = _clip_ray_to_box(origin, direction, lower - radius, upper + radius)
            if window is not None:
                candidates = self._candidates_near_trace(origin, direction, window, radius)
                if candidates.size:
                    best, distance = self._best_of(candidates, origin, direction)
                    # Anything closer than the radius is guaranteed to be a candidate.
                    if distance <= radius:
                        return best
            radius *= 2.0

        LOGGER.debug("Ray query fell back to a linear scan over %d points", count)
        return self._best_of(np.arange(count), origin, direction)[0]

    def _candidates_near_trace(
        self,
        origin: MetricArray,
        direction: MetricArray,
        window: Tuple[float, float],
        radius: float,
    ) -> IndexArray:
        t_near, t_far = window
        near = origin + direction * t_near
        far = origin + direction * t_far
        if math.isclose(near[0], far[0]) and math.isclose(near[1], far[1]):
            trace = Point(float(near[0]), float(near[1]))
        else:
            trace = LineString([(near[0], near[1]), (far[0], far[1])])
        hits = self._tree.query(trace, predicate="dwithin", distance=radius)
        return np.sort(np.asarray(hits, dtype=np.intp))

    def _best_of(
        self,
        candidates: IndexArray,
        origin: MetricArray,
        direction: MetricArray,
    ) -> Tuple[TrackPoint, float]:
        distances = _distances_to_ray(self._positions[candidates], origin, direction)
        order = np.lexsort((candidates, distances))
        winner = int(order[0])
        return self._points[int(candidates[winner])], float(distances[winner])


def _normalise_ray(ray: Ray) -> Tuple[MetricArray, MetricArray]:
    origin = np.asarray(ray.origin, dtype=float)
    direction = np.asarray(ray.direction, dtype=float)
    if origin.shape != (3,) or direction.shape != (3,):
        raise ValueError("Ray origin and direction must be 3D")
    norm = float(np.linalg.norm(direction))
    if norm == 0.0 or not math.isfinite(norm):
        raise ValueError("Ray direction must be a non-zero finite vector")
    return origin, direction / norm


def _distances_to_ray(
    positions: MetricArray, origin: MetricArray, direction: MetricArray
) -> MetricArray:
    """Distance from each position to the forward half-line of the ray."""

    offsets = positions - origin
    along = np.maximum(offsets @ direction, 0.0)
    closest = origin + np.outer(along, direction)
    return np.linalg.norm(positions - closest, axis=1)


def _clip_ray_to_box(
    origin: MetricArray,
    direction: MetricArray,
    lower: MetricArray,
    upper: MetricArray,
) -> Optional[Tuple[float, float]]:
    """Return the forward parameter interval where the ray is inside the box."""

    t_near, t_far = 0.0, math.inf
    for axis in range(3):
        d = float(direction[axis])
        o = float(origin[axis])
        if abs(d) < _AXIS_EPSILON:
            if o < lower[axis] or o > upper[axis]:
                return None
            continue
        t_a = (float(lower[axis]) - o) / d
        t_b = (float(upper[axis]) - o) / d
        if t_a > t_b:
            t_a, t_b = t_b, t_a
        t_near = max(t_near, t_a)
        t_far = min(t_far, t_b)
        if t_near > t_far:
            return None
    return t_near, t_far


__all__ = ["SpatialIndex"]
