"""Dataclasses describing track points, edit results and pick rays."""

from __future__ import annotations

from dataclasses import dataclass
import math
from typing import Iterable, List, Optional, Sequence, Tuple

import numpy as np
from numpy.typing import NDArray

Point2 = Tuple[float, float]
Point3 = Tuple[float, float, float]
Vector3 = Tuple[float, float, float]
MetricArray = NDArray[np.float64]

# Roads shorter than this (metres) have no usable direction.
_MIN_ROAD_LENGTH_M = 1e-9


@dataclass(frozen=True, slots=True)
class GeoOrigin:
    """Geodetic anchor of the local Cartesian frame the track is edited in."""

    longitude: float
    latitude: float


@dataclass(frozen=True, slots=True)
class TrackPoint:
    """A single point of a track with its derived metrics.

    ``position`` is (x, y, altitude) in metres relative to the track origin.
    Points are produced in bulk by :func:`build_track_points` and never
    modified afterwards.
    """

    index: int
    position: Point3
    distance_from_start: float
    direction_before: Optional[Vector3]
    direction_after: Optional[Vector3]
    profile_projection: Point2

    @property
    def altitude(self) -> float:
        return self.position[2]

    @property
    def planar(self) -> Point2:
        return (self.position[0], self.position[1])


@dataclass(frozen=True, slots=True)
class Ray:
    """A pick ray in the local frame, e.g. from the camera through the pointer."""

    origin: Point3
    direction: Vector3


@dataclass(frozen=True, slots=True)
class EditResult:
    """Three-way split produced by a transform.

    ``before`` and ``after`` are untouched slices of the original track; only
    ``edited`` is new. Derived fields on ``edited`` points are provisional until
    the owning track is rebuilt.
    """

    before: Tuple[TrackPoint, ...]
    edited: Tuple[TrackPoint, ...]
    after: Tuple[TrackPoint, ...]
    origin: GeoOrigin

    @classmethod
    def replace_span(
        cls,
        points: Sequence[TrackPoint],
        start: int,
        stop: int,
        positions: Iterable[Sequence[float]],
        origin: GeoOrigin,
    ) -> "EditResult":
        """Return a result replacing ``points[start:stop]`` with ``positions``."""

        if start < 0 or stop < start or stop > len(points):
            raise ValueError(f"Invalid span [{start}, {stop}) for {len(points)} points")
        before = tuple(points[:start])
        after = tuple(points[stop:])
        new_positions = [as_point3(pos) for pos in positions]
        start_distance = 0.0
        if before and new_positions:
            start_distance = before[-1].distance_from_start + math.dist(
                before[-1].position, new_positions[0]
            )
        edited = build_track_points(
            new_positions, first_index=start, start_distance=start_distance
        )
        return cls(before=before, edited=edited, after=after, origin=origin)

    @property
    def start(self) -> int:
        """Index of the first edited point in the new track."""
        return len(self.before)

    def __len__(self) -> int:
        return len(self.before) + len(self.edited) + len(self.after)

    def positions(self) -> List[Point3]:
        """Return the positions of the complete new track in order."""

        return [
            point.position for part in (self.before, self.edited, self.after) for point in part
        ]


def as_point3(values: Sequence[float]) -> Point3:
    """Convert any 3-element coordinate into a tuple of Python floats."""

    if len(values) != 3:
        raise ValueError("Expected an (x, y, altitude) coordinate")
    return (float(values[0]), float(values[1]), float(values[2]))


def as_position_array(positions: Iterable[Sequence[float]]) -> MetricArray:
    """Convert an iterable of 3D coordinates into an (n, 3) float64 array."""

    array = np.asarray(list(positions), dtype=float)
    if array.size == 0:
        return np.empty((0, 3), dtype=float)
    if array.ndim != 2 or array.shape[1] != 3:
        raise ValueError("Expected a sequence of 3D coordinates")
    return array


def array_to_positions(array: MetricArray) -> List[Point3]:
    return [(float(x), float(y), float(z)) for x, y, z in array.tolist()]


def build_track_points(
    positions: Sequence[Sequence[float]],
    *,
    first_index: int = 0,
    start_distance: float = 0.0,
) -> Tuple[TrackPoint, ...]:
    """Number the positions densely and derive distances and directions.

    This is the renumber pass run after every structural edit. Distances are
    cumulative 3D road lengths, so they never decrease.
    """

    coords = [as_point3(pos) for pos in positions]
    if not coords:
        return ()
    array = as_position_array(coords)
    deltas = np.diff(array, axis=0)
    lengths = np.linalg.norm(deltas, axis=1)
    cumulative = start_distance + np.concatenate(([0.0], np.cumsum(lengths)))
    directions: List[Optional[Vector3]] = []
    for delta, length in zip(deltas.tolist(), lengths.tolist()):
        if length <= _MIN_ROAD_LENGTH_M:
            directions.append(None)
        else:
            directions.append(
                (delta[0] / length, delta[1] / length, delta[2] / length)
            )

    points: List[TrackPoint] = []
    last = len(coords) - 1
    for offset, (position, distance) in enumerate(zip(coords, cumulative.tolist())):
        points.append(
            TrackPoint(
                index=first_index + offset,
                position=position,
                distance_from_start=distance,
                direction_before=directions[offset - 1] if offset > 0 else None,
                direction_after=directions[offset] if offset < last else None,
                profile_projection=(distance, position[2]),
            )
        )
    return tuple(points)


__all__ = [
    "EditResult",
    "GeoOrigin",
    "MetricArray",
    "Point2",
    "Point3",
    "Ray",
    "TrackPoint",
    "Vector3",
    "array_to_positions",
    "as_point3",
    "as_position_array",
    "build_track_points",
]
