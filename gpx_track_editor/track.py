"""The track aggregate: points, markers, origin and a matching spatial index."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
import logging
from typing import List, Optional, Sequence, Tuple

from .errors import EmptyTrackError
from .markers import MarkerPair
from .models import GeoOrigin, Point3, TrackPoint, build_track_points
from .spatial_index import SpatialIndex

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Track:
    """An immutable snapshot of a route being edited.

    Every edit produces a new ``Track``; the spatial index is built together
    with the points so the two can never disagree. Equality ignores the index.
    """

    points: Tuple[TrackPoint, ...]
    origin: GeoOrigin
    current_marker: int = 0
    secondary_marker: Optional[int] = None
    name: str = ""
    spatial_index: Optional[SpatialIndex] = field(
        default=None, compare=False, repr=False
    )

    def __post_init__(self) -> None:
        if not self.points:
            raise EmptyTrackError("A track needs at least one point")
        count = len(self.points)
        if not 0 <= self.current_marker < count:
            raise ValueError(f"current_marker {self.current_marker} out of range")
        if self.secondary_marker is not None and not 0 <= self.secondary_marker < count:
            raise ValueError(f"secondary_marker {self.secondary_marker} out of range")
        if self.spatial_index is None:
            object.__setattr__(self, "spatial_index", SpatialIndex.build(self.points))

    @classmethod
    def from_positions(
        cls,
        positions: Sequence[Sequence[float]],
        origin: GeoOrigin,
        *,
        name: str = "",
        current_marker: int = 0,
        secondary_marker: Optional[int] = None,
    ) -> "Track":
        """Renumber ``positions`` into a fresh track, clamping the markers."""

        points = build_track_points(positions)
        if not points:
            raise EmptyTrackError("A track needs at least one point")
        last = len(points) - 1
        current = clamp_index(current_marker, last)
        secondary = None if secondary_marker is None else clamp_index(secondary_marker, last)
        return cls(
            points=points,
            origin=origin,
            current_marker=current,
            secondary_marker=secondary,
            name=name,
        )

    @property
    def length(self) -> int:
        return len(self.points)

    def __len__(self) -> int:
        return len(self.points)

    @property
    def positions(self) -> List[Point3]:
        return [point.position for point in self.points]

    @property
    def total_length_m(self) -> float:
        return self.points[-1].distance_from_start

    @property
    def markers(self) -> MarkerPair:
        return self.current_marker, self.secondary_marker

    def with_markers(self, current: int, secondary: Optional[int] = None) -> "Track":
        """Return the same track with different (clamped) markers."""

        last = len(self.points) - 1
        return replace(
            self,
            current_marker=clamp_index(current, last),
            secondary_marker=None if secondary is None else clamp_index(secondary, last),
        )


def clamp_index(index: int, last: int) -> int:
    clamped = min(max(int(index), 0), last)
    if clamped != index:
        LOGGER.debug("Clamped marker %s into [0, %s]", index, last)
    return clamped


__all__ = ["MarkerPair", "Track", "clamp_index"]
