"""Loop detection, closing, reopening and moving the start of a loop."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import logging
import math
from typing import Optional, Sequence, TYPE_CHECKING

from ..config import (
    LOOP_ALMOST_THRESHOLD_M,
    LOOP_CLOSING_LEAD_M,
    LOOP_EXACT_TOLERANCE_M,
)
from ..models import EditResult, Point3, TrackPoint, Vector3
from .base import register

if TYPE_CHECKING:  # pragma: no cover - type checking only
    from ..track import MarkerPair, Track

LOGGER = logging.getLogger(__name__)


class LoopKind(str, Enum):
    IS_LOOP = "is_loop"
    ALMOST_LOOP = "almost_loop"
    NOT_LOOP = "not_loop"


@dataclass(frozen=True, slots=True)
class Loopiness:
    """How close the track's endpoints are to coinciding."""

    kind: LoopKind
    gap_m: float

    @property
    def is_loop(self) -> bool:
        return self.kind is LoopKind.IS_LOOP


def endpoint_gap(track: "Track") -> float:
    return math.dist(track.points[0].position, track.points[-1].position)


def classify_loop(
    track: "Track",
    threshold_m: float = LOOP_ALMOST_THRESHOLD_M,
    tolerance_m: float = LOOP_EXACT_TOLERANCE_M,
) -> Loopiness:
    gap = endpoint_gap(track)
    if gap <= tolerance_m:
        return Loopiness(LoopKind.IS_LOOP, gap)
    if gap < threshold_m:
        return Loopiness(LoopKind.ALMOST_LOOP, gap)
    return Loopiness(LoopKind.NOT_LOOP, gap)


@register("close_loop", "Close loop")
def close_loop(
    track: "Track",
    tolerance_m: float = LOOP_EXACT_TOLERANCE_M,
    threshold_m: float = LOOP_ALMOST_THRESHOLD_M,
) -> Optional[EditResult]:
    """Make the last point coincide with the first.

    Within ``tolerance_m`` the last point becomes a copy of the first.
    Otherwise a lead-in point just behind the start and a copy of the start are
    appended, leaving a short closing road to smooth afterwards. Tracks whose
    ends are ``threshold_m`` or more apart are not loops and are left alone.
    """

    count = track.length
    if count < 2:
        return None
    loopiness = classify_loop(track, threshold_m, tolerance_m)
    gap = loopiness.gap_m
    if gap == 0.0:
        return None
    if loopiness.kind is LoopKind.NOT_LOOP:
        LOGGER.info("Ends are %.0f m apart; not closing the loop", gap)
        return None
    first = track.points[0].position
    if gap <= tolerance_m:
        return EditResult.replace_span(track.points, count - 1, count, [first], track.origin)

    direction = _outgoing_direction(track.points)
    if direction is None:
        return None
    lead = (
        first[0] - direction[0] * LOOP_CLOSING_LEAD_M,
        first[1] - direction[1] * LOOP_CLOSING_LEAD_M,
        first[2] - direction[2] * LOOP_CLOSING_LEAD_M,
    )
    return EditResult.replace_span(track.points, count, count, [lead, first], track.origin)


@register("reopen_loop", "Open loop")
def reopen_loop(
    track: "Track", tolerance_m: float = LOOP_EXACT_TOLERANCE_M
) -> Optional[EditResult]:
    """Drop the closing copy of the start point from a loop."""

    count = track.length
    if count < 3 or endpoint_gap(track) > tolerance_m:
        return None
    return EditResult.replace_span(track.points, count - 1, count, (), track.origin)


def _loop_start_cursor(track: "Track", result: EditResult) -> "MarkerPair":
    return 0, None


@register("change_loop_start", "Move loop start", cursor=_loop_start_cursor)
def change_loop_start(
    track: "Track",
    index: Optional[int] = None,
    tolerance_m: float = LOOP_EXACT_TOLERANCE_M,
) -> Optional[EditResult]:
    """Rotate a loop so ``index`` (default: the current marker) becomes the start."""

    count = track.length
    if count < 3 or endpoint_gap(track) > tolerance_m:
        return None
    new_start = track.current_marker if index is None else int(index)
    if not 0 < new_start < count - 1:
        return None
    ring = track.positions[:-1]
    rotated: list[Point3] = ring[new_start:] + ring[:new_start]
    rotated.append(rotated[0])
    LOGGER.debug("Rotating loop of %s points to start at %s", count, new_start)
    return EditResult.replace_span(track.points, 0, count, rotated, track.origin)


def _outgoing_direction(points: Sequence[TrackPoint]) -> Optional[Vector3]:
    """Direction of the first road with non-zero length."""

    for point in points:
        if point.direction_after is not None:
            return point.direction_after
    return None


__all__ = [
    "LoopKind",
    "Loopiness",
    "change_loop_start",
    "classify_loop",
    "close_loop",
    "endpoint_gap",
    "reopen_loop",
]
