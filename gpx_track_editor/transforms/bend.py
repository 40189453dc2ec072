"""Replace the points between the markers with a circular arc."""

from __future__ import annotations

from dataclasses import dataclass
import logging
import math
from typing import List, Optional, Sequence, TYPE_CHECKING

import numpy as np

from ..config import BEND_DEFAULT_SPACING_M
from ..models import EditResult, Point3
from ..regions import track_region
from .base import register

if TYPE_CHECKING:  # pragma: no cover - type checking only
    from ..track import Track

LOGGER = logging.getLogger(__name__)

# Roads meeting at less than this sine of the angle are treated as parallel.
_MIN_TURN_SINE = 1e-6
_MIN_LENGTH_M = 1e-6


@dataclass(slots=True)
class BendArc:
    """Planar arc tangent to the entry and exit roads of a bend."""

    centre: np.ndarray
    radius: float
    start_angle: float
    sweep: float
    entry: np.ndarray
    exit: np.ndarray

    @property
    def length_m(self) -> float:
        return self.radius * abs(self.sweep)

    def sample(self, spacing_m: float) -> np.ndarray:
        """Return planar points from ``entry`` to ``exit`` at about ``spacing_m``."""

        steps = max(1, int(math.ceil(self.length_m / spacing_m)))
        angles = self.start_angle + self.sweep * np.arange(1, steps) / steps
        inner = self.centre + self.radius * np.column_stack((np.cos(angles), np.sin(angles)))
        return np.vstack((self.entry, inner, self.exit))


def fit_bend(
    entry_point: Sequence[float],
    entry_next: Sequence[float],
    exit_prev: Sequence[float],
    exit_point: Sequence[float],
) -> Optional[BendArc]:
    """Fit an arc tangent to the road leaving ``entry_point`` and the road into ``exit_point``.

    Both roads are extended until they meet; the arc touches each road at the
    same distance from the meeting point, the shorter of the two distances.
    Returns ``None`` when the roads are parallel, degenerate, or meet behind
    the entry or beyond the exit.
    """

    a = np.asarray(entry_point[:2], dtype=float)
    b = np.asarray(exit_point[:2], dtype=float)
    u = np.asarray(entry_next[:2], dtype=float) - a
    v = b - np.asarray(exit_prev[:2], dtype=float)
    len_u = float(np.linalg.norm(u))
    len_v = float(np.linalg.norm(v))
    if len_u < _MIN_LENGTH_M or len_v < _MIN_LENGTH_M:
        return None
    u /= len_u
    v /= len_v
    sine = _cross(u, v)
    if abs(sine) < _MIN_TURN_SINE:
        return None

    w = b - a
    along_entry = _cross(w, v) / sine
    along_exit = _cross(u, w) / sine
    if along_entry <= _MIN_LENGTH_M or along_exit <= _MIN_LENGTH_M:
        return None

    tangent = min(along_entry, along_exit)
    meeting = a + u * along_entry
    entry = meeting - u * tangent
    exit_ = meeting + v * tangent
    turn = math.atan2(sine, float(np.dot(u, v)))
    radius = tangent / math.tan(abs(turn) / 2.0)
    if turn > 0:
        normal = np.array([-u[1], u[0]])
    else:
        normal = np.array([u[1], -u[0]])
    centre = entry + normal * radius
    start_angle = math.atan2(entry[1] - centre[1], entry[0] - centre[0])
    return BendArc(
        centre=centre,
        radius=radius,
        start_angle=start_angle,
        sweep=turn,
        entry=entry,
        exit=exit_,
    )


@register("smooth_bend", "Smooth bend")
def smooth_bend(
    track: "Track", spacing_m: float = BEND_DEFAULT_SPACING_M
) -> Optional[EditResult]:
    """Replace the marker region with an arc resampled at ``spacing_m``.

    Returns ``None`` when no usable arc exists; the track is then left alone.
    """

    if spacing_m <= 0:
        return None
    start, end = track_region(track)
    if end - start < 2:
        return None
    points = track.points
    arc = fit_bend(
        points[start].position,
        points[start + 1].position,
        points[end - 1].position,
        points[end].position,
    )
    if arc is None:
        LOGGER.info("No bend fits between points %s and %s", start, end)
        return None

    first = points[start].position
    last = points[end].position
    planar: List[np.ndarray] = [np.asarray(first[:2], dtype=float)]
    for vertex in arc.sample(spacing_m):
        if float(np.linalg.norm(vertex - planar[-1])) > _MIN_LENGTH_M:
            planar.append(vertex)
    if float(np.linalg.norm(planar[-1] - np.asarray(last[:2]))) <= _MIN_LENGTH_M:
        planar.pop()
    planar.append(np.asarray(last[:2], dtype=float))

    path = np.vstack(planar)
    steps = np.linalg.norm(np.diff(path, axis=0), axis=1)
    cumulative = np.concatenate(([0.0], np.cumsum(steps)))
    fractions = cumulative / cumulative[-1] if cumulative[-1] > 0 else cumulative
    altitudes = first[2] + (last[2] - first[2]) * fractions

    positions: List[Point3] = [first]
    for (x, y), z in zip(path[1:-1].tolist(), altitudes[1:-1].tolist()):
        positions.append((float(x), float(y), float(z)))
    positions.append(last)
    return EditResult.replace_span(track.points, start, end + 1, positions, track.origin)


def _cross(a: np.ndarray, b: np.ndarray) -> float:
    return float(a[0] * b[1] - a[1] * b[0])
