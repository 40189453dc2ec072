"""Split a long track into equal-length parts and export them one at a time."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import logging
import math
from pathlib import Path
import re
import threading
from typing import Callable, List, Optional, Sequence, Tuple

import numpy as np

from .config import PEN_BUFFER_END_M, PEN_BUFFER_START_M, SPLIT_EXPORT_DELAY_S
from .errors import ExportError
from .gpx_io import coordinates_to_gpx, points_to_coordinates
from .models import (
    GeoOrigin,
    MetricArray,
    Point3,
    TrackPoint,
    as_position_array,
    build_track_points,
)
from .track import Track

LOGGER = logging.getLogger(__name__)

Exporter = Callable[[str, str], None]
Bounds = Tuple[float, float]


@dataclass(frozen=True, slots=True)
class SplitPlan:
    """How a track of ``total_length_m`` divides into ``count`` equal parts."""

    total_length_m: float
    count: int
    segment_length_m: float
    with_buffers: bool

    def bounds(self, part: int) -> Bounds:
        """Unpadded distance bounds of ``part`` (zero based)."""

        if not 0 <= part < self.count:
            raise IndexError(f"part {part} out of range for {self.count} parts")
        start = part * self.segment_length_m
        end = self.total_length_m if part == self.count - 1 else start + self.segment_length_m
        return start, end

    def padded_bounds(self, part: int) -> Bounds:
        """Bounds including the pen buffers, clipped to the track."""

        start, end = self.bounds(part)
        if not self.with_buffers:
            return start, end
        return max(0.0, start - PEN_BUFFER_START_M), min(
            self.total_length_m, end + PEN_BUFFER_END_M
        )


@dataclass(frozen=True, slots=True)
class SplitSegment:
    part: int
    count: int
    name: str
    start_m: float
    end_m: float
    points: Tuple[TrackPoint, ...]

    @property
    def length_m(self) -> float:
        return self.end_m - self.start_m

    @property
    def file_name(self) -> str:
        slug = re.sub(r"[^A-Za-z0-9_-]+", "_", self.name).strip("_") or "track"
        return f"{slug}.gpx"


def plan_split(total_length_m: float, limit_m: float, with_buffers: bool = False) -> SplitPlan:
    """Work out how many equal parts keep each part within ``limit_m``.

    With buffers requested, the start and finish pen allowances come off the
    limit before dividing.
    """

    effective = limit_m - (PEN_BUFFER_START_M + PEN_BUFFER_END_M) if with_buffers else limit_m
    if effective <= 0:
        raise ValueError("Split limit must exceed the pen buffers")
    if total_length_m <= 0:
        return SplitPlan(0.0, 1, 0.0, with_buffers)
    count = max(1, math.ceil(total_length_m / effective))
    return SplitPlan(
        total_length_m=total_length_m,
        count=count,
        segment_length_m=total_length_m / count,
        with_buffers=with_buffers,
    )


def extract_segment(points: Sequence[TrackPoint], bounds: Bounds) -> Tuple[TrackPoint, ...]:
    """Cut the stretch of road between the two distances in ``bounds``.

    Points are interpolated at both bounds and the original points strictly
    between them are kept, so consecutive parts share their boundary point and
    every part with a non-zero span has at least two points. Distances on the
    returned points continue from the lower bound.
    """

    lower, upper = bounds
    distances = np.asarray([p.distance_from_start for p in points], dtype=float)
    positions = as_position_array(p.position for p in points)
    lower = min(max(lower, float(distances[0])), float(distances[-1]))
    upper = min(max(upper, lower), float(distances[-1]))
    path: List[Point3] = [_position_at(distances, positions, lower)]
    if upper > lower:
        path.extend(p.position for p in points if lower < p.distance_from_start < upper)
        path.append(_position_at(distances, positions, upper))
    return build_track_points(path, start_distance=lower)


def _position_at(distances: MetricArray, positions: MetricArray, distance: float) -> Point3:
    """Position on the road ``distance`` metres from the start."""

    x, y, z = (float(np.interp(distance, distances, positions[:, axis])) for axis in range(3))
    return (x, y, z)


def split_track(track: Track, limit_m: float, with_buffers: bool = False) -> List[SplitSegment]:
    plan = plan_split(track.total_length_m, limit_m, with_buffers)
    segments: List[SplitSegment] = []
    for part in range(plan.count):
        start, end = plan.padded_bounds(part)
        segments.append(
            SplitSegment(
                part=part,
                count=plan.count,
                name=f"{track.name or 'Track'} part {part + 1} of {plan.count}",
                start_m=start,
                end_m=end,
                points=extract_segment(track.points, (start, end)),
            )
        )
    LOGGER.info(
        "Split '%s' (%.0f m) into %d parts of %.1f m",
        track.name,
        plan.total_length_m,
        plan.count,
        plan.segment_length_m,
    )
    return segments


def directory_exporter(directory: str | Path) -> Exporter:
    """Return an exporter that writes each GPX document into ``directory``."""

    target = Path(directory)

    def _export(file_name: str, document: str) -> None:
        target.mkdir(parents=True, exist_ok=True)
        (target / file_name).write_text(document, encoding="utf-8")

    return _export


class ExportStatus(str, Enum):
    PENDING = "pending"
    EXPORTED = "exported"
    FAILED = "failed"
    CANCELLED = "cancelled"


class SplitExportJob:
    """Hands split segments to an exporter one by one on a background thread.

    A fixed delay separates consecutive hand-offs so the host's file-save
    mechanism is not flooded. The job can be cancelled at any time; a failing
    hand-off stops the job and the remaining segments are marked cancelled.
    """

    def __init__(
        self,
        segments: Sequence[SplitSegment],
        origin: GeoOrigin,
        exporter: Exporter,
        *,
        delay_s: float = SPLIT_EXPORT_DELAY_S,
    ) -> None:
        if delay_s < 0:
            raise ValueError("delay_s must be >= 0")
        self._segments = tuple(segments)
        self._origin = origin
        self._exporter = exporter
        self._delay_s = delay_s
        self._lock = threading.Lock()
        self._cancel = threading.Event()
        self._statuses = [ExportStatus.PENDING] * len(self._segments)
        self._error: Optional[ExportError] = None
        self._thread: Optional[threading.Thread] = None

    def start(self) -> "SplitExportJob":
        with self._lock:
            if self._thread is not None:
                raise RuntimeError("Export job already started")
            self._thread = threading.Thread(
                target=self._run, name="split-export", daemon=True
            )
        self._thread.start()
        return self

    def cancel(self) -> None:
        self._cancel.set()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Wait for the job to finish; returns True when it has."""

        if self._thread is None:
            return False
        self._thread.join(timeout)
        return not self._thread.is_alive()

    @property
    def done(self) -> bool:
        return self._thread is not None and not self._thread.is_alive()

    @property
    def error(self) -> Optional[ExportError]:
        with self._lock:
            return self._error

    @property
    def results(self) -> List[Tuple[str, ExportStatus]]:
        with self._lock:
            return [
                (segment.file_name, status)
                for segment, status in zip(self._segments, self._statuses)
            ]

    def _run(self) -> None:
        for position, segment in enumerate(self._segments):
            if position and self._cancel.wait(self._delay_s):
                break
            if self._cancel.is_set():
                break
            document = coordinates_to_gpx(
                points_to_coordinates(segment.points, self._origin), segment.name
            )
            try:
                self._exporter(segment.file_name, document)
            except Exception as exc:  # exporter is external; stop the job on any failure
                LOGGER.error("Export of %s failed: %s", segment.file_name, exc)
                with self._lock:
                    self._statuses[position] = ExportStatus.FAILED
                    failure = ExportError(f"Export of {segment.file_name} failed: {exc}")
                    failure.__cause__ = exc
                    self._error = failure
                break
            with self._lock:
                self._statuses[position] = ExportStatus.EXPORTED
            LOGGER.info("Exported %s (%d/%d)", segment.file_name, position + 1, len(self._segments))
        self._mark_remaining_cancelled()

    def _mark_remaining_cancelled(self) -> None:
        with self._lock:
            skipped = 0
            for position, status in enumerate(self._statuses):
                if status is ExportStatus.PENDING:
                    self._statuses[position] = ExportStatus.CANCELLED
                    skipped += 1
        if skipped:
            LOGGER.warning("Split export stopped; %d segment(s) not exported", skipped)


__all__ = [
    "ExportStatus",
    "SplitExportJob",
    "SplitPlan",
    "SplitSegment",
    "directory_exporter",
    "extract_segment",
    "plan_split",
    "split_track",
]
