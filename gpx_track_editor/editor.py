"""Interaction facade used by a front end: markers, queries, previews and edits."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, List, Optional, Sequence

from .config import (
    BEND_DEFAULT_SPACING_M,
    LOOP_ALMOST_THRESHOLD_M,
    QUICK_FIX_SAMPLES_PER_SPAN,
    QUICK_FIX_TARGET_SPACING_M,
    SPLIT_EXPORT_DELAY_S,
)
from .gpx_io import read_gpx_file, track_to_gpx
from .history import EditHistory, make_entry
from .models import EditResult, GeoOrigin, Point2, Ray, TrackPoint
from .regions import Region, track_region
from .splitter import Exporter, SplitExportJob, SplitSegment, split_track
from .track import Track
from .transforms import Loopiness, MoveMode, Operation, apply_operation, classify_loop


class TrackEditor:
    """Single-threaded editing session over one track.

    Every edit is committed through :class:`EditHistory`, so callers only ever
    see fully rebuilt tracks.
    """

    def __init__(
        self,
        track: Track,
        *,
        history_limit: Optional[int] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        if history_limit is None:
            self._history = EditHistory(track)
        else:
            self._history = EditHistory(track, max_entries=history_limit)
        self._log = logger or logging.getLogger(self.__class__.__name__)

    @classmethod
    def open(cls, path: str | Path, origin: Optional[GeoOrigin] = None) -> "TrackEditor":
        return cls(read_gpx_file(path, origin=origin))

    @property
    def track(self) -> Track:
        return self._history.track

    @property
    def history(self) -> EditHistory:
        return self._history

    # -- markers ---------------------------------------------------------
    @property
    def current_marker(self) -> int:
        return self.track.current_marker

    @current_marker.setter
    def current_marker(self, index: int) -> None:
        self._history.set_markers(index, self.track.secondary_marker)

    @property
    def secondary_marker(self) -> Optional[int]:
        return self.track.secondary_marker

    @secondary_marker.setter
    def secondary_marker(self, index: Optional[int]) -> None:
        self._history.set_markers(self.track.current_marker, index)

    @property
    def region(self) -> Region:
        return track_region(self.track)

    # -- queries ---------------------------------------------------------
    def nearest_along_ray(self, ray: Ray) -> Optional[TrackPoint]:
        return self.track.spatial_index.nearest_along_ray(ray)

    def all_near(self, point: Point2) -> List[TrackPoint]:
        return self.track.spatial_index.all_near(point)

    def loopiness(self, threshold_m: float = LOOP_ALMOST_THRESHOLD_M) -> Loopiness:
        return classify_loop(self.track, threshold_m)

    # -- edits -----------------------------------------------------------
    def preview(self, operation: Operation | str, **params: Any) -> Optional[EditResult]:
        """Compute an edit without committing it, e.g. while dragging."""

        return apply_operation(self.track, _as_operation(operation, params))

    def apply(self, operation: Operation | str, **params: Any) -> bool:
        """Commit an edit; returns False (track unchanged) when it has no result."""

        op = _as_operation(operation, params)
        entry = make_entry(self.track, op)
        if entry is None:
            self._log.info("'%s' produced no result; track unchanged", op.kind)
            return False
        self._history.commit(entry)
        return True

    def undo(self) -> bool:
        return self._history.undo() is not None

    def redo(self) -> bool:
        return self._history.redo() is not None

    @property
    def can_undo(self) -> bool:
        return self._history.can_undo

    @property
    def can_redo(self) -> bool:
        return self._history.can_redo

    @property
    def undo_label(self) -> Optional[str]:
        return self._history.undo_label

    @property
    def redo_label(self) -> Optional[str]:
        return self._history.redo_label

    def delete(self) -> bool:
        return self.apply("delete")

    def smooth_gradient(self, bumpiness: float = 0.0) -> bool:
        return self.apply("smooth_gradient", bumpiness=bumpiness)

    def smooth_bend(self, spacing_m: float = BEND_DEFAULT_SPACING_M) -> bool:
        return self.apply("smooth_bend", spacing_m=spacing_m)

    def close_loop(self) -> bool:
        return self.apply("close_loop")

    def reopen_loop(self) -> bool:
        return self.apply("reopen_loop")

    def change_loop_start(self, index: Optional[int] = None) -> bool:
        start = self.current_marker if index is None else index
        return self.apply("change_loop_start", index=start)

    def move(
        self,
        vector: Sequence[float],
        mode: MoveMode | str = MoveMode.TRANSLATE,
        *,
        stretch_pointer: Optional[int] = None,
        height_m: float = 0.0,
    ) -> bool:
        return self.apply(
            "move_region",
            vector=tuple(float(v) for v in vector),
            mode=MoveMode(mode).value,
            stretch_pointer=stretch_pointer,
            height_m=height_m,
        )

    def quick_fix(
        self,
        target_spacing_m: float = QUICK_FIX_TARGET_SPACING_M,
        samples_per_span: int = QUICK_FIX_SAMPLES_PER_SPAN,
    ) -> bool:
        return self.apply(
            "quick_fix",
            target_spacing_m=target_spacing_m,
            samples_per_span=samples_per_span,
        )

    # -- output ----------------------------------------------------------
    def export_gpx(self) -> str:
        return track_to_gpx(self.track)

    def split(self, limit_m: float, with_buffers: bool = False) -> List[SplitSegment]:
        return split_track(self.track, limit_m, with_buffers)

    def export_split(
        self,
        exporter: Exporter,
        limit_m: float,
        *,
        with_buffers: bool = False,
        delay_s: float = SPLIT_EXPORT_DELAY_S,
    ) -> SplitExportJob:
        """Start a paced background export of the split track."""

        segments = self.split(limit_m, with_buffers)
        job = SplitExportJob(segments, self.track.origin, exporter, delay_s=delay_s)
        return job.start()


def _as_operation(operation: Operation | str, params: dict[str, Any]) -> Operation:
    if isinstance(operation, Operation):
        if params:
            raise TypeError("Pass parameters either in the Operation or as keywords")
        return operation
    return Operation.create(operation, **params)


__all__ = ["TrackEditor"]
