"""Linear undo/redo history of committed edits."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
import logging
from typing import Deque, List, Optional

from .config import UNDO_HISTORY_LIMIT
from .errors import EditConflictError
from .markers import Splice, reconcile_markers
from .models import EditResult
from .track import MarkerPair, Track
from .transforms import Operation, apply_operation, get_spec

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class UndoEntry:
    """A committed edit: the operation, its inverse and the markers around it."""

    label: str
    action: Operation
    inverse: Operation
    cursor_after_apply: MarkerPair
    cursor_before_apply: MarkerPair


def inverse_of(track: Track, result: EditResult) -> Operation:
    """Return a ``restore_span`` operation that undoes ``result`` on its output."""

    splice = Splice.from_result(result, track.length)
    removed = track.points[splice.start : splice.start + splice.removed]
    original = tuple(p.position for p in removed)
    return Operation.create(
        "restore_span",
        start=splice.start,
        length=splice.inserted,
        positions=original,
    )


def make_entry(track: Track, operation: Operation) -> Optional[UndoEntry]:
    """Prepare an undo entry for ``operation`` or ``None`` when it has no result."""

    spec = get_spec(operation.kind)
    result = apply_operation(track, operation)
    if result is None:
        return None
    if spec.cursor is not None:
        cursor_after = spec.cursor(track, result)
    else:
        splice = Splice.from_result(result, track.length)
        cursor_after = reconcile_markers(track.markers, splice, len(result))
    return UndoEntry(
        label=spec.label,
        action=operation,
        inverse=inverse_of(track, result),
        cursor_after_apply=cursor_after,
        cursor_before_apply=track.markers,
    )


def rebuild_track(track: Track, result: EditResult, cursor: MarkerPair) -> Track:
    """Concatenate, renumber and re-index the edit result into a new track."""

    current, secondary = cursor
    return Track.from_positions(
        result.positions(),
        result.origin,
        name=track.name,
        current_marker=current,
        secondary_marker=secondary,
    )


class EditHistory:
    """Owns the current track and the undo/redo stacks.

    ``max_entries`` bounds the undo stack (oldest entries are evicted); ``None``
    keeps every entry. Committing after an undo discards the redo stack.
    """

    def __init__(self, track: Track, max_entries: Optional[int] = UNDO_HISTORY_LIMIT) -> None:
        if max_entries is not None and max_entries < 1:
            raise ValueError("max_entries must be >= 1 or None")
        self._track = track
        self._max_entries = max_entries
        self._undo: Deque[UndoEntry] = deque(maxlen=max_entries)
        self._redo: List[UndoEntry] = []

    @property
    def track(self) -> Track:
        return self._track

    @property
    def can_undo(self) -> bool:
        return bool(self._undo)

    @property
    def can_redo(self) -> bool:
        return bool(self._redo)

    @property
    def undo_label(self) -> Optional[str]:
        return self._undo[-1].label if self._undo else None

    @property
    def redo_label(self) -> Optional[str]:
        return self._redo[-1].label if self._redo else None

    def __len__(self) -> int:
        return len(self._undo)

    def commit(self, entry: UndoEntry) -> Track:
        """Apply ``entry`` to the current track and record it."""

        self._track = self._run(
            entry.action, entry.cursor_after_apply, entry.cursor_before_apply
        )
        if self._max_entries is not None and len(self._undo) == self._max_entries:
            LOGGER.debug("Undo history full; dropping '%s'", self._undo[0].label)
        self._undo.append(entry)
        self._redo.clear()
        LOGGER.info("Applied '%s' (%d points)", entry.label, self._track.length)
        return self._track

    def undo(self) -> Optional[Track]:
        if not self._undo:
            return None
        entry = self._undo[-1]
        self._track = self._run(entry.inverse, entry.cursor_before_apply)
        self._undo.pop()
        self._redo.append(entry)
        LOGGER.info("Undid '%s'", entry.label)
        return self._track

    def redo(self) -> Optional[Track]:
        if not self._redo:
            return None
        entry = self._redo[-1]
        self._track = self._run(
            entry.action, entry.cursor_after_apply, entry.cursor_before_apply
        )
        self._redo.pop()
        self._undo.append(entry)
        LOGGER.info("Redid '%s'", entry.label)
        return self._track

    def set_markers(self, current: int, secondary: Optional[int] = None) -> Track:
        """Move the markers without recording an undo entry."""

        self._track = self._track.with_markers(current, secondary)
        return self._track

    def reset(self, track: Track) -> None:
        """Start over with a newly loaded track and an empty history."""

        self._track = track
        self._undo.clear()
        self._redo.clear()

    def _run(
        self,
        operation: Operation,
        cursor: MarkerPair,
        markers: Optional[MarkerPair] = None,
    ) -> Track:
        # Region-based operations read the markers they were recorded with.
        base = self._track if markers is None else self._track.with_markers(*markers)
        result = apply_operation(base, operation)
        if result is None:
            raise EditConflictError(
                f"Operation '{operation.kind}' does not apply to the current track"
            )
        return rebuild_track(self._track, result, cursor)


__all__ = ["EditHistory", "UndoEntry", "inverse_of", "make_entry", "rebuild_track"]
