"""Keep the interaction markers valid and meaningful after an edit."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from .models import EditResult

MarkerPair = Tuple[int, Optional[int]]


@dataclass(frozen=True, slots=True)
class Splice:
    """Describes an edit as ``removed`` points at ``start`` replaced by ``inserted``."""

    start: int
    removed: int
    inserted: int

    @classmethod
    def from_result(cls, result: EditResult, old_length: int) -> "Splice":
        start = len(result.before)
        removed = old_length - start - len(result.after)
        if removed < 0:
            raise ValueError("Edit result does not fit the original track")
        return cls(start=start, removed=removed, inserted=len(result.edited))

    @property
    def delta(self) -> int:
        return self.inserted - self.removed


def remap_marker(index: int, splice: Splice, new_length: int) -> int:
    """Map a marker index from the old track onto the new one.

    Indices before the splice are unchanged and indices after it shift by the
    change in length. Indices inside the replaced span keep their relative
    position within the new span, collapsing to its start when the span was
    removed. The result is always a valid index into the new track.
    """

    if new_length < 1:
        raise ValueError("new_length must be at least 1")
    if index < splice.start:
        mapped = index
    elif index < splice.start + splice.removed:
        if splice.inserted == 0:
            mapped = splice.start
        elif splice.removed == 1:
            mapped = splice.start
        else:
            offset = index - splice.start
            scale = (splice.inserted - 1) / (splice.removed - 1)
            mapped = splice.start + int(round(offset * scale))
    else:
        mapped = index + splice.delta
    return min(max(mapped, 0), new_length - 1)


def reconcile_markers(
    markers: MarkerPair, splice: Splice, new_length: int
) -> MarkerPair:
    """Remap both markers; a secondary marker landing on the current one is dropped."""

    current, secondary = markers
    new_current = remap_marker(current, splice, new_length)
    if secondary is None:
        return new_current, None
    new_secondary = remap_marker(secondary, splice, new_length)
    if new_secondary == new_current:
        return new_current, None
    return new_current, new_secondary


__all__ = ["MarkerPair", "Splice", "reconcile_markers", "remap_marker"]
