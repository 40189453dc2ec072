"""One-step clean-up: decimate, fit a spline, then centroid-smooth."""

from __future__ import annotations

import logging
from typing import Optional, TYPE_CHECKING

import numpy as np

from ..config import (
    QUICK_FIX_CENTROID_PASSES,
    QUICK_FIX_MAX_DECIMATION_PASSES,
    QUICK_FIX_SAMPLES_PER_SPAN,
    QUICK_FIX_TARGET_SPACING_M,
)
from ..models import EditResult, MetricArray, array_to_positions, as_position_array
from .base import register

if TYPE_CHECKING:  # pragma: no cover - type checking only
    from ..track import Track

LOGGER = logging.getLogger(__name__)


def mean_spacing(points: MetricArray) -> float:
    if len(points) < 2:
        return float("inf")
    total = float(np.linalg.norm(np.diff(points, axis=0), axis=1).sum())
    return total / (len(points) - 1)


def decimation_pass(points: MetricArray) -> MetricArray:
    """Drop non-adjacent interior points whose corner triangle is at or below the median area."""

    if len(points) < 3:
        return points
    before = points[:-2]
    middle = points[1:-1]
    after = points[2:]
    areas = 0.5 * np.linalg.norm(np.cross(middle - before, after - middle), axis=1)
    median = float(np.median(areas))
    chosen: set[int] = set()
    for offset in np.argsort(areas, kind="stable").tolist():
        if areas[offset] > median:
            break
        index = offset + 1
        if index - 1 in chosen or index + 1 in chosen:
            continue
        chosen.add(index)
    keep = np.ones(len(points), dtype=bool)
    keep[sorted(chosen)] = False
    return points[keep]


def decimate(
    points: MetricArray,
    target_spacing_m: float,
    max_passes: int = QUICK_FIX_MAX_DECIMATION_PASSES,
) -> MetricArray:
    """Repeat decimation passes until points are ``target_spacing_m`` apart on average."""

    current = points
    for _ in range(max_passes):
        if mean_spacing(current) >= target_spacing_m:
            break
        reduced = decimation_pass(current)
        if len(reduced) == len(current):
            break
        current = reduced
    else:
        LOGGER.debug("Decimation stopped after %d passes", max_passes)
    return current


def bspline_approximation(points: MetricArray, samples_per_span: int) -> MetricArray:
    """Evaluate a uniform cubic B-spline using ``points`` as its control polygon.

    The polygon is clamped by repeating each endpoint twice so the curve starts
    and ends exactly on the original endpoints.
    """

    if len(points) < 3:
        return points.copy()
    samples = max(1, int(samples_per_span))
    control = np.vstack((points[:1], points[:1], points, points[-1:], points[-1:]))
    t = np.arange(samples, dtype=float) / samples
    basis = np.column_stack(
        (
            (1.0 - t) ** 3,
            3.0 * t**3 - 6.0 * t**2 + 4.0,
            -3.0 * t**3 + 3.0 * t**2 + 3.0 * t + 1.0,
            t**3,
        )
    ) / 6.0
    spans = [basis @ control[i : i + 4] for i in range(len(control) - 3)]
    curve = np.vstack(spans + [points[-1:]])
    curve[0] = points[0]
    return curve


def centroid_smooth(points: MetricArray) -> MetricArray:
    """Move every interior point to the centroid of itself and its neighbours."""

    if len(points) < 3:
        return points.copy()
    smoothed = points.copy()
    smoothed[1:-1] = (points[:-2] + points[1:-1] + points[2:]) / 3.0
    return smoothed


@register("quick_fix", "Quick fix")
def quick_fix(
    track: "Track",
    target_spacing_m: float = QUICK_FIX_TARGET_SPACING_M,
    samples_per_span: int = QUICK_FIX_SAMPLES_PER_SPAN,
) -> Optional[EditResult]:
    """Clean up the whole track in one undoable step."""

    if track.length < 3:
        return None
    original = as_position_array(track.positions)
    decimated = decimate(original, target_spacing_m)
    curve = bspline_approximation(decimated, samples_per_span)
    for _ in range(QUICK_FIX_CENTROID_PASSES):
        curve = centroid_smooth(curve)
    LOGGER.info(
        "Quick fix: %d points -> %d decimated -> %d smoothed",
        len(original),
        len(decimated),
        len(curve),
    )
    return EditResult.replace_span(
        track.points, 0, track.length, array_to_positions(curve), track.origin
    )


__all__ = [
    "bspline_approximation",
    "centroid_smooth",
    "decimate",
    "decimation_pass",
    "mean_spacing",
    "quick_fix",
]
