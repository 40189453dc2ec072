"""Global pytest fixtures & helpers.

Adds project root to path and provides small track factories shared by the
transform, history and editor tests.
"""
from __future__ import annotations

import math
import os
import sys
from typing import Optional, Sequence

import pytest

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from gpx_track_editor.models import GeoOrigin
from gpx_track_editor.track import Track

ORIGIN = GeoOrigin(longitude=-3.2, latitude=51.5)


# --- Factory helpers -------------------------------------------------
def make_track(
    positions: Sequence[Sequence[float]],
    current: int = 0,
    secondary: Optional[int] = None,
    name: str = "Test Track",
) -> Track:
    return Track.from_positions(
        positions,
        ORIGIN,
        name=name,
        current_marker=current,
        secondary_marker=secondary,
    )


def straight_positions(count: int, spacing: float = 10.0, altitude: float = 0.0):
    return [(i * spacing, 0.0, altitude) for i in range(count)]


def corner_positions():
    """A right-angle corner at (30, 0) with varied altitudes."""
    return [
        (0.0, 0.0, 0.0),
        (10.0, 0.0, 5.0),
        (20.0, 0.0, 2.0),
        (30.0, 0.0, 8.0),
        (30.0, 10.0, 3.0),
        (30.0, 20.0, 9.0),
        (30.0, 30.0, 10.0),
    ]


def square_loop_positions(gap: float = 0.0, side: float = 100.0):
    """Square loop starting at the origin whose last point stops ``gap`` short."""
    return [
        (0.0, 0.0, 0.0),
        (side, 0.0, 0.0),
        (side, side, 0.0),
        (0.0, side, 0.0),
        (0.0, gap, 0.0),
    ]


def spiral_positions(count: int = 600):
    positions = []
    for i in range(count):
        theta = 6.0 * math.pi * i / (count - 1)
        radius = 20.0 + 10.0 * theta
        positions.append((radius * math.cos(theta), radius * math.sin(theta), 5.0 * theta))
    return positions


def assert_track_invariants(track: Track) -> None:
    assert [p.index for p in track.points] == list(range(track.length))
    distances = [p.distance_from_start for p in track.points]
    assert distances[0] == 0.0
    assert all(b >= a for a, b in zip(distances, distances[1:]))
    assert len(track.spatial_index) == track.length
    assert 0 <= track.current_marker < track.length
    if track.secondary_marker is not None:
        assert 0 <= track.secondary_marker < track.length


# --- Fixtures --------------------------------------------------------
@pytest.fixture
def origin() -> GeoOrigin:
    return ORIGIN


@pytest.fixture
def five_point_track() -> Track:
    return make_track(straight_positions(5))


@pytest.fixture
def corner_track() -> Track:
    return make_track(corner_positions(), current=1, secondary=5)
