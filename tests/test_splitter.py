"""Splitting long tracks and the paced export job."""

from __future__ import annotations

import math
import threading
from typing import List, Tuple

import pytest

from gpx_track_editor.config import PEN_BUFFER_END_M, PEN_BUFFER_START_M
from gpx_track_editor.errors import ExportError
from gpx_track_editor.splitter import (
    ExportStatus,
    SplitExportJob,
    directory_exporter,
    extract_segment,
    plan_split,
    split_track,
)

from conftest import ORIGIN, make_track, straight_positions


class RecordingExporter:
    def __init__(self) -> None:
        self.calls: List[Tuple[str, str]] = []

    def __call__(self, file_name: str, document: str) -> None:
        self.calls.append((file_name, document))


def test_plan_split_into_equal_parts() -> None:
    plan = plan_split(250_000.0, 100_000.0)

    assert plan.count == 3
    assert plan.segment_length_m == pytest.approx(250_000.0 / 3)
    lengths = [end - start for start, end in (plan.bounds(i) for i in range(plan.count))]
    assert sum(lengths) == pytest.approx(250_000.0)
    assert plan.bounds(2)[1] == 250_000.0


def test_plan_split_short_track_is_one_part() -> None:
    plan = plan_split(42_000.0, 100_000.0)

    assert plan.count == 1
    assert plan.bounds(0) == (0.0, 42_000.0)


def test_plan_split_with_buffers_reserves_pen_space() -> None:
    limit = 100_000.0
    plan = plan_split(199_900.0, limit, with_buffers=True)

    # Without buffers two parts would do; the pens push it to three.
    assert plan_split(199_900.0, limit).count == 2
    assert plan.count == 3
    start, end = plan.padded_bounds(1)
    inner_start, inner_end = plan.bounds(1)
    assert start == pytest.approx(inner_start - PEN_BUFFER_START_M)
    assert end == pytest.approx(inner_end + PEN_BUFFER_END_M)
    assert end - start <= limit
    assert plan.padded_bounds(0)[0] == 0.0
    assert plan.padded_bounds(2)[1] == 199_900.0


def test_plan_split_rejects_limit_inside_buffers() -> None:
    with pytest.raises(ValueError):
        plan_split(10_000.0, PEN_BUFFER_START_M + PEN_BUFFER_END_M, with_buffers=True)
    with pytest.raises(ValueError):
        plan_split(10_000.0, 0.0)


def test_plan_bounds_out_of_range() -> None:
    with pytest.raises(IndexError):
        plan_split(1000.0, 400.0).bounds(3)


def test_extract_segment_keeps_points_on_bounds() -> None:
    track = make_track(straight_positions(11))

    points = extract_segment(track.points, (20.0, 50.0))

    assert [p.position[0] for p in points] == [20.0, 30.0, 40.0, 50.0]
    assert [p.distance_from_start for p in points] == pytest.approx([20.0, 30.0, 40.0, 50.0])


def test_extract_segment_interpolates_between_points() -> None:
    track = make_track([(0.0, 0.0, 0.0), (100.0, 0.0, 0.0), (100.0, 100.0, 50.0)])
    corner = track.points[1].distance_from_start

    points = extract_segment(track.points, (25.0, corner + 30.0))

    assert points[0].position == pytest.approx((25.0, 0.0, 0.0))
    assert points[1].position == (100.0, 0.0, 0.0)
    x, y, z = points[2].position
    assert x == pytest.approx(100.0)
    assert math.hypot(y, z) == pytest.approx(30.0)
    assert z == pytest.approx(y / 2.0)


def test_split_track_names_and_covers_track() -> None:
    track = make_track(straight_positions(101))

    segments = split_track(track, 400.0)

    assert [s.name for s in segments] == [f"Test Track part {i} of 3" for i in (1, 2, 3)]
    assert segments[0].file_name == "Test_Track_part_1_of_3.gpx"
    assert segments[0].points[0].position == track.points[0].position
    assert segments[-1].points[-1].position == pytest.approx(track.points[-1].position)
    assert sum(s.length_m for s in segments) == pytest.approx(track.total_length_m)
    for segment in segments:
        assert segment.length_m <= 400.0


def test_export_job_hands_over_every_part() -> None:
    track = make_track(straight_positions(101))
    exporter = RecordingExporter()

    job = SplitExportJob(split_track(track, 400.0), ORIGIN, exporter, delay_s=0.0).start()

    assert job.wait(timeout=10.0)
    assert job.done
    assert job.error is None
    assert [status for _, status in job.results] == [ExportStatus.EXPORTED] * 3
    assert [name for name, _ in exporter.calls] == [name for name, _ in job.results]
    name, document = exporter.calls[0]
    assert document.startswith('<?xml version="1.0" encoding="UTF-8"?>')
    assert "<name>Test Track part 1 of 3</name>" in document


def test_export_job_cancel_stops_remaining_parts() -> None:
    track = make_track(straight_positions(101))
    entered = threading.Event()
    release = threading.Event()

    def blocking_exporter(file_name: str, document: str) -> None:
        entered.set()
        release.wait(timeout=10.0)

    job = SplitExportJob(split_track(track, 400.0), ORIGIN, blocking_exporter, delay_s=5.0)
    job.start()
    assert entered.wait(timeout=10.0)
    job.cancel()
    release.set()

    assert job.wait(timeout=10.0)
    assert [status for _, status in job.results] == [
        ExportStatus.EXPORTED,
        ExportStatus.CANCELLED,
        ExportStatus.CANCELLED,
    ]


def test_export_job_failure_stops_job() -> None:
    track = make_track(straight_positions(101))
    calls: List[str] = []

    def failing_exporter(file_name: str, document: str) -> None:
        calls.append(file_name)
        if len(calls) == 2:
            raise OSError("disk full")

    job = SplitExportJob(split_track(track, 400.0), ORIGIN, failing_exporter, delay_s=0.0)
    job.start()

    assert job.wait(timeout=10.0)
    assert [status for _, status in job.results] == [
        ExportStatus.EXPORTED,
        ExportStatus.FAILED,
        ExportStatus.CANCELLED,
    ]
    assert isinstance(job.error, ExportError)
    assert isinstance(job.error.__cause__, OSError)
    assert len(calls) == 2


def test_export_job_cannot_start_twice() -> None:
    job = SplitExportJob([], ORIGIN, RecordingExporter(), delay_s=0.0).start()
    job.wait(timeout=10.0)

    with pytest.raises(RuntimeError):
        job.start()


def test_export_job_rejects_negative_delay() -> None:
    with pytest.raises(ValueError):
        SplitExportJob([], ORIGIN, RecordingExporter(), delay_s=-1.0)


def test_wait_before_start() -> None:
    job = SplitExportJob([], ORIGIN, RecordingExporter(), delay_s=0.0)

    assert job.wait(timeout=0.1) is False
    assert not job.done


def test_directory_exporter_writes_files(tmp_path) -> None:
    target = tmp_path / "parts"
    export = directory_exporter(target)

    export("a.gpx", "<gpx/>")

    assert (target / "a.gpx").read_text(encoding="utf-8") == "<gpx/>"


def _road_length(points) -> float:
    return sum(math.dist(a.position, b.position) for a, b in zip(points, points[1:]))


def test_split_parts_join_up_and_cover_whole_road() -> None:
    track = make_track(
        [(i * 1000.0, 0.0, 20.0 * (i % 3)) for i in range(11)], name="Long ride"
    )

    segments = split_track(track, 3500.0)

    assert len(segments) == 3
    for previous, following in zip(segments, segments[1:]):
        assert previous.points[-1].position == pytest.approx(following.points[0].position)
    lengths = [_road_length(s.points) for s in segments]
    assert sum(lengths) == pytest.approx(track.total_length_m)
    for segment, length in zip(segments, lengths):
        assert length == pytest.approx(segment.length_m)


def test_split_sparse_track_gives_roads_not_single_points() -> None:
    track = make_track([(0.0, 0.0, 0.0), (100_000.0, 0.0, 0.0), (200_000.0, 0.0, 0.0)])

    segments = split_track(track, 50_000.0)

    assert len(segments) == 4
    for part, segment in enumerate(segments):
        assert len(segment.points) >= 2
        assert segment.points[0].position[0] == pytest.approx(part * 50_000.0)
        assert segment.points[-1].position[0] == pytest.approx((part + 1) * 50_000.0)
    assert sum(_road_length(s.points) for s in segments) == pytest.approx(200_000.0)
