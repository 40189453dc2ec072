"""Editing session facade and the command line entry point."""

from __future__ import annotations

import logging
from pathlib import Path

import gpxpy
import pytest

from gpx_track_editor.editor import TrackEditor
from gpx_track_editor.gpx_io import coordinates_to_gpx
from gpx_track_editor.main import main
from gpx_track_editor.models import Ray
from gpx_track_editor.splitter import ExportStatus
from gpx_track_editor.transforms import LoopKind, Operation

from conftest import (
    assert_track_invariants,
    corner_positions,
    make_track,
    square_loop_positions,
    straight_positions,
)


@pytest.fixture
def editor() -> TrackEditor:
    return TrackEditor(make_track(straight_positions(10)))


def _write_gpx(path: Path, count: int = 10) -> Path:
    # About 100 m between points heading north.
    coords = [(-3.2, 51.5 + i * 0.0009, 20.0 + i) for i in range(count)]
    path.write_text(coordinates_to_gpx(coords, "CLI ride"), encoding="utf-8")
    return path


def test_markers_are_clamped_and_reconciled(editor: TrackEditor) -> None:
    editor.current_marker = 2
    editor.secondary_marker = 40

    assert editor.region == (2, 9)
    assert not editor.can_undo

    assert editor.delete()
    assert editor.track.length == 2
    assert (editor.current_marker, editor.secondary_marker) == (1, None)


def test_preview_does_not_commit(editor: TrackEditor) -> None:
    editor.secondary_marker = 3

    result = editor.preview("move_region", vector=(0.0, 5.0))

    assert result is not None
    assert result.edited[0].position == (0.0, 5.0, 0.0)
    assert editor.track.points[0].position == (0.0, 0.0, 0.0)
    assert not editor.can_undo


def test_apply_accepts_operation_objects(editor: TrackEditor) -> None:
    editor.current_marker = 4

    assert editor.apply(Operation.create("move_region", height_m=3.0))
    assert editor.track.points[4].altitude == 3.0

    with pytest.raises(TypeError):
        editor.apply(Operation.create("delete"), bumpiness=1.0)


def test_no_result_leaves_track_alone(editor: TrackEditor, caplog) -> None:
    before = editor.track

    with caplog.at_level(logging.INFO):
        assert not editor.smooth_bend()

    assert editor.track is before
    assert not editor.can_undo
    assert "produced no result" in caplog.text


def test_undo_redo_through_facade() -> None:
    editor = TrackEditor(make_track(corner_positions(), 1, 5))
    original = editor.track

    assert editor.smooth_bend(spacing_m=2.0)
    bent = editor.track
    assert editor.undo_label == "Smooth bend"

    assert editor.undo()
    assert editor.track == original
    assert editor.redo_label == "Smooth bend"
    assert editor.redo()
    assert editor.track == bent
    assert not editor.redo()


def test_move_stretch_and_gradient(editor: TrackEditor) -> None:
    editor.current_marker = 2
    editor.secondary_marker = 6

    assert editor.move((0.0, 1000.0), "stretch")
    offsets = [p.position[1] for p in editor.track.points[2:7]]
    assert max(offsets) == pytest.approx(100.0)
    assert offsets[0] == pytest.approx(0.0)
    assert offsets[-1] == pytest.approx(0.0)
    assert_track_invariants(editor.track)


def test_loop_workflow() -> None:
    editor = TrackEditor(make_track(square_loop_positions(150.0, side=500.0)))

    assert editor.loopiness().kind is LoopKind.ALMOST_LOOP
    assert editor.close_loop()
    assert editor.loopiness().kind is LoopKind.IS_LOOP

    editor.current_marker = 2
    assert editor.change_loop_start()
    assert editor.track.points[0].position == (500.0, 500.0, 0.0)
    assert editor.current_marker == 0

    assert editor.reopen_loop()
    assert editor.loopiness().kind is not LoopKind.IS_LOOP


def test_quick_fix_is_one_undo_step() -> None:
    positions = [(i * 2.0, (i % 2) * 0.5, 0.0) for i in range(200)]
    editor = TrackEditor(make_track(positions))

    assert editor.quick_fix()
    assert len(editor.history) == 1
    assert editor.undo()
    assert editor.track.length == 200


def test_history_limit(editor: TrackEditor) -> None:
    limited = TrackEditor(editor.track, history_limit=1)
    limited.current_marker = 3
    limited.delete()
    limited.delete()

    assert len(limited.history) == 1


def test_queries(editor: TrackEditor) -> None:
    hit = editor.nearest_along_ray(Ray(origin=(31.0, 0.5, 100.0), direction=(0.0, 0.0, -1.0)))

    assert hit is not None and hit.index == 3
    assert [p.index for p in editor.all_near((50.0, 0.0))] == [5]


def test_export_gpx(editor: TrackEditor) -> None:
    parsed = gpxpy.parse(editor.export_gpx())

    assert len(parsed.tracks[0].segments[0].points) == 10
    assert parsed.tracks[0].name == "Test Track"


def test_export_split(editor: TrackEditor) -> None:
    written = []

    job = editor.export_split(lambda name, doc: written.append(name), 40.0, delay_s=0.0)

    assert job.wait(timeout=10.0)
    assert len(written) == 3
    assert all(status is ExportStatus.EXPORTED for _, status in job.results)


def test_open_reads_file(tmp_path) -> None:
    editor = TrackEditor.open(_write_gpx(tmp_path / "ride.gpx"))

    assert editor.track.name == "CLI ride"
    assert editor.track.length == 10


# --- CLI -------------------------------------------------------------
def test_cli_writes_edited_track(tmp_path) -> None:
    source = _write_gpx(tmp_path / "ride.gpx")
    output = tmp_path / "out.gpx"

    code = main(
        [str(source), "--from", "2", "--to", "7", "--smooth-gradient", "0", "--output", str(output)]
    )

    assert code == 0
    parsed = gpxpy.parse(output.read_text(encoding="utf-8"))
    points = parsed.tracks[0].segments[0].points
    assert len(points) == 10
    assert points[4].elevation == pytest.approx(24.0, abs=0.05)


def test_cli_splits_into_directory(tmp_path) -> None:
    source = _write_gpx(tmp_path / "ride.gpx")
    parts = tmp_path / "parts"

    code = main(
        [str(source), "--split-km", "0.4", "--export-delay", "0", "--output-dir", str(parts)]
    )

    assert code == 0
    assert sorted(p.name for p in parts.iterdir()) == [
        "CLI_ride_part_1_of_3.gpx",
        "CLI_ride_part_2_of_3.gpx",
        "CLI_ride_part_3_of_3.gpx",
    ]


def test_cli_reports_missing_file(tmp_path) -> None:
    assert main([str(tmp_path / "missing.gpx")]) == 1


def test_cli_reports_bad_split(tmp_path) -> None:
    source = _write_gpx(tmp_path / "ride.gpx")

    code = main([str(source), "--split-km", "0.1", "--pen-buffers", "--export-delay", "0"])

    assert code == 1
