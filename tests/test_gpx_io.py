"""Loading, projecting and exporting GPX tracks."""

from __future__ import annotations

import math

import gpxpy
import pytest

from gpx_track_editor.errors import (
    EmptyTrackError,
    GpxFormatError,
    MalformedCoordinateError,
    TrackLoadError,
)
from gpx_track_editor.gpx_io import (
    coordinates_to_gpx,
    load_gpx,
    load_track,
    parse_gpx,
    project,
    read_gpx_file,
    track_to_coordinates,
    track_to_gpx,
    unproject,
    validate_coordinates,
)
from gpx_track_editor.models import GeoOrigin

from conftest import assert_track_invariants

COORDS = [
    (-3.2000, 51.5000, 10.0),
    (-3.1990, 51.5005, 12.5),
    (-3.1980, 51.5010, 15.0),
    (-3.1970, 51.5008, 11.0),
]

ROUTE_GPX = """<?xml version="1.0" encoding="UTF-8"?>
<gpx version="1.1" creator="test" xmlns="http://www.topografix.com/GPX/1/1">
  <rte>
    <name>Coast road</name>
    <rtept lat="51.5" lon="-3.2"><ele>4</ele></rtept>
    <rtept lat="51.501" lon="-3.2"></rtept>
  </rte>
</gpx>
"""


def test_load_track_projects_around_first_point() -> None:
    track = load_track(COORDS, name="Morning ride")

    assert track.name == "Morning ride"
    assert track.origin == GeoOrigin(longitude=-3.2, latitude=51.5)
    x, y, z = track.points[0].position
    assert abs(x) < 1e-6 and abs(y) < 1e-6
    assert z == 10.0
    assert_track_invariants(track)
    # 0.0005 degrees of latitude is about 55 m.
    assert track.points[1].position[1] == pytest.approx(55.6, abs=0.5)


def test_projection_round_trip_is_close() -> None:
    origin = GeoOrigin(longitude=-3.2, latitude=51.5)

    back = unproject(project(COORDS, origin), origin)

    for (lon, lat, ele), (lon2, lat2, ele2) in zip(COORDS, back):
        assert lon2 == pytest.approx(lon, abs=1e-9)
        assert lat2 == pytest.approx(lat, abs=1e-9)
        assert ele2 == ele


def test_track_to_coordinates_uses_origin() -> None:
    origin = GeoOrigin(longitude=-3.0, latitude=51.0)
    track = load_track(COORDS, origin=origin)

    assert track.origin == origin
    assert track_to_coordinates(track)[2] == pytest.approx(COORDS[2], abs=1e-9)


@pytest.mark.parametrize(
    "coords",
    [
        [("east", 51.0, 0.0)],
        [(-3.0, 51.0)],
        [(-3.0, 95.0, 0.0)],
        [(181.0, 51.0, 0.0)],
        [(-3.0, 51.0, math.nan)],
    ],
)
def test_validate_rejects_malformed(coords) -> None:
    with pytest.raises(MalformedCoordinateError):
        validate_coordinates(coords)


def test_validate_rejects_empty() -> None:
    with pytest.raises(EmptyTrackError):
        validate_coordinates([])


def test_load_errors_share_base_class() -> None:
    with pytest.raises(TrackLoadError):
        load_track([])


def test_parse_gpx_reads_route_without_elevation() -> None:
    name, coords = parse_gpx(ROUTE_GPX)

    assert name == "Coast road"
    assert coords == [(-3.2, 51.5, 4.0), (-3.2, 51.501, 0.0)]


def test_parse_gpx_rejects_garbage() -> None:
    with pytest.raises(GpxFormatError):
        parse_gpx("this is not gpx")


def test_load_gpx_without_points() -> None:
    empty = '<?xml version="1.0"?><gpx version="1.1" creator="t"></gpx>'

    with pytest.raises(EmptyTrackError):
        load_gpx(empty)


def test_exported_gpx_reads_back() -> None:
    track = load_track(COORDS, name="Ride & <Run>")

    document = track_to_gpx(track)

    assert "<name>Ride &amp; &lt;Run&gt;</name>" in document
    parsed = gpxpy.parse(document)
    points = parsed.tracks[0].segments[0].points
    assert len(points) == len(COORDS)
    assert points[1].latitude == pytest.approx(51.5005, abs=1e-7)
    assert points[1].elevation == pytest.approx(12.5)
    assert parsed.tracks[0].name == "Ride & <Run>"


def test_coordinates_to_gpx_formatting() -> None:
    document = coordinates_to_gpx([(-3.2, 51.5, 10.0)], "Solo")

    assert '<trkpt lat="51.5000000" lon="-3.2000000">' in document
    assert "<ele>10.00</ele>" in document


def test_read_gpx_file(tmp_path) -> None:
    path = tmp_path / "route.gpx"
    path.write_text(ROUTE_GPX, encoding="utf-8")

    track = read_gpx_file(path)

    assert track.name == "Coast road"
    assert track.length == 2
    assert track.total_length_m == pytest.approx(111.2, abs=0.5)
