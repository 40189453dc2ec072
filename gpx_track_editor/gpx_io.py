"""Load and export boundary: GPX text and lon/lat/ele triples.

Coordinates are projected into a local azimuthal-equidistant frame centred on
the track's reference origin, so the editing core only ever sees metres.
"""

from __future__ import annotations

from functools import lru_cache
import logging
import math
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple

import gpxpy
import gpxpy.gpx
import numpy as np
from pyproj import CRS, Transformer

from .config import GPX_CREATOR
from .errors import EmptyTrackError, GpxFormatError, MalformedCoordinateError
from .models import GeoOrigin, Point3, TrackPoint
from .track import Track

LOGGER = logging.getLogger(__name__)

LonLatEle = Tuple[float, float, float]

DEFAULT_TRACK_NAME = "Track"


@lru_cache(maxsize=32)
def local_transformer(origin: GeoOrigin) -> Transformer:
    """Build a WGS84 -> local metric transformer centred on ``origin``."""

    target_crs = CRS.from_dict(
        {
            "proj": "aeqd",
            "lat_0": origin.latitude,
            "lon_0": origin.longitude,
            "datum": "WGS84",
            "units": "m",
        }
    )
    return Transformer.from_crs(CRS.from_epsg(4326), target_crs, always_xy=True)


def validate_coordinates(coordinates: Sequence[Sequence[float]]) -> List[LonLatEle]:
    """Return clean ``(lon, lat, ele)`` floats or raise on the first bad entry."""

    if not coordinates:
        raise EmptyTrackError("Track has no points")
    cleaned: List[LonLatEle] = []
    for position, coord in enumerate(coordinates):
        try:
            lon, lat, ele = (float(value) for value in coord)
        except (TypeError, ValueError) as exc:
            raise MalformedCoordinateError(
                f"Point {position} is not a (lon, lat, ele) triple: {coord!r}"
            ) from exc
        if not all(math.isfinite(value) for value in (lon, lat, ele)):
            raise MalformedCoordinateError(f"Point {position} has non-finite values")
        if not -180.0 <= lon <= 180.0 or not -90.0 <= lat <= 90.0:
            raise MalformedCoordinateError(
                f"Point {position} is out of range: lon={lon} lat={lat}"
            )
        cleaned.append((lon, lat, ele))
    return cleaned


def project(coordinates: Sequence[LonLatEle], origin: GeoOrigin) -> List[Point3]:
    if not coordinates:
        return []
    lons = np.asarray([c[0] for c in coordinates], dtype=float)
    lats = np.asarray([c[1] for c in coordinates], dtype=float)
    xs, ys = local_transformer(origin).transform(lons, lats)
    return [
        (float(x), float(y), float(c[2]))
        for x, y, c in zip(np.atleast_1d(xs).tolist(), np.atleast_1d(ys).tolist(), coordinates)
    ]


def unproject(positions: Sequence[Sequence[float]], origin: GeoOrigin) -> List[LonLatEle]:
    if not positions:
        return []
    xs = np.asarray([p[0] for p in positions], dtype=float)
    ys = np.asarray([p[1] for p in positions], dtype=float)
    lons, lats = local_transformer(origin).transform(xs, ys, direction="INVERSE")
    return [
        (float(lon), float(lat), float(p[2]))
        for lon, lat, p in zip(
            np.atleast_1d(lons).tolist(), np.atleast_1d(lats).tolist(), positions
        )
    ]


def load_track(
    coordinates: Sequence[Sequence[float]],
    name: str = DEFAULT_TRACK_NAME,
    origin: Optional[GeoOrigin] = None,
) -> Track:
    """Validate and project ``(lon, lat, ele)`` triples into a new track.

    The origin defaults to the first point of the track.
    """

    cleaned = validate_coordinates(coordinates)
    if origin is None:
        origin = GeoOrigin(longitude=cleaned[0][0], latitude=cleaned[0][1])
    positions = project(cleaned, origin)
    LOGGER.info("Loaded track '%s' with %d points", name, len(positions))
    return Track.from_positions(positions, origin, name=name)


def parse_gpx(text: str) -> Tuple[str, List[LonLatEle]]:
    """Extract the track name and coordinates from GPX text.

    Track points are preferred; route points are used when the file has no
    track. Missing elevations become 0.
    """

    try:
        gpx = gpxpy.parse(text)
    except gpxpy.gpx.GPXException as exc:
        raise GpxFormatError(f"Unable to parse GPX: {exc}") from exc

    name: Optional[str] = None
    coordinates: List[LonLatEle] = []
    for track in gpx.tracks:
        name = name or track.name
        for segment in track.segments:
            coordinates.extend(_triples(segment.points))
    if not coordinates:
        for route in gpx.routes:
            name = name or route.name
            coordinates.extend(_triples(route.points))
    return name or gpx.name or DEFAULT_TRACK_NAME, coordinates


def load_gpx(text: str, origin: Optional[GeoOrigin] = None) -> Track:
    name, coordinates = parse_gpx(text)
    return load_track(coordinates, name=name, origin=origin)


def read_gpx_file(path: str | Path, origin: Optional[GeoOrigin] = None) -> Track:
    return load_gpx(Path(path).read_text(encoding="utf-8"), origin=origin)


def track_to_coordinates(track: Track) -> List[LonLatEle]:
    return points_to_coordinates(track.points, track.origin)


def points_to_coordinates(
    points: Iterable[TrackPoint], origin: GeoOrigin
) -> List[LonLatEle]:
    return unproject([p.position for p in points], origin)


def coordinates_to_gpx(coordinates: Sequence[LonLatEle], name: str) -> str:
    """Render coordinates as a GPX 1.1 document with a single track segment."""

    gpx_lines = [
        '<?xml version="1.0" encoding="UTF-8"?>',
        f'<gpx version="1.1" creator="{_escape_xml(GPX_CREATOR)}"',
        '     xmlns="http://www.topografix.com/GPX/1/1"',
        '     xmlns:xsi="http://www.w3.org/2001/XMLSchema-instance"',
        '     xsi:schemaLocation="http://www.topografix.com/GPX/1/1 '
        'http://www.topografix.com/GPX/1/1/gpx.xsd">',
        "  <metadata>",
        f"    <name>{_escape_xml(name)}</name>",
        "  </metadata>",
        "  <trk>",
        f"    <name>{_escape_xml(name)}</name>",
        "    <trkseg>",
    ]
    for lon, lat, ele in coordinates:
        gpx_lines.append(f'      <trkpt lat="{lat:.7f}" lon="{lon:.7f}">')
        gpx_lines.append(f"        <ele>{ele:.2f}</ele>")
        gpx_lines.append("      </trkpt>")
    gpx_lines.extend(
        [
            "    </trkseg>",
            "  </trk>",
            "</gpx>",
        ]
    )
    return "\n".join(gpx_lines)


def track_to_gpx(track: Track, name: Optional[str] = None) -> str:
    return coordinates_to_gpx(track_to_coordinates(track), name or track.name)


def _triples(points: Iterable[gpxpy.gpx.GPXTrackPoint]) -> List[LonLatEle]:
    return [
        (
            point.longitude,
            point.latitude,
            point.elevation if point.elevation is not None else 0.0,
        )
        for point in points
    ]


def _escape_xml(text: str) -> str:
    """Escape special XML characters."""
    return (
        text.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
        .replace("'", "&apos;")
    )


__all__ = [
    "DEFAULT_TRACK_NAME",
    "LonLatEle",
    "coordinates_to_gpx",
    "load_gpx",
    "load_track",
    "local_transformer",
    "parse_gpx",
    "points_to_coordinates",
    "project",
    "read_gpx_file",
    "track_to_coordinates",
    "track_to_gpx",
    "unproject",
    "validate_coordinates",
]
