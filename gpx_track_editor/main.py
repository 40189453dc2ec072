"""Command line entry point for batch track clean-up and splitting."""

from __future__ import annotations

import argparse
from datetime import datetime
import logging
from pathlib import Path
from typing import List, Optional, Sequence

from .config import (
    OUTPUT_FILE,
    OUTPUT_FILE_TIMESTAMP_ENABLED,
    QUICK_FIX_TARGET_SPACING_M,
    SPLIT_EXPORT_DELAY_S,
)
from .editor import TrackEditor
from .errors import TrackEditorError
from .splitter import ExportStatus, directory_exporter


def _setup_logging(verbose: bool = False) -> None:
    if not logging.getLogger().hasHandlers():
        logging.basicConfig(
            level=logging.DEBUG if verbose else logging.INFO,
            format="[%(asctime)s] %(levelname)s %(name)s: %(message)s",
        )


def _resolve_output_path() -> str:
    if OUTPUT_FILE_TIMESTAMP_ENABLED:
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        return f"{OUTPUT_FILE}_{timestamp}.gpx"
    return f"{OUTPUT_FILE}.gpx"


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Clean up, close and split GPX tracks"
    )
    parser.add_argument("input", type=Path, help="GPX file to edit")
    parser.add_argument(
        "--from",
        dest="from_index",
        type=int,
        default=None,
        help="Index of the current marker for region edits",
    )
    parser.add_argument(
        "--to",
        dest="to_index",
        type=int,
        default=None,
        help="Index of the secondary marker for region edits",
    )
    parser.add_argument(
        "--smooth-gradient",
        type=float,
        metavar="BUMPINESS",
        default=None,
        help="Smooth the gradient between the markers (0 = flat slope, 1 = unchanged)",
    )
    parser.add_argument(
        "--quick-fix",
        action="store_true",
        help="Decimate, spline and smooth the whole track",
    )
    parser.add_argument(
        "--quick-fix-spacing",
        type=float,
        default=QUICK_FIX_TARGET_SPACING_M,
        help="Target mean point spacing in metres for --quick-fix",
    )
    parser.add_argument(
        "--close-loop",
        action="store_true",
        help="Join the end of the track back to its start",
    )
    parser.add_argument(
        "--split-km",
        type=float,
        default=None,
        help="Split into equal parts no longer than this many kilometres",
    )
    parser.add_argument(
        "--pen-buffers",
        action="store_true",
        help="Pad split parts with start and finish pen buffers",
    )
    parser.add_argument(
        "--export-delay",
        type=float,
        default=SPLIT_EXPORT_DELAY_S,
        help="Seconds between writing consecutive split parts",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Output GPX path (single track)",
    )
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=Path("."),
        help="Directory for split parts",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    return parser


def _apply_edits(editor: TrackEditor, args: argparse.Namespace) -> None:
    if args.from_index is not None:
        editor.current_marker = args.from_index
    if args.to_index is not None:
        editor.secondary_marker = args.to_index
    if args.smooth_gradient is not None:
        editor.smooth_gradient(args.smooth_gradient)
    if args.quick_fix:
        editor.quick_fix(target_spacing_m=args.quick_fix_spacing)
    if args.close_loop:
        loopiness = editor.loopiness()
        logging.info(
            "Loop status %s (gap %.1f m)", loopiness.kind.value, loopiness.gap_m
        )
        editor.close_loop()


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _build_parser().parse_args(argv)
    _setup_logging(args.verbose)
    try:
        editor = TrackEditor.open(args.input)
        _apply_edits(editor, args)
    except (OSError, TrackEditorError) as exc:
        logging.error("Unable to edit %s: %s", args.input, exc)
        return 1

    if args.split_km is not None:
        try:
            job = editor.export_split(
                directory_exporter(args.output_dir),
                args.split_km * 1000.0,
                with_buffers=args.pen_buffers,
                delay_s=args.export_delay,
            )
        except ValueError as exc:
            logging.error("Unable to split %s: %s", args.input, exc)
            return 1
        job.wait()
        failed: List[str] = [
            name for name, status in job.results if status is not ExportStatus.EXPORTED
        ]
        if failed:
            logging.error("Parts not written: %s", ", ".join(failed))
            return 1
        return 0

    output = args.output or Path(_resolve_output_path())
    try:
        output.write_text(editor.export_gpx(), encoding="utf-8")
    except OSError as exc:
        logging.error("Unable to write %s: %s", output, exc)
        return 1
    logging.info("Wrote %d points to %s", editor.track.length, output)
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entry
    raise SystemExit(main())
