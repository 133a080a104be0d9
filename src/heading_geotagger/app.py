"""Command line entrypoints.

Run in development:
    python -m heading_geotagger.app <inputFolder> [bearingAdjustment]

Installed, the same entrypoints are available as ``heading-geotagger``,
``coords-dedupe`` and ``gpx-geotag``.
"""

from __future__ import annotations

import argparse
import math
import os
import sys
import uuid
from pathlib import Path
from typing import NoReturn

from heading_geotagger import __version__
from heading_geotagger.core.coords_dedupe import run_coords_dedupe
from heading_geotagger.core.job import Job, JobOptions
from heading_geotagger.core.pipeline import run_heading_job
from heading_geotagger.core.settings import AppSettings
from heading_geotagger.exif.exiftool_geotag import ExifToolGeotagger
from heading_geotagger.util.errors import ExifToolError, UsageError


class _Parser(argparse.ArgumentParser):
    """ArgumentParser that reports usage problems as UsageError (exit code 1)."""

    def error(self, message: str) -> NoReturn:
        raise UsageError(message)


def _parser(prog: str, description: str) -> _Parser:
    p = _Parser(prog=prog, description=description)
    p.add_argument("--version", action="version", version=f"{prog} version: {__version__}")
    return p


def _existing_dir(value: str) -> Path:
    p = Path(value).expanduser()
    if not p.is_dir():
        raise UsageError(f"input folder does not exist: {value}")
    return p


def _worker_count(value: int) -> int:
    if value < 1:
        raise UsageError("--workers must be at least 1")
    return value


def _usage_failure(parser: argparse.ArgumentParser, err: UsageError) -> int:
    parser.print_usage(sys.stderr)
    print(f"{parser.prog}: error: {err}", file=sys.stderr)
    return 1


def _load_settings() -> AppSettings:
    settings = AppSettings.load()
    if settings.exiftool_path:
        os.environ.setdefault("HEADING_EXIFTOOL_PATH", settings.exiftool_path)
    return settings


def _save_settings(settings: AppSettings) -> None:
    try:
        settings.save()
    except OSError as e:
        print(f"Warning: could not save settings: {e}", file=sys.stderr)


def main(argv: list[str] | None = None) -> int:
    """Write the direction of travel into every photo of a folder."""
    settings = _load_settings()
    parser = _parser("heading-geotagger", "Compute photo headings from consecutive GPS positions.")
    parser.add_argument("input_dir", help="Folder of time-ordered JPG photos (modified in place).")
    parser.add_argument(
        "bearing_adjustment",
        nargs="?",
        type=float,
        default=None,
        help="Degrees added to every heading, e.g. 90 for a camera facing right (default: 0).",
    )
    parser.add_argument("--workers", type=int, default=settings.max_workers, help="Concurrent pairs (default: %(default)s).")
    parser.add_argument("--report-dir", type=Path, default=None, help="Write run log, manifest and summary under this folder.")
    parser.add_argument("--dry-run", action="store_true", help="Compute headings without modifying photos.")

    try:
        args = parser.parse_args(argv)
        input_dir = _existing_dir(args.input_dir)
        workers = _worker_count(args.workers)
        if args.bearing_adjustment is not None and not math.isfinite(args.bearing_adjustment):
            raise UsageError("bearing adjustment must be a finite number")
    except UsageError as e:
        return _usage_failure(parser, e)

    adjustment = settings.bearing_adjustment if args.bearing_adjustment is None else args.bearing_adjustment
    run_folder = None
    if args.report_dir is not None:
        run_folder = AppSettings.new_run_folder(args.report_dir.expanduser())
        settings.last_report_dir = str(args.report_dir)

    job = Job(
        id=uuid.uuid4().hex[:12],
        input_dir=input_dir,
        options=JobOptions(
            bearing_adjustment=adjustment,
            max_workers=workers,
            dry_run=args.dry_run,
            run_folder=run_folder,
        ),
    )
    run_heading_job(job)
    if run_folder is not None:
        print(f"Run report: {run_folder}")
    _save_settings(settings)
    return 0


def dedupe_main(argv: list[str] | None = None) -> int:
    """Move photos taken at the same position as their predecessor."""
    settings = _load_settings()
    parser = _parser("coords-dedupe", "Move photos whose GPS position repeats the previous photo's.")
    parser.add_argument("input_dir")
    parser.add_argument("output_dir")
    parser.add_argument("--workers", type=int, default=settings.max_workers)

    try:
        args = parser.parse_args(argv)
        input_dir = _existing_dir(args.input_dir)
        workers = _worker_count(args.workers)
    except UsageError as e:
        return _usage_failure(parser, e)

    run_coords_dedupe(input_dir, Path(args.output_dir).expanduser(), max_workers=workers)
    return 0


def geotag_main(argv: list[str] | None = None) -> int:
    """Geotag photos from a GPX track log via ExifTool."""
    settings = _load_settings()
    parser = _parser("gpx-geotag", "Geotag photos from a GPX track log using ExifTool.")
    parser.add_argument("input_dir")
    parser.add_argument("gpx_file")
    parser.add_argument("output_dir")

    try:
        args = parser.parse_args(argv)
        input_dir = _existing_dir(args.input_dir)
        gpx_file = Path(args.gpx_file).expanduser()
        if not gpx_file.is_file():
            raise UsageError(f"GPX file does not exist: {args.gpx_file}")
    except UsageError as e:
        return _usage_failure(parser, e)

    geotagger = ExifToolGeotagger(
        max_interpolation_secs=settings.gpx_max_interpolation_secs,
        max_extrapolation_secs=settings.gpx_max_extrapolation_secs,
    )
    try:
        geotagger.geotag(input_dir, gpx_file, Path(args.output_dir).expanduser())
    except ExifToolError as e:
        print(f"ExifTool geotag failed: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
