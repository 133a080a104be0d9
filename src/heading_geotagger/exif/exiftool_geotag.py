from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
import io
import os
import shutil
import subprocess
import tempfile
from typing import Callable

import piexif

from heading_geotagger.util.errors import ExifToolError, MetadataWriteError
from heading_geotagger.util.paths import ensure_dir, is_jpg

DEFAULT_TIMEOUT_SECONDS = 600

@dataclass
class GeotagResult:
    input_photos: int
    stripped: int
    geotagged: int

class ExifToolGeotagger:
    """Geotag photos from a GPX track log by shelling out to ExifTool.

    ExifTool does the track interpolation; this class only prepares the
    photos and collects the ones that ended up with a position.
    """

    def __init__(
        self,
        max_interpolation_secs: int = 3,
        max_extrapolation_secs: int = 0,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        self.max_interpolation_secs = max_interpolation_secs
        self.max_extrapolation_secs = max_extrapolation_secs
        self.timeout = timeout
        self.exiftool_path = resolve_exiftool_path()

    def geotag(
        self,
        input_dir: Path,
        gpx_file: Path,
        output_dir: Path,
        log: Callable[[str], None] = print,
    ) -> GeotagResult:
        """Write positions from ``gpx_file`` into copies of the photos in ``input_dir``.

        Steps:
        1) Copy each JPG into a temp folder with its existing GPS block removed,
           so stale positions cannot survive a failed match.
        2) ``exiftool -geotag`` the temp folder in place.
        3) Copy only photos that now carry a position into ``output_dir``.
        4) Remove the temp folder (always, even on failure).

        Originals in ``input_dir`` are never modified.
        """
        photos = sorted(p for p in input_dir.iterdir() if p.is_file() and is_jpg(p))
        ensure_dir(output_dir)
        before = _count_jpgs(output_dir)

        temp_dir = Path(tempfile.mkdtemp(prefix="_temp_nogps_"))
        try:
            log(f"Step 1: Stripping GPS from {len(photos)} images...")
            stripped = 0
            for p in photos:
                try:
                    strip_gps(p, temp_dir / p.name)
                    stripped += 1
                except MetadataWriteError as e:
                    log(f"Skipping {p.name}: {e}")

            log("Step 2: Running exiftool geotag...")
            self._run([
                "-r",
                "-geotag", str(gpx_file),
                "-ext", "jpg",
                "-overwrite_original",
                "-api", f"GeoMaxIntSecs={self.max_interpolation_secs}",
                "-api", f"GeoMaxExtSecs={self.max_extrapolation_secs}",
                str(temp_dir),
            ], cwd=temp_dir)

            log("Step 3: Copying matched images to output folder...")
            # -o needs a trailing separator to be treated as a directory.
            self._run([
                "-r",
                "-if", "$gpslatitude and $gpslongitude",
                "-ext", "jpg",
                "-o", str(output_dir) + os.sep,
                str(temp_dir),
            ], cwd=temp_dir)
        finally:
            log(f"Step 4: Cleaning up temp folder ({temp_dir})...")
            shutil.rmtree(temp_dir, ignore_errors=True)

        result = GeotagResult(
            input_photos=len(photos),
            stripped=stripped,
            geotagged=_count_jpgs(output_dir) - before,
        )
        log(f"Done. {result.geotagged}/{result.input_photos} photos geotagged into: {output_dir}")
        return result

    def _run(self, args: list[str], cwd: Path) -> subprocess.CompletedProcess:
        cmd = [self.exiftool_path, *args]
        try:
            proc = subprocess.run(
                cmd,
                cwd=str(cwd),
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except FileNotFoundError as e:
            raise ExifToolError(_exiftool_missing_message()) from e
        except subprocess.TimeoutExpired as e:
            raise ExifToolError(f"ExifTool timed out after {self.timeout:g}s.") from e

        # Exit code 1 with "files failed condition" is ExifTool's normal
        # answer when -if filters everything out.
        if proc.returncode != 0 and "failed condition" not in (proc.stdout or ""):
            raise ExifToolError(proc.stderr.strip() or "ExifTool returned non-zero exit code.")
        return proc

def strip_gps(src: Path, dest: Path) -> None:
    """Write a copy of ``src`` to ``dest`` without its GPS IFD."""
    try:
        data = src.read_bytes()
        exif = piexif.load(data)
        exif["GPS"] = {}
        out = io.BytesIO()
        piexif.insert(piexif.dump(exif), data, out)
        dest.write_bytes(out.getvalue())
    except Exception as e:
        raise MetadataWriteError(f"cannot strip GPS from {src.name}: {e}") from e

def _count_jpgs(directory: Path) -> int:
    return sum(1 for p in directory.rglob("*") if p.is_file() and is_jpg(p))

def resolve_exiftool_path() -> str:
    """Resolve an ExifTool executable path.

    Resolution order:
    1) HEADING_EXIFTOOL_PATH env var (explicit override)
    2) PATH lookup
    3) Common install locations
    4) Fallback: "exiftool" (may still fail at runtime with a friendly error)
    """
    env_path = os.environ.get("HEADING_EXIFTOOL_PATH")
    if env_path:
        p = Path(env_path)
        if p.exists():
            return str(p)

    which = shutil.which("exiftool")
    if which:
        return which

    for cand in ("/opt/homebrew/bin/exiftool", "/usr/local/bin/exiftool", "/usr/bin/exiftool"):
        if Path(cand).exists():
            return cand

    return "exiftool"

def _exiftool_missing_message() -> str:
    return (
        "ExifTool not found. Install ExifTool or set HEADING_EXIFTOOL_PATH "
        "(or exiftool_path in settings.json)."
    )
