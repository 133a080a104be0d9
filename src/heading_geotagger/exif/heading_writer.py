from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
import io
import os
import tempfile

import piexif

from heading_geotagger.util.errors import MetadataWriteError

# GPSImgDirection is an EXIF RATIONAL; two decimals of precision.
DIRECTION_DENOMINATOR = 100
TRUE_NORTH_REF = "T"

@dataclass
class WriteResult:
    success: bool
    error: str = ""

class HeadingWriter:
    """Read-modify-write the GPS image direction of a JPEG in place.

    Each write goes to a temp file next to the target and is then renamed over
    it, so a photo is either fully rewritten or left untouched.
    """

    def __init__(self, dry_run: bool = False) -> None:
        self.dry_run = dry_run

    def write(self, path: Path, degrees: float) -> WriteResult:
        try:
            self.write_or_raise(path, degrees)
        except MetadataWriteError as e:
            return WriteResult(success=False, error=str(e))
        return WriteResult(success=True)

    def write_or_raise(self, path: Path, degrees: float) -> None:
        try:
            original = path.read_bytes()
            exif = piexif.load(original)
        except Exception as e:
            raise MetadataWriteError(f"cannot read EXIF from {path.name}: {e}") from e

        gps = exif.get("GPS") or {}
        gps[piexif.GPSIFD.GPSImgDirection] = direction_rational(degrees)
        gps[piexif.GPSIFD.GPSImgDirectionRef] = TRUE_NORTH_REF
        exif["GPS"] = gps

        if self.dry_run:
            return

        try:
            exif_bytes = piexif.dump(exif)
            out = io.BytesIO()
            piexif.insert(exif_bytes, original, out)
        except Exception as e:
            raise MetadataWriteError(f"cannot encode EXIF for {path.name}: {e}") from e

        _atomic_write(path, out.getvalue())

def direction_rational(degrees: float) -> tuple[int, int]:
    # 359.996 rounds to 36000; fold it back so the value stays below 360.
    hundredths = int(round(degrees * DIRECTION_DENOMINATOR)) % (360 * DIRECTION_DENOMINATOR)
    return (hundredths, DIRECTION_DENOMINATOR)

def _atomic_write(path: Path, data: bytes) -> None:
    tmp: Path | None = None
    try:
        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.stem}_", suffix=".tmp", dir=str(path.parent))
        tmp = Path(tmp_name)
        with os.fdopen(fd, "wb") as f:
            f.write(data)
        os.replace(tmp, path)
    except OSError as e:
        if tmp is not None:
            tmp.unlink(missing_ok=True)
        raise MetadataWriteError(f"cannot write {path.name}: {e}") from e
