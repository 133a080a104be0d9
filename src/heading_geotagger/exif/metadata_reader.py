from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Sequence

import piexif

from heading_geotagger.core.photo_record import Coordinate
from heading_geotagger.util.errors import MetadataReadError
from heading_geotagger.util.timeparse import exif_datetime_to_millis

@dataclass(frozen=True)
class ExtractedMetadata:
    timestamp: int | None = None  # epoch millis
    coordinates: Coordinate | None = None

def extract(path: Path) -> ExtractedMetadata:
    """Read capture time and GPS position from a photo's EXIF block.

    Never raises: unreadable files and corrupt EXIF yield an empty result so a
    single bad photo cannot abort the batch. The mtime fallback for a missing
    timestamp is the sequencer's job, not ours.
    """
    try:
        exif = load_exif(path)
    except MetadataReadError:
        return ExtractedMetadata()
    return ExtractedMetadata(
        timestamp=timestamp_from_exif(exif),
        coordinates=coordinates_from_exif(exif),
    )

def load_exif(path: Path) -> dict[str, Any]:
    try:
        data = path.read_bytes()
        return piexif.load(data)
    except Exception as e:
        # piexif raises a mix of ValueError/struct.error/InvalidImageDataError.
        raise MetadataReadError(f"{path.name}: {e}") from e

def timestamp_from_exif(exif: dict[str, Any]) -> int | None:
    original = (exif.get("Exif") or {}).get(piexif.ExifIFD.DateTimeOriginal)
    fallback = (exif.get("0th") or {}).get(piexif.ImageIFD.DateTime)
    return exif_datetime_to_millis(original or fallback)

def coordinates_from_exif(exif: dict[str, Any]) -> Coordinate | None:
    gps = exif.get("GPS") or {}
    lat_dms = gps.get(piexif.GPSIFD.GPSLatitude)
    lon_dms = gps.get(piexif.GPSIFD.GPSLongitude)
    if not lat_dms or not lon_dms:
        return None

    lat = dms_to_decimal(lat_dms, gps.get(piexif.GPSIFD.GPSLatitudeRef))
    lon = dms_to_decimal(lon_dms, gps.get(piexif.GPSIFD.GPSLongitudeRef))
    # Partial positions are useless for a bearing.
    if lat is None or lon is None:
        return None
    return Coordinate(lat=lat, lon=lon)

def dms_to_decimal(dms: Sequence[Sequence[int]] | None, ref: str | bytes | None) -> float | None:
    """Convert an EXIF degrees/minutes/seconds rational triple to decimal degrees.

    >>> dms_to_decimal([[1, 1], [0, 1], [0, 1]], "S")
    -1.0
    """
    if not isinstance(dms, (list, tuple)) or len(dms) != 3:
        return None
    try:
        deg, minutes, seconds = (_rational(part) for part in dms)
    except (TypeError, ValueError, ZeroDivisionError):
        return None

    dd = deg + minutes / 60 + seconds / 3600
    if _ref_str(ref) in ("S", "W"):
        dd = -dd
    return dd

def _rational(part: Sequence[int]) -> float:
    num, den = part
    return num / den

def _ref_str(ref: str | bytes | None) -> str:
    if ref is None:
        return ""
    if isinstance(ref, bytes):
        ref = ref.decode("ascii", errors="ignore")
    return ref.strip().rstrip("\x00").upper()
