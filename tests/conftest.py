from __future__ import annotations

import os
from pathlib import Path
from typing import Callable

import piexif
import pytest
from PIL import Image


def _dms(value: float) -> tuple[tuple[int, int], tuple[int, int], tuple[int, int]]:
    value = abs(value)
    deg = int(value)
    minutes_f = (value - deg) * 60
    minutes = int(minutes_f)
    seconds = round((minutes_f - minutes) * 60 * 10000)
    return ((deg, 1), (minutes, 1), (seconds, 10000))


def write_photo(
    path: Path,
    lat: float | None = None,
    lon: float | None = None,
    taken: str | None = None,
    fallback_taken: str | None = None,
    mtime: float | None = None,
) -> Path:
    """Write a small real JPEG with the requested EXIF fields."""
    exif: dict = {"0th": {}, "Exif": {}, "GPS": {}, "1st": {}, "thumbnail": None}
    if taken is not None:
        exif["Exif"][piexif.ExifIFD.DateTimeOriginal] = taken
    if fallback_taken is not None:
        exif["0th"][piexif.ImageIFD.DateTime] = fallback_taken
    if lat is not None:
        exif["GPS"][piexif.GPSIFD.GPSLatitudeRef] = "N" if lat >= 0 else "S"
        exif["GPS"][piexif.GPSIFD.GPSLatitude] = _dms(lat)
    if lon is not None:
        exif["GPS"][piexif.GPSIFD.GPSLongitudeRef] = "E" if lon >= 0 else "W"
        exif["GPS"][piexif.GPSIFD.GPSLongitude] = _dms(lon)

    path.parent.mkdir(parents=True, exist_ok=True)
    Image.new("RGB", (8, 8), (120, 90, 60)).save(path, "JPEG", exif=piexif.dump(exif))
    if mtime is not None:
        os.utime(path, (mtime, mtime))
    return path


@pytest.fixture
def make_photo(tmp_path: Path) -> Callable[..., Path]:
    def _make(name: str, **kwargs) -> Path:
        return write_photo(tmp_path / "photos" / name, **kwargs)

    return _make


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    cfg = tmp_path / "config" / "settings.json"
    cfg.parent.mkdir(parents=True, exist_ok=True)
    monkeypatch.setattr("heading_geotagger.core.settings._config_path", lambda: cfg)
    return cfg


def _read_direction(path: Path) -> tuple[float, str] | None:
    """Return (degrees, ref) stored in a photo, or None if it has no direction."""
    gps = piexif.load(path.read_bytes()).get("GPS") or {}
    value = gps.get(piexif.GPSIFD.GPSImgDirection)
    if not value:
        return None
    num, den = value
    ref = gps.get(piexif.GPSIFD.GPSImgDirectionRef, b"")
    if isinstance(ref, bytes):
        ref = ref.decode("ascii", errors="ignore")
    return num / den, ref.rstrip("\x00")


@pytest.fixture
def read_direction() -> Callable[[Path], tuple[float, str] | None]:
    return _read_direction
