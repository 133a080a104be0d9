from __future__ import annotations

from pathlib import Path

import piexif
import pytest

from heading_geotagger.exif.heading_writer import HeadingWriter, WriteResult, direction_rational
from heading_geotagger.exif.metadata_reader import extract


def test_direction_rational() -> None:
    assert direction_rational(90.0) == (9000, 100)
    assert direction_rational(12.344) == (1234, 100)
    assert direction_rational(12.346) == (1235, 100)
    assert direction_rational(359.999) == (0, 100)
    assert direction_rational(0.0) == (0, 100)


def test_write_sets_true_direction_and_keeps_position(make_photo, read_direction) -> None:
    p = make_photo("a.jpg", lat=10.0, lon=20.0, taken="2024:05:01 10:00:00")
    before = extract(p)

    res = HeadingWriter().write(p, 123.456)

    assert res == WriteResult(success=True)
    degrees, ref = read_direction(p)
    assert degrees == pytest.approx(123.46)
    assert ref == "T"
    assert extract(p) == before


def test_write_to_photo_without_exif(tmp_path: Path, read_direction) -> None:
    from PIL import Image

    p = tmp_path / "plain.jpg"
    Image.new("RGB", (4, 4)).save(p, "JPEG")

    assert HeadingWriter().write(p, 45.0).success
    assert read_direction(p) == (45.0, "T")


def test_dry_run_leaves_file_untouched(make_photo) -> None:
    p = make_photo("a.jpg", lat=10.0, lon=20.0)
    data = p.read_bytes()

    assert HeadingWriter(dry_run=True).write(p, 90.0).success
    assert p.read_bytes() == data


def test_write_failure_is_reported_not_raised(tmp_path: Path) -> None:
    p = tmp_path / "broken.jpg"
    p.write_bytes(b"not a jpeg at all")

    res = HeadingWriter().write(p, 90.0)

    assert res.success is False
    assert "broken.jpg" in res.error
    assert p.read_bytes() == b"not a jpeg at all"


def test_failed_replace_leaves_no_temp_file(make_photo, monkeypatch: pytest.MonkeyPatch) -> None:
    p = make_photo("a.jpg", lat=1.0, lon=1.0)
    original = p.read_bytes()

    def boom(*_args, **_kwargs):
        raise PermissionError("read-only")

    monkeypatch.setattr("heading_geotagger.exif.heading_writer.os.replace", boom)

    res = HeadingWriter().write(p, 10.0)

    assert not res.success
    assert p.read_bytes() == original
    assert sorted(x.name for x in p.parent.iterdir()) == ["a.jpg"]
    assert piexif.GPSIFD.GPSImgDirection not in piexif.load(str(p))["GPS"]


def test_temp_file_creation_failure_is_reported(make_photo, monkeypatch: pytest.MonkeyPatch) -> None:
    p = make_photo("a.jpg", lat=1.0, lon=1.0)
    original = p.read_bytes()

    def no_space(*_args, **_kwargs):
        raise OSError(28, "No space left on device")

    monkeypatch.setattr("heading_geotagger.exif.heading_writer.tempfile.mkstemp", no_space)

    res = HeadingWriter().write(p, 10.0)

    assert res.success is False
    assert "No space left on device" in res.error
    assert p.read_bytes() == original
