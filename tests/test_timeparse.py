from datetime import datetime

from heading_geotagger.util.timeparse import (
    exif_datetime_to_millis,
    format_exif_datetime,
    parse_exif_datetime,
)

def test_parse_exif_datetime():
    dt = parse_exif_datetime("2023:08:30 20:51:00")
    assert dt == datetime(2023, 8, 30, 20, 51, 0)

def test_parse_exif_datetime_bytes_with_nul():
    dt = parse_exif_datetime(b"2023:08:30 20:51:00\x00")
    assert dt is not None and dt.minute == 51

def test_parse_exif_datetime_malformed():
    assert parse_exif_datetime("2023-08-30 20:51:00") is None
    assert parse_exif_datetime("2023:08:30") is None
    assert parse_exif_datetime("    :  :     :  :  ") is None
    assert parse_exif_datetime("") is None
    assert parse_exif_datetime(None) is None

def test_parse_exif_datetime_invalid_date():
    assert parse_exif_datetime("2023:02:30 10:00:00") is None

def test_millis_are_local_wall_clock():
    ms = exif_datetime_to_millis("2023:08:30 20:51:00")
    assert ms == int(datetime(2023, 8, 30, 20, 51, 0).timestamp() * 1000)
    assert exif_datetime_to_millis("garbage") is None

def test_format_roundtrip():
    assert format_exif_datetime(datetime(2024, 1, 2, 3, 4, 5)) == "2024:01:02 03:04:05"
