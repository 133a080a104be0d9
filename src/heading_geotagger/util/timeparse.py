from __future__ import annotations

import re
from datetime import datetime

# EXIF stores capture time as a fixed-width local wall-clock string with no
# timezone, e.g. "2023:08:30 20:51:00".
EXIF_DATETIME_FORMAT = "%Y:%m:%d %H:%M:%S"

EXIF_TS_REGEX = re.compile(
    r"^(?P<y>\d{4}):(?P<m>\d{2}):(?P<d>\d{2}) (?P<h>\d{2}):(?P<mi>\d{2}):(?P<s>\d{2})$"
)

def parse_exif_datetime(value: str | bytes | None) -> datetime | None:
    """Parse an EXIF ``YYYY:MM:DD HH:MM:SS`` value into a naive local datetime.

    Returns None for anything that does not match the fixed-width layout or
    names an impossible date. Trailing NULs/whitespace written by some cameras
    are tolerated.
    """
    if value is None:
        return None
    if isinstance(value, bytes):
        value = value.decode("ascii", errors="ignore")
    v = value.strip().rstrip("\x00").strip()
    m = EXIF_TS_REGEX.match(v)
    if not m:
        return None
    gd = m.groupdict()
    try:
        return datetime(
            int(gd["y"]), int(gd["m"]), int(gd["d"]),
            int(gd["h"]), int(gd["mi"]), int(gd["s"]),
        )
    except ValueError:
        return None

def exif_datetime_to_millis(value: str | bytes | None) -> int | None:
    """Epoch milliseconds for an EXIF datetime interpreted in local time."""
    dt = parse_exif_datetime(value)
    if dt is None:
        return None
    try:
        return int(dt.timestamp() * 1000)
    except (OverflowError, OSError, ValueError):
        return None

def format_exif_datetime(dt: datetime) -> str:
    """Format datetime to EXIF DateTimeOriginal format: YYYY:MM:DD HH:MM:SS."""
    return dt.strftime(EXIF_DATETIME_FORMAT)

def format_millis(ts: int) -> str:
    return format_exif_datetime(datetime.fromtimestamp(ts / 1000))
