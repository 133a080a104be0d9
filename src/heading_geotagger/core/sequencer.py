from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable

from heading_geotagger.core.photo_record import OrderedBatch, PhotoRecord
from heading_geotagger.exif.metadata_reader import ExtractedMetadata, extract
from heading_geotagger.util.paths import is_jpg, is_macos_artifact, mtime_millis

Extractor = Callable[[Path], ExtractedMetadata]

@dataclass(frozen=True)
class SequenceStats:
    total: int
    with_exif_time: int
    with_position: int

def list_photos(directory: Path) -> list[Path]:
    """Return JPGs directly inside ``directory`` (no recursion), sorted by name.

    The name order is the enumeration order that breaks timestamp ties.
    """
    directory = directory.expanduser().resolve()
    photos = [
        child for child in directory.iterdir()
        if child.is_file() and is_jpg(child) and not is_macos_artifact(child)
    ]
    return sorted(photos, key=lambda p: p.name)

def scan_records(paths: Iterable[Path], extractor: Extractor = extract) -> tuple[list[PhotoRecord], SequenceStats]:
    """Build one PhotoRecord per path, in input order."""
    records: list[PhotoRecord] = []
    with_time = 0
    with_pos = 0
    for p in paths:
        meta = extractor(p)
        if meta.timestamp is not None:
            with_time += 1
            ts = meta.timestamp
        else:
            ts = mtime_millis(p)
        if meta.coordinates is not None:
            with_pos += 1
        records.append(PhotoRecord(name=p.name, path=p, timestamp=ts, coordinates=meta.coordinates))
    return records, SequenceStats(total=len(records), with_exif_time=with_time, with_position=with_pos)

def order_records(records: Iterable[PhotoRecord]) -> OrderedBatch:
    # sorted() is stable: equal timestamps keep their enumeration order.
    return tuple(sorted(records, key=lambda r: r.timestamp))

def sequence(paths: Iterable[Path], extractor: Extractor = extract) -> OrderedBatch:
    """Order photos by capture time, falling back to file modification time."""
    records, _ = scan_records(paths, extractor)
    return order_records(records)
