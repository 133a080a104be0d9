from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Tuple

@dataclass(frozen=True)
class Coordinate:
    lat: float
    lon: float

@dataclass(frozen=True)
class PhotoRecord:
    """One photo as seen at scan time.

    - name: file name, unique within a batch
    - path: absolute path the writer targets
    - timestamp: epoch millis (EXIF capture time, or file mtime as fallback)
    - coordinates: decoded GPS position, None if absent or unusable

    Records are immutable for the duration of a run; a worker only ever reads
    the two records of its own pair.
    """
    name: str
    path: Path
    timestamp: int
    coordinates: Coordinate | None = None

    @property
    def has_position(self) -> bool:
        return self.coordinates is not None

# Sorted ascending by timestamp, stable for ties.
OrderedBatch = Tuple[PhotoRecord, ...]
