from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from heading_geotagger.core.photo_record import PhotoRecord


class PairStatus(str, Enum):
    PENDING = "PENDING"
    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"
    SKIPPED = "SKIPPED"
    FAILED = "FAILED"


@dataclass(frozen=True)
class PairTask:
    """Consecutive pair ``(index - 1, index)`` of an ordered batch."""
    index: int
    previous: PhotoRecord
    current: PhotoRecord
    bearing_adjustment: float = 0.0

    @property
    def is_first_pair(self) -> bool:
        return self.index == 1


@dataclass(frozen=True)
class FileResult:
    """Outcome of one file mutation made by a pair handler."""
    name: str
    success: bool
    error: str = ""


@dataclass(frozen=True)
class PairOutcome:
    """Message a worker sends back to the coordinator when its pair is done.

    ``messages`` are the human-readable progress lines for display; the
    coordinator emits them, workers never log directly.
    """
    index: int
    status: PairStatus
    reason: str = ""
    bearing: float | None = None
    files: tuple[FileResult, ...] = ()
    messages: tuple[str, ...] = field(default_factory=tuple)

    @property
    def write_failures(self) -> int:
        return sum(1 for f in self.files if not f.success)
