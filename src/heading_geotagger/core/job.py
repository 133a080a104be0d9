from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from heading_geotagger.core.settings import DEFAULT_MAX_WORKERS

@dataclass
class JobOptions:
    bearing_adjustment: float = 0.0
    max_workers: int = DEFAULT_MAX_WORKERS
    dry_run: bool = False
    # Run artifacts (log, manifest, summary) go here; None keeps the run console-only.
    run_folder: Path | None = None

@dataclass
class JobState:
    stage: str = "PENDING"
    scanned_photos: int = 0
    with_position: int = 0
    pairs_total: int = 0
    pairs_completed: int = 0
    pairs_skipped: int = 0
    pairs_failed: int = 0
    files_written: int = 0
    write_failures: int = 0

@dataclass
class Job:
    id: str
    input_dir: Path
    options: JobOptions = field(default_factory=JobOptions)
    state: JobState = field(default_factory=JobState)
