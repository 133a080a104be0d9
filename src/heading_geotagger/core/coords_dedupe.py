from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Callable
import shutil

from heading_geotagger.core.pair_task import FileResult, PairOutcome, PairStatus, PairTask
from heading_geotagger.core.run_logger import RunLogger
from heading_geotagger.core.scheduler import DEFAULT_MAX_WORKERS, PairScheduler
from heading_geotagger.core.sequencer import list_photos, scan_records
from heading_geotagger.util.paths import ensure_dir

@dataclass
class DedupeSummary:
    photos: int
    pairs: int
    moved: int
    skipped: int
    failed: int

def run_coords_dedupe(
    input_dir: Path,
    output_dir: Path,
    max_workers: int = DEFAULT_MAX_WORKERS,
    echo: Callable[[str], None] | None = print,
) -> DedupeSummary:
    """Move photos whose GPS position equals their predecessor's into ``output_dir``.

    Photos are paired in file-name order. Positions are read once before any
    pair runs, so moving photo ``i`` never hides it from pair ``i + 1``.
    """
    logger = RunLogger(echo=echo)
    ensure_dir(output_dir)

    records, stats = scan_records(list_photos(input_dir))
    logger.log(f"Scanned photos: {stats.total} ({stats.with_position} with GPS)")

    scheduler = PairScheduler(lambda task: move_if_same_position(task, output_dir), max_workers=max_workers)
    moved = 0

    def on_outcome(outcome: PairOutcome) -> None:
        nonlocal moved
        moved += sum(1 for f in outcome.files if f.success)

    state = scheduler.run(records, message_cb=logger.log, outcome_cb=on_outcome)
    records = []

    summary = DedupeSummary(
        photos=stats.total,
        pairs=state.total_pairs,
        moved=moved,
        skipped=state.skipped,
        failed=state.failed,
    )
    logger.log(
        f"All images processed. Moved {summary.moved} duplicate-position photo(s) "
        f"({summary.skipped} skipped, {summary.failed} failed)."
    )
    return summary

def move_if_same_position(task: PairTask, output_dir: Path) -> PairOutcome:
    prev, curr = task.previous, task.current
    if not (prev.has_position and curr.has_position):
        return PairOutcome(
            index=task.index,
            status=PairStatus.SKIPPED,
            reason="missing GPS data",
            messages=(f"Skipping {curr.name} due to missing GPS data",),
        )

    if prev.coordinates != curr.coordinates:
        return PairOutcome(index=task.index, status=PairStatus.COMPLETED)

    c = curr.coordinates
    messages = [f"Processing {curr.name}, same position as {prev.name}: ({c.lat}, {c.lon})"]
    target = _collision_safe(output_dir / curr.name)
    try:
        shutil.move(str(curr.path), str(target))
    except OSError as e:
        messages.append(f"Error moving {curr.name}: {e}")
        return PairOutcome(
            index=task.index,
            status=PairStatus.FAILED,
            reason=str(e),
            files=(FileResult(name=curr.name, success=False, error=str(e)),),
            messages=tuple(messages),
        )
    messages.append(f"Moved: {curr.name}")
    return PairOutcome(
        index=task.index,
        status=PairStatus.COMPLETED,
        files=(FileResult(name=curr.name, success=True),),
        messages=tuple(messages),
    )

def _collision_safe(path: Path) -> Path:
    if not path.exists():
        return path
    stem = path.stem
    suf = path.suffix
    parent = path.parent
    i = 1
    while True:
        cand = parent / f"{stem}_dup{i}{suf}"
        if not cand.exists():
            return cand
        i += 1
