from __future__ import annotations

from heading_geotagger.core.bearing import bearing
from heading_geotagger.core.pair_task import FileResult, PairOutcome, PairStatus, PairTask
from heading_geotagger.core.photo_record import PhotoRecord
from heading_geotagger.exif.heading_writer import HeadingWriter

REASON_MISSING_GPS = "missing GPS data"

def process_pair(task: PairTask, writer: HeadingWriter) -> PairOutcome:
    """Compute the heading for ``task.current`` and write it into the photo.

    The first pair also writes the same heading into the previous photo, since
    the first photo of a sequence has no predecessor of its own. Each write
    stands alone: a failure on one file does not undo the other.
    """
    prev, curr = task.previous, task.current
    if not (prev.has_position and curr.has_position):
        return PairOutcome(
            index=task.index,
            status=PairStatus.SKIPPED,
            reason=REASON_MISSING_GPS,
            messages=(f"Skipping {curr.name} due to {REASON_MISSING_GPS}",),
        )

    direction = bearing(prev.coordinates, curr.coordinates, task.bearing_adjustment)
    messages = [
        f"Processing {curr.name}, direction: {direction:.2f}° "
        f"(adjusted by {task.bearing_adjustment:g}°)"
    ]

    targets = [curr]
    if task.is_first_pair:
        targets.append(prev)

    files: list[FileResult] = []
    for record in targets:
        files.append(_write_one(writer, record, direction, first=(record is prev), messages=messages))

    status = PairStatus.FAILED if any(not f.success for f in files) else PairStatus.COMPLETED
    reason = "; ".join(f"{f.name}: {f.error}" for f in files if not f.success)
    return PairOutcome(
        index=task.index,
        status=status,
        reason=reason,
        bearing=direction,
        files=tuple(files),
        messages=tuple(messages),
    )

def _write_one(
    writer: HeadingWriter,
    record: PhotoRecord,
    direction: float,
    first: bool,
    messages: list[str],
) -> FileResult:
    res = writer.write(record.path, direction)
    if res.success:
        what = "first image" if first else "direction"
        messages.append(f"Updated {what}: {record.name}")
    else:
        messages.append(f"Error writing EXIF to {record.name}: {res.error}")
    return FileResult(name=record.name, success=res.success, error=res.error)
