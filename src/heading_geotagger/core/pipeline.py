from __future__ import annotations

from dataclasses import asdict
from functools import partial
from pathlib import Path
from typing import Callable
import json

from heading_geotagger.core.heading import process_pair
from heading_geotagger.core.job import Job, JobOptions
from heading_geotagger.core.manifest import ManifestRow, ManifestWriter
from heading_geotagger.core.pair_task import PairOutcome, PairStatus
from heading_geotagger.core.photo_record import PhotoRecord
from heading_geotagger.core.run_logger import RunLogger
from heading_geotagger.core.run_summary import PairSummary, RunSummary, write_run_summary
from heading_geotagger.core.scheduler import PairScheduler
from heading_geotagger.core.sequencer import list_photos, order_records, scan_records
from heading_geotagger.exif.heading_writer import HeadingWriter
from heading_geotagger.util.timeparse import format_millis

ProgressCb = Callable[[int, str], None]  # percent, message

def run_heading_job(
    job: Job,
    progress_cb: ProgressCb | None = None,
    echo: Callable[[str], None] | None = print,
) -> RunSummary:
    """Annotate every photo in ``job.input_dir`` with its direction of travel.

    Per-file problems (no GPS, unreadable EXIF, failed write) are logged and
    counted; they never stop the batch. When ``job.options.run_folder`` is set
    these artifacts are written there, even if the run fails:
      - run_config.json
      - run_log.txt
      - manifest.csv
      - run_summary.json
    """
    opts = job.options
    progress = progress_cb or (lambda _pct, _msg: None)
    run_folder = opts.run_folder
    if run_folder is not None:
        run_folder.mkdir(parents=True, exist_ok=True)
        _write_run_config(job, run_folder)

    logger = RunLogger(run_folder / "run_log.txt" if run_folder else None, echo=echo)
    logger.log(f"Job started: {job.input_dir}")
    _log_run_settings(logger, opts)

    rows: list[ManifestRow] = []
    try:
        job.state.stage = "SCAN"
        progress(0, "Reading EXIF...")
        paths = list_photos(job.input_dir)
        records, stats = scan_records(paths)
        batch = order_records(records)
        records = []
        job.state.scanned_photos = stats.total
        job.state.with_position = stats.with_position
        job.state.pairs_total = max(0, len(batch) - 1)
        logger.log(
            f"Scanned photos: {stats.total} "
            f"({stats.with_exif_time} with EXIF time, {stats.with_position} with GPS)"
        )

        outcomes: dict[int, PairOutcome] = {}
        if len(batch) < 2:
            logger.log(f"Only {len(batch)} photo(s) found; nothing to pair.")
        else:
            job.state.stage = "WRITE"
            progress(10, f"Processing {job.state.pairs_total} pairs...")
            writer = HeadingWriter(dry_run=opts.dry_run)
            scheduler = PairScheduler(partial(process_pair, writer=writer), max_workers=opts.max_workers)

            def on_outcome(outcome: PairOutcome) -> None:
                outcomes[outcome.index] = outcome
                done = len(outcomes)
                progress(10 + int(85 * done / job.state.pairs_total), f"Processed {done}/{job.state.pairs_total} pairs")

            state = scheduler.run(
                batch,
                bearing_adjustment=opts.bearing_adjustment,
                message_cb=logger.log,
                outcome_cb=on_outcome,
            )
            job.state.pairs_completed = state.completed
            job.state.pairs_skipped = state.skipped
            job.state.pairs_failed = state.failed

        for o in outcomes.values():
            for f in o.files:
                if f.success:
                    job.state.files_written += 1
                else:
                    job.state.write_failures += 1

        rows = _manifest_rows(batch, outcomes, opts.dry_run)
        # The batch holds every photo's metadata; drop it before the summary.
        batch = ()
        outcomes.clear()

        job.state.stage = "DONE"
        progress(100, "Done.")
    except Exception as e:
        job.state.stage = "FAILED"
        logger.log(f"Job failed: {e}")
        raise
    finally:
        summary = _build_run_summary(job)
        headline = "All images processed." if job.state.stage == "DONE" else "Run stopped."
        logger.log(
            f"{headline} "
            f"Pairs: {summary.pairs.completed}/{summary.pairs.total} completed "
            f"({summary.pairs.skipped} skipped, {summary.pairs.failed} failed); "
            f"files updated: {summary.files_written}, write failures: {summary.write_failures}."
        )
        if run_folder is not None:
            manifest = ManifestWriter(run_folder / "manifest.csv")
            for r in rows:
                manifest.add(r)
            manifest.write()
            write_run_summary(run_folder / "run_summary.json", summary)

    return summary

def _log_run_settings(logger: RunLogger, opts: JobOptions) -> None:
    logger.log(f"Bearing adjustment: {opts.bearing_adjustment:g}°")
    logger.log(f"Workers: {opts.max_workers}")
    logger.log(f"Dry run: {'Yes' if opts.dry_run else 'No'}")

def _manifest_rows(
    batch: tuple[PhotoRecord, ...],
    outcomes: dict[int, PairOutcome],
    dry_run: bool,
) -> list[ManifestRow]:
    # file name -> (status, reason, bearing)
    by_name: dict[str, tuple[str, str, float | None]] = {}
    for o in outcomes.values():
        if o.status == PairStatus.SKIPPED:
            by_name[batch[o.index].name] = ("SKIPPED", o.reason, None)
            continue
        if o.status == PairStatus.FAILED and not o.files:
            # The handler raised before reporting any file.
            by_name[batch[o.index].name] = ("FAILED", o.reason, None)
            continue
        for f in o.files:
            by_name[f.name] = ("SUCCESS" if f.success else "FAILED", f.error, o.bearing)

    rows: list[ManifestRow] = []
    for rec in batch:
        status, reason, bearing = by_name.get(rec.name, ("UNCHANGED", "no heading computed", None))
        coords = rec.coordinates
        rows.append(ManifestRow(
            file=rec.name,
            status=status,
            reason=reason,
            bearing="" if bearing is None else f"{bearing:.2f}",
            capture_time=format_millis(rec.timestamp),
            lat="" if coords is None else str(coords.lat),
            lon="" if coords is None else str(coords.lon),
            written="YES" if status == "SUCCESS" and not dry_run else "NO",
        ))
    return rows

def _build_run_summary(job: Job) -> RunSummary:
    s = job.state
    opts = job.options
    return RunSummary(
        run_id=job.id,
        input_dir=str(job.input_dir),
        photos=s.scanned_photos,
        photos_with_position=s.with_position,
        pairs=PairSummary(
            total=s.pairs_total,
            completed=s.pairs_completed,
            skipped=s.pairs_skipped,
            failed=s.pairs_failed,
        ),
        files_written=s.files_written,
        write_failures=s.write_failures,
        settings={
            "bearing_adjustment": opts.bearing_adjustment,
            "max_workers": opts.max_workers,
            "dry_run": opts.dry_run,
        },
    )

def _write_run_config(job: Job, run_folder: Path) -> None:
    path = run_folder / "run_config.json"
    payload = {
        "job": {
            "id": job.id,
            "input_dir": str(job.input_dir),
        },
        "options": _jsonify(asdict(job.options)),
    }
    path.write_text(json.dumps(payload, indent=2), encoding="utf-8")

def _jsonify(obj):
    """Recursively convert dataclass/asdict output into JSON-safe types."""
    if isinstance(obj, dict):
        return {k: _jsonify(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_jsonify(v) for v in obj]
    if isinstance(obj, Path):
        return str(obj)
    return obj
