from __future__ import annotations

from dataclasses import asdict, dataclass
from pathlib import Path
import json
from typing import Any


@dataclass
class PairSummary:
    total: int
    completed: int
    skipped: int
    failed: int


@dataclass
class RunSummary:
    run_id: str
    input_dir: str
    photos: int
    photos_with_position: int
    pairs: PairSummary
    files_written: int
    write_failures: int
    settings: dict[str, Any]


def write_run_summary(path: Path, summary: RunSummary) -> None:
    payload = _jsonify(asdict(summary))
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload, indent=2), encoding="utf-8")


def _jsonify(obj: Any) -> Any:
    if isinstance(obj, dict):
        return {k: _jsonify(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_jsonify(v) for v in obj]
    if isinstance(obj, Path):
        return str(obj)
    return obj
