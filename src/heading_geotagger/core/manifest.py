from __future__ import annotations

from dataclasses import dataclass, asdict, fields
from pathlib import Path
import csv

@dataclass
class ManifestRow:
    file: str
    status: str  # SUCCESS|SKIPPED|FAILED|UNCHANGED
    reason: str
    bearing: str
    capture_time: str
    lat: str
    lon: str
    written: str  # YES|NO

class ManifestWriter:
    def __init__(self, path: Path) -> None:
        self.path = path
        self._rows: list[ManifestRow] = []

    def add(self, row: ManifestRow) -> None:
        self._rows.append(row)

    def write(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("w", newline="", encoding="utf-8") as f:
            w = csv.DictWriter(f, fieldnames=[fl.name for fl in fields(ManifestRow)])
            w.writeheader()
            for r in self._rows:
                w.writerow(asdict(r))
