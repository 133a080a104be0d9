from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Callable

@dataclass
class RunLogger:
    """Timestamped run log.

    Lines are appended to ``path`` when one is set and always echoed through
    ``echo`` (stdout by default) so the CLI shows progress as it happens.
    """
    path: Path | None = None
    echo: Callable[[str], None] | None = print

    def log(self, message: str) -> None:
        if self.echo is not None:
            self.echo(message)
        if self.path is None:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        ts = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        with self.path.open("a", encoding="utf-8") as f:
            f.write(f"[{ts}] {message}\n")
