from __future__ import annotations

from dataclasses import asdict, dataclass
from pathlib import Path
import json
from datetime import datetime
from appdirs import user_config_dir

DEFAULT_MAX_WORKERS = 4
DEFAULT_GPX_MAX_INT_SECS = 3
DEFAULT_GPX_MAX_EXT_SECS = 0

def _config_path() -> Path:
    cfg_dir = Path(user_config_dir(appname="HeadingGeotagger", appauthor=False))
    cfg_dir.mkdir(parents=True, exist_ok=True)
    return cfg_dir / "settings.json"

@dataclass
class AppSettings:
    """User-persistent defaults for the command line tools.

    Stored in the platform config dir, e.g. ~/.config/HeadingGeotagger/settings.json.
    Command line arguments always win over these values.
    """
    max_workers: int = DEFAULT_MAX_WORKERS
    bearing_adjustment: float = 0.0
    exiftool_path: str = ""
    last_report_dir: str = ""
    gpx_max_interpolation_secs: int = DEFAULT_GPX_MAX_INT_SECS
    gpx_max_extrapolation_secs: int = DEFAULT_GPX_MAX_EXT_SECS

    @classmethod
    def load(cls) -> "AppSettings":
        p = _config_path()
        if not p.exists():
            return cls()
        try:
            data = json.loads(p.read_text(encoding="utf-8"))
            return cls(**data)
        except Exception:
            # Fail safe: a broken settings file must not block a run.
            return cls()

    def save(self) -> None:
        p = _config_path()
        p.write_text(json.dumps(asdict(self), indent=2), encoding="utf-8")

    @staticmethod
    def new_run_folder(output_root: Path) -> Path:
        stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        return output_root / f"HeadingGeotagger_{stamp}"
