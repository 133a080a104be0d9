from __future__ import annotations

from pathlib import Path

JPEG_SUFFIXES = {".jpg", ".jpeg"}

def ensure_dir(p: Path) -> Path:
    p.mkdir(parents=True, exist_ok=True)
    return p

def is_jpg(p: Path) -> bool:
    return p.suffix.lower() in JPEG_SUFFIXES

def is_macos_artifact(p: Path) -> bool:
    name = p.name
    if name.startswith("._") or name == ".DS_Store":
        return True
    parts = p.parts
    return "__MACOSX" in parts

def mtime_millis(p: Path) -> int:
    return int(p.stat().st_mtime * 1000)
