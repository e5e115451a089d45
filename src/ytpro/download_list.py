from __future__ import annotations

import logging
import os
from pathlib import Path

log = logging.getLogger(__name__)

RECENT_LIMIT = 10


class DownloadList:
    """Append-only list of files produced by the downloader, one per line."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def reset(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text("", encoding="utf-8")

    def append(self, file_path: str) -> None:
        try:
            with self.path.open("a", encoding="utf-8") as handle:
                handle.write(f"{file_path}\n")
        except OSError as exc:
            log.warning("Could not record downloaded file %s: %s", file_path, exc)

    def load(self) -> list[Path]:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except OSError:
            return []
        return [Path(line.strip()) for line in raw.splitlines() if line.strip()]


def guess_recent_files(root: Path, limit: int = RECENT_LIMIT) -> list[Path]:
    """Most recently modified non-hidden files below ``root``, newest first."""
    entries: list[tuple[float, Path]] = []
    for dirpath, _dirnames, filenames in os.walk(root):
        for name in filenames:
            if name.startswith("."):
                continue
            path = Path(dirpath) / name
            try:
                entries.append((path.stat().st_mtime, path))
            except OSError:
                continue
    entries.sort(key=lambda entry: entry[0], reverse=True)
    return [path for _mtime, path in entries[:limit]]
