from __future__ import annotations

import time
from pathlib import Path

from platformdirs import user_config_path, user_log_path

APP_NAME = "ytpro"
DOWNLOAD_LIST_NAME = "downloaded_files.txt"


def log_root() -> Path:
    root = user_log_path(APP_NAME)
    root.mkdir(parents=True, exist_ok=True)
    return root


def config_root() -> Path:
    root = user_config_path(APP_NAME)
    root.mkdir(parents=True, exist_ok=True)
    return root


def config_path() -> Path:
    return config_root() / "config.json"


def run_log_dir(root: Path | None = None) -> Path:
    root = root or log_root()
    path = root / f"run_{time.strftime('%Y%m%d_%H%M%S')}"
    path.mkdir(parents=True, exist_ok=True)
    return path


def download_list_path(run_dir: Path) -> Path:
    return run_dir / DOWNLOAD_LIST_NAME
