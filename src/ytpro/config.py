from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .paths import config_path

CONFIG_VERSION = 1
DEFAULT_PAGE_SIZE = 10
DEFAULT_TAIL_LINES = 15


@dataclass
class AppConfig:
    version: int = CONFIG_VERSION
    output_dir: str | None = None
    default_format: str | None = None
    convert_format: str | None = None
    page_size: int = DEFAULT_PAGE_SIZE
    tail_lines: int = DEFAULT_TAIL_LINES
    bar_width: int | None = None
    auto_install: bool = True


def load_config(path: Path | None = None) -> tuple[AppConfig, str | None]:
    path = path or config_path()
    if not path.exists():
        return AppConfig(), None
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        return AppConfig(), f"Failed to read config: {path} ({exc})"
    try:
        data = json.loads(raw)
    except json.JSONDecodeError:
        return AppConfig(), f"Config file is not valid JSON: {path}"
    if not isinstance(data, dict):
        return AppConfig(), f"Config file must be a JSON object: {path}"
    return _parse_config_data(data), None


def save_config(config: AppConfig, path: Path | None = None) -> str | None:
    path = path or config_path()
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        return f"Failed to create config directory: {path.parent} ({exc})"
    payload = _config_to_dict(config)
    try:
        path.write_text(
            json.dumps(payload, ensure_ascii=True, indent=2),
            encoding="utf-8",
        )
    except OSError as exc:
        return f"Failed to write config: {path} ({exc})"
    return None


def _parse_config_data(data: dict[str, Any]) -> AppConfig:
    auto_install = _as_bool(data.get("auto_install"))
    return AppConfig(
        version=_as_int(data.get("version")) or CONFIG_VERSION,
        output_dir=_as_str(data.get("output_dir")),
        default_format=_as_str(data.get("default_format")),
        convert_format=_as_str(data.get("convert_format")),
        page_size=_as_positive_int(data.get("page_size")) or DEFAULT_PAGE_SIZE,
        tail_lines=_as_positive_int(data.get("tail_lines")) or DEFAULT_TAIL_LINES,
        bar_width=_as_positive_int(data.get("bar_width")),
        auto_install=True if auto_install is None else auto_install,
    )


def _config_to_dict(config: AppConfig) -> dict[str, Any]:
    data: dict[str, Any] = {
        "version": config.version,
        "page_size": config.page_size,
        "tail_lines": config.tail_lines,
        "auto_install": config.auto_install,
    }
    _set_if(data, "output_dir", config.output_dir)
    _set_if(data, "default_format", config.default_format)
    _set_if(data, "convert_format", config.convert_format)
    _set_if(data, "bar_width", config.bar_width)
    return data


def _set_if(data: dict[str, Any], key: str, value: Any) -> None:
    if value is not None:
        data[key] = value


def _as_str(value: Any) -> str | None:
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return None


def _as_bool(value: Any) -> bool | None:
    if isinstance(value, bool):
        return value
    return None


def _as_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return None


def _as_positive_int(value: Any) -> int | None:
    number = _as_int(value)
    if number is None or number <= 0:
        return None
    return number
