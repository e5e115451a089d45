from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import PurePath
from typing import Callable, Union

from .percent import clamp_percent, normalize_percent, percent_of_duration

log = logging.getLogger(__name__)

FileProducedCallback = Callable[[str], None]

START_PREFIX = "START|"
FILE_PREFIX = "FILE|"
FIELD_SEPARATOR = "|"
NOT_AVAILABLE = "N/A"

DOWNLOAD_TITLE = "📥 Downloading:"
CONVERT_TITLE = "🔄 Converting:"


@dataclass(frozen=True)
class ProgressEvent:
    percent: int
    label: str
    secondary: str = ""
    terminal: bool = False
    title: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "percent", clamp_percent(self.percent))

    @property
    def header(self) -> str:
        if not self.title:
            return self.label
        return f"{self.title} {self.label}"


@dataclass(frozen=True)
class Start:
    filename: str


@dataclass(frozen=True)
class FileProduced:
    path: str


@dataclass(frozen=True)
class Tick:
    percent: int
    speed: str
    eta: str
    filename: str


@dataclass(frozen=True)
class Unrecognized:
    line: str


DownloadLine = Union[Start, FileProduced, Tick, Unrecognized]


def decode_download_line(line: str) -> DownloadLine:
    if line.startswith(START_PREFIX):
        return Start(filename=line[len(START_PREFIX) :])
    if line.startswith(FILE_PREFIX):
        return FileProduced(path=line[len(FILE_PREFIX) :])
    parts = line.split(FIELD_SEPARATOR, 3)
    if len(parts) != 4:
        return Unrecognized(line=line)
    percent_text, speed, eta, filename = parts
    return Tick(
        percent=normalize_percent(percent_text),
        speed=_or_not_available(speed),
        eta=_or_not_available(eta),
        filename=filename,
    )


def base_name(path: str) -> str:
    path = path.strip()
    if not path:
        return path
    return PurePath(path.replace("\\", "/")).name or path


def format_speed_eta(speed: str, eta: str) -> str:
    return f"Speed: {speed}  ETA: {eta}"


class DownloadProgressParser:
    """Turns yt-dlp template output into progress events.

    ``FILE|`` records are handed to ``on_file_produced`` instead of being
    rendered.
    """

    def __init__(self, on_file_produced: FileProducedCallback | None = None) -> None:
        self._on_file_produced = on_file_produced
        self.last_tick: Tick | None = None
        self.produced: list[str] = []

    def feed(self, line: str) -> ProgressEvent | None:
        decoded = decode_download_line(line)
        if isinstance(decoded, Start):
            return ProgressEvent(
                percent=0,
                label=base_name(decoded.filename),
                secondary=format_speed_eta("--", "--"),
                title=DOWNLOAD_TITLE,
            )
        if isinstance(decoded, FileProduced):
            self.produced.append(decoded.path)
            if self._on_file_produced is not None:
                self._on_file_produced(decoded.path)
            return None
        if isinstance(decoded, Tick):
            self.last_tick = decoded
            return ProgressEvent(
                percent=decoded.percent,
                label=base_name(decoded.filename),
                secondary=format_speed_eta(decoded.speed, decoded.eta),
                title=DOWNLOAD_TITLE,
            )
        log.debug("Ignoring download output: %s", decoded.line)
        return None


def split_key_value(line: str) -> tuple[str, str] | None:
    line = line.strip()
    if not line or "=" not in line:
        return None
    key, value = line.split("=", 1)
    key = key.strip()
    if not key:
        return None
    return key, value.strip()


class TranscodeProgressParser:
    """Reads ffmpeg ``-progress`` key=value output.

    ``out_time_ms`` is reported in microseconds despite its name.
    """

    def __init__(self, duration_seconds: float | None, label: str) -> None:
        self.duration_seconds = duration_seconds
        self.label = label
        self.percent = 0

    def initial_event(self) -> ProgressEvent:
        return ProgressEvent(percent=0, label=self.label, title=CONVERT_TITLE)

    def feed(self, line: str) -> ProgressEvent | None:
        pair = split_key_value(line)
        if pair is None:
            return None
        key, value = pair
        if key == "out_time_ms":
            self.percent = percent_of_duration(_micros_to_seconds(value), self.duration_seconds)
            return ProgressEvent(percent=self.percent, label=self.label, title=CONVERT_TITLE)
        if key == "progress" and value == "end":
            self.percent = 100
            return ProgressEvent(
                percent=100,
                label=self.label,
                terminal=True,
                title=CONVERT_TITLE,
            )
        return None


def _micros_to_seconds(value: str) -> float:
    try:
        return int(value) / 1_000_000
    except ValueError:
        return 0.0


def _or_not_available(value: str) -> str:
    value = value.strip()
    return value or NOT_AVAILABLE
