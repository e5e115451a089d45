from __future__ import annotations

import logging
import subprocess
import threading
from pathlib import Path
from typing import Callable

from .errors import ProbeUnavailable
from .monitor import Launcher, MonitoredProcess, MonitorResult, run_streaming
from .progress import TranscodeProgressParser
from .render import Renderer

log = logging.getLogger(__name__)

Runner = Callable[[list[str]], subprocess.CompletedProcess[str]]


def replace_ext(path: Path, new_ext: str) -> Path:
    new_ext = new_ext.strip()
    if not new_ext.startswith("."):
        new_ext = f".{new_ext}"
    return path.with_suffix(new_ext)


def build_probe_command(path: Path) -> list[str]:
    return [
        "ffprobe",
        "-v",
        "error",
        "-show_entries",
        "format=duration",
        "-of",
        "default=noprint_wrappers=1:nokey=1",
        str(path),
    ]


def build_convert_command(input_path: Path, output_path: Path) -> list[str]:
    return [
        "ffmpeg",
        "-y",
        "-hide_banner",
        "-loglevel",
        "error",
        "-i",
        str(input_path),
        str(output_path),
        "-progress",
        "pipe:1",
    ]


def probe_duration(path: Path, runner: Runner | None = None) -> float | None:
    """Duration of ``path`` in seconds, or None when it cannot be determined."""
    try:
        return _probe(path, runner or _run_subprocess)
    except ProbeUnavailable as exc:
        log.warning("Duration unknown for %s: %s", path.name, exc)
        return None


def run_convert_with_progress(
    input_path: Path,
    output_path: Path,
    duration_seconds: float | None,
    renderer: Renderer,
    cancel_event: threading.Event | None = None,
    *,
    launcher: Launcher | None = None,
) -> MonitorResult:
    parser = TranscodeProgressParser(
        duration_seconds,
        label=f"{input_path.name} → {output_path.name}",
    )
    return run_streaming(
        MonitoredProcess(command=build_convert_command(input_path, output_path)),
        parser.feed,
        renderer,
        cancel_event=cancel_event,
        launcher=launcher,
        first_event=parser.initial_event(),
    )


def _probe(path: Path, runner: Runner) -> float:
    try:
        completed = runner(build_probe_command(path))
    except FileNotFoundError as exc:
        raise ProbeUnavailable("ffprobe not found on PATH") from exc
    if completed.returncode != 0:
        raise ProbeUnavailable(f"ffprobe exited with code {completed.returncode}")
    text = (completed.stdout or "").strip()
    try:
        seconds = float(text)
    except ValueError as exc:
        raise ProbeUnavailable(f"unreadable duration {text!r}") from exc
    if not seconds > 0:
        raise ProbeUnavailable(f"non-positive duration {seconds}")
    return seconds


def _run_subprocess(command: list[str]) -> subprocess.CompletedProcess[str]:
    log.debug("Running %s", " ".join(command))
    return subprocess.run(command, check=False, capture_output=True, text=True)
