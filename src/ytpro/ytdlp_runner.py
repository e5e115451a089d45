from __future__ import annotations

import logging
import re
import subprocess
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

from .download_list import DownloadList
from .errors import StepCancelled, StepFailed, ToolNotFound, YtproError
from .monitor import Launcher, MonitoredProcess, ProcessStatus, run_streaming
from .progress import DownloadProgressParser
from .render import Renderer
from .selection import PlaylistItem, parse_playlist_listing

log = logging.getLogger(__name__)

Runner = Callable[[list[str]], subprocess.CompletedProcess[str]]

YTDLP = "yt-dlp"
BEST_FORMAT = "bv*+ba"
SINGLE_TEMPLATE = "%(title)s.%(ext)s"
PLAYLIST_TEMPLATE = "%(playlist_title)s/%(playlist_index)02d - %(title)s.%(ext)s"

_PROGRESS_TEMPLATE = (
    "%(progress._percent_str)s|"
    "%(progress._speed_str)s|"
    "%(progress._eta_str)s|"
    "%(progress.filename)s"
)
_PLAYLIST_LISTING_TEMPLATE = "%(playlist_index)03d|%(title)s|%(duration_string)s"


@dataclass(frozen=True)
class DownloadRequest:
    url: str
    format_code: str = BEST_FORMAT
    playlist: bool = False
    playlist_items: str = ""
    output_dir: Path | None = None

    @property
    def output_template(self) -> str:
        template = PLAYLIST_TEMPLATE if self.playlist else SINGLE_TEMPLATE
        if self.output_dir is None:
            return template
        return str(self.output_dir / template)


def build_download_command(request: DownloadRequest) -> list[str]:
    command = [YTDLP, "-f", request.format_code]
    command.append("--yes-playlist" if request.playlist else "--no-playlist")
    if request.playlist_items:
        command.extend(["--playlist-items", request.playlist_items])
    command.extend(
        [
            "-o",
            request.output_template,
            request.url,
            "--newline",
            "--progress",
            "--no-color",
            "--progress-template",
            f"download:{_PROGRESS_TEMPLATE}",
            "--print",
            "before_dl:START|%(filename)s",
            "--print",
            "after_move:FILE|%(filepath)s",
        ]
    )
    return command


def run_download_with_progress(
    request: DownloadRequest,
    renderer: Renderer,
    download_list: DownloadList,
    cancel_event: threading.Event | None = None,
    *,
    launcher: Launcher | None = None,
) -> list[str]:
    """Download with a live viewport; returns the paths yt-dlp reported.

    A non-zero exit raises StepFailed since nothing downstream can proceed.
    """
    parser = DownloadProgressParser(on_file_produced=download_list.append)
    command = build_download_command(request)
    result = run_streaming(
        MonitoredProcess(command=command),
        parser.feed,
        renderer,
        cancel_event=cancel_event,
        launcher=launcher,
    )
    if result.status is ProcessStatus.CANCELED:
        raise StepCancelled("Download cancelled")
    if not result.ok:
        detail = result.last_message or f"yt-dlp failed with exit code {result.returncode}"
        raise StepFailed(f"Download failed: {detail}", returncode=result.returncode)
    return parser.produced


def fetch_playlist_items(url: str, runner: Runner | None = None) -> list[PlaylistItem]:
    command = [YTDLP, "--flat-playlist", "--print", _PLAYLIST_LISTING_TEMPLATE, url]
    completed = (runner or _run_subprocess)(command)
    if completed.returncode != 0:
        raise YtproError(f"Failed to fetch playlist: {_summarize_error(completed)}")
    return parse_playlist_listing(completed.stdout or "")


def build_formats_command(url: str, item: int | None = None) -> list[str]:
    command = [YTDLP, "-F"]
    if item is not None:
        command.extend(["--playlist-items", str(item)])
    command.append(url)
    return command


def show_formats(url: str, item: int | None = None) -> int:
    """Print the format table straight to the terminal."""
    command = build_formats_command(url, item)
    log.debug("Running %s", " ".join(command))
    try:
        return subprocess.run(command, check=False).returncode
    except FileNotFoundError as exc:
        raise ToolNotFound("yt-dlp not found on PATH") from exc
    except OSError as exc:
        raise ToolNotFound(f"Cannot start yt-dlp: {exc}") from exc


def is_video_only(code: str, listing: str) -> bool:
    pattern = re.compile(rf"^\s*{re.escape(code)}\b.*video\s+only")
    return any(pattern.search(line) for line in listing.splitlines())


def probe_video_only(code: str, url: str, item: int, runner: Runner | None = None) -> bool:
    completed = (runner or _run_subprocess)(build_formats_command(url, item))
    if completed.returncode != 0:
        log.debug("Format listing failed: %s", _summarize_error(completed))
        return False
    return is_video_only(code, completed.stdout or "")


def choose_format(code: str, video_only: bool) -> str:
    code = code.strip()
    if not code:
        return BEST_FORMAT
    if video_only:
        return f"{code}+ba"
    return code


def _run_subprocess(command: list[str]) -> subprocess.CompletedProcess[str]:
    log.debug("Running %s", " ".join(command))
    try:
        return subprocess.run(command, check=False, capture_output=True, text=True)
    except FileNotFoundError as exc:
        raise ToolNotFound(f"{command[0]} not found on PATH") from exc
    except OSError as exc:
        raise ToolNotFound(f"Cannot start {command[0]}: {exc}") from exc


def _summarize_error(completed: subprocess.CompletedProcess[str]) -> str:
    stderr = completed.stderr or ""
    stdout = completed.stdout or ""
    message = stderr.strip() or stdout.strip()
    if not message:
        return f"yt-dlp failed with exit code {completed.returncode}"
    return message.splitlines()[-1]
