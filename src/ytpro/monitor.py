from __future__ import annotations

import logging
import subprocess
import threading
from dataclasses import dataclass
from enum import Enum
from typing import IO, Any, Callable

from .errors import ToolNotFound
from .lines import iter_lines
from .progress import ProgressEvent
from .render import Renderer

log = logging.getLogger(__name__)

Launcher = Callable[..., "subprocess.Popen[Any]"]
LineParser = Callable[[str], "ProgressEvent | None"]

_CANCEL_POLL_SECONDS = 0.1
_TERMINATE_GRACE_SECONDS = 2


class OutputMode(Enum):
    CAPTURE_TO_LOG = "capture-to-log"
    STREAM_TO_PARSER = "stream-to-parser"


class ProcessStatus(Enum):
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELED = "canceled"


@dataclass(frozen=True)
class MonitoredProcess:
    command: list[str]
    mode: OutputMode = OutputMode.STREAM_TO_PARSER

    @property
    def program(self) -> str:
        return self.command[0]


@dataclass(frozen=True)
class MonitorResult:
    status: ProcessStatus
    returncode: int | None
    last_message: str = ""

    @property
    def ok(self) -> bool:
        return self.status is ProcessStatus.SUCCEEDED


class ExitWatcher:
    """Waits for a child process on a background thread.

    When a cancel event is supplied and becomes set before the child exits,
    the child is terminated and :attr:`canceled` is set.
    """

    def __init__(self, process: subprocess.Popen[Any], cancel_event: threading.Event | None = None) -> None:
        self.process = process
        self.cancel_event = cancel_event
        self.canceled = False
        self.returncode: int | None = None
        self.done = threading.Event()
        self._thread = threading.Thread(target=self._wait, daemon=True)

    def start(self) -> ExitWatcher:
        self._thread.start()
        return self

    def join(self) -> int | None:
        self._thread.join()
        return self.returncode

    def _wait(self) -> None:
        try:
            if self.cancel_event is not None:
                while self.process.poll() is None:
                    if self.cancel_event.wait(timeout=_CANCEL_POLL_SECONDS):
                        self.canceled = True
                        terminate_process(self.process)
                        break
            self.returncode = self.process.wait()
        finally:
            self.done.set()


def launch(
    monitored: MonitoredProcess,
    stdout: IO[Any] | int,
    launcher: Launcher | None = None,
) -> subprocess.Popen[Any]:
    launcher = launcher or subprocess.Popen
    log.debug("Starting %s", " ".join(monitored.command))
    try:
        return launcher(
            monitored.command,
            stdout=stdout,
            stderr=subprocess.STDOUT,
            stdin=subprocess.DEVNULL,
            text=True,
            encoding="utf-8",
            errors="replace",
            bufsize=1,
        )
    except FileNotFoundError as exc:
        raise ToolNotFound(f"{monitored.program} not found on PATH") from exc
    except OSError as exc:
        raise ToolNotFound(f"Cannot start {monitored.program}: {exc}") from exc


def run_streaming(
    monitored: MonitoredProcess,
    parse: LineParser,
    renderer: Renderer,
    *,
    cancel_event: threading.Event | None = None,
    launcher: Launcher | None = None,
    first_event: ProgressEvent | None = None,
) -> MonitorResult:
    """Run ``monitored`` and redraw ``renderer`` for every parsed line."""
    renderer.reset()
    process = launch(monitored, subprocess.PIPE, launcher)
    watcher = ExitWatcher(process, cancel_event).start()

    if first_event is not None:
        renderer.draw(first_event)

    last_message = ""
    try:
        if process.stdout is not None:
            for line in iter_lines(process.stdout):
                event = parse(line)
                if event is not None:
                    renderer.draw(event)
                elif line.strip():
                    last_message = line.strip()
    except BaseException:
        terminate_process(process)
        raise
    finally:
        if process.stdout is not None:
            process.stdout.close()

    returncode = watcher.join()
    log.debug("%s exited with %s", monitored.program, returncode)
    return MonitorResult(
        status=_status_for(returncode, watcher.canceled),
        returncode=returncode,
        last_message=last_message,
    )


def terminate_process(process: subprocess.Popen[Any]) -> None:
    if process.poll() is not None:
        return
    try:
        process.terminate()
        process.wait(timeout=_TERMINATE_GRACE_SECONDS)
    except subprocess.TimeoutExpired:
        process.kill()


def _status_for(returncode: int | None, canceled: bool) -> ProcessStatus:
    if canceled:
        return ProcessStatus.CANCELED
    if returncode == 0:
        return ProcessStatus.SUCCEEDED
    return ProcessStatus.FAILED
