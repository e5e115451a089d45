from __future__ import annotations

import itertools
import logging
import threading
import time
from collections import deque
from dataclasses import dataclass
from pathlib import Path

from rich.console import Console
from rich.control import Control
from rich.segment import ControlType
from rich.text import Text

from .errors import StepCancelled, StepFailed
from .monitor import (
    ExitWatcher,
    Launcher,
    MonitoredProcess,
    OutputMode,
    ProcessStatus,
    launch,
    terminate_process,
)

log = logging.getLogger(__name__)

SPINNER_FRAMES = "|/-\\"
SPINNER_INTERVAL = 0.12
TAIL_LINES = 15


@dataclass(frozen=True)
class StepResult:
    status: ProcessStatus
    log_path: Path
    returncode: int | None


class StepRunner:
    """Runs install-style steps one at a time behind a one-line spinner.

    Each step's combined output goes to its own log file in ``log_dir``. A
    failing step prints the tail of that log and raises StepFailed.
    """

    def __init__(
        self,
        console: Console,
        log_dir: Path,
        *,
        tail_lines: int = TAIL_LINES,
        interval: float = SPINNER_INTERVAL,
        launcher: Launcher | None = None,
    ) -> None:
        self.console = console
        self.log_dir = log_dir
        self.tail_lines = tail_lines
        self.interval = interval
        self.launcher = launcher
        self._started = time.strftime("%Y%m%d_%H%M%S")
        self._ordinal = 0

    def next_log_path(self) -> Path:
        self._ordinal += 1
        return self.log_dir / f"step_{self._started}_{self._ordinal:02d}.log"

    def run(
        self,
        message: str,
        command: list[str],
        cancel_event: threading.Event | None = None,
    ) -> StepResult:
        self.log_dir.mkdir(parents=True, exist_ok=True)
        log_path = self.next_log_path()
        monitored = MonitoredProcess(command=command, mode=OutputMode.CAPTURE_TO_LOG)

        with log_path.open("w", encoding="utf-8") as handle:
            process = launch(monitored, handle, self.launcher)
            watcher = ExitWatcher(process, cancel_event).start()
            try:
                self._spin(message, watcher.done)
            except BaseException:
                terminate_process(process)
                raise
            returncode = watcher.join()

        self._clear_line()
        log.debug("Step %r exited with %s (log: %s)", message, returncode, log_path)

        if watcher.canceled:
            self.console.print(Text(f"✖ {message} cancelled.", style="yellow"))
            raise StepCancelled(f"{message} cancelled")

        if returncode != 0:
            self.console.print(Text(f"✖ {message} failed.", style="red"))
            see_log = Text("See log: ", style="dim")
            see_log.append(str(log_path), style="")
            self.console.print(see_log, soft_wrap=True)
            for line in read_tail(log_path, self.tail_lines):
                self.console.print(Text(line), highlight=False, soft_wrap=True)
            raise StepFailed(f"{message} failed", log_path=log_path, returncode=returncode)

        self.console.print(Text(f"✔ {message}", style="green"))
        return StepResult(status=ProcessStatus.SUCCEEDED, log_path=log_path, returncode=returncode)

    def _spin(self, message: str, done: threading.Event) -> None:
        for frame in itertools.cycle(SPINNER_FRAMES):
            if done.is_set():
                return
            self._clear_line()
            self.console.print(Text(f"{frame} {message}…", style="dim"), end="", highlight=False)
            done.wait(timeout=self.interval)

    def _clear_line(self) -> None:
        self.console.control(
            Control(ControlType.CARRIAGE_RETURN, (ControlType.ERASE_IN_LINE, 2))
        )


def read_tail(path: Path, count: int) -> list[str]:
    try:
        with path.open("r", encoding="utf-8", errors="replace") as handle:
            return [line.rstrip("\r\n") for line in deque(handle, maxlen=count)]
    except OSError as exc:
        log.warning("Could not read step log %s: %s", path, exc)
        return []
