from __future__ import annotations

from dataclasses import dataclass

from rich.console import Console
from rich.control import Control
from rich.segment import ControlType
from rich.text import Text

from .percent import clamp_percent
from .progress import ProgressEvent

VIEWPORT_LINES = 2
WIDE_BAR = 50
NARROW_BAR = 40
WIDE_TERMINAL_COLUMNS = 70
FILLED = "█"
EMPTY = "░"


@dataclass
class RenderState:
    header: str = ""
    percent: int = 0
    reserved: bool = False


def bar_width_for(columns: int) -> int:
    if columns >= WIDE_TERMINAL_COLUMNS:
        return WIDE_BAR
    return NARROW_BAR


def draw_bar(percent: int, width: int) -> str:
    percent = clamp_percent(percent)
    filled = percent * width // 100
    return f"[{FILLED * filled}{EMPTY * (width - filled)}] {percent:3d}%"


class Renderer:
    """Redraws a two-line progress viewport in place.

    The caller reserves the viewport with :meth:`reset` before the first
    event; every :meth:`draw` moves up two lines and rewrites both.
    """

    def __init__(self, console: Console, bar_width: int | None = None) -> None:
        self.console = console
        self._bar_width = bar_width
        self.state = RenderState()

    @property
    def bar_width(self) -> int:
        if self._bar_width:
            return self._bar_width
        return bar_width_for(self.console.width)

    def reset(self) -> None:
        self.state = RenderState(reserved=True)
        for _ in range(VIEWPORT_LINES):
            self.console.print()

    def draw(self, event: ProgressEvent) -> None:
        percent = clamp_percent(event.percent)
        self.console.control(Control.move(0, -VIEWPORT_LINES), _erase_line())
        self._print_line(_header_text(event))
        self.console.control(_erase_line())
        self._print_line(_bar_text(percent, self.bar_width, event.secondary))
        self.state.header = event.header
        self.state.percent = percent

    def _print_line(self, text: Text) -> None:
        # each viewport line must fit in one terminal row
        text.truncate(self.console.width, overflow="crop")
        self.console.print(text, no_wrap=True, overflow="crop", crop=True, highlight=False)


def _erase_line() -> Control:
    return Control((ControlType.ERASE_IN_LINE, 2))


def _header_text(event: ProgressEvent) -> Text:
    text = Text()
    if event.title:
        text.append(event.title, style="cyan")
        text.append(" ")
    text.append(event.label, style="magenta")
    return text


def _bar_text(percent: int, width: int, secondary: str) -> Text:
    text = Text(draw_bar(percent, width), style="green" if percent >= 100 else "")
    if secondary:
        text.append("  ")
        text.append(secondary, style="yellow")
    return text
