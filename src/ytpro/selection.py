from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterable

Ask = Callable[[str], str]
ShowPage = Callable[[list["PlaylistItem"], int, int], None]

NEXT_PAGE = "n"
DONE = "0"


@dataclass(frozen=True)
class PlaylistItem:
    index: str
    title: str
    duration: str


def first_from_ranges(text: str) -> int:
    """Return the representative item of a selection such as ``"5-7,2"``.

    Only the first token is read; anything unusable falls back to item 1.
    """
    first = text.strip().split(",")[0].strip()
    if "-" in first:
        first = first.split("-", 1)[0].strip()
    try:
        number = int(first)
    except ValueError:
        return 1
    if number <= 0:
        return 1
    return number


def playlist_items_arg(selections: Iterable[str]) -> str:
    return ",".join(selection.strip() for selection in selections if selection.strip())


def parse_playlist_listing(text: str) -> list[PlaylistItem]:
    items: list[PlaylistItem] = []
    for line in text.splitlines():
        parts = line.split("|", 2)
        if len(parts) != 3:
            continue
        index, title, duration = parts
        items.append(PlaylistItem(index=index.strip(), title=title, duration=duration.strip()))
    return items


def paginate_select(
    items: list[PlaylistItem],
    page_size: int,
    ask: Ask,
    show_page: ShowPage,
) -> list[str]:
    """Walk the playlist a page at a time and collect typed selections.

    ``n`` or a blank answer moves to the next page, ``0`` stops; any other
    answer is kept verbatim.
    """
    page_size = max(1, page_size)
    total = len(items)
    selections: list[str] = []
    start = 0
    while start < total:
        end = min(start + page_size, total)
        show_page(items[start:end], start, total)
        answer = ask("🎯 Enter selections (e.g., 1,3,5-7)").strip()
        if answer == DONE:
            break
        if answer and answer.lower() != NEXT_PAGE:
            selections.append(answer)
        start += page_size
    return selections
