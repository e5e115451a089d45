from __future__ import annotations

import math

_EPSILON = 0.00001


def normalize_percent(text: str | None) -> int:
    """Turn a progress token such as ``" 87.2%"`` into an integer in [0, 100].

    Anything that cannot be read as a number normalizes to 0.
    """
    if text is None:
        return 0
    cleaned = text.strip().rstrip("%").strip()
    digits = "".join(ch for ch in cleaned if ch.isdigit() or ch == ".")
    if not digits:
        return 0
    try:
        value = float(digits)
    except ValueError:
        return 0
    return clamp_percent(math.floor(value + _EPSILON))


def clamp_percent(value: float | int) -> int:
    if value != value:
        return 0
    return int(max(0, min(100, value)))


def percent_of_duration(elapsed_seconds: float, duration_seconds: float | None) -> int:
    if not duration_seconds or duration_seconds <= 0:
        return 0
    return clamp_percent(math.floor(elapsed_seconds * 100 / duration_seconds))
