from __future__ import annotations

from typing import IO, Iterator

from .errors import StreamReadError


def iter_lines(stream: IO[str] | IO[bytes]) -> Iterator[str]:
    """Yield lines from ``stream`` without their terminators.

    A final line that ends without a newline is still yielded. Read errors
    before end-of-stream surface as StreamReadError.
    """
    while True:
        try:
            raw = stream.readline()
        except (OSError, ValueError) as exc:
            raise StreamReadError(f"Failed to read process output: {exc}") from exc
        if not raw:
            return
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8", errors="replace")
        yield _strip_terminator(raw)


def _strip_terminator(line: str) -> str:
    if line.endswith("\n"):
        line = line[:-1]
    if line.endswith("\r"):
        line = line[:-1]
    return line
