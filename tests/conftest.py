from __future__ import annotations

import io
from typing import Callable

import pytest
from rich.console import Console


@pytest.fixture
def make_console(monkeypatch) -> Callable[..., Console]:
    monkeypatch.setenv("TERM", "xterm-256color")

    def factory(width: int = 80) -> Console:
        return Console(
            file=io.StringIO(),
            force_terminal=True,
            color_system=None,
            width=width,
            legacy_windows=False,
        )

    return factory


@pytest.fixture
def console(make_console) -> Console:
    return make_console()
