import pytest

from ytpro.percent import clamp_percent, normalize_percent, percent_of_duration


@pytest.mark.parametrize(
    ("token", "expected"),
    [
        ("37%", 37),
        ("37.9", 37),
        (" 42 ", 42),
        (" 87.2%", 87),
        ("100.0%", 100),
        ("250%", 100),
    ],
)
def test_normalize_percent(token: str, expected: int) -> None:
    assert normalize_percent(token) == expected


@pytest.mark.parametrize("token", ["", "   ", "N/A", "abc", "1.2.3", None])
def test_normalize_percent_falls_back_to_zero(token: str | None) -> None:
    assert normalize_percent(token) == 0


def test_normalize_percent_counters_float_error() -> None:
    assert normalize_percent("57.99999999") == 58
    assert normalize_percent("29.0") == 29


@pytest.mark.parametrize(("value", "expected"), [(-5, 0), (150, 100), (42, 42), (float("nan"), 0)])
def test_clamp_percent(value: float, expected: int) -> None:
    assert clamp_percent(value) == expected


def test_percent_of_duration() -> None:
    assert percent_of_duration(65, 120) == 54
    assert percent_of_duration(500, 120) == 100
    assert percent_of_duration(10, None) == 0
    assert percent_of_duration(10, 0) == 0
