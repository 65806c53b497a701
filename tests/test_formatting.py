"""Tests for display formatting."""

import pytest

from stash_tracker.services.formatting import format_cents, format_weight, total_potency


@pytest.mark.parametrize(
    ("grams", "expected"),
    [
        (3.5, "1/8 oz"),
        (7.0, "1/4 oz"),
        (14.0, "1/2 oz"),
        (28.0, "1 oz"),
        (56.0, "2 oz"),
        (1.0, "1 g"),
        (2.25, "2.25 g"),
        (-0.3, "0 g"),
        (None, "-"),
    ],
)
def test_format_weight(grams, expected) -> None:
    assert format_weight(grams) == expected


def test_format_cents() -> None:
    assert format_cents(3550) == "$35.50"
    assert format_cents(123456) == "$1,234.56"
    assert format_cents(None) == "-"


def test_total_potency() -> None:
    assert total_potency(20.0, 4.5) == 24.5
    assert total_potency(None, 22.0) == 22.0
    assert total_potency(None, None) is None
