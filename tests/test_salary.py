"""Unit tests for salary extraction."""

import pytest

from alert_engine.matching import extract_salary


@pytest.mark.parametrize(
    "text,expected",
    [
        ("$100,000", 100000),
        ("$100,000 per year", 100000),
        ("$90k - $120k", 90000),
        ("120K", 120000),
        ("$150,000 - $180,000", 150000),
        ("85000", 85000),
        ("USD 1,250,000", 1250000),
    ],
)
def test_extracts_first_number(text, expected):
    assert extract_salary(text) == expected


@pytest.mark.parametrize("text", [None, "", "Competitive", "DOE"])
def test_no_number(text):
    assert extract_salary(text) is None


def test_large_figure_is_not_scaled_by_k():
    """'k' only scales figures too small to be yearly salaries."""
    assert extract_salary("$95,000 (95k)") == 95000
