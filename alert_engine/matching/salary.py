"""Heuristic salary extraction from free-form salary text."""

import re
from typing import Optional

# First integer, optionally with comma thousands separators ("100,000").
_FIRST_NUMBER = re.compile(r"\d{1,3}(?:,\d{3})+|\d+")


def extract_salary(text: Optional[str]) -> Optional[int]:
    """Extract a salary figure from text like "$100,000" or "$90k - $120k".

    Takes the first integer in the text and scales it by 1000 when the text
    mentions "k" and the number is too small to be a yearly figure.

    Args:
        text: Salary text from the posting

    Returns:
        Salary as an integer, or None if no number is present

    Example:
        >>> extract_salary("$90k - $120k")
        90000
        >>> extract_salary("$100,000 per year")
        100000
    """
    if not text:
        return None

    match = _FIRST_NUMBER.search(text)
    if match is None:
        return None

    value = int(match.group(0).replace(",", ""))
    if "k" in text.lower() and value < 1000:
        value *= 1000
    return value
