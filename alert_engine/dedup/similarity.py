"""Text and URL similarity functions used for duplicate detection.

All functions are pure. Text similarity is token Jaccard over normalized
text; short tokens (two characters or fewer) are ignored so articles and
abbreviations do not inflate the overlap.
"""

import re
from typing import Dict, Optional, Set
from urllib.parse import urlparse

from alert_engine.domain.models import Posting

_NON_ALPHANUMERIC = re.compile(r"[^a-z0-9]+")

DESCRIPTION_PREFIX_LENGTH = 500

FIELD_WEIGHTS: Dict[str, float] = {
    "title": 0.30,
    "company": 0.25,
    "location": 0.15,
    "description": 0.20,
    "url": 0.10,
}


def normalize(text: Optional[str]) -> str:
    """Lower-case, replace non-alphanumerics with spaces, and collapse whitespace.

    Example:
        >>> normalize("  Senior  Engineer (Remote)! ")
        'senior engineer remote'
    """
    if not text:
        return ""
    return " ".join(_NON_ALPHANUMERIC.sub(" ", text.lower()).split())


def tokenize(text: Optional[str]) -> Set[str]:
    """Split normalized text into a set of tokens longer than two characters."""
    return {token for token in normalize(text).split() if len(token) > 2}


def jaccard(a: Optional[str], b: Optional[str]) -> float:
    """Token Jaccard similarity between two strings.

    Identical non-empty strings score 1.0; if either string is empty the
    score is 0.0.

    Args:
        a: First string
        b: Second string

    Returns:
        Similarity in [0, 1]
    """
    if not a or not b:
        return 0.0
    if a == b:
        return 1.0

    tokens_a = tokenize(a)
    tokens_b = tokenize(b)
    union = tokens_a | tokens_b
    if not union:
        return 0.0
    return len(tokens_a & tokens_b) / len(union)


def url_similarity(url_a: Optional[str], url_b: Optional[str]) -> float:
    """Similarity between two URLs.

    Identical URLs score 1.0. URLs on the same host score
    ``0.8 * jaccard(path_a, path_b) + 0.2``. Different hosts, or URLs that
    cannot be parsed into a host, score 0.0.
    """
    if not url_a or not url_b:
        return 0.0
    if url_a == url_b:
        return 1.0

    try:
        parsed_a = urlparse(url_a)
        parsed_b = urlparse(url_b)
        host_a = parsed_a.hostname
        host_b = parsed_b.hostname
    except ValueError:
        return 0.0

    if not host_a or not host_b or host_a != host_b:
        return 0.0

    return 0.8 * jaccard(parsed_a.path, parsed_b.path) + 0.2


def _field_similarity(a: Optional[str], b: Optional[str]) -> float:
    # Absent or identical on both sides counts as agreement.
    if (a or "") == (b or ""):
        return 1.0
    return jaccard(normalize(a), normalize(b))


def field_similarities(a: Posting, b: Posting) -> Dict[str, float]:
    """Per-field similarity between two postings.

    Returns:
        Mapping of field name (title, company, location, description, url) to similarity
    """
    if (a.url or "") == (b.url or ""):
        url_score = 1.0
    else:
        url_score = url_similarity(a.url, b.url)

    return {
        "title": _field_similarity(a.title, b.title),
        "company": _field_similarity(a.company, b.company),
        "location": _field_similarity(a.location, b.location),
        "description": _field_similarity(
            a.description[:DESCRIPTION_PREFIX_LENGTH],
            b.description[:DESCRIPTION_PREFIX_LENGTH],
        ),
        "url": url_score,
    }


def posting_similarity(a: Posting, b: Posting) -> float:
    """Weighted overall similarity between two postings, in [0, 1].

    Weights: title 0.30, company 0.25, location 0.15, description (first 500
    characters) 0.20, URL 0.10.
    """
    scores = field_similarities(a, b)
    total = sum(FIELD_WEIGHTS[name] * scores[name] for name in FIELD_WEIGHTS)
    # Rounded so that all-agreeing fields sum to exactly 1.0.
    return min(1.0, max(0.0, round(total, 9)))
