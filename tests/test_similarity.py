"""Unit tests for text and URL similarity functions."""

import pytest

from alert_engine.dedup.similarity import (
    field_similarities,
    jaccard,
    normalize,
    posting_similarity,
    tokenize,
    url_similarity,
)
from tests.helpers import make_posting


class TestNormalize:
    """Tests for normalize() and tokenize()."""

    def test_lowercases_and_strips_punctuation(self):
        assert normalize("  Senior  Engineer (Remote)! ") == "senior engineer remote"

    def test_empty_and_none(self):
        assert normalize("") == ""
        assert normalize(None) == ""

    def test_tokenize_drops_short_tokens(self):
        assert tokenize("An SRE at the ACME co") == {"sre", "the", "acme"}


class TestJaccard:
    """Tests for token Jaccard similarity."""

    def test_identical_strings(self):
        assert jaccard("Python Developer", "Python Developer") == 1.0

    def test_either_empty_is_zero(self):
        assert jaccard("", "python") == 0.0
        assert jaccard("python", None) == 0.0

    def test_partial_overlap(self):
        # {senior, python, engineer} vs {python, engineer} -> 2 / 3
        assert jaccard("Senior Python Engineer", "Python Engineer") == pytest.approx(2 / 3)

    def test_only_short_tokens_is_zero(self):
        assert jaccard("a b", "c d") == 0.0

    def test_is_symmetric(self):
        a, b = "Backend Engineer Payments", "Payments Platform Engineer"
        assert jaccard(a, b) == jaccard(b, a)


class TestUrlSimilarity:
    """Tests for url_similarity()."""

    def test_identical(self):
        assert url_similarity("https://a.com/jobs/1", "https://a.com/jobs/1") == 1.0

    def test_same_host_uses_path_overlap(self):
        score = url_similarity(
            "https://jobs.example.com/postings/backend-engineer",
            "https://jobs.example.com/postings/frontend-engineer",
        )
        # paths share {postings, engineer} of {postings, backend, frontend, engineer}
        assert score == pytest.approx(0.8 * 0.5 + 0.2)

    def test_different_hosts(self):
        assert url_similarity("https://a.com/jobs/1", "https://b.com/jobs/1") == 0.0

    def test_unparseable_or_missing_host(self):
        assert url_similarity("not a url", "also not a url") == 0.0
        assert url_similarity("", "https://a.com") == 0.0


class TestPostingSimilarity:
    """Tests for weighted posting similarity."""

    def test_identical_postings(self):
        posting = make_posting("p1")
        assert posting_similarity(posting, posting.model_copy()) == 1.0

    def test_fields_absent_on_both_sides_agree(self):
        a = make_posting("p1", location=None, description="")
        b = make_posting("p2", location=None, description="", url=a.url)
        scores = field_similarities(a, b)
        assert scores["location"] == 1.0
        assert scores["description"] == 1.0

    def test_unrelated_postings_score_low(self):
        a = make_posting("p1")
        b = make_posting(
            "p2",
            title="Registered Nurse",
            company="City Hospital",
            location="Boston, MA",
            description="Patient care on night shifts.",
            url="https://careers.hospital.org/rn",
        )
        assert posting_similarity(a, b) < 0.2

    def test_within_bounds(self):
        a = make_posting("p1")
        b = make_posting("p2", title="Python Engineer")
        assert 0.0 <= posting_similarity(a, b) <= 1.0
