"""Duplicate detection for postings gathered from several sources.

This module provides:
- Similarity functions (normalize, tokenize, jaccard, url_similarity)
- Deduplicator: incremental duplicate detection, grouping, and merging
- Result models (DedupResult, DuplicateMatch, PostingGroup)
"""

from .engine import Deduplicator
from .models import DedupResult, DuplicateMatch, DuplicateReason, PostingGroup
from .similarity import (
    field_similarities,
    jaccard,
    normalize,
    posting_similarity,
    tokenize,
    url_similarity,
)

__all__ = [
    "Deduplicator",
    "DedupResult",
    "DuplicateMatch",
    "DuplicateReason",
    "PostingGroup",
    "normalize",
    "tokenize",
    "jaccard",
    "url_similarity",
    "field_similarities",
    "posting_similarity",
]
