"""Scoring and ranking of postings against alert criteria.

This module provides:
- MatchScorer: weighted per-dimension scoring with exclusion penalty
- MatchResult, DimensionScore, DimensionState: scoring results
- extract_salary: salary text heuristic
"""

from .engine import MatchScorer
from .models import DimensionScore, DimensionState, MatchResult
from .salary import extract_salary

__all__ = [
    "MatchScorer",
    "MatchResult",
    "DimensionScore",
    "DimensionState",
    "extract_salary",
]
