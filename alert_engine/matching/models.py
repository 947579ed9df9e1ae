"""Data models for match scoring.

Each criteria dimension is scored into a DimensionScore whose state makes
the neutral cases explicit: a dimension the alert does not constrain earns
its full weight, while a constrained dimension the posting says nothing
about earns half.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from alert_engine.domain.models import Posting


class DimensionState(str, Enum):
    """How a single criteria dimension related to a posting."""

    UNCONSTRAINED = "unconstrained"
    MATCHED = "matched"
    PARTIAL = "partial"
    UNMATCHED = "unmatched"
    UNKNOWN = "unknown"


@dataclass
class DimensionScore:
    """Score for one criteria dimension.

    Attributes:
        name: Dimension name (keywords, location, salary, company, job_type, experience_level)
        weight: Maximum contribution of this dimension
        state: How the dimension related to the posting
        fraction: Share of the weight earned, 0.0 to 1.0
        reason: Human-readable reason, None when the dimension adds nothing worth saying
    """

    name: str
    weight: float
    state: DimensionState
    fraction: float
    reason: Optional[str] = None

    @property
    def contribution(self) -> float:
        """Weighted contribution, clamped to [0, weight]."""
        return self.weight * min(1.0, max(0.0, self.fraction))


@dataclass
class MatchResult:
    """Result of scoring a posting against alert criteria.

    Attributes:
        posting: The scored posting
        score: Final score, integer 0-100
        reasons: Ordered human-readable contributing factors
        dimensions: Per-dimension breakdown
        excluded_terms: Exclusion keywords found in the posting
    """

    posting: Posting
    score: int
    reasons: List[str] = field(default_factory=list)
    dimensions: List[DimensionScore] = field(default_factory=list)
    excluded_terms: List[str] = field(default_factory=list)

    def is_high_match(self, threshold: int = 85) -> bool:
        """Whether the score qualifies for an individual match notification."""
        return self.score >= threshold

    def dimension(self, name: str) -> Optional[DimensionScore]:
        """Look up one dimension's score by name."""
        for dimension in self.dimensions:
            if dimension.name == name:
                return dimension
        return None
