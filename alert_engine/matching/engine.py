"""Match scoring for postings against alert criteria.

The score is a weighted heuristic, not a probability:

| Dimension        | Weight |
|------------------|--------|
| keywords         | 40     |
| location         | 15     |
| salary           | 20     |
| company          | 10     |
| job_type         | 10     |
| experience_level | 5      |

Per-dimension contributions are clamped to their weight and summed, then
25 points are subtracted per exclusion keyword found. The total is rounded
half-up and clamped to [0, 100]. A posting that hits any exclusion keyword
is capped just below the neutral midpoint.
"""

import math
from typing import Iterable, List, Optional

from alert_engine.domain.models import Criteria, Posting
from alert_engine.logging import get_logger

from .models import DimensionScore, DimensionState, MatchResult
from .salary import extract_salary

logger = get_logger(__name__, component="matching")

KEYWORD_WEIGHT = 40.0
LOCATION_WEIGHT = 15.0
SALARY_WEIGHT = 20.0
COMPANY_WEIGHT = 10.0
JOB_TYPE_WEIGHT = 10.0
EXPERIENCE_WEIGHT = 5.0

EXCLUSION_PENALTY = 25.0
EXCLUDED_SCORE_CAP = 49
NEUTRAL_FRACTION = 0.5


def _either_contains(a: str, b: str) -> bool:
    a, b = a.lower(), b.lower()
    return a in b or b in a


class MatchScorer:
    """Scores postings against alert criteria and ranks them.

    Responsibilities:
    - Score each criteria dimension with an explicit state
    - Apply the exclusion penalty
    - Produce ordered human-readable reasons
    - Rank postings by score, keeping input order for ties
    """

    def score(self, posting: Posting, criteria: Criteria) -> MatchResult:
        """Score one posting against criteria.

        Args:
            posting: Posting to score
            criteria: Alert criteria

        Returns:
            MatchResult with a 0-100 score, reasons, and dimension breakdown
        """
        dimensions = [
            self._score_keywords(posting, criteria),
            self._score_location(posting, criteria),
            self._score_salary(posting, criteria),
            self._score_company(posting, criteria),
            self._score_job_type(posting, criteria),
            self._score_experience(posting, criteria),
        ]
        excluded = self._find_exclusions(posting, criteria)

        total = sum(d.contribution for d in dimensions) - EXCLUSION_PENALTY * len(excluded)
        score = min(100, max(0, math.floor(total + 0.5)))
        if excluded:
            score = min(score, EXCLUDED_SCORE_CAP)

        reasons = [d.reason for d in dimensions if d.reason]
        if excluded:
            reasons.append(f"Excluded: {', '.join(excluded)}")

        return MatchResult(
            posting=posting,
            score=score,
            reasons=reasons,
            dimensions=dimensions,
            excluded_terms=excluded,
        )

    def rank(self, postings: Iterable[Posting], criteria: Criteria) -> List[MatchResult]:
        """Score postings and sort them by score, highest first.

        The sort is stable, so equal scores keep their input order.
        """
        results = [self.score(posting, criteria) for posting in postings]
        results.sort(key=lambda r: r.score, reverse=True)

        logger.debug(
            "Ranked postings",
            extra={
                "event": "matching.rank.completed",
                "posting_count": len(results),
                "top_score": results[0].score if results else None,
            },
        )
        return results

    # Dimensions

    @staticmethod
    def _score_keywords(posting: Posting, criteria: Criteria) -> DimensionScore:
        if not criteria.keywords:
            return DimensionScore("keywords", KEYWORD_WEIGHT, DimensionState.UNCONSTRAINED, 1.0)

        haystack = " ".join([posting.title, posting.description, *posting.skills]).lower()
        matched = [keyword for keyword in criteria.keywords if keyword in haystack]
        fraction = len(matched) / len(criteria.keywords)

        if not matched:
            return DimensionScore("keywords", KEYWORD_WEIGHT, DimensionState.UNMATCHED, 0.0)

        state = DimensionState.MATCHED if fraction == 1.0 else DimensionState.PARTIAL
        return DimensionScore(
            "keywords", KEYWORD_WEIGHT, state, fraction, f"Keywords: {', '.join(matched)}"
        )

    @staticmethod
    def _score_location(posting: Posting, criteria: Criteria) -> DimensionScore:
        if not criteria.location:
            return DimensionScore("location", LOCATION_WEIGHT, DimensionState.UNCONSTRAINED, 1.0)

        wanted = criteria.location.lower()
        posting_location = posting.location or ""
        posting_remote = posting.is_remote or "remote" in posting_location.lower()

        if "remote" in wanted and posting_remote:
            return DimensionScore(
                "location",
                LOCATION_WEIGHT,
                DimensionState.MATCHED,
                1.0,
                f"Location: {posting.location or 'Remote'}",
            )

        if not posting.location:
            return DimensionScore(
                "location", LOCATION_WEIGHT, DimensionState.UNKNOWN, NEUTRAL_FRACTION
            )

        if _either_contains(posting.location, wanted):
            return DimensionScore(
                "location",
                LOCATION_WEIGHT,
                DimensionState.MATCHED,
                1.0,
                f"Location: {posting.location}",
            )

        return DimensionScore("location", LOCATION_WEIGHT, DimensionState.UNMATCHED, 0.0)

    @staticmethod
    def _score_salary(posting: Posting, criteria: Criteria) -> DimensionScore:
        if criteria.salary_min is None and criteria.salary_max is None:
            return DimensionScore("salary", SALARY_WEIGHT, DimensionState.UNCONSTRAINED, 1.0)

        value = extract_salary(posting.salary_text)
        if value is None:
            return DimensionScore("salary", SALARY_WEIGHT, DimensionState.UNKNOWN, NEUTRAL_FRACTION)

        fraction = 1.0
        if criteria.salary_min is not None and value < criteria.salary_min:
            shortfall = (criteria.salary_min - value) / criteria.salary_min
            fraction = max(0.0, 1.0 - shortfall)
        elif criteria.salary_max is not None and value > criteria.salary_max:
            if criteria.salary_max == 0:
                fraction = 0.0
            else:
                excess = (value - criteria.salary_max) / criteria.salary_max
                fraction = max(0.0, 1.0 - excess)

        if fraction == 1.0:
            return DimensionScore(
                "salary",
                SALARY_WEIGHT,
                DimensionState.MATCHED,
                1.0,
                f"Salary: {posting.salary_text}",
            )

        state = DimensionState.PARTIAL if fraction > 0 else DimensionState.UNMATCHED
        return DimensionScore("salary", SALARY_WEIGHT, state, fraction)

    @staticmethod
    def _score_company(posting: Posting, criteria: Criteria) -> DimensionScore:
        if not criteria.companies:
            return DimensionScore("company", COMPANY_WEIGHT, DimensionState.UNCONSTRAINED, 1.0)

        if any(_either_contains(posting.company, company) for company in criteria.companies):
            return DimensionScore(
                "company",
                COMPANY_WEIGHT,
                DimensionState.MATCHED,
                1.0,
                f"Company: {posting.company}",
            )
        return DimensionScore("company", COMPANY_WEIGHT, DimensionState.UNMATCHED, 0.0)

    @staticmethod
    def _score_optional_field(
        name: str,
        weight: float,
        label: str,
        value: Optional[str],
        wanted: List[str],
    ) -> DimensionScore:
        if not wanted:
            return DimensionScore(name, weight, DimensionState.UNCONSTRAINED, 1.0)
        if not value:
            return DimensionScore(name, weight, DimensionState.UNKNOWN, NEUTRAL_FRACTION)
        if any(_either_contains(value, term) for term in wanted):
            return DimensionScore(name, weight, DimensionState.MATCHED, 1.0, f"{label}: {value}")
        return DimensionScore(name, weight, DimensionState.UNMATCHED, 0.0)

    def _score_job_type(self, posting: Posting, criteria: Criteria) -> DimensionScore:
        return self._score_optional_field(
            "job_type", JOB_TYPE_WEIGHT, "Job Type", posting.job_type, criteria.job_types
        )

    def _score_experience(self, posting: Posting, criteria: Criteria) -> DimensionScore:
        return self._score_optional_field(
            "experience_level",
            EXPERIENCE_WEIGHT,
            "Experience",
            posting.experience_level,
            criteria.experience_levels,
        )

    @staticmethod
    def _find_exclusions(posting: Posting, criteria: Criteria) -> List[str]:
        if not criteria.exclude_keywords:
            return []
        haystack = " ".join([posting.title, posting.description, posting.company]).lower()
        return [keyword for keyword in criteria.exclude_keywords if keyword in haystack]
