"""Duplicate detection, grouping, and merging for postings.

Sources frequently list the same job more than once (reposts, mirrored
boards, tracking parameters). The Deduplicator collapses those into a
single accepted posting before scoring.
"""

from datetime import datetime, timezone
from typing import Iterable, List, Optional

from alert_engine.domain.models import Posting
from alert_engine.logging import get_logger

from .models import DedupResult, DuplicateMatch, DuplicateReason, PostingGroup
from .similarity import field_similarities, normalize, posting_similarity

logger = get_logger(__name__, component="dedup")

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


class Deduplicator:
    """Collapses a batch of postings into unique postings plus a duplicate list.

    Thresholds default to the values used for high-similarity matching: an
    overall weighted similarity of at least 0.8 with title above 0.85,
    company above 0.9, and location above 0.8.
    """

    def __init__(
        self,
        similarity_threshold: float = 0.8,
        title_threshold: float = 0.85,
        company_threshold: float = 0.9,
        location_threshold: float = 0.8,
    ) -> None:
        self.similarity_threshold = similarity_threshold
        self.title_threshold = title_threshold
        self.company_threshold = company_threshold
        self.location_threshold = location_threshold

    def find_duplicates(self, postings: Iterable[Posting]) -> DedupResult:
        """Deduplicate postings incrementally in input order.

        Each posting is compared only against postings already accepted into
        ``unique``. Rules are checked in order per accepted posting:
        1. Exact URL match
        2. Normalized title and company both equal
        3. Same posting id
        4. High weighted similarity with per-field thresholds

        Args:
            postings: Postings in preference order (earlier wins)

        Returns:
            DedupResult with unique postings and the duplicate list
        """
        result = DedupResult()

        for posting in postings:
            match = self._match_against(posting, result.unique)
            if match is None:
                result.unique.append(posting)
            else:
                result.duplicates.append(match)

        logger.debug(
            "Deduplication complete",
            extra={
                "event": "dedup.completed",
                "unique_count": len(result.unique),
                "duplicate_count": result.duplicate_count,
            },
        )
        return result

    def _match_against(
        self, posting: Posting, accepted: List[Posting]
    ) -> Optional[DuplicateMatch]:
        title = normalize(posting.title)
        company = normalize(posting.company)

        for existing in accepted:
            if posting.url == existing.url:
                return DuplicateMatch(posting, existing, 1.0, DuplicateReason.EXACT_URL_MATCH)

            if title == normalize(existing.title) and company == normalize(existing.company):
                return DuplicateMatch(
                    posting, existing, 1.0, DuplicateReason.EXACT_TITLE_COMPANY_MATCH
                )

            if posting.id == existing.id:
                return DuplicateMatch(
                    posting,
                    existing,
                    posting_similarity(posting, existing),
                    DuplicateReason.SAME_JOB_ID,
                )

            if self._is_high_similarity(posting, existing):
                return DuplicateMatch(
                    posting,
                    existing,
                    posting_similarity(posting, existing),
                    DuplicateReason.HIGH_SIMILARITY_MATCH,
                )

        return None

    def _is_high_similarity(self, a: Posting, b: Posting) -> bool:
        if posting_similarity(a, b) < self.similarity_threshold:
            return False
        fields = field_similarities(a, b)
        return (
            fields["title"] > self.title_threshold
            and fields["company"] > self.company_threshold
            and fields["location"] > self.location_threshold
        )

    def group_similar(self, postings: Iterable[Posting], threshold: float = 0.7) -> List[PostingGroup]:
        """Partition postings into disjoint groups of similar postings.

        The first unprocessed posting seeds each group; later postings join
        when their weighted similarity to the seed is at least ``threshold``.

        Args:
            postings: Postings to group
            threshold: Minimum weighted similarity to the seed

        Returns:
            Groups in seed order
        """
        remaining = list(postings)
        groups: List[PostingGroup] = []

        while remaining:
            seed = remaining.pop(0)
            members = [seed]
            leftover = []
            for candidate in remaining:
                if posting_similarity(seed, candidate) >= threshold:
                    members.append(candidate)
                else:
                    leftover.append(candidate)
            remaining = leftover
            groups.append(PostingGroup(representative=self._pick_representative(members), members=members))

        return groups

    @staticmethod
    def _pick_representative(members: List[Posting]) -> Posting:
        # max() keeps the first of equal keys, so seed order breaks full ties.
        return max(members, key=lambda p: (p.confidence, p.scraped_at or _EPOCH))

    def merge(self, primary: Posting, duplicates: List[Posting]) -> Posting:
        """Merge information from duplicates into a copy of the primary posting.

        - tags: union, primary's order first
        - requirements, benefits: the longest list among all members
        - confidence: maximum
        - description: the longest
        - salary: primary's, else the first duplicate that has one

        Inputs are not mutated.
        """
        members = [primary, *duplicates]

        tags: List[str] = []
        for member in members:
            for tag in member.tags:
                if tag not in tags:
                    tags.append(tag)

        salary_text = primary.salary_text
        if not salary_text:
            salary_text = next((d.salary_text for d in duplicates if d.salary_text), None)

        return primary.model_copy(
            update={
                "tags": tags,
                "requirements": list(max((m.requirements for m in members), key=len)),
                "benefits": list(max((m.benefits for m in members), key=len)),
                "confidence": max(m.confidence for m in members),
                "description": max((m.description for m in members), key=len),
                "salary_text": salary_text,
            }
        )
