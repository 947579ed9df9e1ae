"""Data models for duplicate detection results."""

from dataclasses import dataclass, field
from enum import Enum
from typing import List

from alert_engine.domain.models import Posting


class DuplicateReason(str, Enum):
    """Why a posting was judged a duplicate of an accepted one."""

    EXACT_URL_MATCH = "exact_url_match"
    EXACT_TITLE_COMPANY_MATCH = "exact_title_company_match"
    SAME_JOB_ID = "same_job_id"
    HIGH_SIMILARITY_MATCH = "high_similarity_match"


@dataclass
class DuplicateMatch:
    """A posting that collapsed into an earlier accepted posting.

    Attributes:
        posting: The dropped posting
        duplicate_of: The accepted posting it duplicates
        similarity: Similarity used for the decision (1.0 for exact matches)
        reason: Which rule fired
    """

    posting: Posting
    duplicate_of: Posting
    similarity: float
    reason: DuplicateReason


@dataclass
class DedupResult:
    """Output of a deduplication pass.

    Attributes:
        unique: Accepted postings in input order
        duplicates: Dropped postings with the posting each one duplicates
    """

    unique: List[Posting] = field(default_factory=list)
    duplicates: List[DuplicateMatch] = field(default_factory=list)

    @property
    def duplicate_count(self) -> int:
        return len(self.duplicates)


@dataclass
class PostingGroup:
    """A cluster of postings judged to represent the same real-world job.

    Attributes:
        representative: Member with the highest confidence (newest scrape on ties)
        members: All members, seed first
    """

    representative: Posting
    members: List[Posting] = field(default_factory=list)

    @property
    def size(self) -> int:
        return len(self.members)
