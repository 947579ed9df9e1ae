"""Template and push payload builders."""

from typing import Any, Dict, List, Sequence

from alert_engine.domain.models import Owner, Posting
from alert_engine.matching.models import MatchResult
from alert_engine.utils.timestamps import format_timestamp


def posting_summary(posting: Posting) -> Dict[str, Any]:
    """Compact, JSON-safe view of a posting for templates and push data."""
    return {
        "id": posting.id,
        "title": posting.title,
        "company": posting.company,
        "location": posting.location or ("Remote" if posting.is_remote else "Not specified"),
        "salary": posting.salary_text,
        "url": posting.url,
        "posted_at": format_timestamp(posting.posted_at),
    }


def build_alert_context(
    owner: Owner, alert_name: str, matches: Sequence[MatchResult], subject_prefix: str = "Job Alert"
) -> Dict[str, Any]:
    """Build the template context for a job alert email.

    Returns:
        Dict with owner_name, alert_name, subject_prefix, match_count, and
        matches (each a posting summary plus score and reasons)
    """
    items: List[Dict[str, Any]] = []
    for match in matches:
        item = posting_summary(match.posting)
        item["score"] = match.score
        item["reasons"] = list(match.reasons)
        items.append(item)

    return {
        "owner_name": owner.name or str(owner.email).split("@")[0],
        "alert_name": alert_name,
        "subject_prefix": subject_prefix,
        "match_count": len(items),
        "matches": items,
    }


def build_alert_push_payload(
    owner_id: int, count: int, alert_name: str, top_postings: Sequence[Posting]
) -> Dict[str, Any]:
    """Payload for the summary push of an alert cycle."""
    noun = "job" if count == 1 else "jobs"
    return {
        "user_id": owner_id,
        "type": "job_alert",
        "title": f"{count} new {noun} for {alert_name}",
        "body": ", ".join(f"{p.title} at {p.company}" for p in top_postings),
        "data": {
            "alert_name": alert_name,
            "count": count,
            "postings": [posting_summary(p) for p in top_postings],
        },
    }


def build_match_push_payload(owner_id: int, posting: Posting, score: int) -> Dict[str, Any]:
    """Payload for an individual high-match push."""
    return {
        "user_id": owner_id,
        "type": "job_match",
        "title": f"{score}% match: {posting.title}",
        "body": f"{posting.company} - {posting_summary(posting)['location']}",
        "data": {"score": score, "posting": posting_summary(posting)},
    }
