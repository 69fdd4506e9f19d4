"""
Result aggregator: merges enriched profiles into the final result envelope.
"""
import logging
from datetime import datetime
from typing import Dict, List, Optional
from engagement_insights.models import (
    CommentRecord,
    EnrichedProfile,
    PostRecord,
    ScrapeResult,
    ScrapeStats,
)
from engagement_insights.models.base import utcnow

logger = logging.getLogger(__name__)


def dedupe_profiles(profiles: List[EnrichedProfile]) -> List[EnrichedProfile]:
    """Unique by profile URL; the last record for a URL wins, first position kept."""
    merged: Dict[str, EnrichedProfile] = {}
    for profile in profiles:
        merged[profile.profile_url] = profile
    return list(merged.values())


def aggregate(
    source_url: str,
    enriched: List[EnrichedProfile],
    post: Optional[PostRecord] = None,
    comments: Optional[List[CommentRecord]] = None,
    started_at: Optional[datetime] = None
) -> ScrapeResult:
    """Assemble a successful ScrapeResult, stamped at completion time."""
    scraped_at = utcnow()
    profiles = dedupe_profiles(enriched)
    comments = comments or []

    if len(profiles) < len(enriched):
        logger.debug(f"Dropped {len(enriched) - len(profiles)} duplicate profile(s)")

    stats = ScrapeStats(
        total_profiles=len(profiles),
        total_posts=1 if post else 0,
        total_comments=len(comments),
        extraction_time=(scraped_at - started_at).total_seconds() if started_at else 0.0
    )

    return ScrapeResult(
        success=True,
        message=f"Scraped {stats.total_profiles} profile(s) and {stats.total_comments} comment(s)",
        source_url=source_url,
        scraped_at=scraped_at,
        profiles=profiles,
        comments=comments,
        post=post,
        stats=stats
    )
