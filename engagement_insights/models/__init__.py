"""
Data models for the scraping engine.
"""
from .base import NOT_SPECIFIED, UNKNOWN_AUTHOR
from .session import Session
from .engagement import TargetKind, NavigationTarget, EngagementSource, IdentityReference
from .profile import EnrichedProfile
from .post import CommentRecord, PostRecord
from .result import OutputFormat, JobRequest, ScrapeStats, ScrapeResult, BrowserStatus

__all__ = [
    "NOT_SPECIFIED",
    "UNKNOWN_AUTHOR",
    "Session",
    "TargetKind",
    "NavigationTarget",
    "EngagementSource",
    "IdentityReference",
    "EnrichedProfile",
    "CommentRecord",
    "PostRecord",
    "OutputFormat",
    "JobRequest",
    "ScrapeStats",
    "ScrapeResult",
    "BrowserStatus",
]
