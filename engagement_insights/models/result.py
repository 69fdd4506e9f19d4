"""
Scrape result envelope, job request and browser status models.
"""
from enum import Enum
from typing import Optional, List, Dict, Any
from pydantic import BaseModel, Field
from datetime import datetime
from .base import utcnow
from .engagement import TargetKind
from .post import CommentRecord, PostRecord
from .profile import EnrichedProfile


class OutputFormat(str, Enum):
    JSON = "json"
    CSV = "csv"


class JobRequest(BaseModel):
    """A single scrape job as requested by a caller."""

    url: str = Field(..., description="Target profile or post URL")
    target_kind: TargetKind = Field(TargetKind.AUTO, description="Page kind, inferred from URL when auto")
    max_identities: Optional[int] = Field(None, ge=1, description="Maximum identities to enrich")
    keep_session_open: bool = Field(False, description="Leave the browser running after the job")
    output_format: OutputFormat = Field(OutputFormat.JSON, description="Export format for the result")
    scrape_comments: bool = Field(True, description="Also record comments on the target post")


class ScrapeStats(BaseModel):
    total_profiles: int = 0
    total_posts: int = 0
    total_comments: int = 0
    extraction_time: float = Field(0.0, description="Seconds from job start to aggregation")


class ScrapeResult(BaseModel):
    """Outcome of one scrape job."""

    success: bool = Field(False, description="False only on fatal failure")
    error: Optional[str] = Field(None, description="Human-readable failure cause")
    message: Optional[str] = Field(None, description="Informational message")
    source_url: str = Field(..., description="Target URL of the job")
    scraped_at: datetime = Field(default_factory=utcnow, description="When the result was assembled")
    profiles: List[EnrichedProfile] = Field(default_factory=list, description="People who reacted")
    comments: List[CommentRecord] = Field(default_factory=list, description="Comments on the target post")
    post: Optional[PostRecord] = Field(None, description="Target post, if one was identified")
    stats: ScrapeStats = Field(default_factory=ScrapeStats)

    @classmethod
    def failure(cls, source_url: str, error: str) -> "ScrapeResult":
        return cls(success=False, error=error, source_url=source_url)

    def to_response(self) -> Dict[str, Any]:
        """Response body for a request-handling collaborator."""
        if not self.success:
            return {"success": False, "error": self.error}
        return {
            "success": True,
            "message": self.message,
            "data": {
                "likes": [p.model_dump(mode="json") for p in self.profiles],
                "comments": [c.model_dump(mode="json") for c in self.comments],
                "post": self.post.model_dump(mode="json") if self.post else None,
                "profile_url": self.source_url,
                "scraped_at": self.scraped_at.isoformat(),
            },
            "stats": self.stats.model_dump(),
        }


class BrowserStatus(BaseModel):
    """Health view of the browsing process."""

    is_connected: bool = False
    is_initialized: bool = False
    current_url: Optional[str] = None
