"""
Enriched profile model for people who reacted to a post.
"""
from pydantic import BaseModel, Field
from datetime import datetime
from .base import NOT_SPECIFIED, UNKNOWN_AUTHOR, utcnow


class EnrichedProfile(BaseModel):
    """Structured professional fields extracted from a profile page."""

    name: str = Field(NOT_SPECIFIED, description="Canonical profile name")
    job_title: str = Field(NOT_SPECIFIED, description="Current job title")
    company: str = Field(NOT_SPECIFIED, description="Current employer")
    profile_url: str = Field(..., description="Canonical profile URL")
    post_author: str = Field(UNKNOWN_AUTHOR, description="Author of the post that was reacted to")
    post_content: str = Field("", description="Summary of the post that was reacted to")
    liked_at: datetime = Field(default_factory=utcnow, description="When the reaction was discovered")

    model_config = {
        "json_schema_extra": {
            "example": {
                "name": "Jane Doe",
                "job_title": "Senior Engineer",
                "company": "Acme Robotics Inc",
                "profile_url": "https://www.linkedin.com/in/jane-doe/",
                "post_author": "John Smith",
                "post_content": "Post with 42 likes"
            }
        }
    }

    @property
    def is_degraded(self) -> bool:
        return self.job_title == NOT_SPECIFIED and self.company == NOT_SPECIFIED
