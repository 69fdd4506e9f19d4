"""
Post and Comment records for the target page.
"""
from typing import Optional
from pydantic import BaseModel, Field
from datetime import datetime
from .base import NOT_SPECIFIED, UNKNOWN_AUTHOR, utcnow


class CommentRecord(BaseModel):
    """Comment left on the target post."""

    name: str = Field(NOT_SPECIFIED, description="Comment author name")
    profile_url: Optional[str] = Field(None, description="Comment author profile URL")
    headline: str = Field(NOT_SPECIFIED, description="Comment author headline")
    comment_text: str = Field(..., description="Comment content")
    commented_at: Optional[str] = Field(None, description="Comment timestamp as shown or ISO datetime")
    likes_count: int = Field(0, description="Number of reactions on the comment")
    post_author: str = Field(UNKNOWN_AUTHOR, description="Author of the commented post")


class PostRecord(BaseModel):
    """The post whose engagement was harvested."""

    author: str = Field(UNKNOWN_AUTHOR, description="Post author name")
    author_profile_url: Optional[str] = Field(None, description="Post author profile URL")
    content: str = Field("", description="Post content/text")
    post_url: Optional[str] = Field(None, description="Full URL to the post")
    posted_at: datetime = Field(default_factory=utcnow, description="When the post was recorded")
    likes_count: int = Field(0, description="Number of reactions")
    comments_count: int = Field(0, description="Number of comments")

    model_config = {
        "json_schema_extra": {
            "example": {
                "author": "John Smith",
                "content": "Exciting news about our new product launch!",
                "likes_count": 150,
                "comments_count": 25
            }
        }
    }
