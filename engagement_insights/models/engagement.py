"""
Navigation target, engagement source and identity reference models.
"""
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field
from datetime import datetime
from .base import UNKNOWN_AUTHOR, utcnow


class TargetKind(str, Enum):
    """Kind of page a scrape job targets."""

    PROFILE = "profile"
    POST = "post"
    AUTO = "auto"


class NavigationTarget(BaseModel):
    """Target page of a scrape job."""

    url: str = Field(..., description="Target page URL")
    kind: TargetKind = Field(TargetKind.AUTO, description="Resolved page kind")


class EngagementSource(BaseModel):
    """A reaction-count affordance found on the target page.

    ``index`` is the value written to the element's ``data-like-index``
    attribute and is only meaningful within the navigation that produced it.
    """

    index: int = Field(..., description="Transient DOM tag for re-locating the affordance")
    selector: str = Field("", description="Selector that matched the affordance")
    nth: int = Field(0, description="Position among that selector's matches")
    likes_count: int = Field(..., description="Visible reaction count")
    author: str = Field(UNKNOWN_AUTHOR, description="Owning post author name")
    author_profile_url: Optional[str] = Field(None, description="Owning post author profile URL")
    text: str = Field("", description="Visible affordance text")

    @property
    def content_summary(self) -> str:
        return f"Post with {self.likes_count} likes"


class IdentityReference(BaseModel):
    """Lightweight pointer to a person profile found in the reactions overlay."""

    name: str = Field(..., description="Display name as shown in the overlay")
    profile_url: str = Field(..., description="Canonical profile URL")
    discovered_at: datetime = Field(default_factory=utcnow, description="When the identity was harvested")
