"""
Session model for stored authentication tokens.
"""
from typing import Optional
from pydantic import BaseModel, Field
from datetime import datetime


class Session(BaseModel):
    """Stored LinkedIn session token, read-only for the engine."""

    token: str = Field(..., description="li_at authentication cookie value")
    owner_label: Optional[str] = Field(None, description="Who the token belongs to")
    last_used_at: Optional[datetime] = Field(None, description="Last time the token was used")
    is_active: bool = Field(True, description="Whether the token may be used")

    model_config = {
        "populate_by_name": True,
        "json_schema_extra": {
            "example": {
                "token": "AQEDAR...",
                "owner_label": "research-account",
                "last_used_at": "2024-01-15T10:30:00Z",
                "is_active": True
            }
        }
    }

    def has_valid_format(self, prefix: str) -> bool:
        """True when the token carries the expected structural prefix."""
        return bool(self.token) and self.token.strip().startswith(prefix)
