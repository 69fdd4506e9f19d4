"""
Shared model helpers.
"""
from datetime import datetime, timezone


NOT_SPECIFIED = "Not specified"
UNKNOWN_AUTHOR = "Unknown"


def utcnow() -> datetime:
    """Timezone-aware current UTC time."""
    return datetime.now(timezone.utc)
