"""
Read-only repository for stored LinkedIn session tokens.
"""
import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, List, Optional
from pydantic import ValidationError
from config import Settings, settings as default_settings
from engagement_insights.models import Session

logger = logging.getLogger(__name__)

AUTH_COOKIE_NAME = "li_at"

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def _sort_key(session: Session) -> datetime:
    if session.last_used_at is None:
        return _EPOCH
    if session.last_used_at.tzinfo is None:
        return session.last_used_at.replace(tzinfo=timezone.utc)
    return session.last_used_at


def sessions_from_cookies(cookies: List[dict]) -> List[Session]:
    """Sessions from a browser cookie export (list or Playwright storage state)."""
    sessions = []
    for cookie in cookies:
        if cookie.get("name") != AUTH_COOKIE_NAME or not cookie.get("value"):
            continue
        if "linkedin.com" not in cookie.get("domain", ".linkedin.com"):
            continue
        sessions.append(Session(token=cookie["value"], owner_label="cookie export"))
    return sessions


class SessionRepository:
    """Loads session records from a JSON file kept by the session store."""

    def __init__(self, path: Optional[str] = None, settings: Optional[Settings] = None):
        self.settings = settings or default_settings
        self.path = Path(path or self.settings.session_file)

    def _parse(self, data: Any) -> List[Session]:
        if isinstance(data, dict) and "cookies" in data:
            # Playwright storage-state format
            return sessions_from_cookies(data["cookies"])
        if isinstance(data, dict):
            data = data.get("sessions", [data])
        if not isinstance(data, list):
            return []

        if any(isinstance(item, dict) and "name" in item and "value" in item for item in data):
            return sessions_from_cookies(data)

        sessions = []
        for item in data:
            try:
                sessions.append(Session.model_validate(item))
            except ValidationError as e:
                logger.warning(f"Skipping malformed session record: {e.error_count()} error(s)")
        return sessions

    def load(self) -> List[Session]:
        """All session records in the file, or an empty list if there is none."""
        if not self.path.exists():
            logger.debug(f"No session file at {self.path}")
            return []
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            logger.error(f"Session file {self.path} is not valid JSON: {e}")
            return []
        return self._parse(data)

    def get_active_session(self) -> Optional[Session]:
        """
        The most recently used active session.

        Falls back to a token configured through ``LINKEDIN_LI_AT`` when the
        file holds no active record.
        """
        active = [s for s in self.load() if s.is_active and s.token]
        if active:
            session = max(active, key=_sort_key)
            logger.info(f"Using session {session.owner_label or 'unlabelled'}")
            return session
        if self.settings.linkedin_li_at:
            logger.info("Using session token from environment")
            return Session(token=self.settings.linkedin_li_at, owner_label="environment")
        logger.warning("No active LinkedIn session available")
        return None


session_repository = SessionRepository()
