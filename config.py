"""
Configuration settings for the Engagement Insights scraping engine.
"""
from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    """Engine settings loaded from environment variables."""

    # Application Configuration
    debug: bool = True

    # Browser Configuration
    playwright_headless: bool = True
    user_agent: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    )
    viewport_width: int = 1920
    viewport_height: int = 1080

    # Session Configuration
    session_file: str = "linkedin_sessions.json"
    session_token_prefix: str = "AQED"
    keep_open_timeout: float = 600.0  # 10 minutes

    # Timeouts (seconds)
    scraper_timeout: int = 60
    overlay_timeout: float = 10.0
    profile_card_timeout: float = 15.0

    # Pacing (seconds) - empirically tuned, see DESIGN.md
    page_settle_delay: float = 5.0
    scroll_settle_delay: float = 2.0
    click_settle_delay: float = 2.0
    modal_scroll_delay: float = 2.5
    profile_settle_delay: float = 3.0
    experience_scroll_delay: float = 1.0
    inter_profile_delay: float = 6.0
    retry_backoff: float = 5.0
    pacing_jitter: float = 0.0  # random extra seconds added to every pause

    # Scroll bounds
    discovery_scroll_steps: int = 3
    modal_max_scroll_attempts: int = 15
    modal_scroll_increment: int = 800
    modal_stall_limit: int = 3
    experience_scroll_steps: int = 5

    # Scraper Configuration
    max_identities: int = 50
    max_comments_per_post: int = 50
    enrich_max_attempts: int = 3

    # Optional fallback token when no session store is configured
    linkedin_li_at: Optional[str] = None

    class Config:
        env_file = ".env"
        case_sensitive = False


settings = Settings()
