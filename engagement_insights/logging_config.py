"""
Structured logging setup shared by the engine and its callers.
"""
import logging
from typing import Optional
from config import Settings, settings as default_settings


LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def configure_logging(settings: Optional[Settings] = None) -> None:
    """Configure root logging once for the host process."""
    settings = settings or default_settings
    logging.basicConfig(
        level=logging.DEBUG if settings.debug else logging.INFO,
        format=LOG_FORMAT,
        datefmt=DATE_FORMAT
    )
    # asyncio reports every slow browser callback at DEBUG
    logging.getLogger("asyncio").setLevel(logging.WARNING)
