import logging
from typing import Optional

from framealign.core.config import settings


def setup_logging(level: Optional[str] = None) -> None:
    """Configure root logging for applications embedding framealign."""
    logging.basicConfig(
        level=getattr(logging, (level or settings.LOG_LEVEL).upper()),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    logging.getLogger(__name__).debug(f"Logging configured for {settings.APP_NAME}")
