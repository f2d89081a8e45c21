# recruitflow/core/logging_config.py
import logging

from recruitflow.core.config import Settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(settings: Settings) -> None:
    """Set up root logging from LOG_LEVEL"""
    level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)
    logging.basicConfig(level=level, format=LOG_FORMAT)
    logging.getLogger("recruitflow").setLevel(level)
    # the HTTP client logs every request line at INFO
    logging.getLogger("httpx").setLevel(max(level, logging.WARNING))
