"""
Logging configuration
"""
import logging
import sys
from typing import Optional

from app.core.config import settings

# Chatty third-party loggers and the level they are capped at
_QUIET_LOGGERS = {
    "urllib3": logging.WARNING,  # razorpay client HTTP calls
    "pymongo": logging.WARNING,
    "redis": logging.WARNING,
}


def setup_logging(level: Optional[int] = None) -> None:
    """
    Configure application logging on stdout

    Args:
        level: Logging level; DEBUG when settings.DEBUG is on, INFO otherwise
    """
    if level is None:
        level = logging.DEBUG if settings.DEBUG else logging.INFO

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    logging.getLogger("uvicorn").setLevel(level)
    logging.getLogger("uvicorn.access").setLevel(level)

    for name, quiet_level in _QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(max(level, quiet_level))
