"""Logging setup."""
import logging
import sys
from typing import Optional

from src.config import config

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

# Chatty libraries that log every request at INFO
QUIET_LOGGERS = ("httpx", "httpcore", "hpack", "apscheduler", "asyncio")


def setup_logging(level: Optional[str] = None) -> None:
    """Configure root logging once for CLI, service and API entry points."""
    level_name = (level or config.LOG_LEVEL or "INFO").upper()
    root = logging.getLogger()
    root.setLevel(getattr(logging, level_name, logging.INFO))

    if not any(getattr(h, "_raffle_handler", False) for h in root.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._raffle_handler = True
        root.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
