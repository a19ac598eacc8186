"""Application logger"""

import logging
import sys

from config import settings

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"


def setup_logger(name: str = "titan_editor", level: str = settings.LOG_LEVEL) -> logging.Logger:
    """
    Create (or fetch) the shared application logger.

    A single stream handler is attached the first time the logger is
    requested; repeated calls return the same configured instance.
    """
    log = logging.getLogger(name)

    if not log.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%H:%M:%S"))
        log.addHandler(handler)

    log.setLevel(getattr(logging, level.upper(), logging.INFO))
    return log


logger = setup_logger()
