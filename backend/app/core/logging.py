"""
Logging Configuration

One console handler on the root logger, shared by the API and the
expert discovery pipeline. Every module logs through get_logger(__name__),
so pipeline stages show up as app.services.experts.<stage>.
"""
import logging
import sys
from typing import Union

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# One search issues hundreds of OpenAlex and Semantic Scholar requests;
# these libraries would otherwise log each one.
QUIET_LOGGERS = ("httpx", "httpcore", "openai", "redis", "slowapi", "langchain_core")


def setup_logging(level: Union[str, int] = "INFO") -> None:
    """
    Configure the root logger.

    Args:
        level: Level name (DEBUG, INFO, ...) or numeric level.
            Unknown names fall back to INFO.
    """
    if isinstance(level, int):
        log_level = level
    else:
        log_level = getattr(logging, level.upper(), logging.INFO)
        if not isinstance(log_level, int):
            log_level = logging.INFO

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
    handler.setLevel(log_level)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()
    root_logger.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


setup_logging()
