"""
Shared helpers.
"""
import logging
import sys

from app.core import config


_LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def _configure_app_logger() -> logging.Logger:
    logger = logging.getLogger("app")
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(_LOG_FORMAT))
        logger.addHandler(handler)
        logger.setLevel(config.LOG_LEVEL)
    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Get a module logger under the application's "app" logger.

    Usage:
        log = get_logger(__name__)
        log.info("Running server")
    """
    _configure_app_logger()
    if name != "app" and not name.startswith("app."):
        name = f"app.{name}"
    return logging.getLogger(name)
