"""Logging configuration: a file log that stays out of the terminal game screen."""

import logging
from pathlib import Path

from .config import LOG_PATH

APP_LOGGER_NAME = "song_guess"


def configure_spotipy_logging() -> None:
    """Reduce Spotipy logger noise so gameplay output stays readable."""
    for logger_name in ("spotipy", "spotipy.client", "spotipy.oauth2"):
        logger = logging.getLogger(logger_name)
        logger.setLevel(logging.CRITICAL)
        logger.propagate = False


def configure_logging(level: str = "INFO", path: Path = LOG_PATH) -> None:
    """Attach a single file handler to the application logger (idempotent)."""
    configure_spotipy_logging()

    logger = logging.getLogger(APP_LOGGER_NAME)
    logger.setLevel(level.upper())
    if logger.handlers:
        return

    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s: %(name)s: %(message)s"))
    logger.addHandler(handler)
    logger.propagate = False
