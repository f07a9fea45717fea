"""Centralized logging configuration."""

import logging

from config import settings

# Verbosity count from the command line mapped onto a logging level.
_VERBOSITY_LEVELS = {
    1: logging.INFO,
    2: logging.DEBUG,
}


def level_for_verbosity(verbosity: int) -> int:
    """Map a ``-v`` count to a logging level.

    Zero falls back to ``settings.LOG_LEVEL``; anything past two is DEBUG.
    """
    if verbosity <= 0:
        return getattr(logging, settings.LOG_LEVEL)
    return _VERBOSITY_LEVELS.get(verbosity, logging.DEBUG)


def setup_logging(verbosity: int = 0) -> None:
    """Configure logging for the application.

    Log records go to stderr so they never mix with the journal written
    to stdout. Noisy third-party loggers are pinned to WARNING.
    """
    logging.basicConfig(
        format="%(asctime)s %(levelname)-8s %(name)s  %(message)s",
        datefmt="%H:%M:%S",
        level=level_for_verbosity(verbosity),
        force=True,
    )

    for name in (
        "httpx",
        "httpcore",
        "keyring",
    ):
        logging.getLogger(name).setLevel(logging.WARNING)
