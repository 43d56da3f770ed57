"""Logging setup for command entry points.

Library modules only create loggers; configure_logging is called once by a
command before it does any work.
"""

import logging
import os

from houston.lib.constants import LOG_LEVEL_ENV

LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"
LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


def resolve_level(level: str | None = None) -> int:
    """Pick the level from the argument, then the environment, else info."""
    name = (level or os.environ.get(LOG_LEVEL_ENV) or "info").strip().lower()
    if name not in LEVELS:
        raise ValueError(f"Unknown log level {name!r}; expected one of {', '.join(LEVELS)}")
    return LEVELS[name]


def configure_logging(level: str | None = None) -> logging.Logger:
    """Attach a stderr handler to the houston logger (once) and set its level."""
    logger = logging.getLogger("houston")
    logger.setLevel(resolve_level(level))
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
    return logger
