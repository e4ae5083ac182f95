import logging
from logging import Logger


"""
Logger setup for tcgvault.
Every module logs through a child of the package logger, so one call to
setup() configures output for the whole service layer.

version: 0.1.0
"""

# LOGGER_NAME is used to identify the logger.
LOGGER_NAME = "tcgvault"

# package logger, import this anywhere
logger: Logger = logging.getLogger(LOGGER_NAME)


def get_logger(name: str) -> Logger:
    """
    Return a child logger, e.g. get_logger("repos") -> "tcgvault.repos".
    """
    return logger.getChild(name)


def setup(level: str = "INFO") -> None:
    """
    Setup the logger.
    """
    if logger.handlers:
        return  # already configured
    logger.setLevel(level.upper())

    fmt = "%(asctime)s %(levelname)s %(name)s %(message)s"
    h = logging.StreamHandler()
    h.setFormatter(logging.Formatter(fmt))
    logger.addHandler(h)

    # child loggers (tcgvault.*) propagate up to this handler only
    logger.propagate = False
