import logging
import os
import sys

LOG_FORMAT = "[%(asctime)s] %(levelname)s %(name)s - %(message)s"


def get_logger(name: str = "evm", level=None) -> logging.Logger:
    """
    Logger with a single stdout handler. Level comes from `level`, else the
    EVM_LOG_LEVEL env var, else INFO. Records do not propagate to the root
    logger.
    """
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger
    logger.propagate = False
    logger.setLevel(level or os.environ.get("EVM_LOG_LEVEL", "INFO").upper())
    h = logging.StreamHandler(sys.stdout)
    h.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(h)
    return logger


def set_level(level: str) -> None:
    """Apply a config-driven level to every logger created by get_logger."""
    for logger in logging.Logger.manager.loggerDict.values():
        if isinstance(logger, logging.Logger) and logger.handlers:
            logger.setLevel(level.upper())
