# utils/logger.py
import logging
import os
import sys
from typing import Set

LOG_FORMAT = '[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s'
LOG_DATEFMT = '%Y-%m-%d %H:%M:%S'

# Names of loggers that carry our console handler; set_log_level walks these
_managed: Set[str] = set()


def parse_log_level(level_name: str) -> int:
    """'debug' / 'INFO' / ... -> logging level, INFO for anything unknown"""
    level = logging.getLevelName(str(level_name).strip().upper())
    return level if isinstance(level, int) else logging.INFO


def get_log_level() -> int:
    try:
        from config import config
        level_name = config.LOG_LEVEL
    except ImportError:
        level_name = os.environ.get("LOG_LEVEL", "INFO")
    return parse_log_level(level_name)


def setup_logger(name: str = "screenwatch", level: int = None) -> logging.Logger:
    """
    Stdout logger shared by every module (call with __name__).
    The level comes from config.LOG_LEVEL unless given explicitly.
    """
    logger = logging.getLogger(name)
    log_level = level if level is not None else get_log_level()
    logger.setLevel(log_level)

    if name in _managed:
        return logger

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATEFMT))
    logger.addHandler(handler)
    _managed.add(name)
    return logger


def set_log_level(level_name: str) -> None:
    """Apply a level to all loggers created by setup_logger, e.g. from --log-level"""
    level = parse_log_level(level_name)
    for name in _managed:
        logger = logging.getLogger(name)
        logger.setLevel(level)
        for handler in logger.handlers:
            handler.setLevel(level)


# Project-wide logger for entry points:
#   from utils.logger import logger
logger = setup_logger("screenwatch")
