"""Tests for the shared logger setup."""
from __future__ import annotations

import logging

from utils.logger import parse_log_level, set_log_level, setup_logger


def test_parse_log_level():
    assert parse_log_level("debug") == logging.DEBUG
    assert parse_log_level(" WARNING ") == logging.WARNING
    assert parse_log_level("chatty") == logging.INFO


def test_setup_logger_adds_one_handler():
    first = setup_logger("screenwatch.test_once")
    second = setup_logger("screenwatch.test_once")
    assert first is second
    assert len(first.handlers) == 1


def test_set_log_level_updates_managed_loggers():
    logger = setup_logger("screenwatch.test_level", level=logging.INFO)
    try:
        set_log_level("ERROR")
        assert logger.level == logging.ERROR
        assert logger.handlers[0].level == logging.ERROR
    finally:
        set_log_level("INFO")
