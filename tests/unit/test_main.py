"""
Unit tests for logging setup.
"""

import logging

import json_log_formatter
import pytest

from omnidash.config import AppConfig, ObservabilityConfig
from omnidash.main import setup_logging


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers = handlers
    root.setLevel(level)


def test_json_format():
    setup_logging(
        AppConfig(observability=ObservabilityConfig(log_level="DEBUG", log_format="json"))
    )

    root = logging.getLogger()
    assert root.level == logging.DEBUG
    assert isinstance(root.handlers[0].formatter, json_log_formatter.JSONFormatter)


def test_text_format_and_library_noise():
    setup_logging(
        AppConfig(observability=ObservabilityConfig(log_level="warning", log_format="text"))
    )

    root = logging.getLogger()
    assert root.level == logging.WARNING
    assert not isinstance(root.handlers[0].formatter, json_log_formatter.JSONFormatter)
    assert logging.getLogger("httpx").level == logging.WARNING
