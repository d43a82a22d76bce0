"""Pytest configuration for rf95 SDK tests"""
import logging
import os

import pytest

from rf95_sdk import RF95Modem, ScriptedTransport

STATUS_LINES = [
    "firmware: 1.7\n",
    "max pkt size: 251\n",
    "frequency: 868.10\n",
    "rx listener: 1\n",
    "rx bad: 0\n",
    "rx good: 3\n",
    "tx good: 5\n",
    "modem config: 0 | Bw125Cr45Sf128\n",
    "+OK\n",
]


def _debug_enabled() -> bool:
    return os.getenv("RF95_DEBUG", "").lower() in ("1", "true", "yes")


def pytest_configure(config):
    """Enable debug logging if RF95_DEBUG is set"""
    if _debug_enabled():
        # Enable log output to console during tests
        config.option.log_cli = True
        config.option.log_cli_level = "DEBUG"


@pytest.fixture(scope="session", autouse=True)
def setup_logging():
    """Setup test logging"""
    test_logger = logging.getLogger("test")
    level = logging.DEBUG if _debug_enabled() else logging.INFO
    test_logger.setLevel(level)
    logging.getLogger("rf95_sdk").setLevel(level)
    yield test_logger


@pytest.fixture
def transport():
    return ScriptedTransport()


@pytest.fixture
def modem(transport):
    return RF95Modem("/dev/ttyFAKE0", transport=transport)


@pytest.fixture
def status_lines():
    return list(STATUS_LINES)
