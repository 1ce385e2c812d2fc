"""
Shared fixtures for drunk-jingle tests.
"""

import logging

import pytest

from drunk_jingle.utils.logger import LOGGER_NAME

from helpers import RecordingTransport


@pytest.fixture
def transport():
    return RecordingTransport()


@pytest.fixture(autouse=True)
def reset_package_logger():
    yield
    logger = logging.getLogger(LOGGER_NAME)
    logger.handlers.clear()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
