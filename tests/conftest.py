"""
Pytest fixtures for databuilder tests.
"""

import logging

import pytest

from databuilder.model.data import Data
from databuilder.utils.logging import ROOT_LOGGER_NAME
from helpers import RecordingListener


@pytest.fixture
def listener():
    return RecordingListener()


@pytest.fixture
def x_item():
    return Data(name="x", value=1)


@pytest.fixture
def restore_logger():
    """Restore the databuilder logger after a test reconfigures it."""
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    handlers, level = list(logger.handlers), logger.level
    yield logger
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    for handler in handlers:
        logger.addHandler(handler)
    logger.setLevel(level)
