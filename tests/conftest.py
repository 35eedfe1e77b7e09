"""Global pytest configuration."""

import logging

import pytest

from core.logging import LOGGER_NAMESPACE


@pytest.fixture(autouse=True)
def _restore_app_logger():
    """Undo level and handler changes made to the application logger by a test."""
    logger = logging.getLogger(LOGGER_NAMESPACE)
    level = logger.level
    handlers = list(logger.handlers)
    yield
    for handler in list(logger.handlers):
        if handler not in handlers:
            logger.removeHandler(handler)
            handler.close()
    logger.setLevel(level)
