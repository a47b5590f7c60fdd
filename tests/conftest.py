"""
Shared pytest fixtures for simkernel tests.
"""

import logging

import pytest

from simkernel import Simulation


@pytest.fixture
def sim() -> Simulation:
    """A fresh session at t=0 with sampling disabled."""
    return Simulation(name="test")


@pytest.fixture(autouse=True)
def reset_simkernel_logging():
    """Reset logging state before each test.

    Removes all handlers except a NullHandler and resets the level so
    configuration made by one test can't leak into another.
    """
    logger = logging.getLogger("simkernel")

    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
        if not isinstance(handler, logging.NullHandler):
            handler.close()
    logger.addHandler(logging.NullHandler())
    logger.setLevel(logging.NOTSET)

    yield

    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
        if not isinstance(handler, logging.NullHandler):
            handler.close()
    logger.addHandler(logging.NullHandler())
    logger.setLevel(logging.NOTSET)
