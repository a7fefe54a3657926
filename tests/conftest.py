import logging

import pytest


@pytest.fixture(autouse=True)
def reset_mathdelim_logger():
    """Drop handlers installed by setup_logging so each test starts clean"""
    yield
    logger = logging.getLogger('mathdelim')
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)
