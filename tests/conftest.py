import logging

import pytest
import tenacity

from pool_sync.connection import Web3ChainClient
from pool_sync.logging import logger


@pytest.fixture(scope="session", autouse=True)
def _set_pool_sync_logging():
    """
    Set the logging level to DEBUG for the test run
    """
    logger.setLevel(logging.DEBUG)


@pytest.fixture(autouse=True)
def _no_retry_wait(monkeypatch: pytest.MonkeyPatch):
    """
    Retry immediately instead of backing off
    """
    monkeypatch.setattr(Web3ChainClient, "RETRY_WAIT", tenacity.wait_none())
