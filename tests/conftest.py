"""
Pytest configuration and fixtures for amap tests.
"""

from unittest.mock import MagicMock

import pytest
import requests

from amap import WebService
from tests.helpers import make_response


@pytest.fixture
def session():
    """Sesión de requests simulada que responde {"status": "1"}."""
    mock_session = MagicMock(spec=requests.Session)
    mock_session.get.return_value = make_response('{"status": "1", "info": "OK", "infocode": "10000"}')
    return mock_session


@pytest.fixture
def amap(session):
    """WebService sin firma sobre la sesión simulada."""
    return WebService(key="k1", session=session)


@pytest.fixture
def signed_amap(session):
    """WebService con firma digital activada."""
    return WebService(key="k1", sign=True, private_key="pk", session=session)


def pytest_addoption(parser):
    """Add --integration command line option."""
    parser.addoption(
        "--integration", action="store_true", default=False, help="run integration tests"
    )


def pytest_collection_modifyitems(config, items):
    """Skip tests marked with 'integration' unless --integration is provided."""
    if config.getoption("--integration"):
        # --integration given in cli: do not skip integration tests
        return
    skip_integration = pytest.mark.skip(reason="need --integration option to run")
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip_integration)
