"""
Fixtures for provider client tests.

HTTP is mocked at requests.Session, so the real BaseApiClient retry and
status mapping code runs against canned responses.
"""

import json
from unittest.mock import MagicMock, patch

import pytest


def make_response(status_code=200, json_data=None, text=None, headers=None):
    """Build a mock requests.Response."""
    response = MagicMock()
    response.status_code = status_code
    response.ok = status_code < 400
    if text is None:
        text = json.dumps(json_data) if json_data is not None else ""
    response.text = text
    response.json.return_value = json_data if json_data is not None else {}
    response.headers = headers or {}
    return response


@pytest.fixture
def response_factory():
    """The make_response helper."""
    return make_response


@pytest.fixture
def mock_session():
    """Patch requests.Session for every client built inside the test."""
    with patch("ticketsync.adapters.http.requests.Session") as mock:
        session_instance = MagicMock()
        mock.return_value = session_instance
        yield session_instance


@pytest.fixture(autouse=True)
def no_sleep():
    """Skip retry backoff delays."""
    with patch("ticketsync.adapters.http.time.sleep") as sleep:
        yield sleep
