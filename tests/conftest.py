"""
Shared test fixtures

Provides:
- A mocked transport (AsyncMock with the Transport interface)
- A helper to queue API responses on it
- The raw webhook event body used by signature tests
"""

import os
from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from postbind.logger import disable_logging
from postbind.transport import Response


FIXTURES = Path(__file__).parent / "fixtures"


@pytest.fixture
def transport():
    """Transport double; every method is an AsyncMock returning an empty body."""
    mock = AsyncMock()
    for method in ("get", "post", "patch", "delete"):
        getattr(mock, method).return_value = Response(status_code=200, body={})
    return mock


@pytest.fixture
def respond(transport):
    """Set the response body returned by one transport method."""
    def _respond(method, body, status_code=200):
        getattr(transport, method).return_value = Response(status_code=status_code, body=body)
    return _respond


@pytest.fixture
def event_body():
    """Raw bytes of a batch.created webhook delivery."""
    return (FIXTURES / "event_body.json").read_bytes()


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep host POSTBIND_* variables and cached settings out of tests."""
    from postbind.config import get_settings

    for key in list(os.environ):
        if key.startswith("POSTBIND_"):
            monkeypatch.delenv(key, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
    disable_logging()
