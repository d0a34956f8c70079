"""Root pytest configuration for all tests.

This conftest applies to all test types (unit, integration).
"""

from unittest.mock import MagicMock

import pytest

from notes_markdown.config.models import ConverterConfig


@pytest.fixture
def config():
    """Default converter configuration with fast, bounded downloads."""
    return ConverterConfig(retry_backoff_seconds=0, max_concurrent_downloads=2)


def make_response(status_code=200, body=b"\x89PNG data", headers=None, reason="OK"):
    """Build a streamed requests.Response stand-in usable as a context manager."""
    response = MagicMock()
    response.status_code = status_code
    response.reason = reason
    response.headers = dict(headers or {})
    response.iter_content.return_value = [body] if body else []
    response.__enter__.return_value = response
    response.__exit__.return_value = False
    return response


@pytest.fixture
def response_factory():
    return make_response
