"""Shared test fixtures and configuration for netcapture tests."""

import pytest
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock
import sys

# Add project root to Python path
sys.path.insert(0, str(Path(__file__).parent.parent))

from netcapture.capture.config import ScraperSettings, TimeoutSettings
from netcapture.models.session import SessionConfig


@pytest.fixture
def session_config():
    """Minimal direct-load session."""
    return SessionConfig(target_url="https://example.com/watch")


@pytest.fixture
def settings():
    """Settings with default bounds."""
    return ScraperSettings(timeouts=TimeoutSettings())


def make_route(url, resource_type="xhr", method="GET", headers=None):
    """Mock Playwright route wrapping a request."""
    route = MagicMock()
    route.request.url = url
    route.request.resource_type = resource_type
    route.request.method = method
    route.request.headers = headers if headers is not None else {"accept": "*/*"}
    route.abort = AsyncMock()
    route.continue_ = AsyncMock()
    return route


@pytest.fixture
def route_factory():
    return make_route


@pytest.fixture
def mock_frame():
    """Mock Playwright frame for the embedded document."""
    return AsyncMock()


@pytest.fixture
def mock_page(mock_frame):
    """Mock Playwright page whose first matched element is an iframe."""
    page = AsyncMock()
    page.on = MagicMock()

    element = AsyncMock()
    element.content_frame.return_value = mock_frame
    page.wait_for_selector.return_value = element
    return page


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )
