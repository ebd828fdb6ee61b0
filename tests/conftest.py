"""Pytest configuration - minimal for unittest-based tests."""

import pytest

from sitesync.config import get_settings
from sitesync.tracing import EventTracer


@pytest.fixture(autouse=True)
def reset_singletons():
    """Drop cached settings and tracer between tests."""
    yield
    EventTracer.reset_instance()
    get_settings.cache_clear()
