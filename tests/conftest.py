"""Root conftest — shared test configuration."""

import os

import pytest

from pagou.config import get_settings

# Ensure tests don't accidentally use real API keys or hosts
os.environ["PAGOU_API_KEY"] = "sk_test_fake_key"
os.environ.pop("PAGOU_BASE_URL", None)
os.environ.pop("PAGOU_ENVIRONMENT", None)


@pytest.fixture(autouse=True)
def fresh_settings():
    """Drop the cached Settings so env changes made by a test are seen."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
