# backend-services/marketcap-service/tests/conftest.py
"""
Pytest configuration and shared fixtures for marketcap-service tests.
Centralizes path setup, environment, a stub quote provider and sample data.
"""

import os
import sys
import tempfile
from unittest.mock import MagicMock

import pytest

# Service root (app.py, helper_functions.py) and backend-services root (shared/)
SERVICE_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
sys.path.insert(0, SERVICE_ROOT)
sys.path.insert(0, os.path.abspath(os.path.join(SERVICE_ROOT, '..')))
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

# Set environment variables before the app is imported by any test module
os.environ.setdefault("TICKER_CACHE_WARM_ON_START", "false")
os.environ.setdefault("TICKER_CACHE_REFRESH_SECONDS", "0")
os.environ.setdefault("BRAPI_API_KEY", "test-token")
os.environ.setdefault("LOG_DIR", os.path.join(tempfile.gettempdir(), "marketcap-service-logs"))

from shared.contracts import TickerRecord
from mock_data_helpers import SAMPLE_STOCKS

# -------------------------------------------------------------------
# Sample data
# -------------------------------------------------------------------

@pytest.fixture
def sample_records():
    return [TickerRecord.model_validate(s) for s in SAMPLE_STOCKS]

# -------------------------------------------------------------------
# Provider and service fixtures
# -------------------------------------------------------------------

@pytest.fixture
def stub_provider(sample_records):
    """A provider double: list_tickers returns the sample list, get_quote must be configured per test."""
    provider = MagicMock(name="BrapiClient")
    provider.list_tickers.return_value = list(sample_records)
    return provider

@pytest.fixture
def populated_cache(stub_provider):
    from services.ticker_cache import TickerCache
    cache = TickerCache(stub_provider)
    assert cache.populate() is True
    return cache

# -------------------------------------------------------------------
# Flask app and client fixtures
# -------------------------------------------------------------------

@pytest.fixture
def flask_app():
    from app import app as flask_app
    flask_app.config["TESTING"] = True
    yield flask_app

@pytest.fixture
def services_with_stub(flask_app, stub_provider):
    """Installs isolated services built on the stub provider, restoring the originals afterwards."""
    from app import SERVICES_KEY, create_services, install_services
    original = flask_app.extensions[SERVICES_KEY]
    services = install_services(flask_app, create_services(provider=stub_provider))
    yield services
    flask_app.extensions[SERVICES_KEY] = original

@pytest.fixture
def client(flask_app, services_with_stub):
    return flask_app.test_client()
