"""
Pytest configuration and shared fixtures for palmtext tests
"""
import os
import sys

import pytest
from unittest.mock import MagicMock

sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

from palmtext.config.settings import reset_palm_settings
from palmtext.llm.types import build_connection


# ============================================================
# Connection Fixtures
# ============================================================

@pytest.fixture
def connection():
    """Direct connection on v1beta3"""
    return build_connection("test_api_key_123", "v1beta3")


@pytest.fixture
def proxy_connection():
    """Proxied connection on v1beta2"""
    return build_connection("test_api_key_123", "v1beta2", use_proxy=True)


# ============================================================
# HTTP Mocks
# ============================================================

@pytest.fixture
def make_response():
    """
    Build a mock httpx.Response returning the given JSON body

    Usage:
        def test_x(make_response):
            response = make_response({"candidates": [{"output": "hi"}]}, status_code=200)
    """
    def _make(body, status_code=200):
        response = MagicMock()
        response.status_code = status_code
        if isinstance(body, Exception):
            response.json.side_effect = body
        else:
            response.json.return_value = body
        return response

    return _make


# ============================================================
# Environment Isolation
# ============================================================

@pytest.fixture(autouse=True)
def clean_palm_env(monkeypatch):
    """Remove PALM_* and LOG_LEVEL* variables and reset cached settings"""
    for key in list(os.environ):
        if key.startswith("PALM_") or key.startswith("LOG_LEVEL"):
            monkeypatch.delenv(key, raising=False)
    reset_palm_settings()
    yield
    reset_palm_settings()
