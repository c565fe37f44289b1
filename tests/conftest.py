"""Pytest configuration and fixtures for test suite."""

import os
import sys
from pathlib import Path

import pytest

# Set test environment BEFORE any other imports
os.environ.setdefault("APP_ENVIRONMENT", "test")
os.environ.setdefault("DB_BACKEND", "memory")
os.environ.setdefault("EMAIL_PROVIDER", "null")

# Add src to path for imports
src_path = Path(__file__).parent.parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))


@pytest.fixture
def clean_env(monkeypatch):
    """Remove notification-related variables so defaults apply."""
    for key in list(os.environ):
        if key.startswith(("APP_", "EMAIL_", "DB_", "REDIS_", "CELERY_")):
            monkeypatch.delenv(key, raising=False)
    return monkeypatch


