"""
Root pytest configuration.

This conftest is loaded before test collection to ensure
src is in the Python path for all imports.
"""

import sys
from pathlib import Path

# Add src to path IMMEDIATELY when this file is loaded
src_path = Path(__file__).parent / "src"
src_str = str(src_path.absolute())

# Ensure it's at the very front
if src_str in sys.path:
    sys.path.remove(src_str)
sys.path.insert(0, src_str)


import pytest


@pytest.fixture(autouse=True)
def _reset_global_singletons():
    """Reset cached settings, the email provider and the document store between tests."""
    yield
    from config.database import get_database_settings
    from config.settings import get_email_settings, get_settings
    from datastore import set_document_store
    from notifications.email_provider import set_email_provider

    get_settings.cache_clear()
    get_email_settings.cache_clear()
    get_database_settings.cache_clear()
    set_email_provider(None)
    set_document_store(None)
