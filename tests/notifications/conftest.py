"""
Pytest fixtures for notification tests.

Provides:
- A recording email provider
- A seeded in-memory document store
- A dispatcher on a fixed clock
"""

import pytest
import pytest_asyncio

from config.settings import Settings
from datastore import InMemoryDocumentStore
from notifications.dispatcher import NotificationDispatcher
from notifications.repository import NotificationRepository

from notification_factories import FIXED_NOW, RecordingEmailProvider, seed_workspace


@pytest.fixture
def store():
    return InMemoryDocumentStore(clock=lambda: FIXED_NOW)


@pytest_asyncio.fixture
async def seeded_store(store):
    await seed_workspace(store)
    return store


@pytest.fixture
def repository(seeded_store):
    return NotificationRepository(seeded_store)


@pytest.fixture
def provider():
    return RecordingEmailProvider()


@pytest.fixture
def app_settings(clean_env):
    clean_env.setenv("APP_URL", "https://app.test/")
    return Settings()


@pytest.fixture
def dispatcher(seeded_store, provider, app_settings):
    return NotificationDispatcher(
        store=seeded_store,
        provider=provider,
        settings=app_settings,
        clock=lambda: FIXED_NOW,
    )
