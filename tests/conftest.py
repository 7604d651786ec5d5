"""
Shared fixtures.

The app runs against a fresh, seeded InMemoryStorage per test. httpx's
ASGITransport does not run the lifespan, so the fixture puts the storage
on ``app.state`` itself.
"""

import os

os.environ["STORAGE_BACKEND"] = "memory"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["JWT_SECRET"] = "test-secret-for-the-api-test-suite-0001"

from collections.abc import AsyncIterator

import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from restaurant_booking.core.config import get_settings

get_settings.cache_clear()

from restaurant_booking.main import app
from restaurant_booking.services.storage import InMemoryStorage
from tests.helpers import register


@pytest_asyncio.fixture
async def storage() -> AsyncIterator[InMemoryStorage]:
    store = InMemoryStorage()
    await store.initialize(seed=True)
    yield store
    await store.close()


@pytest_asyncio.fixture
async def client(storage: InMemoryStorage) -> AsyncIterator[AsyncClient]:
    app.state.storage = storage
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def auth_headers(client: AsyncClient) -> dict[str, str]:
    data = await register(client)
    return {"Authorization": f"Bearer {data['token']}"}


@pytest_asyncio.fixture
async def other_auth_headers(client: AsyncClient) -> dict[str, str]:
    data = await register(client, name="Other User", email="other@test.com")
    return {"Authorization": f"Bearer {data['token']}"}
