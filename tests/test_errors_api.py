"""Catch-all handling of unexpected failures."""

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from restaurant_booking import main
from restaurant_booking.main import app
from restaurant_booking.services.storage import InMemoryStorage


class BrokenStorage(InMemoryStorage):
    """Storage whose catalog queries fail with an unexpected error."""

    async def list_cuisines(self) -> list[str]:
        raise RuntimeError("connection to catalog shard lost")


@pytest_asyncio.fixture
async def broken_client():
    storage = BrokenStorage()
    await storage.initialize(seed=True)
    app.state.storage = storage
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.mark.asyncio
async def test_unexpected_error_returns_generic_500(broken_client):
    response = await broken_client.get("/api/restaurants/meta/cuisines")

    assert response.status_code == 500
    assert response.json() == {"success": False, "message": "Internal server error"}
    assert "shard" not in response.text


@pytest.mark.asyncio
async def test_unexpected_error_detail_only_in_debug(broken_client, monkeypatch):
    monkeypatch.setattr(main, "settings", main.settings.model_copy(update={"debug": True}))

    response = await broken_client.get("/api/restaurants/meta/cuisines")

    assert response.status_code == 500
    assert response.json()["success"] is False
    assert "connection to catalog shard lost" in response.json()["message"]


@pytest.mark.asyncio
async def test_other_routes_unaffected(broken_client):
    response = await broken_client.get("/api/restaurants/1")

    assert response.status_code == 200
