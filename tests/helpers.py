"""Request helpers shared by the API tests."""

import datetime as dt

from httpx import AsyncClient


def future_date(days: int = 7) -> str:
    return (dt.date.today() + dt.timedelta(days=days)).isoformat()


def past_date(days: int = 1) -> str:
    return (dt.date.today() - dt.timedelta(days=days)).isoformat()


async def register(
    client: AsyncClient,
    name: str = "Test User",
    email: str = "user@test.com",
    password: str = "secret123",
) -> dict:
    response = await client.post(
        "/api/auth/register",
        json={"name": name, "email": email, "password": password},
    )
    assert response.status_code == 201, response.text
    return response.json()["data"]


async def book(client: AsyncClient, headers: dict[str, str], **overrides) -> dict:
    payload = {
        "restaurant_id": 1,
        "date": future_date(),
        "time": "19:00",
        "people_count": 4,
    }
    payload.update(overrides)
    response = await client.post("/api/reservations", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]["reservation"]
