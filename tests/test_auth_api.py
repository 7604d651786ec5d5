"""Registration, login and the bearer-token gateway."""

from datetime import timedelta

import pytest

from restaurant_booking.core.config import get_settings
from restaurant_booking.core.security import create_access_token
from tests.helpers import register


@pytest.mark.asyncio
async def test_register_returns_user_and_token(client):
    response = await client.post(
        "/api/auth/register",
        json={"name": "  Ada Lovelace ", "email": "Ada@Example.com", "password": "secret123"},
    )

    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert body["message"] == "User registered successfully"
    assert body["data"]["user"]["name"] == "Ada Lovelace"
    assert body["data"]["user"]["email"] == "ada@example.com"
    assert "password" not in body["data"]["user"]
    assert body["data"]["token"]


@pytest.mark.asyncio
async def test_register_duplicate_email_conflicts(client):
    await register(client, email="dup@test.com")

    response = await client.post(
        "/api/auth/register",
        json={"name": "Someone", "email": "DUP@test.com", "password": "secret123"},
    )

    assert response.status_code == 409
    assert response.json() == {
        "success": False,
        "message": "User with this email already exists",
    }


@pytest.mark.asyncio
async def test_register_validation_errors(client):
    response = await client.post(
        "/api/auth/register",
        json={"name": "A", "email": "not-an-email", "password": "123"},
    )

    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["message"] == "Validation failed"
    fields = {error["field"] for error in body["errors"]}
    assert fields == {"name", "email", "password"}


@pytest.mark.asyncio
async def test_login_success(client):
    await register(client, email="login@test.com", password="secret123")

    response = await client.post(
        "/api/auth/login",
        json={"email": "login@test.com", "password": "secret123"},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Login successful"
    assert body["data"]["user"]["email"] == "login@test.com"
    assert body["data"]["token"]


@pytest.mark.asyncio
async def test_login_failures_share_one_message(client):
    await register(client, email="login@test.com", password="secret123")

    wrong_password = await client.post(
        "/api/auth/login",
        json={"email": "login@test.com", "password": "wrong-password"},
    )
    unknown_email = await client.post(
        "/api/auth/login",
        json={"email": "nobody@test.com", "password": "secret123"},
    )

    assert wrong_password.status_code == 401
    assert unknown_email.status_code == 401
    assert wrong_password.json() == unknown_email.json()
    assert wrong_password.json()["message"] == "Invalid email or password"


@pytest.mark.asyncio
async def test_protected_route_without_token(client):
    response = await client.get("/api/user/reservations")

    assert response.status_code == 401
    assert response.json()["message"] == "Access token required"


@pytest.mark.asyncio
async def test_protected_route_with_garbage_token(client):
    response = await client.get(
        "/api/user/reservations",
        headers={"Authorization": "Bearer not.a.token"},
    )

    assert response.status_code == 403
    assert response.json()["message"] == "Invalid or expired token"


@pytest.mark.asyncio
async def test_protected_route_with_expired_token(client):
    data = await register(client)
    token = create_access_token(
        data["user"]["id"], get_settings(), expires_delta=timedelta(seconds=-10)
    )

    response = await client.get(
        "/api/user/reservations",
        headers={"Authorization": f"Bearer {token}"},
    )

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_token_for_unknown_user(client):
    token = create_access_token(999, get_settings())

    response = await client.get(
        "/api/user/reservations",
        headers={"Authorization": f"Bearer {token}"},
    )

    assert response.status_code == 401
    assert response.json()["message"] == "User not found"
