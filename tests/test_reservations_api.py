"""Reservation lifecycle over HTTP."""

import asyncio
import datetime as dt

import pytest

from tests.helpers import book, future_date, past_date


@pytest.mark.asyncio
async def test_full_lifecycle(client, auth_headers):
    # Create
    created = await book(
        client, auth_headers, restaurant_id=2, time="18:30", people_count=2,
        special_requests="Window seat",
    )
    assert created["status"] == "confirmed"
    assert created["time"] == "18:30"
    assert created["restaurant_name"] == "Sakura Sushi"
    assert created["user_email"] == "user@test.com"

    # List
    listed = await client.get("/api/user/reservations", headers=auth_headers)
    assert [r["id"] for r in listed.json()["data"]["reservations"]] == [created["id"]]

    # Update
    updated = await client.put(
        f"/api/reservations/{created['id']}",
        json={"people_count": 6, "time": "20:00"},
        headers=auth_headers,
    )
    assert updated.status_code == 200
    body = updated.json()
    assert body["message"] == "Reservation updated successfully"
    assert body["data"]["reservation"]["people_count"] == 6
    assert body["data"]["reservation"]["time"] == "20:00"
    assert body["data"]["reservation"]["special_requests"] == "Window seat"

    # Cancel
    cancelled = await client.delete(f"/api/reservations/{created['id']}", headers=auth_headers)
    assert cancelled.status_code == 200
    assert cancelled.json() == {
        "success": True,
        "message": "Reservation cancelled successfully",
        "data": None,
    }

    fetched = await client.get(f"/api/reservations/{created['id']}", headers=auth_headers)
    assert fetched.json()["data"]["reservation"]["status"] == "cancelled"

    # Terminal
    rejected = await client.put(
        f"/api/reservations/{created['id']}",
        json={"people_count": 3},
        headers=auth_headers,
    )
    assert rejected.status_code == 400
    assert rejected.json()["message"] == "Cannot modify cancelled or completed reservations"


@pytest.mark.asyncio
async def test_create_for_today_is_allowed(client, auth_headers):
    created = await book(client, auth_headers, date=dt.date.today().isoformat())

    assert created["date"] == dt.date.today().isoformat()


@pytest.mark.asyncio
async def test_create_in_the_past_rejected(client, auth_headers):
    response = await client.post(
        "/api/reservations",
        json={"restaurant_id": 1, "date": past_date(), "time": "19:00", "people_count": 2},
        headers=auth_headers,
    )

    assert response.status_code == 400
    assert response.json()["message"] == "Cannot make reservations for past dates"


@pytest.mark.asyncio
async def test_create_for_missing_restaurant(client, auth_headers):
    response = await client.post(
        "/api/reservations",
        json={"restaurant_id": 999, "date": future_date(), "time": "19:00", "people_count": 2},
        headers=auth_headers,
    )

    assert response.status_code == 404
    assert response.json()["message"] == "Restaurant not found"


@pytest.mark.asyncio
@pytest.mark.parametrize("payload_overrides, field", [
    ({"people_count": 0}, "people_count"),
    ({"people_count": 21}, "people_count"),
    ({"time": "25:00"}, "time"),
    ({"date": "15/01/2030"}, "date"),
    ({"special_requests": "x" * 501}, "special_requests"),
])
async def test_create_validation(client, auth_headers, payload_overrides, field):
    payload = {"restaurant_id": 1, "date": future_date(), "time": "19:00", "people_count": 2}
    payload.update(payload_overrides)

    response = await client.post("/api/reservations", json=payload, headers=auth_headers)

    assert response.status_code == 400
    body = response.json()
    assert body["message"] == "Validation failed"
    assert [error["field"] for error in body["errors"]] == [field]


@pytest.mark.asyncio
async def test_other_users_reservation_is_not_found(client, auth_headers, other_auth_headers):
    created = await book(client, auth_headers)

    for method in ("get", "delete"):
        response = await getattr(client, method)(
            f"/api/reservations/{created['id']}", headers=other_auth_headers
        )
        assert response.status_code == 404
        assert response.json()["message"] == "Reservation not found"

    response = await client.put(
        f"/api/reservations/{created['id']}",
        json={"people_count": 2},
        headers=other_auth_headers,
    )
    assert response.status_code == 404

    listed = await client.get("/api/user/reservations", headers=other_auth_headers)
    assert listed.json()["data"]["reservations"] == []


@pytest.mark.asyncio
async def test_cancel_twice(client, auth_headers):
    created = await book(client, auth_headers)
    await client.delete(f"/api/reservations/{created['id']}", headers=auth_headers)

    response = await client.delete(f"/api/reservations/{created['id']}", headers=auth_headers)

    assert response.status_code == 400
    assert response.json()["message"] == "Reservation is already cancelled"
    fetched = await client.get(f"/api/reservations/{created['id']}", headers=auth_headers)
    assert fetched.json()["data"]["reservation"]["status"] == "cancelled"


@pytest.mark.asyncio
async def test_empty_update_leaves_record_unchanged(client, auth_headers):
    created = await book(client, auth_headers)

    response = await client.put(
        f"/api/reservations/{created['id']}", json={}, headers=auth_headers
    )

    assert response.status_code == 400
    assert response.json()["message"] == "No fields to update"
    fetched = await client.get(f"/api/reservations/{created['id']}", headers=auth_headers)
    assert fetched.json()["data"]["reservation"] == created


@pytest.mark.asyncio
async def test_update_to_past_date_rejected(client, auth_headers):
    created = await book(client, auth_headers)

    response = await client.put(
        f"/api/reservations/{created['id']}",
        json={"date": past_date()},
        headers=auth_headers,
    )

    assert response.status_code == 400
    assert response.json()["message"] == "Cannot modify reservation to a past date"


@pytest.mark.asyncio
async def test_update_can_clear_special_requests(client, auth_headers):
    created = await book(client, auth_headers, special_requests="Birthday cake")

    response = await client.put(
        f"/api/reservations/{created['id']}",
        json={"special_requests": None},
        headers=auth_headers,
    )

    assert response.status_code == 200
    assert response.json()["data"]["reservation"]["special_requests"] is None


@pytest.mark.asyncio
async def test_list_ordering_and_status_filter(client, auth_headers):
    early = await book(client, auth_headers, date=future_date(3), time="12:00")
    late = await book(client, auth_headers, date=future_date(10), time="19:00")
    same_day_later = await book(client, auth_headers, date=future_date(3), time="20:00")
    await client.delete(f"/api/reservations/{early['id']}", headers=auth_headers)

    listed = await client.get("/api/user/reservations", headers=auth_headers)
    assert [r["id"] for r in listed.json()["data"]["reservations"]] == [
        late["id"], same_day_later["id"], early["id"],
    ]

    cancelled = await client.get(
        "/api/user/reservations", params={"status": "cancelled"}, headers=auth_headers
    )
    assert [r["id"] for r in cancelled.json()["data"]["reservations"]] == [early["id"]]

    unknown = await client.get(
        "/api/user/reservations", params={"status": "bogus"}, headers=auth_headers
    )
    assert unknown.json()["data"]["pagination"]["total"] == 3


@pytest.mark.asyncio
async def test_list_pagination(client, auth_headers):
    for days in range(1, 6):
        await book(client, auth_headers, date=future_date(days))

    response = await client.get(
        "/api/user/reservations", params={"page": 2, "limit": 2}, headers=auth_headers
    )

    data = response.json()["data"]
    assert len(data["reservations"]) == 2
    assert data["pagination"] == {"page": 2, "limit": 2, "total": 5, "pages": 3}


@pytest.mark.asyncio
async def test_double_booking_same_slot_is_accepted(client, auth_headers, other_auth_headers):
    slot = {"restaurant_id": 3, "date": future_date(5), "time": "19:00"}

    first = await book(client, auth_headers, **slot)
    second = await book(client, other_auth_headers, **slot)

    assert first["id"] != second["id"]
    assert first["status"] == second["status"] == "confirmed"


@pytest.mark.asyncio
async def test_concurrent_updates_last_write_wins(client, auth_headers):
    created = await book(client, auth_headers)
    url = f"/api/reservations/{created['id']}"

    responses = await asyncio.gather(
        client.put(url, json={"people_count": 3}, headers=auth_headers),
        client.put(url, json={"people_count": 8}, headers=auth_headers),
    )

    assert all(r.status_code == 200 for r in responses)
    fetched = await client.get(url, headers=auth_headers)
    assert fetched.json()["data"]["reservation"]["people_count"] in (3, 8)
