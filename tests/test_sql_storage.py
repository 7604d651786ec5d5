"""
SqlStorage against a throwaway SQLite file (aiosqlite driver).

The same behaviour is expected from InMemoryStorage; the catalog cases run
against both backends.
"""

import datetime as dt
import warnings

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.exc import SAWarning

from restaurant_booking.core.config import Settings
from restaurant_booking.core.exceptions import ConflictError, NotFoundError
from restaurant_booking.main import app
from restaurant_booking.models import ReservationStatus
from restaurant_booking.services.storage import (
    InMemoryStorage,
    PageRequest,
    ReservationChanges,
    ReservationFilter,
    ReservationRecord,
    RestaurantFilter,
    SqlStorage,
    build_storage,
)


def _sqlite_settings(tmp_path, **overrides) -> Settings:
    return Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path}/test.db",
        _env_file=None,
        **overrides,
    )


@pytest_asyncio.fixture
async def sql_storage(tmp_path):
    storage = SqlStorage.from_settings(_sqlite_settings(tmp_path))
    await storage.initialize(seed=True)
    yield storage
    await storage.close()


@pytest_asyncio.fixture(params=["sql", "memory"])
async def any_storage(request, tmp_path):
    if request.param == "sql":
        storage = SqlStorage.from_settings(_sqlite_settings(tmp_path))
    else:
        storage = InMemoryStorage()
    await storage.initialize(seed=True)
    yield storage
    await storage.close()


@pytest.mark.asyncio
async def test_initialize_seeds_once(sql_storage):
    await sql_storage.initialize(seed=True)

    page = await sql_storage.search_restaurants(RestaurantFilter(), PageRequest(1, 100))

    assert page.total == 6


@pytest.mark.asyncio
async def test_health_check(sql_storage):
    assert await sql_storage.health_check() is True


@pytest.mark.asyncio
async def test_catalog_queries_match_across_backends(any_storage):
    page = await any_storage.search_restaurants(RestaurantFilter(), PageRequest(1, 4))
    assert [r.name for r in page.items] == [
        "The Golden Spoon", "Le Jardin", "Sakura Sushi", "Ocean Breeze",
    ]
    assert page.total == 6
    assert page.pages == 2

    page = await any_storage.search_restaurants(RestaurantFilter(text="YORK"), PageRequest())
    assert [r.name for r in page.items] == ["The Golden Spoon", "Spice Route"]

    page = await any_storage.search_restaurants(RestaurantFilter(text="_"), PageRequest())
    assert page.total == 0

    assert await any_storage.list_cuisines() == [
        "American", "French", "Indian", "Italian", "Japanese", "Seafood",
    ]
    assert await any_storage.get_restaurant(999) is None


@pytest.mark.asyncio
async def test_duplicate_email(any_storage):
    await any_storage.create_user("First", "same@test.com", "hash")

    with pytest.raises(ConflictError):
        await any_storage.create_user("Second", "same@test.com", "hash")
    assert (await any_storage.get_user_by_email("SAME@test.com")).name == "First"


@pytest.mark.asyncio
async def test_reservation_round_trip(sql_storage):
    user = await sql_storage.create_user("Diner", "diner@test.com", "hash")
    day = dt.date(2030, 1, 15)

    created = await sql_storage.create_reservation(
        user_id=user.id,
        restaurant_id=4,
        reservation_date=day,
        reservation_time=dt.time(19, 30),
        people_count=3,
        special_requests="Anniversary",
    )

    assert created.restaurant_name == "Le Jardin"
    assert created.user_email == "diner@test.com"
    assert created.to_dict()["time"] == "19:30"

    fetched = await sql_storage.get_reservation(created.id, user.id)
    assert fetched.date == day
    assert fetched.status == ReservationStatus.CONFIRMED
    assert await sql_storage.get_reservation(created.id, user.id + 1) is None


@pytest.mark.asyncio
async def test_update_and_status(sql_storage):
    user = await sql_storage.create_user("Diner", "diner@test.com", "hash")
    created = await sql_storage.create_reservation(
        user.id, 1, dt.date(2030, 1, 15), dt.time(18, 0), 2, "Window"
    )

    updated = await sql_storage.update_reservation(
        created.id, ReservationChanges.from_values(people_count=5, special_requests=None)
    )
    assert updated.people_count == 5
    assert updated.special_requests is None
    assert updated.time == dt.time(18, 0)

    await sql_storage.set_reservation_status(created.id, ReservationStatus.CANCELLED)
    page = await sql_storage.list_reservations(
        ReservationFilter(user_id=user.id, status=ReservationStatus.CANCELLED),
        PageRequest(),
    )
    assert [r.id for r in page.items] == [created.id]

    with pytest.raises(NotFoundError):
        await sql_storage.set_reservation_status(999, ReservationStatus.CANCELLED)


@pytest.mark.asyncio
async def test_list_reservations_order(sql_storage):
    user = await sql_storage.create_user("Diner", "diner@test.com", "hash")
    slots = [
        (dt.date(2030, 1, 10), dt.time(12, 0)),
        (dt.date(2030, 1, 12), dt.time(19, 0)),
        (dt.date(2030, 1, 10), dt.time(20, 0)),
    ]
    ids = [
        (await sql_storage.create_reservation(user.id, 2, day, time, 2)).id
        for day, time in slots
    ]

    page = await sql_storage.list_reservations(ReservationFilter(user_id=user.id), PageRequest())

    assert [r.id for r in page.items] == [ids[1], ids[2], ids[0]]


@pytest.mark.asyncio
async def test_build_storage_memory(tmp_path):
    storage = await build_storage(_sqlite_settings(tmp_path, storage_backend="memory"))

    assert storage.provider_name == "memory"
    assert (await storage.search_restaurants(RestaurantFilter(), PageRequest())).total == 6


@pytest.mark.asyncio
async def test_build_storage_sql(tmp_path):
    storage = await build_storage(
        _sqlite_settings(tmp_path, storage_backend="sql", seed_sample_data=False)
    )
    try:
        assert storage.provider_name == "sql"
        assert await storage.list_locations() == []
    finally:
        await storage.close()


@pytest.mark.asyncio
async def test_build_storage_auto_falls_back(tmp_path):
    settings = Settings(
        storage_backend="auto",
        database_url=f"sqlite+aiosqlite:///{tmp_path}/missing-dir/test.db",
        _env_file=None,
    )

    storage = await build_storage(settings)

    assert storage.provider_name == "memory"


@pytest.mark.asyncio
async def test_ids_beyond_column_range_are_not_found(sql_storage):
    huge = 2 ** 70
    user = await sql_storage.create_user("Diner", "diner@test.com", "hash")

    assert await sql_storage.get_restaurant(huge) is None
    assert await sql_storage.get_user_by_id(huge) is None
    assert await sql_storage.get_reservation(huge, user.id) is None
    with pytest.raises(NotFoundError):
        await sql_storage.update_reservation(huge, ReservationChanges.from_values(people_count=2))
    with pytest.raises(NotFoundError):
        await sql_storage.set_reservation_status(huge, ReservationStatus.CANCELLED)
    with pytest.raises(NotFoundError):
        await sql_storage.create_reservation(user.id, huge, dt.date(2030, 1, 1), dt.time(19, 0), 2)


@pytest.mark.asyncio
async def test_api_returns_404_for_oversized_ids(sql_storage):
    app.state.storage = sql_storage
    huge = 2 ** 70

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        restaurant = await client.get(f"/api/restaurants/{huge}")

        registered = await client.post(
            "/api/auth/register",
            json={"name": "Diner", "email": "diner@test.com", "password": "secret123"},
        )
        headers = {"Authorization": f"Bearer {registered.json()['data']['token']}"}
        reservation = await client.get(f"/api/reservations/{huge}", headers=headers)
        cancel = await client.delete(f"/api/reservations/{huge}", headers=headers)
        booking = await client.post(
            "/api/reservations",
            json={
                "restaurant_id": huge,
                "date": (dt.date.today() + dt.timedelta(days=3)).isoformat(),
                "time": "19:00",
                "people_count": 2,
            },
            headers=headers,
        )

    assert restaurant.status_code == 404
    assert restaurant.json()["message"] == "Restaurant not found"
    assert reservation.status_code == 404
    assert cancel.status_code == 404
    assert booking.status_code == 404


@pytest.mark.asyncio
async def test_distinct_lists_emit_no_warnings(sql_storage):
    with warnings.catch_warnings():
        warnings.simplefilter("error", SAWarning)
        cuisines = await sql_storage.list_cuisines()
        locations = await sql_storage.list_locations()

    assert len(cuisines) == len(set(cuisines)) == 6
    assert len(locations) == len(set(locations)) == 6


@pytest.mark.asyncio
async def test_non_ascii_matching_agrees_across_backends(any_storage):
    await any_storage.seed_restaurants([
        {"name": "Brauhaus", "location": "Hauptstraße, Berlin", "rating": 4.0,
         "price_range": "$$", "cuisine_type": "German"},
    ])

    folded = await any_storage.search_restaurants(RestaurantFilter(text="STRASSE"), PageRequest())
    ascii_case = await any_storage.search_restaurants(RestaurantFilter(text="HAUPT"), PageRequest())

    assert folded.total == 0
    assert [r.name for r in ascii_case.items] == ["Brauhaus"]


def test_terminal_statuses():
    def record(status):
        return ReservationRecord(
            id=1, user_id=1, restaurant_id=1,
            date=dt.date(2030, 1, 1), time=dt.time(19, 0), people_count=2,
            status=status,
        )

    assert not record(ReservationStatus.CONFIRMED).is_terminal
    assert record(ReservationStatus.CANCELLED).is_terminal
    assert record(ReservationStatus.COMPLETED).is_terminal
