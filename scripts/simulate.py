"""
Booking Burst Simulation Script

Runs the reservation flow end to end against a live server, then fires a
burst of concurrent bookings at the same restaurant, date and time.
Run from project root: python scripts/simulate.py

Every booking in the burst is expected to succeed: slots are not
exclusive, so the burst doubles as a check that concurrent writes neither
fail nor get lost.
"""

import asyncio
import sys
import random
import time
import uuid
import argparse
from datetime import date, datetime, timedelta
from typing import Any

import httpx

# Windows event loop fix
if sys.platform == "win32":
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

# Configuration
API_BASE_URL = "http://localhost:3000"
TOTAL_BOOKINGS = 50

FIRST_NAMES = ["John", "Jane", "Mike", "Sarah", "Tom", "Emma", "David", "Lisa", "Chris", "Amy"]
LAST_NAMES = ["Smith", "Johnson", "Williams", "Brown", "Jones", "Garcia", "Miller", "Davis", "Wilson", "Taylor"]
SPECIAL_REQUESTS = [None, "Window seat", "Birthday celebration", "High chair needed", "Quiet table"]


def generate_random_account() -> dict[str, str]:
    """Generate a unique throwaway account."""
    first = random.choice(FIRST_NAMES)
    last = random.choice(LAST_NAMES)
    return {
        "name": f"{first} {last}",
        "email": f"{first.lower()}.{last.lower()}.{uuid.uuid4().hex[:8]}@example.com",
        "password": "simulate123",
    }


async def register(client: httpx.AsyncClient, base_url: str) -> dict[str, str]:
    """Register a fresh account and return bearer headers for it."""
    response = await client.post(f"{base_url}/api/auth/register", json=generate_random_account())
    response.raise_for_status()
    token = response.json()["data"]["token"]
    return {"Authorization": f"Bearer {token}"}


# =============================================================================
# BOOKING BURST
# =============================================================================

async def send_booking(
    client: httpx.AsyncClient,
    base_url: str,
    booking_num: int,
    slot: dict[str, Any],
) -> dict[str, Any]:
    """Register a user and book the shared slot for them."""
    start_time = time.time()

    try:
        headers = await register(client, base_url)
        response = await client.post(
            f"{base_url}/api/reservations",
            json={
                **slot,
                "people_count": random.randint(1, 8),
                "special_requests": random.choice(SPECIAL_REQUESTS),
            },
            headers=headers,
            timeout=30.0,
        )
        elapsed = round(time.time() - start_time, 3)

        if response.status_code == 201:
            reservation = response.json()["data"]["reservation"]
            return {
                "booking_num": booking_num,
                "success": True,
                "reservation_id": reservation["id"],
                "time": elapsed,
            }
        return {
            "booking_num": booking_num,
            "success": False,
            "error": response.text[:100],
            "time": elapsed,
        }
    except httpx.HTTPError as e:
        elapsed = round(time.time() - start_time, 3)
        return {
            "booking_num": booking_num,
            "success": False,
            "error": str(e)[:100],
            "time": elapsed,
        }


async def run_simulation(base_url: str, num_bookings: int = TOTAL_BOOKINGS) -> dict[str, Any]:
    """
    Fire ``num_bookings`` concurrent bookings for one slot.

    Args:
        base_url: Server root, e.g. http://localhost:3000
        num_bookings: Number of concurrent bookings
    """
    slot = {
        "restaurant_id": 1,
        "date": (date.today() + timedelta(days=14)).isoformat(),
        "time": "19:00",
    }

    print("=" * 70)
    print("🔥 BOOKING BURST - SAME SLOT, CONCURRENT CLIENTS")
    print("=" * 70)
    print(f"📋 Total Bookings: {num_bookings}")
    print(f"🎯 Target: {base_url}")
    print(f"🍽️  Slot: restaurant #{slot['restaurant_id']} on {slot['date']} at {slot['time']}")
    print(f"⏰ Started: {datetime.now().strftime('%H:%M:%S')}")
    print("=" * 70)

    start_time = time.time()

    async with httpx.AsyncClient() as client:
        tasks = [send_booking(client, base_url, i + 1, slot) for i in range(num_bookings)]
        results = await asyncio.gather(*tasks)

    total_time = round(time.time() - start_time, 2)

    successful = [r for r in results if r["success"]]
    failed = [r for r in results if not r["success"]]
    distinct_ids = {r["reservation_id"] for r in successful}

    print("\n" + "=" * 70)
    print("📊 SIMULATION RESULTS")
    print("=" * 70)

    print(f"\n✅ Successful Bookings: {len(successful)}/{num_bookings}")
    print(f"❌ Failed Bookings: {len(failed)}/{num_bookings}")
    print(f"🆔 Distinct Reservation IDs: {len(distinct_ids)}")
    print(f"⏱️  Total Time: {total_time}s")

    if successful:
        avg_time = round(sum(r["time"] for r in successful) / len(successful), 3)
        print(f"\n📈 Performance Metrics:")
        print(f"   Average Response: {avg_time}s")
        print(f"   Fastest: {min(r['time'] for r in successful)}s")
        print(f"   Slowest: {max(r['time'] for r in successful)}s")

    if failed:
        print(f"\n⚠️  Failed Booking Details (showing first 5):")
        for f in failed[:5]:
            print(f"   Booking #{f['booking_num']}: {f.get('error', 'Unknown error')}")

    print("=" * 70)

    return {
        "total": num_bookings,
        "successful": len(successful),
        "failed": len(failed),
        "distinct_ids": len(distinct_ids),
        "total_time": total_time,
        "results": results,
    }


# =============================================================================
# PRE-FLIGHT
# =============================================================================

async def run_preflight(base_url: str) -> bool:
    """Walk one reservation through its whole lifecycle."""
    print("\n" + "=" * 70)
    print("🧪 PRE-FLIGHT: RESERVATION LIFECYCLE")
    print("=" * 70)

    async with httpx.AsyncClient(base_url=base_url, timeout=30.0) as client:
        print("\n1️⃣ Health Check...")
        response = await client.get("/api/health")
        if response.status_code != 200:
            print(f"   ❌ Failed: {response.text}")
            return False
        data = response.json()
        print(f"   ✅ Status: {data.get('status')} (storage: {data.get('storage')})")

        print("\n2️⃣ Register...")
        headers = await register(client, "")
        print("   ✅ Token issued")

        print("\n3️⃣ Create Reservation...")
        response = await client.post(
            "/api/reservations",
            json={
                "restaurant_id": 2,
                "date": (date.today() + timedelta(days=7)).isoformat(),
                "time": "18:30",
                "people_count": 2,
            },
            headers=headers,
        )
        if response.status_code != 201:
            print(f"   ❌ Failed: {response.text[:100]}")
            return False
        reservation_id = response.json()["data"]["reservation"]["id"]
        print(f"   ✅ Reservation #{reservation_id} confirmed")

        print("\n4️⃣ List Reservations...")
        response = await client.get("/api/user/reservations", headers=headers)
        total = response.json()["data"]["pagination"]["total"]
        print(f"   {'✅' if total == 1 else '❌'} {total} reservation(s) listed")

        print("\n5️⃣ Update Party Size...")
        response = await client.put(
            f"/api/reservations/{reservation_id}",
            json={"people_count": 4},
            headers=headers,
        )
        people = response.json().get("data", {}).get("reservation", {}).get("people_count")
        print(f"   {'✅' if people == 4 else '❌'} people_count = {people}")

        print("\n6️⃣ Cancel...")
        response = await client.delete(f"/api/reservations/{reservation_id}", headers=headers)
        print(f"   {'✅' if response.status_code == 200 else '❌'} {response.json().get('message')}")

        print("\n7️⃣ Update After Cancel (must be rejected)...")
        response = await client.put(
            f"/api/reservations/{reservation_id}",
            json={"people_count": 6},
            headers=headers,
        )
        if response.status_code != 400:
            print(f"   ❌ Expected 400, got {response.status_code}")
            return False
        print(f"   ✅ {response.json().get('message')}")

    print("\n" + "=" * 70)
    return True


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Booking Burst Simulation Script")
    parser.add_argument("--base-url", default=API_BASE_URL, help="Server root URL")
    parser.add_argument("--bookings", type=int, default=TOTAL_BOOKINGS, help="Number of bookings")
    parser.add_argument("--skip-tests", action="store_true", help="Skip the pre-flight lifecycle run")
    args = parser.parse_args()

    if not args.skip_tests:
        success = asyncio.run(run_preflight(args.base_url))
        if not success:
            print("\n❌ Pre-flight failed. Fix issues before running the simulation.")
            sys.exit(1)
        print("\n✅ Pre-flight passed!")

    summary = asyncio.run(run_simulation(args.base_url, num_bookings=args.bookings))
    sys.exit(0 if summary["failed"] == 0 else 1)
