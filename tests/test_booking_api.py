"""
HTTP-level tests for the FastAPI app (TestClient).
"""
import asyncio
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import NullPool

from guesthouse.core.config import Settings
from guesthouse.core.rate_limiter import SlidingWindowRateLimiter
from guesthouse.database import init_db, make_engine, make_session_factory
from guesthouse.main import create_app
from guesthouse.models import Room, RoomType

ADMIN_HEADERS = {"Authorization": "Bearer test-admin-token"}


async def _seed(engine):
    await init_db(engine)
    async with make_session_factory(engine)() as session:
        session.add_all(
            [
                Room(name="AC 1", room_type=RoomType.AC, price_per_night=Decimal("3000"), max_guests=4),
                Room(name="Non-AC 1", room_type=RoomType.NON_AC, price_per_night=Decimal("2000"), max_guests=2),
            ]
        )
        await session.commit()


@pytest.fixture
def client(db_url, test_settings):
    engine = make_engine(db_url, poolclass=NullPool)
    asyncio.run(_seed(engine))

    app = create_app(
        settings=test_settings,
        engine=engine,
        rate_limiter=SlidingWindowRateLimiter("8/minute"),
    )
    with TestClient(app) as client:
        yield client


@pytest.mark.integration
class TestCreateBooking:
    def test_success(self, client, sample_booking_data):
        response = client.post("/create-booking", json=sample_booking_data)

        assert response.status_code == 200
        booking_id = response.json()["bookingId"]
        assert booking_id.startswith("GC")

        detail = client.get(f"/admin/bookings/{booking_id}", headers=ADMIN_HEADERS).json()
        assert detail["status"] == "pending"
        assert detail["payment_status"] == "unpaid"
        assert Decimal(detail["total_amount"]) == Decimal("7080")

    def test_overlap_then_adjacent(self, client, sample_booking_data):
        assert client.post("/create-booking", json=sample_booking_data).status_code == 200

        overlap = client.post(
            "/create-booking",
            json={**sample_booking_data, "checkInDate": "2025-03-02", "checkOutDate": "2025-03-04"},
        )
        assert overlap.status_code == 409
        assert overlap.json() == {
            "error": "No rooms available for selected dates",
            "kind": "no_availability",
        }

        adjacent = client.post(
            "/create-booking",
            json={**sample_booking_data, "checkInDate": "2025-03-03", "checkOutDate": "2025-03-05"},
        )
        assert adjacent.status_code == 200

    def test_invalid_dates_write_nothing(self, client, sample_booking_data):
        response = client.post(
            "/create-booking", json={**sample_booking_data, "checkOutDate": "2025-03-01"}
        )

        assert response.status_code == 400
        body = response.json()
        assert body["kind"] == "invalid_input"
        assert body["field"] == "checkOutDate"
        assert client.get("/admin/bookings", headers=ADMIN_HEADERS).json() == []

    def test_too_many_guests(self, client, sample_booking_data):
        response = client.post(
            "/create-booking", json={**sample_booking_data, "adults": 6, "children": 3}
        )
        assert response.status_code == 400
        assert response.json()["error"] == "Too many guests"
        assert response.json()["field"] == "children"

    def test_no_capacity(self, client, sample_booking_data):
        response = client.post(
            "/create-booking",
            json={**sample_booking_data, "roomType": "non_ac", "adults": 3},
        )
        assert response.status_code == 409
        assert response.json()["kind"] == "no_capacity"

    def test_malformed_json(self, client):
        response = client.post(
            "/create-booking",
            content=b"{broken",
            headers={"Content-Type": "application/json"},
        )
        assert response.status_code == 400
        assert response.json()["error"] == "Invalid JSON"

    def test_get_not_allowed(self, client):
        assert client.get("/create-booking").status_code == 405

    def test_global_block(self, client, sample_booking_data):
        blocked = client.post(
            "/admin/blocked-dates",
            json={"room_id": None, "dates": ["2025-03-02"], "reason": "Festival"},
            headers=ADMIN_HEADERS,
        )
        assert blocked.status_code == 201

        response = client.post("/create-booking", json=sample_booking_data)
        assert response.status_code == 409
        assert response.json()["kind"] == "no_availability"


@pytest.mark.integration
class TestRateLimit:
    def test_ninth_request_gets_429(self, client, sample_booking_data):
        bad = {**sample_booking_data, "email": "nope"}
        codes = [client.post("/create-booking", json=bad).status_code for _ in range(9)]

        assert codes == [400] * 8 + [429]
        last = client.post("/create-booking", json=sample_booking_data)
        assert last.json() == {"error": "Too many requests", "kind": "rate_limited"}

    def test_limit_is_per_caller(self, client, sample_booking_data):
        bad = {**sample_booking_data, "email": "nope"}
        for _ in range(8):
            client.post("/create-booking", json=bad, headers={"X-Forwarded-For": "203.0.113.1"})

        blocked = client.post("/create-booking", json=bad, headers={"X-Forwarded-For": "203.0.113.1"})
        other = client.post("/create-booking", json=bad, headers={"X-Forwarded-For": "203.0.113.2"})
        assert blocked.status_code == 429
        assert other.status_code == 400


@pytest.mark.integration
class TestCors:
    def test_preflight(self, client):
        response = client.options(
            "/create-booking",
            headers={
                "Origin": "https://guesthouse.example",
                "Access-Control-Request-Method": "POST",
                "Access-Control-Request-Headers": "content-type, apikey",
            },
        )
        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == "*"
        assert "POST" in response.headers["access-control-allow-methods"]

    def test_error_responses_carry_cors_headers(self, client):
        response = client.post(
            "/create-booking",
            json={},
            headers={"Origin": "https://guesthouse.example"},
        )
        assert response.status_code == 400
        assert response.headers["access-control-allow-origin"] == "*"


@pytest.mark.integration
class TestAdminApi:
    def test_requires_token(self, client):
        assert client.get("/admin/bookings").status_code == 401
        wrong = client.get("/admin/bookings", headers={"Authorization": "Bearer nope"})
        assert wrong.status_code == 401

    def test_status_transition(self, client, sample_booking_data):
        booking_id = client.post("/create-booking", json=sample_booking_data).json()["bookingId"]

        confirmed = client.patch(
            f"/admin/bookings/{booking_id}/status",
            json={"status": "confirmed"},
            headers=ADMIN_HEADERS,
        )
        assert confirmed.json()["status"] == "confirmed"

        back = client.patch(
            f"/admin/bookings/{booking_id}/status",
            json={"status": "pending"},
            headers=ADMIN_HEADERS,
        )
        assert back.status_code == 409
        assert back.json()["kind"] == "invalid_transition"

    def test_edit_booking(self, client, sample_booking_data):
        booking_id = client.post("/create-booking", json=sample_booking_data).json()["bookingId"]

        edited = client.patch(
            f"/admin/bookings/{booking_id}",
            json={"email": "ravi@example.com", "adults": 3, "children": 1},
            headers=ADMIN_HEADERS,
        )
        assert edited.status_code == 200
        body = edited.json()
        assert body["email"] == "ravi@example.com"
        assert (body["adults"], body["children"]) == (3, 1)
        assert body["full_name"] == "Asha Verma"

    def test_edit_booking_rejects_oversized_party(self, client, sample_booking_data):
        booking_id = client.post("/create-booking", json=sample_booking_data).json()["bookingId"]

        response = client.patch(
            f"/admin/bookings/{booking_id}",
            json={"children": 3},
            headers=ADMIN_HEADERS,
        )
        assert response.status_code == 400
        assert response.json()["field"] == "children"

    def test_edit_booking_rejects_bad_mobile(self, client, sample_booking_data):
        booking_id = client.post("/create-booking", json=sample_booking_data).json()["bookingId"]

        response = client.patch(
            f"/admin/bookings/{booking_id}",
            json={"mobile_number": "12345"},
            headers=ADMIN_HEADERS,
        )
        assert response.status_code == 422

    def test_rooms_crud(self, client):
        created = client.post(
            "/admin/rooms",
            json={"name": "AC 2", "room_type": "ac", "price_per_night": "3500", "max_guests": 3},
            headers=ADMIN_HEADERS,
        )
        assert created.status_code == 201
        room_id = created.json()["id"]

        updated = client.patch(
            f"/admin/rooms/{room_id}", json={"is_active": False}, headers=ADMIN_HEADERS
        )
        assert updated.json()["is_active"] is False

        rooms = client.get("/admin/rooms", params={"room_type": "ac"}, headers=ADMIN_HEADERS)
        assert len(rooms.json()) == 2

    def test_invalid_room_price_rejected(self, client):
        response = client.post(
            "/admin/rooms",
            json={"name": "Free", "room_type": "ac", "price_per_night": "0", "max_guests": 2},
            headers=ADMIN_HEADERS,
        )
        assert response.status_code == 422

    def test_unknown_booking(self, client):
        response = client.get("/admin/bookings/GC20250101-missing", headers=ADMIN_HEADERS)
        assert response.status_code == 404
        assert response.json()["kind"] == "not_found"


def test_admin_disabled_without_token(db_url, sample_booking_data):
    engine = make_engine(db_url, poolclass=NullPool)
    app = create_app(settings=Settings(admin_api_token=""), engine=engine)
    with TestClient(app) as client:
        response = client.get("/admin/bookings", headers=ADMIN_HEADERS)
    assert response.status_code == 503


def test_health(client):
    assert client.get("/health").json() == {"ok": True}
