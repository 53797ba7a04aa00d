"""
Pytest configuration for guesthouse booking tests
"""
import os
import sys
from decimal import Decimal
from pathlib import Path

import pytest
import pytest_asyncio
from sqlalchemy.pool import NullPool

# Ensure guesthouse is importable
sys.path.insert(0, str(Path(__file__).parent.parent))

# Never touch a developer's real database from tests
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

from guesthouse.core.config import Settings  # noqa: E402
from guesthouse.database import init_db, make_engine, make_session_factory  # noqa: E402
from guesthouse.models import Room, RoomType  # noqa: E402
from guesthouse.schemas.booking import parse_booking_request  # noqa: E402


@pytest.fixture
def test_settings():
    return Settings(admin_api_token="test-admin-token")


@pytest.fixture
def db_url(tmp_path):
    # File database: concurrent sessions need separate connections
    return f"sqlite+aiosqlite:///{tmp_path / 'guesthouse-test.db'}"


@pytest_asyncio.fixture
async def engine(db_url):
    engine = make_engine(db_url, poolclass=NullPool)
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return make_session_factory(engine)


@pytest.fixture
def make_room(session_factory):
    """Insert a room and return it."""

    async def _make_room(
        name="Room",
        room_type=RoomType.AC,
        price="3000",
        max_guests=4,
        is_active=True,
    ) -> Room:
        async with session_factory() as session:
            room = Room(
                name=name,
                room_type=room_type,
                price_per_night=Decimal(price),
                max_guests=max_guests,
                is_active=is_active,
            )
            session.add(room)
            await session.commit()
            await session.refresh(room)
            return room

    return _make_room


@pytest.fixture
def sample_booking_data():
    """Valid request body for the public endpoint"""
    return {
        "roomType": "ac",
        "checkInDate": "2025-03-01",
        "checkOutDate": "2025-03-03",
        "fullName": "Asha Verma",
        "mobileNumber": "9876543210",
        "email": "asha@example.com",
        "adults": 2,
        "children": 0,
        "specialRequests": None,
    }


@pytest.fixture
def make_request(sample_booking_data):
    """Validated BookingRequest with field overrides (camelCase keys)."""

    def _make_request(**overrides):
        return parse_booking_request({**sample_booking_data, **overrides})

    return _make_request
