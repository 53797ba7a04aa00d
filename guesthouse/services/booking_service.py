import json
import logging
from datetime import datetime, timezone
from typing import Callable, List, Optional

from sqlalchemy import delete, or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from guesthouse.core.config import Settings, settings as default_settings
from guesthouse.core.errors import (
    InternalError,
    InvalidInputError,
    InvalidTransitionError,
    NoAvailabilityError,
    NoCapacityError,
    NotFoundError,
    RateLimitedError,
)
from guesthouse.core.rate_limiter import NoopRateLimiter, RateLimiter
from guesthouse.models import (
    ACTIVE_STATUSES,
    BlockedDate,
    Booking,
    BookingNight,
    BookingStatus,
    PaymentStatus,
    Room,
)
from guesthouse.schemas.booking import (
    BookingRequest,
    BookingUpdate,
    parse_booking_request,
)
from guesthouse.services.pricing import PriceQuote, quote_stay
from guesthouse.utils.booking_id import generate_booking_id
from guesthouse.utils.validators import iter_nights, last_night

logger = logging.getLogger(__name__)

NIGHT_CONSTRAINT = "uq_booking_nights_room_night"


def is_night_conflict(error: IntegrityError) -> bool:
    """
    True when the driver rejected a (room, night) claim.
    PostgreSQL names the constraint, SQLite names the columns.
    """
    message = str(error.orig)
    return (
        NIGHT_CONSTRAINT in message
        or "booking_nights.room_id, booking_nights.night" in message
    )


class BookingAdmissionService:
    """
    Guest-facing booking creation.

    Room selection is first fit over active rooms of the requested type that
    can hold the party, cheapest first (then oldest, then lowest id). The
    per-room block/overlap checks only avoid pointless inserts: the unique
    (room_id, night) constraint on booking_nights decides races, and losing
    one is reported as NoAvailability.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        settings: Settings = default_settings,
        rate_limiter: Optional[RateLimiter] = None,
        booking_id_factory: Callable[..., str] = generate_booking_id,
    ):
        self.session_factory = session_factory
        self.settings = settings
        self.rate_limiter = rate_limiter or NoopRateLimiter()
        self.booking_id_factory = booking_id_factory

    async def admit(self, raw_body: bytes, client_key: str) -> str:
        """
        Full admission pipeline for one HTTP request body.
        Throttle, validate, then book. Returns the booking reference.
        """
        if not self.rate_limiter.allow(client_key):
            logger.warning("Booking rate limit exceeded for %s", client_key)
            raise RateLimitedError()

        try:
            payload = json.loads(raw_body)
        except (json.JSONDecodeError, UnicodeDecodeError):
            raise InvalidInputError("Invalid JSON") from None

        request = parse_booking_request(payload, self.settings)
        booking = await self.create_booking(request)
        return booking.booking_id

    async def create_booking(self, request: BookingRequest) -> Booking:
        async with self.session_factory() as session:
            try:
                rooms = await self._candidate_rooms(session, request)
                if not rooms:
                    logger.warning(
                        "No %s room holds %s guests",
                        request.room_type.value,
                        request.total_guests,
                    )
                    raise NoCapacityError()

                room = await self._first_free_room(session, rooms, request)
            except SQLAlchemyError as e:
                logger.error(f"Error checking availability: {e}", exc_info=True)
                raise InternalError("Unable to check availability") from None

            if room is None:
                logger.warning(
                    "No %s room free for %s - %s",
                    request.room_type.value,
                    request.check_in_date,
                    request.check_out_date,
                )
                raise NoAvailabilityError()

            quote = quote_stay(room.price_per_night, request.nights, self.settings.tax_rate)
            booking = self._build_booking(room, request, quote)
            await self._persist(session, booking)

        logger.info(
            f"Booking {booking.booking_id} created: room #{booking.room_id}, "
            f"{booking.check_in_date} - {booking.check_out_date}, total {booking.total_amount}"
        )
        return booking

    async def _candidate_rooms(
        self, session: AsyncSession, request: BookingRequest
    ) -> List[Room]:
        stmt = (
            select(Room)
            .where(
                Room.is_active.is_(True),
                Room.room_type == request.room_type,
                Room.max_guests >= request.total_guests,
                Room.price_per_night > 0,
            )
            .order_by(Room.price_per_night, Room.created_at, Room.id)
            .limit(self.settings.catalog_limit)
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    async def _first_free_room(
        self, session: AsyncSession, rooms: List[Room], request: BookingRequest
    ) -> Optional[Room]:
        for room in rooms:
            if await self._is_blocked(session, room.id, request):
                continue
            if await self._has_overlap(session, room.id, request):
                continue
            return room
        return None

    async def _is_blocked(
        self, session: AsyncSession, room_id: int, request: BookingRequest
    ) -> bool:
        # Global blocks have no room_id
        stmt = (
            select(BlockedDate.id)
            .where(
                BlockedDate.blocked_date >= request.check_in_date,
                BlockedDate.blocked_date <= last_night(request.check_out_date),
                or_(BlockedDate.room_id.is_(None), BlockedDate.room_id == room_id),
            )
            .limit(1)
        )
        result = await session.execute(stmt)
        return result.first() is not None

    async def _has_overlap(
        self, session: AsyncSession, room_id: int, request: BookingRequest
    ) -> bool:
        # Half-open ranges: a stay ending on our check-in day does not conflict
        stmt = (
            select(Booking.id)
            .where(
                Booking.room_id == room_id,
                Booking.status.in_(ACTIVE_STATUSES),
                Booking.check_in_date < request.check_out_date,
                Booking.check_out_date > request.check_in_date,
            )
            .limit(1)
        )
        result = await session.execute(stmt)
        return result.first() is not None

    def _build_booking(
        self, room: Room, request: BookingRequest, quote: PriceQuote
    ) -> Booking:
        now = datetime.now(timezone.utc).replace(tzinfo=None)
        booking = Booking(
            booking_id=self.booking_id_factory(self.settings.booking_id_prefix),
            room_id=room.id,
            room_type=room.room_type,
            check_in_date=request.check_in_date,
            check_out_date=request.check_out_date,
            total_nights=request.nights,
            adults=request.adults,
            children=request.children,
            full_name=request.full_name,
            mobile_number=request.mobile_number,
            email=request.email,
            special_requests=request.special_requests,
            subtotal=quote.subtotal,
            tax_amount=quote.tax,
            total_amount=quote.total,
            status=BookingStatus.PENDING,
            payment_status=PaymentStatus.UNPAID,
            created_at=now,
            updated_at=now,
        )
        booking.nights = [
            BookingNight(room_id=room.id, night=night)
            for night in iter_nights(request.check_in_date, request.check_out_date)
        ]
        return booking

    async def _persist(self, session: AsyncSession, booking: Booking) -> None:
        """Single commit point: the booking and its night claims, or nothing."""
        session.add(booking)
        try:
            await session.commit()
        except IntegrityError as e:
            await session.rollback()
            if is_night_conflict(e):
                logger.warning(
                    f"Room #{booking.room_id} taken concurrently for "
                    f"{booking.check_in_date} - {booking.check_out_date}"
                )
                raise NoAvailabilityError() from None
            logger.error(f"Error creating booking: {e}", exc_info=True)
            raise InternalError("Unable to create booking") from None
        except SQLAlchemyError as e:
            await session.rollback()
            logger.error(f"Error creating booking: {e}", exc_info=True)
            raise InternalError("Unable to create booking") from None


class BookingAdminService:
    """Back-office operations on existing bookings."""

    ALLOWED_TRANSITIONS = {
        BookingStatus.PENDING: {
            BookingStatus.CONFIRMED,
            BookingStatus.CANCELLED,
            BookingStatus.COMPLETED,
        },
        BookingStatus.CONFIRMED: {
            BookingStatus.CANCELLED,
            BookingStatus.COMPLETED,
        },
    }

    @staticmethod
    async def list_bookings(
        db: AsyncSession, status: Optional[BookingStatus] = None
    ) -> List[Booking]:
        stmt = select(Booking)
        if status:
            stmt = stmt.where(Booking.status == status)
        stmt = stmt.order_by(Booking.created_at.desc(), Booking.id.desc())
        result = await db.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def get_booking(db: AsyncSession, booking_id: str) -> Booking:
        result = await db.execute(select(Booking).where(Booking.booking_id == booking_id))
        booking = result.scalar_one_or_none()
        if not booking:
            raise NotFoundError("Booking not found")
        return booking

    @staticmethod
    async def update_status(
        db: AsyncSession, booking_id: str, new_status: BookingStatus
    ) -> Booking:
        booking = await BookingAdminService.get_booking(db, booking_id)
        allowed = BookingAdminService.ALLOWED_TRANSITIONS.get(booking.status, set())
        if new_status not in allowed:
            raise InvalidTransitionError(
                f"Cannot change status from {booking.status.value} to {new_status.value}"
            )

        booking.status = new_status
        booking.updated_at = datetime.now(timezone.utc).replace(tzinfo=None)
        if new_status not in ACTIVE_STATUSES:
            # Free the nights for new admissions
            await db.execute(delete(BookingNight).where(BookingNight.booking_pk == booking.id))

        await db.commit()
        await db.refresh(booking)
        logger.info(f"Booking {booking.booking_id} status -> {new_status.value}")
        return booking

    @staticmethod
    async def update_booking(
        db: AsyncSession,
        booking_id: str,
        booking_in: BookingUpdate,
        settings: Settings = default_settings,
    ) -> Booking:
        booking = await BookingAdminService.get_booking(db, booking_id)
        update_data = booking_in.model_dump(exclude_unset=True)

        if "adults" in update_data or "children" in update_data:
            field = "children" if "children" in update_data else "adults"
            total = update_data.get("adults", booking.adults) + update_data.get(
                "children", booking.children
            )
            if total > settings.max_guests:
                raise InvalidInputError("Too many guests", field=field)
            room = await db.get(Room, booking.room_id)
            if room is not None and total > room.max_guests:
                raise InvalidInputError("Room cannot hold this many guests", field=field)

        for key, value in update_data.items():
            setattr(booking, key, value)
        booking.updated_at = datetime.now(timezone.utc).replace(tzinfo=None)

        await db.commit()
        await db.refresh(booking)
        logger.info(f"Booking {booking.booking_id} edited: {sorted(update_data)}")
        return booking

    @staticmethod
    async def delete_booking(db: AsyncSession, booking_id: str) -> None:
        booking = await BookingAdminService.get_booking(db, booking_id)
        await db.execute(delete(BookingNight).where(BookingNight.booking_pk == booking.id))
        await db.delete(booking)
        await db.commit()
        logger.info(f"Booking {booking_id} deleted")
