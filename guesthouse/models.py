from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    Enum as SQLEnum,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from guesthouse.database import Base


class RoomType(str, Enum):
    AC = "ac"
    NON_AC = "non_ac"


class BookingStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


# Statuses that occupy the room's nights
ACTIVE_STATUSES = (BookingStatus.PENDING, BookingStatus.CONFIRMED)


class PaymentStatus(str, Enum):
    UNPAID = "unpaid"
    PAID = "paid"
    REFUNDED = "refunded"


class Room(Base):
    __tablename__ = "rooms"
    __table_args__ = (
        CheckConstraint("price_per_night > 0", name="ck_rooms_price_positive"),
        CheckConstraint("max_guests >= 1", name="ck_rooms_capacity_positive"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(120))
    room_type: Mapped[RoomType] = mapped_column(SQLEnum(RoomType), index=True)
    price_per_night: Mapped[Decimal] = mapped_column(Numeric(10, 2))
    max_guests: Mapped[int] = mapped_column(Integer, default=2)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    bookings: Mapped[list["Booking"]] = relationship(back_populates="room")


class BlockedDate(Base):
    """Admin-declared unavailability. room_id NULL blocks every room."""

    __tablename__ = "blocked_dates"
    __table_args__ = (
        UniqueConstraint("room_id", "blocked_date", name="uq_blocked_dates_room_date"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    room_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("rooms.id", ondelete="CASCADE"), nullable=True, index=True
    )
    blocked_date: Mapped[date] = mapped_column(Date, index=True)
    reason: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)


class Booking(Base):
    __tablename__ = "bookings"
    __table_args__ = (
        CheckConstraint("check_out_date > check_in_date", name="ck_bookings_dates"),
        CheckConstraint("total_nights >= 1", name="ck_bookings_nights"),
        CheckConstraint("adults >= 1 AND children >= 0", name="ck_bookings_guests"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    booking_id: Mapped[str] = mapped_column(String(32), unique=True, index=True)

    # Room
    room_id: Mapped[int] = mapped_column(ForeignKey("rooms.id"), index=True)
    room: Mapped["Room"] = relationship(back_populates="bookings")
    room_type: Mapped[RoomType] = mapped_column(SQLEnum(RoomType))

    # Stay, check-out is exclusive
    check_in_date: Mapped[date] = mapped_column(Date)
    check_out_date: Mapped[date] = mapped_column(Date)
    total_nights: Mapped[int] = mapped_column(Integer)
    adults: Mapped[int] = mapped_column(Integer, default=1)
    children: Mapped[int] = mapped_column(Integer, default=0)

    # Guest
    full_name: Mapped[str] = mapped_column(String(100))
    mobile_number: Mapped[str] = mapped_column(String(16))
    email: Mapped[str] = mapped_column(String(255))
    special_requests: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Money
    subtotal: Mapped[Decimal] = mapped_column(Numeric(10, 2))
    tax_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2))
    total_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2))

    # Metadata
    status: Mapped[BookingStatus] = mapped_column(
        SQLEnum(BookingStatus), default=BookingStatus.PENDING, index=True
    )
    payment_status: Mapped[PaymentStatus] = mapped_column(
        SQLEnum(PaymentStatus), default=PaymentStatus.UNPAID
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    nights: Mapped[list["BookingNight"]] = relationship(
        back_populates="booking",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class BookingNight(Base):
    """
    One occupied (room, night) pair of an active booking.

    The unique constraint is what actually prevents double booking when two
    admissions race for the same room: the second transaction fails on insert.
    """

    __tablename__ = "booking_nights"
    __table_args__ = (
        UniqueConstraint("room_id", "night", name="uq_booking_nights_room_night"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    booking_pk: Mapped[int] = mapped_column(
        ForeignKey("bookings.id", ondelete="CASCADE"), index=True
    )
    booking: Mapped["Booking"] = relationship(back_populates="nights")
    room_id: Mapped[int] = mapped_column(ForeignKey("rooms.id"))
    night: Mapped[date] = mapped_column(Date)
