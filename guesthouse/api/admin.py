from datetime import date

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from guesthouse.api.deps import get_db, get_settings, require_admin
from guesthouse.core.config import Settings
from guesthouse.models import BookingStatus, RoomType
from guesthouse.schemas.blocked_date import BlockedDateCreate, BlockedDateOut
from guesthouse.schemas.booking import BookingOut, BookingStatusUpdate, BookingUpdate
from guesthouse.schemas.room import RoomCreate, RoomOut, RoomUpdate
from guesthouse.services.blocked_date_service import BlockedDateService
from guesthouse.services.booking_service import BookingAdminService
from guesthouse.services.room_service import RoomService

router = APIRouter(
    prefix="/admin",
    tags=["admin"],
    dependencies=[Depends(require_admin)],
)


# Rooms


@router.get("/rooms", response_model=list[RoomOut])
async def list_rooms(
    room_type: RoomType | None = Query(default=None),
    db: AsyncSession = Depends(get_db),
):
    return await RoomService.get_all_rooms(db, room_type)


@router.post("/rooms", response_model=RoomOut, status_code=status.HTTP_201_CREATED)
async def create_room(payload: RoomCreate, db: AsyncSession = Depends(get_db)):
    return await RoomService.create_room(db, payload)


@router.patch("/rooms/{room_id}", response_model=RoomOut)
async def update_room(room_id: int, payload: RoomUpdate, db: AsyncSession = Depends(get_db)):
    return await RoomService.update_room(db, room_id, payload)


# Blocked dates


@router.get("/blocked-dates", response_model=list[BlockedDateOut])
async def list_blocked_dates(
    room_id: int | None = Query(default=None),
    date_from: date | None = Query(default=None),
    date_to: date | None = Query(default=None),
    db: AsyncSession = Depends(get_db),
):
    return await BlockedDateService.list_blocked_dates(db, room_id, date_from, date_to)


@router.post(
    "/blocked-dates",
    response_model=list[BlockedDateOut],
    status_code=status.HTTP_201_CREATED,
)
async def block_dates(payload: BlockedDateCreate, db: AsyncSession = Depends(get_db)):
    return await BlockedDateService.block_dates(db, payload)


@router.delete("/blocked-dates/{blocked_id}", status_code=status.HTTP_204_NO_CONTENT)
async def unblock_date(blocked_id: int, db: AsyncSession = Depends(get_db)):
    await BlockedDateService.unblock_date(db, blocked_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# Bookings


@router.get("/bookings", response_model=list[BookingOut])
async def list_bookings(
    status_filter: BookingStatus | None = Query(default=None, alias="status"),
    db: AsyncSession = Depends(get_db),
):
    return await BookingAdminService.list_bookings(db, status_filter)


@router.get("/bookings/{booking_id}", response_model=BookingOut)
async def get_booking(booking_id: str, db: AsyncSession = Depends(get_db)):
    return await BookingAdminService.get_booking(db, booking_id)


@router.patch("/bookings/{booking_id}", response_model=BookingOut)
async def update_booking(
    booking_id: str,
    payload: BookingUpdate,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    return await BookingAdminService.update_booking(db, booking_id, payload, settings)


@router.patch("/bookings/{booking_id}/status", response_model=BookingOut)
async def update_booking_status(
    booking_id: str, payload: BookingStatusUpdate, db: AsyncSession = Depends(get_db)
):
    return await BookingAdminService.update_status(db, booking_id, payload.status)


@router.delete("/bookings/{booking_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_booking(booking_id: str, db: AsyncSession = Depends(get_db)):
    await BookingAdminService.delete_booking(db, booking_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
