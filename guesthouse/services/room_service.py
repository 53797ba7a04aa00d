from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from guesthouse.core.errors import NotFoundError
from guesthouse.models import Room, RoomType
from guesthouse.schemas.room import RoomCreate, RoomUpdate


class RoomService:
    @staticmethod
    async def get_all_rooms(
        db: AsyncSession, room_type: Optional[RoomType] = None
    ) -> List[Room]:
        stmt = select(Room)
        if room_type:
            stmt = stmt.where(Room.room_type == room_type)
        result = await db.execute(stmt.order_by(Room.id))
        return list(result.scalars().all())

    @staticmethod
    async def get_room_by_id(db: AsyncSession, room_id: int) -> Room:
        room = await db.get(Room, room_id)
        if not room:
            raise NotFoundError("Room not found")
        return room

    @staticmethod
    async def create_room(db: AsyncSession, room_in: RoomCreate) -> Room:
        db_room = Room(**room_in.model_dump())
        db.add(db_room)
        await db.commit()
        await db.refresh(db_room)
        return db_room

    @staticmethod
    async def update_room(db: AsyncSession, room_id: int, room_in: RoomUpdate) -> Room:
        db_room = await RoomService.get_room_by_id(db, room_id)

        # Partial update: only fields the admin actually sent
        update_data = room_in.model_dump(exclude_unset=True)
        for key, value in update_data.items():
            setattr(db_room, key, value)

        await db.commit()
        await db.refresh(db_room)
        return db_room
