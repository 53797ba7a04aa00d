import logging
from datetime import date
from typing import List, Optional

from sqlalchemy import and_, delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from guesthouse.core.errors import NotFoundError
from guesthouse.models import BlockedDate
from guesthouse.schemas.blocked_date import BlockedDateCreate
from guesthouse.services.room_service import RoomService

logger = logging.getLogger(__name__)


class BlockedDateService:
    @staticmethod
    async def list_blocked_dates(
        db: AsyncSession,
        room_id: Optional[int] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> List[BlockedDate]:
        stmt = select(BlockedDate)
        filters = []
        if room_id is not None:
            filters.append(BlockedDate.room_id == room_id)
        if date_from:
            filters.append(BlockedDate.blocked_date >= date_from)
        if date_to:
            filters.append(BlockedDate.blocked_date <= date_to)
        if filters:
            stmt = stmt.where(and_(*filters))
        result = await db.execute(stmt.order_by(BlockedDate.blocked_date, BlockedDate.id))
        return list(result.scalars().all())

    @staticmethod
    async def block_dates(db: AsyncSession, payload: BlockedDateCreate) -> List[BlockedDate]:
        """
        Block each date for one room, or for all rooms when room_id is None.
        Dates already blocked for the same scope are returned as-is.
        """
        if payload.room_id is not None:
            await RoomService.get_room_by_id(db, payload.room_id)

        scope = (
            BlockedDate.room_id.is_(None)
            if payload.room_id is None
            else BlockedDate.room_id == payload.room_id
        )
        wanted = sorted(set(payload.dates))
        result = await db.execute(
            select(BlockedDate).where(scope, BlockedDate.blocked_date.in_(wanted))
        )
        existing = {b.blocked_date: b for b in result.scalars().all()}

        created = []
        for day in wanted:
            if day in existing:
                continue
            block = BlockedDate(room_id=payload.room_id, blocked_date=day, reason=payload.reason)
            db.add(block)
            created.append(block)

        await db.commit()
        logger.info(
            f"Blocked {len(created)} date(s) for "
            f"{'all rooms' if payload.room_id is None else f'room #{payload.room_id}'}"
        )
        return sorted([*existing.values(), *created], key=lambda b: b.blocked_date)

    @staticmethod
    async def unblock_date(db: AsyncSession, blocked_id: int) -> None:
        result = await db.execute(delete(BlockedDate).where(BlockedDate.id == blocked_id))
        await db.commit()
        if result.rowcount == 0:
            raise NotFoundError("Blocked date not found")
