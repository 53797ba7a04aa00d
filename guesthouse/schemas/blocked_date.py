from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class BlockedDateCreate(BaseModel):
    # None blocks the dates for every room
    room_id: Optional[int] = None
    dates: list[date] = Field(min_length=1, max_length=366)
    reason: Optional[str] = Field(default=None, max_length=255)


class BlockedDateOut(BaseModel):
    id: int
    room_id: Optional[int]
    blocked_date: date
    reason: Optional[str]
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
