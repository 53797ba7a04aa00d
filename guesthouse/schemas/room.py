from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from guesthouse.models import RoomType


class RoomBase(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    room_type: RoomType
    price_per_night: Decimal = Field(gt=0)
    max_guests: int = Field(default=2, ge=1)
    is_active: bool = True
    description: Optional[str] = None


class RoomCreate(RoomBase):
    pass


class RoomUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=120)
    room_type: Optional[RoomType] = None
    price_per_night: Optional[Decimal] = Field(default=None, gt=0)
    max_guests: Optional[int] = Field(default=None, ge=1)
    is_active: Optional[bool] = None
    description: Optional[str] = None


class RoomOut(RoomBase):
    id: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
