"""
Booking request/response schemas.

``parse_booking_request`` is the trust boundary for the public endpoint:
the raw JSON object goes in, either a fully validated ``BookingRequest``
comes out or ``InvalidInputError`` is raised. Nothing downstream re-checks
or coerces request values.
"""
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictInt,
    ValidationError,
    field_validator,
)

from guesthouse.core.config import Settings, settings as default_settings
from guesthouse.core.errors import InvalidInputError
from guesthouse.models import BookingStatus, PaymentStatus, RoomType
from guesthouse.utils.validators import (
    count_nights,
    is_valid_email,
    is_valid_mobile,
    parse_date_only,
)

# Guest-facing message per request key. Pydantic's own messages are never
# returned because they may echo the submitted value.
FIELD_MESSAGES = {
    "roomType": "Invalid room type",
    "checkInDate": "Invalid dates",
    "checkOutDate": "Invalid dates",
    "fullName": "Invalid full name",
    "mobileNumber": "Invalid mobile number",
    "email": "Invalid email",
    "adults": "Invalid adults count",
    "children": "Invalid children count",
    "specialRequests": "Special requests too long",
}


def _require_str(value: Any) -> str:
    if not isinstance(value, str):
        raise ValueError("must be a string")
    return value.strip()


def _clean_mobile(value: Any) -> str:
    mobile = _require_str(value)
    if not is_valid_mobile(mobile):
        raise ValueError("invalid mobile number")
    return mobile


def _clean_email(value: Any) -> str:
    email = _require_str(value)
    if not is_valid_email(email):
        raise ValueError("invalid email")
    return email


def _clean_requests(value: Any) -> Optional[str]:
    if value is None:
        return None
    return _require_str(value) or None


class BookingRequest(BaseModel):
    """Validated guest booking request (camelCase on the wire)."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    room_type: RoomType = Field(alias="roomType")
    check_in_date: date = Field(alias="checkInDate")
    check_out_date: date = Field(alias="checkOutDate")
    full_name: str = Field(alias="fullName", min_length=2, max_length=100)
    mobile_number: str = Field(alias="mobileNumber")
    email: str = Field(alias="email")
    adults: StrictInt = Field(alias="adults", ge=1, le=8)
    children: StrictInt = Field(alias="children", ge=0, le=8)
    special_requests: Optional[str] = Field(
        default=None, alias="specialRequests", max_length=500
    )

    @field_validator("room_type", mode="before")
    @classmethod
    def room_type_is_exact(cls, v: Any):
        if not isinstance(v, str):
            raise ValueError("unknown room type")
        return v

    @field_validator("check_in_date", "check_out_date", mode="before")
    @classmethod
    def strict_date(cls, v: Any) -> date:
        parsed = parse_date_only(v) if isinstance(v, str) else None
        if parsed is None:
            raise ValueError("expected YYYY-MM-DD")
        return parsed

    @field_validator("full_name", mode="before")
    @classmethod
    def trim_name(cls, v: Any) -> str:
        return _require_str(v)

    @field_validator("mobile_number", mode="before")
    @classmethod
    def check_mobile(cls, v: Any) -> str:
        return _clean_mobile(v)

    @field_validator("email", mode="before")
    @classmethod
    def check_email(cls, v: Any) -> str:
        return _clean_email(v)

    @field_validator("special_requests", mode="before")
    @classmethod
    def trim_requests(cls, v: Any) -> Optional[str]:
        return _clean_requests(v)

    @property
    def total_guests(self) -> int:
        return self.adults + self.children

    @property
    def nights(self) -> int:
        return count_nights(self.check_in_date, self.check_out_date)


def parse_booking_request(
    data: Any, settings: Settings = default_settings
) -> BookingRequest:
    """Validate a raw request body. Raises InvalidInputError on the first bad field."""
    if not isinstance(data, dict):
        raise InvalidInputError("Invalid JSON")

    try:
        request = BookingRequest.model_validate(data)
    except ValidationError as exc:
        first = exc.errors()[0]
        field = str(first["loc"][0]) if first.get("loc") else None
        raise InvalidInputError(
            FIELD_MESSAGES.get(field, "Invalid request"), field=field
        ) from None

    if request.check_out_date <= request.check_in_date:
        raise InvalidInputError(
            "Check-out must be after check-in", field="checkOutDate"
        )
    if not 1 <= request.nights <= settings.max_nights:
        raise InvalidInputError("Invalid stay length", field="checkOutDate")
    if request.total_guests > settings.max_guests:
        raise InvalidInputError("Too many guests", field="children")

    return request


class BookingCreatedOut(BaseModel):
    bookingId: str


class BookingOut(BaseModel):
    id: int
    booking_id: str
    room_id: int
    room_type: RoomType
    check_in_date: date
    check_out_date: date
    total_nights: int
    adults: int
    children: int
    full_name: str
    mobile_number: str
    email: str
    special_requests: Optional[str] = None
    subtotal: Decimal
    tax_amount: Decimal
    total_amount: Decimal
    status: BookingStatus
    payment_status: PaymentStatus
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class BookingStatusUpdate(BaseModel):
    status: BookingStatus


class BookingUpdate(BaseModel):
    """
    Admin edit of guest details. Dates, room and amounts are not editable;
    only the fields actually sent are applied.
    """

    model_config = ConfigDict(extra="forbid")

    full_name: Optional[str] = Field(default=None, min_length=2, max_length=100)
    mobile_number: Optional[str] = None
    email: Optional[str] = None
    adults: Optional[StrictInt] = Field(default=None, ge=1, le=8)
    children: Optional[StrictInt] = Field(default=None, ge=0, le=8)
    special_requests: Optional[str] = Field(default=None, max_length=500)

    @field_validator("full_name", mode="before")
    @classmethod
    def trim_name(cls, v: Any) -> str:
        return _require_str(v)

    @field_validator("mobile_number", mode="before")
    @classmethod
    def check_mobile(cls, v: Any) -> str:
        return _clean_mobile(v)

    @field_validator("email", mode="before")
    @classmethod
    def check_email(cls, v: Any) -> str:
        return _clean_email(v)

    @field_validator("adults", "children", mode="before")
    @classmethod
    def counts_not_null(cls, v: Any) -> Any:
        if v is None:
            raise ValueError("must be an integer")
        return v

    @field_validator("special_requests", mode="before")
    @classmethod
    def trim_requests(cls, v: Any) -> Optional[str]:
        return _clean_requests(v)
