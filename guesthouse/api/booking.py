from fastapi import APIRouter, Depends, Request

from guesthouse.api.deps import get_admission_service
from guesthouse.core.rate_limiter import get_client_ip
from guesthouse.schemas.booking import BookingCreatedOut
from guesthouse.services.booking_service import BookingAdmissionService

router = APIRouter(tags=["booking"])


@router.post("/create-booking", response_model=BookingCreatedOut)
async def create_booking(
    request: Request,
    service: BookingAdmissionService = Depends(get_admission_service),
):
    """
    Public booking creation.

    The body is read raw: throttling happens before parsing, and the
    validator works on the untrusted JSON object itself. Errors are raised
    as BookingError and rendered by the app-level handler.
    """
    body = await request.body()
    booking_id = await service.admit(body, get_client_ip(request))
    return BookingCreatedOut(bookingId=booking_id)
