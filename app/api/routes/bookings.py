import logging

from fastapi import APIRouter, Depends, HTTPException, status

from app.api.deps import get_booking_service
from app.api.schemas.booking import (
    BookingCreated,
    BookingErrorDetail,
    BookingRequest,
    BookingSummaryOut,
    CostEstimateOut,
)
from app.core.errors import (
    BookingError,
    BookingValidationError,
    CommitInProgress,
    DateUnavailable,
    InvalidTransition,
    PersistenceFailure,
    SlotUnavailable,
    TermsNotAccepted,
)
from app.services.booking_service import BookingService
from app.services.booking_transaction import BookingSummary, CustomerDetails

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/bookings", tags=["bookings"])

_ERROR_STATUS: dict[type[BookingError], int] = {
    DateUnavailable: status.HTTP_409_CONFLICT,
    SlotUnavailable: status.HTTP_409_CONFLICT,
    CommitInProgress: status.HTTP_409_CONFLICT,
    InvalidTransition: status.HTTP_409_CONFLICT,
    TermsNotAccepted: status.HTTP_422_UNPROCESSABLE_ENTITY,
    BookingValidationError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    PersistenceFailure: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def _to_http_error(exc: BookingError) -> HTTPException:
    detail = BookingErrorDetail(
        code=exc.code,
        message=exc.message,
        retryable=exc.retryable,
        fields=getattr(exc, "fields", []),
    )
    return HTTPException(
        status_code=_ERROR_STATUS.get(type(exc), status.HTTP_400_BAD_REQUEST),
        detail=detail.model_dump(),
    )


def _customer(body: BookingRequest) -> CustomerDetails:
    return CustomerDetails(
        name=body.customer_name,
        email=str(body.customer_email) if body.customer_email else "",
        phone=body.customer_phone,
        property_address=body.property_address,
    )


def _summary_out(summary: BookingSummary) -> BookingSummaryOut:
    estimate = None
    if summary.estimate:
        estimate = CostEstimateOut(
            low=summary.estimate.low,
            high=summary.estimate.high,
            display=summary.estimate.display,
        )
    return BookingSummaryOut(
        appointment_date=summary.appointment_date,
        appointment_time=summary.time,
        duration_minutes=summary.duration_minutes,
        property_address=summary.property_address,
        customer_name=summary.customer.name,
        customer_email=summary.customer.email,
        customer_phone=summary.customer.phone,
        special_requests=summary.special_requests,
        send_reminders=summary.send_reminders,
        measurement_id=summary.measurement_id,
        roof_area_sqft=summary.roof_area_sqft,
        estimate=estimate,
    )


@router.post("/review", response_model=BookingSummaryOut)
async def review_booking(
    body: BookingRequest,
    service: BookingService = Depends(get_booking_service),
) -> BookingSummaryOut:
    """Validate a selection and return the summary to confirm. Writes nothing."""
    try:
        txn = await service.prepare(
            body.appointment_date,
            body.appointment_time,
            _customer(body),
            special_requests=body.special_requests,
            send_reminders=body.send_reminders,
            terms_accepted=body.terms_accepted,
            measurement_id=body.measurement_id,
        )
    except BookingError as e:
        raise _to_http_error(e) from e
    return _summary_out(txn.summary)


@router.post("", response_model=BookingCreated, status_code=status.HTTP_201_CREATED)
async def create_booking(
    body: BookingRequest,
    service: BookingService = Depends(get_booking_service),
) -> BookingCreated:
    try:
        confirmation = await service.attempt_booking(
            body.appointment_date,
            body.appointment_time,
            _customer(body),
            special_requests=body.special_requests,
            send_reminders=body.send_reminders,
            terms_accepted=body.terms_accepted,
            measurement_id=body.measurement_id,
        )
    except BookingError as e:
        logger.info(
            "Booking rejected for %s %s: %s",
            body.appointment_date,
            body.appointment_time,
            e.code,
        )
        raise _to_http_error(e) from e
    return BookingCreated(
        appointment_id=confirmation.appointment_id,
        confirmation_number=confirmation.confirmation_number,
        summary=_summary_out(confirmation.summary),
    )
