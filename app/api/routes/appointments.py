import logging
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_staff, get_session, get_store
from app.api.schemas.appointment import StatusUpdateRequest
from app.core.errors import InvalidStatusTransition
from app.models.appointment import Appointment, AppointmentPublic, AppointmentStatus
from app.models.staff import StaffUser
from app.services.appointment_service import change_status, list_all_appointments
from app.services.appointment_store import AppointmentStore
from app.services.calendar_export import build_appointment_ics

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/appointments", tags=["appointments"])


def _to_public(a: Appointment) -> AppointmentPublic:
    return AppointmentPublic.model_validate(a, from_attributes=True)


async def _get_or_404(store: AppointmentStore, appointment_id: str) -> Appointment:
    appointment = await store.get_appointment(appointment_id)
    if not appointment:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Appointment not found",
        )
    return appointment


@router.get("", response_model=list[AppointmentPublic])
async def list_appointments_for_staff(
    date_param: date | None = Query(None, alias="date"),
    status_param: AppointmentStatus | None = Query(None, alias="status"),
    session: AsyncSession = Depends(get_session),
    current_staff: StaffUser = Depends(get_current_staff),
) -> list[AppointmentPublic]:
    appointments = await list_all_appointments(
        session,
        appointment_date=date_param,
        status=status_param.value if status_param else None,
    )
    return [_to_public(a) for a in appointments]


@router.get("/{appointment_id}", response_model=AppointmentPublic)
async def get_appointment_details(
    appointment_id: str,
    store: AppointmentStore = Depends(get_store),
) -> AppointmentPublic:
    """Confirmation page data; the opaque id acts as the access key."""
    return _to_public(await _get_or_404(store, appointment_id))


@router.get("/{appointment_id}/calendar.ics")
async def download_appointment_ics(
    appointment_id: str,
    store: AppointmentStore = Depends(get_store),
) -> Response:
    appointment = await _get_or_404(store, appointment_id)
    return Response(
        content=build_appointment_ics(appointment),
        media_type="text/calendar",
        headers={"Content-Disposition": 'attachment; filename="aroof-inspection.ics"'},
    )


@router.patch("/{appointment_id}/status", response_model=AppointmentPublic)
async def update_appointment_status(
    appointment_id: str,
    body: StatusUpdateRequest,
    session: AsyncSession = Depends(get_session),
    current_staff: StaffUser = Depends(get_current_staff),
) -> AppointmentPublic:
    try:
        appointment = await change_status(session, appointment_id, body.status.value)
    except InvalidStatusTransition as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e)) from e
    if not appointment:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Appointment not found",
        )
    logger.info(
        "Staff %s set appointment %s to %s", current_staff.email, appointment_id, appointment.status
    )
    return _to_public(appointment)
