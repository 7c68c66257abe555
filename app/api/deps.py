from fastapi import BackgroundTasks, Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import async_session_maker, get_session
from app.core.security import decode_access_token
from app.models.staff import StaffUser
from app.services.appointment_store import AppointmentStore
from app.services.auth_service import get_staff_by_id
from app.services.booking_service import BookingService
from app.services.notification_service import BackgroundEmailNotifier

security = HTTPBearer(auto_error=False)


def get_store() -> AppointmentStore:
    return AppointmentStore(async_session_maker)


def get_booking_service(
    background_tasks: BackgroundTasks,
    store: AppointmentStore = Depends(get_store),
) -> BookingService:
    return BookingService(store, BackgroundEmailNotifier(background_tasks))


async def get_current_staff(
    session: AsyncSession = Depends(get_session),
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> StaffUser:
    if not credentials or credentials.scheme.lower() != "bearer":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing or invalid authorization header",
            headers={"WWW-Authenticate": "Bearer"},
        )
    staff_id = decode_access_token(credentials.credentials)
    if not staff_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    try:
        sid = int(staff_id)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    staff = await get_staff_by_id(session, sid)
    if not staff or not staff.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Staff account not found or disabled",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return staff
