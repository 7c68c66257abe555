from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.security import create_access_token, hash_password, verify_password
from app.models.staff import StaffUser, StaffUserPublic


async def get_staff_by_email(session: AsyncSession, email: str) -> StaffUser | None:
    result = await session.execute(select(StaffUser).where(StaffUser.email == email.lower()))
    return result.scalar_one_or_none()


async def get_staff_by_id(session: AsyncSession, staff_id: int) -> StaffUser | None:
    result = await session.execute(select(StaffUser).where(StaffUser.id == staff_id))
    return result.scalar_one_or_none()


async def create_staff_user(
    session: AsyncSession, email: str, password: str, full_name: str | None = None
) -> StaffUser:
    staff = StaffUser(
        email=email.lower(),
        full_name=full_name,
        hashed_password=hash_password(password),
    )
    session.add(staff)
    await session.flush()
    await session.refresh(staff)
    return staff


def staff_to_public(staff: StaffUser) -> StaffUserPublic:
    return StaffUserPublic(
        id=staff.id,
        email=staff.email,
        full_name=staff.full_name,
        is_active=staff.is_active,
    )


async def login_staff(
    session: AsyncSession, email: str, password: str
) -> tuple[StaffUser, str, int] | None:
    """Returns (staff, access_token, expires_in) or None on bad credentials."""
    staff = await get_staff_by_email(session, email)
    if not staff or not staff.is_active:
        return None
    if not verify_password(password, staff.hashed_password):
        return None
    access = create_access_token(staff.id)
    return staff, access, settings.access_token_expire_minutes * 60
