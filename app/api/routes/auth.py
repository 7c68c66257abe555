from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_staff
from app.api.schemas.auth import AccessToken, LoginRequest
from app.core.db import get_session
from app.models.staff import StaffUser, StaffUserPublic
from app.services.auth_service import login_staff, staff_to_public

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login", response_model=AccessToken)
async def login(
    body: LoginRequest,
    session: AsyncSession = Depends(get_session),
) -> AccessToken:
    result = await login_staff(session, body.email, body.password)
    if not result:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        )
    _, access, expires_in = result
    return AccessToken(access_token=access, expires_in=expires_in)


@router.get("/me", response_model=StaffUserPublic)
async def me(current_staff: StaffUser = Depends(get_current_staff)) -> StaffUserPublic:
    return staff_to_public(current_staff)
