from collections.abc import Iterable
from datetime import UTC, date, datetime

from sqlalchemy import func, select, text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import DayFullError, DuplicateAppointmentError, InvalidStatusTransition
from app.models.appointment import (
    ACTIVE_STATUSES,
    TERMINAL_STATUSES,
    Appointment,
    AppointmentCreate,
    AppointmentStatus,
)


def _utc_now() -> datetime:
    return datetime.now(UTC)


# Staff-driven status changes. Creation always lands in "confirmed".
ALLOWED_STATUS_TRANSITIONS: dict[str, frozenset[str]] = {
    AppointmentStatus.PENDING.value: frozenset(
        {AppointmentStatus.CONFIRMED.value, *TERMINAL_STATUSES}
    ),
    AppointmentStatus.CONFIRMED.value: frozenset(TERMINAL_STATUSES),
    AppointmentStatus.COMPLETED.value: frozenset(),
    AppointmentStatus.CANCELLED.value: frozenset(),
}


async def list_appointments(
    session: AsyncSession,
    appointment_date: date,
    status_in: Iterable[str] = ACTIVE_STATUSES,
) -> list[Appointment]:
    result = await session.execute(
        select(Appointment)
        .where(
            Appointment.appointment_date == appointment_date,
            Appointment.status.in_(list(status_in)),
        )
        .order_by(Appointment.created_at)
    )
    return list(result.scalars().all())


async def list_appointments_between(
    session: AsyncSession,
    start_inclusive: date,
    end_exclusive: date,
    status_in: Iterable[str] = ACTIVE_STATUSES,
) -> list[Appointment]:
    result = await session.execute(
        select(Appointment).where(
            Appointment.appointment_date >= start_inclusive,
            Appointment.appointment_date < end_exclusive,
            Appointment.status.in_(list(status_in)),
        )
    )
    return list(result.scalars().all())


async def list_all_appointments(
    session: AsyncSession,
    appointment_date: date | None = None,
    status: str | None = None,
    limit: int = 500,
) -> list[Appointment]:
    """Staff listing, newest first."""
    q = select(Appointment).order_by(Appointment.created_at.desc()).limit(limit)
    if appointment_date:
        q = q.where(Appointment.appointment_date == appointment_date)
    if status:
        q = q.where(Appointment.status == status)
    result = await session.execute(q)
    return list(result.scalars().all())


async def get_appointment(session: AsyncSession, appointment_id: str) -> Appointment | None:
    result = await session.execute(select(Appointment).where(Appointment.id == appointment_id))
    return result.scalar_one_or_none()


async def count_active_on(session: AsyncSession, appointment_date: date) -> int:
    result = await session.execute(
        select(func.count())
        .select_from(Appointment)
        .where(
            Appointment.appointment_date == appointment_date,
            Appointment.status.in_(list(ACTIVE_STATUSES)),
        )
    )
    return result.scalar_one()


async def _lock_day(session: AsyncSession, appointment_date: date) -> None:
    """Serialize inserts for one date until the transaction ends.

    SQLite already allows a single writer; Postgres takes a transaction-scoped
    advisory lock keyed on the date.
    """
    if session.bind.dialect.name == "postgresql":
        await session.execute(
            text("SELECT pg_advisory_xact_lock(:key)"), {"key": appointment_date.toordinal()}
        )


async def create_appointment(
    session: AsyncSession, data: AppointmentCreate, max_per_day: int | None = None
) -> Appointment:
    """Insert a confirmed appointment.

    Raises DuplicateAppointmentError when the active-slot or confirmation
    number unique index rejects the row, and DayFullError when the insert
    would push the date past ``max_per_day`` active appointments.
    """
    await _lock_day(session, data.appointment_date)
    appointment = Appointment(
        **data.model_dump(),
        status=AppointmentStatus.CONFIRMED.value,
    )
    session.add(appointment)
    try:
        await session.flush()
    except IntegrityError as e:
        await session.rollback()
        raise DuplicateAppointmentError(str(e.orig)) from e
    if max_per_day is not None:
        # Counted inside the insert transaction, so our own row is included
        if await count_active_on(session, data.appointment_date) > max_per_day:
            await session.rollback()
            raise DayFullError(f"{data.appointment_date.isoformat()} already has {max_per_day} appointments")
    await session.refresh(appointment)
    return appointment


async def update_appointment(
    session: AsyncSession, appointment_id: str, fields: dict
) -> Appointment | None:
    appointment = await get_appointment(session, appointment_id)
    if not appointment:
        return None
    for key, value in fields.items():
        setattr(appointment, key, value)
    appointment.updated_at = _utc_now()
    session.add(appointment)
    try:
        await session.flush()
    except IntegrityError as e:
        await session.rollback()
        raise DuplicateAppointmentError(str(e.orig)) from e
    await session.refresh(appointment)
    return appointment


async def change_status(
    session: AsyncSession, appointment_id: str, new_status: str
) -> Appointment | None:
    """Apply a staff status change; terminal statuses never change again."""
    appointment = await get_appointment(session, appointment_id)
    if not appointment:
        return None
    if new_status == appointment.status:
        return appointment
    allowed = ALLOWED_STATUS_TRANSITIONS.get(appointment.status, frozenset())
    if new_status not in allowed:
        raise InvalidStatusTransition(
            f"Cannot change appointment from {appointment.status} to {new_status}"
        )
    return await update_appointment(session, appointment_id, {"status": new_status})
