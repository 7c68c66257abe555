"""Persistence collaborator used by the availability and booking services.

Every call runs in its own short session and commits before returning, so
a booking attempt never holds a transaction (or a lock) open across the
time a customer spends on the review step.
"""

import logging
from collections.abc import Iterable
from datetime import date

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.config import settings
from app.core.errors import DuplicateAppointmentError
from app.models.appointment import ACTIVE_STATUSES, Appointment, AppointmentCreate
from app.models.measurement import Measurement
from app.services import appointment_service, measurement_service

logger = logging.getLogger(__name__)


class AppointmentStore:
    def __init__(self, session_maker: async_sessionmaker[AsyncSession]) -> None:
        self._session_maker = session_maker

    async def list_appointments(
        self, appointment_date: date, status_in: Iterable[str] = ACTIVE_STATUSES
    ) -> list[Appointment]:
        async with self._session_maker() as session:
            return await appointment_service.list_appointments(session, appointment_date, status_in)

    async def list_appointments_between(
        self,
        start_inclusive: date,
        end_exclusive: date,
        status_in: Iterable[str] = ACTIVE_STATUSES,
    ) -> list[Appointment]:
        async with self._session_maker() as session:
            return await appointment_service.list_appointments_between(
                session, start_inclusive, end_exclusive, status_in
            )

    async def get_appointment(self, appointment_id: str) -> Appointment | None:
        async with self._session_maker() as session:
            return await appointment_service.get_appointment(session, appointment_id)

    async def create_appointment(self, data: AppointmentCreate) -> Appointment:
        async with self._session_maker() as session:
            try:
                appointment = await appointment_service.create_appointment(
                    session, data, max_per_day=settings.max_appointments_per_day
                )
                await session.commit()
            except IntegrityError as e:
                # Deferred constraints surface on commit rather than flush
                await session.rollback()
                raise DuplicateAppointmentError(str(e.orig)) from e
            except SQLAlchemyError:
                await session.rollback()
                raise
            return appointment

    async def update_appointment(self, appointment_id: str, fields: dict) -> Appointment | None:
        async with self._session_maker() as session:
            try:
                appointment = await appointment_service.update_appointment(
                    session, appointment_id, fields
                )
                await session.commit()
            except SQLAlchemyError:
                await session.rollback()
                raise
            return appointment

    async def get_measurement(self, measurement_id: str) -> Measurement | None:
        async with self._session_maker() as session:
            return await measurement_service.get_measurement(session, measurement_id)

    async def mark_measurement_booked(self, measurement_id: str) -> bool:
        async with self._session_maker() as session:
            try:
                updated = await measurement_service.mark_measurement_booked(session, measurement_id)
                await session.commit()
            except SQLAlchemyError:
                await session.rollback()
                raise
            if not updated:
                logger.warning("Measurement %s not found; lead status not updated", measurement_id)
            return updated
