from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.measurement import Measurement

BOOKED_LEAD_STATUS = "booked"


async def get_measurement(session: AsyncSession, measurement_id: str) -> Measurement | None:
    result = await session.execute(select(Measurement).where(Measurement.id == measurement_id))
    return result.scalar_one_or_none()


async def mark_measurement_booked(session: AsyncSession, measurement_id: str) -> bool:
    measurement = await get_measurement(session, measurement_id)
    if not measurement:
        return False
    measurement.lead_status = BOOKED_LEAD_STATUS
    measurement.clicked_booking = True
    session.add(measurement)
    await session.flush()
    return True
