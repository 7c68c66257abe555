from pydantic import BaseModel

from app.models.appointment import AppointmentStatus


class StatusUpdateRequest(BaseModel):
    status: AppointmentStatus
