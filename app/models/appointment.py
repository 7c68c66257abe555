from datetime import UTC, date, datetime
from enum import Enum
from uuid import uuid4

from sqlalchemy import DateTime, Index, text
from sqlmodel import Field, SQLModel


def _utc_now() -> datetime:
    return datetime.now(UTC)


def _new_id() -> str:
    return uuid4().hex


class AppointmentStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


# Statuses that hold a slot and count toward the daily capacity.
ACTIVE_STATUSES: tuple[str, ...] = (AppointmentStatus.PENDING.value, AppointmentStatus.CONFIRMED.value)
TERMINAL_STATUSES: tuple[str, ...] = (AppointmentStatus.COMPLETED.value, AppointmentStatus.CANCELLED.value)

_ACTIVE_SLOT_WHERE = text("status IN ('pending', 'confirmed')")


class Appointment(SQLModel, table=True):
    __tablename__ = "appointments"
    __table_args__ = (
        # No two active appointments may share a (date, time) pair
        Index(
            "uq_appointments_active_slot",
            "appointment_date",
            "appointment_time",
            unique=True,
            postgresql_where=_ACTIVE_SLOT_WHERE,
            sqlite_where=_ACTIVE_SLOT_WHERE,
        ),
    )

    id: str = Field(default_factory=_new_id, primary_key=True, max_length=32)
    measurement_id: str | None = Field(default=None, index=True)
    customer_name: str
    customer_email: str
    customer_phone: str
    property_address: str
    appointment_date: date = Field(index=True)
    appointment_time: str  # slot label, e.g. "9:00 AM"
    duration_minutes: int = 60
    status: str = Field(default=AppointmentStatus.CONFIRMED.value, index=True)
    confirmation_number: str = Field(unique=True, index=True)
    special_requests: str | None = None
    send_reminders: bool = True
    terms_accepted: bool = False
    roof_area_sqft: float | None = None
    estimated_cost_low: int | None = None
    estimated_cost_high: int | None = None
    created_at: datetime = Field(default_factory=_utc_now, sa_type=DateTime(timezone=True))
    updated_at: datetime = Field(default_factory=_utc_now, sa_type=DateTime(timezone=True))


class AppointmentCreate(SQLModel):
    measurement_id: str | None = None
    customer_name: str
    customer_email: str
    customer_phone: str
    property_address: str
    appointment_date: date
    appointment_time: str
    duration_minutes: int
    confirmation_number: str
    special_requests: str | None = None
    send_reminders: bool = True
    terms_accepted: bool
    roof_area_sqft: float | None = None
    estimated_cost_low: int | None = None
    estimated_cost_high: int | None = None


class AppointmentPublic(SQLModel):
    id: str
    measurement_id: str | None = None
    customer_name: str
    customer_email: str
    customer_phone: str
    property_address: str
    appointment_date: date
    appointment_time: str
    duration_minutes: int
    status: str
    confirmation_number: str
    special_requests: str | None = None
    send_reminders: bool
    roof_area_sqft: float | None = None
    estimated_cost_low: int | None = None
    estimated_cost_high: int | None = None
    created_at: datetime
