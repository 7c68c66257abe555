from datetime import UTC, datetime
from uuid import uuid4

from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel


def _utc_now() -> datetime:
    return datetime.now(UTC)


class Measurement(SQLModel, table=True):
    """Satellite roof measurement that doubles as the sales lead.

    Owned by the measurement funnel; the booking flow only reads it and
    flags it as booked.
    """

    __tablename__ = "measurements"
    id: str = Field(default_factory=lambda: uuid4().hex, primary_key=True, max_length=32)
    property_address: str
    customer_name: str | None = None
    customer_email: str | None = None
    customer_phone: str | None = None
    total_sqft: float | None = None
    lead_status: str = Field(default="new", index=True)
    clicked_booking: bool = False
    created_at: datetime = Field(default_factory=_utc_now, sa_type=DateTime(timezone=True))
