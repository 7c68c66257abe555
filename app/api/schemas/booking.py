from datetime import date

from pydantic import BaseModel, EmailStr


class BookingRequest(BaseModel):
    appointment_date: date
    appointment_time: str  # slot label, e.g. "9:00 AM"
    measurement_id: str | None = None
    customer_name: str = ""
    customer_email: EmailStr | None = None
    customer_phone: str = ""
    property_address: str = ""
    special_requests: str = ""
    send_reminders: bool = True
    terms_accepted: bool = False


class CostEstimateOut(BaseModel):
    low: int
    high: int
    display: str


class BookingSummaryOut(BaseModel):
    appointment_date: date
    appointment_time: str
    duration_minutes: int
    property_address: str
    customer_name: str
    customer_email: str
    customer_phone: str
    special_requests: str
    send_reminders: bool
    measurement_id: str | None = None
    roof_area_sqft: float | None = None
    estimate: CostEstimateOut | None = None


class BookingCreated(BaseModel):
    appointment_id: str
    confirmation_number: str
    summary: BookingSummaryOut


class BookingErrorDetail(BaseModel):
    code: str
    message: str
    retryable: bool = False
    fields: list[str] = []
