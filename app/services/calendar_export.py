from datetime import UTC, datetime

from app.core.config import settings
from app.models.appointment import Appointment, AppointmentStatus
from app.services.slot_service import parse_slot_label


def _ics_escape(value: str) -> str:
    return (
        value.replace("\\", "\\\\")
        .replace(";", "\\;")
        .replace(",", "\\,")
        .replace("\n", "\\n")
    )


def build_appointment_ics(appointment: Appointment, now: datetime | None = None) -> str:
    """iCalendar file for "Add to calendar" on the confirmation page."""
    stamp = (now or datetime.now(UTC)).strftime("%Y%m%dT%H%M%SZ")
    start = datetime.combine(
        appointment.appointment_date, parse_slot_label(appointment.appointment_time).to_time()
    )
    status = "CANCELLED" if appointment.status == AppointmentStatus.CANCELLED.value else "CONFIRMED"
    address = _ics_escape(appointment.property_address)
    domain = settings.contact_email.partition("@")[2] or "aroof.build"
    lines = [
        "BEGIN:VCALENDAR",
        "VERSION:2.0",
        f"PRODID:-//{settings.site_name}//Roof Inspection//EN",
        "BEGIN:VEVENT",
        f"UID:{appointment.id}@{domain}",
        f"DTSTAMP:{stamp}",
        f"DTSTART;TZID={settings.business_timezone}:{start.strftime('%Y%m%dT%H%M%S')}",
        f"DURATION:PT{appointment.duration_minutes}M",
        f"SUMMARY:{_ics_escape(settings.site_name)} Roof Inspection",
        f"DESCRIPTION:Roof inspection at {address}. Confirmation {appointment.confirmation_number}",
        f"LOCATION:{address}",
        f"STATUS:{status}",
        "END:VEVENT",
        "END:VCALENDAR",
    ]
    return "\r\n".join(lines) + "\r\n"
