from datetime import UTC, datetime

from app.models.appointment import Appointment, AppointmentStatus
from app.services.calendar_export import build_appointment_ics
from conftest import NEXT_MONDAY


def _appointment(**overrides) -> Appointment:
    fields = {
        "id": "abc123",
        "customer_name": "Jane Homeowner",
        "customer_email": "jane@example.com",
        "customer_phone": "214-555-0199",
        "property_address": "123 Elm St, Dallas, TX",
        "appointment_date": NEXT_MONDAY,
        "appointment_time": "2:30 PM",
        "duration_minutes": 60,
        "status": AppointmentStatus.CONFIRMED.value,
        "confirmation_number": "AROOF-1760900000000-9F2C",
    }
    fields.update(overrides)
    return Appointment(**fields)


def test_event_fields():
    ics = build_appointment_ics(_appointment(), now=datetime(2026, 10, 19, 12, 0, tzinfo=UTC))
    lines = ics.split("\r\n")
    assert lines[0] == "BEGIN:VCALENDAR"
    assert "UID:abc123@aroof.build" in lines
    assert "DTSTAMP:20261019T120000Z" in lines
    assert "DTSTART;TZID=America/Chicago:20261026T143000" in lines
    assert "DURATION:PT60M" in lines
    assert "STATUS:CONFIRMED" in lines
    assert ics.endswith("END:VCALENDAR\r\n")


def test_address_escaped():
    ics = build_appointment_ics(_appointment())
    assert "LOCATION:123 Elm St\\, Dallas\\, TX" in ics


def test_cancelled_appointment_marked_cancelled():
    ics = build_appointment_ics(_appointment(status=AppointmentStatus.CANCELLED.value))
    assert "STATUS:CANCELLED" in ics
