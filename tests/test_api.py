"""HTTP-level tests through the FastAPI app."""

import pytest
import pytest_asyncio

from app.services.auth_service import create_staff_user
from conftest import NEXT_MONDAY, SATURDAY, book_existing, days_after

API = "/api/v1"


def _booking_body(**overrides) -> dict:
    body = {
        "appointment_date": NEXT_MONDAY.isoformat(),
        "appointment_time": "9:00 AM",
        "customer_name": "Jane Homeowner",
        "customer_email": "jane@example.com",
        "customer_phone": "214-555-0199",
        "property_address": "123 Elm St, Dallas, TX",
        "special_requests": "Dog in the back yard",
        "terms_accepted": True,
    }
    body.update(overrides)
    return body


@pytest_asyncio.fixture
async def staff_headers(client, session_maker):
    async with session_maker() as session:
        await create_staff_user(session, "Staff@Example.com", "correct-horse", full_name="Ops")
        await session.commit()
    resp = await client.post(
        f"{API}/auth/login", json={"email": "staff@example.com", "password": "correct-horse"}
    )
    assert resp.status_code == 200
    return {"Authorization": f"Bearer {resp.json()['access_token']}"}


@pytest.mark.asyncio
async def test_health(client):
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


class TestAvailabilityEndpoints:
    @pytest.mark.asyncio
    async def test_day(self, client, store):
        await book_existing(store, NEXT_MONDAY, "8:00 AM")
        resp = await client.get(f"{API}/availability/day", params={"date": NEXT_MONDAY.isoformat()})
        assert resp.status_code == 200
        data = resp.json()
        assert data["booked_count"] == 1
        assert data["capacity_remaining"] == 19
        assert data["is_bookable"] is True

    @pytest.mark.asyncio
    async def test_slots(self, client, store):
        await book_existing(store, NEXT_MONDAY, "8:00 AM")
        resp = await client.get(f"{API}/availability/slots", params={"date": NEXT_MONDAY.isoformat()})
        data = resp.json()
        assert len(data["slots"]) == 22
        assert data["slots"][0] == {"time": "8:00 AM", "is_booked": True, "is_past": False}
        assert data["slots"][-1]["time"] == "6:30 PM"

    @pytest.mark.asyncio
    async def test_closed_day_has_no_slots(self, client):
        resp = await client.get(f"{API}/availability/slots", params={"date": SATURDAY.isoformat()})
        data = resp.json()
        assert data["slots"] == []
        assert data["day"]["is_open"] is False

    @pytest.mark.asyncio
    async def test_bad_date_rejected(self, client):
        resp = await client.get(f"{API}/availability/day", params={"date": "next tuesday"})
        assert resp.status_code == 422

    @pytest.mark.asyncio
    async def test_month_grid(self, client):
        resp = await client.get(f"{API}/availability/month", params={"year": 2026, "month": 10})
        assert resp.status_code == 200
        data = resp.json()
        assert len(data["weeks"]) == 5
        assert data["previous"] == {"year": 2026, "month": 9}
        assert data["next"] == {"year": 2026, "month": 11}
        cells = {c["date"]: c for week in data["weeks"] for c in week}
        assert cells["2026-10-19"]["is_today"] is True
        assert cells["2026-10-26"]["is_bookable"] is True
        assert cells["2026-10-24"]["is_bookable"] is False
        assert cells["2026-09-27"]["in_month"] is False

    @pytest.mark.asyncio
    async def test_next_dates_start_tomorrow_and_skip_saturday(self, client):
        resp = await client.get(f"{API}/availability/dates", params={"limit": 6})
        dates = [d["date"] for d in resp.json()["dates"]]
        assert dates == [
            "2026-10-20",
            "2026-10-21",
            "2026-10-22",
            "2026-10-23",
            "2026-10-25",
            "2026-10-26",
        ]


class TestBookingEndpoints:
    @pytest.mark.asyncio
    async def test_review_writes_nothing(self, client, store):
        resp = await client.post(f"{API}/bookings/review", json=_booking_body())
        assert resp.status_code == 200
        assert resp.json()["appointment_time"] == "9:00 AM"
        assert await store.list_appointments(NEXT_MONDAY) == []

    @pytest.mark.asyncio
    async def test_create_booking(self, client, notifier):
        resp = await client.post(f"{API}/bookings", json=_booking_body())
        assert resp.status_code == 201
        data = resp.json()
        assert data["confirmation_number"].startswith("AROOF-")
        assert data["summary"]["duration_minutes"] == 60
        assert len(notifier.sent) == 2

        details = await client.get(f"{API}/appointments/{data['appointment_id']}")
        assert details.status_code == 200
        assert details.json()["status"] == "confirmed"
        assert details.json()["special_requests"] == "Dog in the back yard"

    @pytest.mark.asyncio
    async def test_taken_slot_conflict(self, client, store):
        await book_existing(store, NEXT_MONDAY, "9:00 AM")
        resp = await client.post(f"{API}/bookings", json=_booking_body())
        assert resp.status_code == 409
        assert resp.json()["detail"]["code"] == "slot_unavailable"
        assert resp.json()["detail"]["retryable"] is False

    @pytest.mark.asyncio
    async def test_closed_date_conflict(self, client):
        resp = await client.post(
            f"{API}/bookings", json=_booking_body(appointment_date=SATURDAY.isoformat())
        )
        assert resp.status_code == 409
        assert resp.json()["detail"]["code"] == "date_unavailable"

    @pytest.mark.asyncio
    async def test_terms_required(self, client, store):
        resp = await client.post(f"{API}/bookings", json=_booking_body(terms_accepted=False))
        assert resp.status_code == 422
        assert resp.json()["detail"]["code"] == "terms_not_accepted"
        assert await store.list_appointments(NEXT_MONDAY) == []

    @pytest.mark.asyncio
    async def test_missing_fields_listed(self, client):
        resp = await client.post(
            f"{API}/bookings", json=_booking_body(customer_phone="", property_address="")
        )
        assert resp.status_code == 422
        assert resp.json()["detail"]["fields"] == ["phone", "property_address"]

    @pytest.mark.asyncio
    async def test_special_requests_too_long(self, client):
        resp = await client.post(f"{API}/bookings", json=_booking_body(special_requests="x" * 1001))
        assert resp.status_code == 422
        assert resp.json()["detail"]["fields"] == ["special_requests"]

    @pytest.mark.asyncio
    async def test_malformed_email_rejected(self, client):
        resp = await client.post(f"{API}/bookings", json=_booking_body(customer_email="not-an-email"))
        assert resp.status_code == 422


class TestAppointmentEndpoints:
    @pytest.mark.asyncio
    async def test_unknown_appointment(self, client):
        resp = await client.get(f"{API}/appointments/nope")
        assert resp.status_code == 404

    @pytest.mark.asyncio
    async def test_calendar_download(self, client, store):
        appointment = await book_existing(store, NEXT_MONDAY, "10:00 AM")
        resp = await client.get(f"{API}/appointments/{appointment.id}/calendar.ics")
        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/calendar")
        assert "DTSTART;TZID=America/Chicago:20261026T100000" in resp.text

    @pytest.mark.asyncio
    async def test_staff_listing_requires_token(self, client):
        resp = await client.get(f"{API}/appointments")
        assert resp.status_code == 401

    @pytest.mark.asyncio
    async def test_bad_token_rejected(self, client):
        resp = await client.get(
            f"{API}/appointments", headers={"Authorization": "Bearer not-a-token"}
        )
        assert resp.status_code == 401

    @pytest.mark.asyncio
    async def test_wrong_password(self, client, staff_headers):
        resp = await client.post(
            f"{API}/auth/login", json={"email": "staff@example.com", "password": "wrong"}
        )
        assert resp.status_code == 401

    @pytest.mark.asyncio
    async def test_me(self, client, staff_headers):
        resp = await client.get(f"{API}/auth/me", headers=staff_headers)
        assert resp.status_code == 200
        assert resp.json()["email"] == "staff@example.com"

    @pytest.mark.asyncio
    async def test_staff_listing_filters(self, client, store, staff_headers):
        await book_existing(store, NEXT_MONDAY, "8:00 AM")
        await book_existing(store, NEXT_MONDAY, "8:30 AM", status="cancelled")
        await book_existing(store, days_after(NEXT_MONDAY, 1), "8:00 AM")

        resp = await client.get(
            f"{API}/appointments",
            params={"date": NEXT_MONDAY.isoformat(), "status": "confirmed"},
            headers=staff_headers,
        )
        assert resp.status_code == 200
        assert [a["appointment_time"] for a in resp.json()] == ["8:00 AM"]

    @pytest.mark.asyncio
    async def test_cancel_frees_slot(self, client, store, staff_headers):
        appointment = await book_existing(store, NEXT_MONDAY, "9:00 AM")
        resp = await client.patch(
            f"{API}/appointments/{appointment.id}/status",
            json={"status": "cancelled"},
            headers=staff_headers,
        )
        assert resp.status_code == 200
        assert resp.json()["status"] == "cancelled"

        rebook = await client.post(f"{API}/bookings", json=_booking_body())
        assert rebook.status_code == 201

    @pytest.mark.asyncio
    async def test_terminal_status_is_final(self, client, store, staff_headers):
        appointment = await book_existing(store, NEXT_MONDAY, "9:00 AM", status="completed")
        resp = await client.patch(
            f"{API}/appointments/{appointment.id}/status",
            json={"status": "confirmed"},
            headers=staff_headers,
        )
        assert resp.status_code == 409

    @pytest.mark.asyncio
    async def test_unknown_status_value_rejected(self, client, store, staff_headers):
        appointment = await book_existing(store, NEXT_MONDAY, "9:00 AM")
        resp = await client.patch(
            f"{API}/appointments/{appointment.id}/status",
            json={"status": "postponed"},
            headers=staff_headers,
        )
        assert resp.status_code == 422

    @pytest.mark.asyncio
    async def test_status_change_needs_staff(self, client, store):
        appointment = await book_existing(store, NEXT_MONDAY, "9:00 AM")
        resp = await client.patch(
            f"{API}/appointments/{appointment.id}/status", json={"status": "cancelled"}
        )
        assert resp.status_code == 401
