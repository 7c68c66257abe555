"""Shared test fixtures and helpers."""

import os

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ["ENV"] = "test"

from datetime import date, datetime, timedelta  # noqa: E402

import httpx  # noqa: E402
import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from sqlalchemy.ext.asyncio import create_async_engine  # noqa: E402
from sqlmodel import SQLModel  # noqa: E402

import app.models  # noqa: E402,F401 - register tables
from app.api.deps import get_booking_service, get_session, get_store  # noqa: E402
from app.core.db import build_session_maker  # noqa: E402
from app.main import app  # noqa: E402
from app.models.appointment import AppointmentCreate  # noqa: E402
from app.services.appointment_store import AppointmentStore  # noqa: E402
from app.services.booking_service import BookingService  # noqa: E402
from app.services.booking_transaction import CustomerDetails  # noqa: E402
from app.services.notification_service import NotificationMessage  # noqa: E402

# Monday 2026-10-19; the default policy opens Sun-Thu 08:00-19:00, Fri 08:00-17:00
TODAY = date(2026, 10, 19)
NEXT_MONDAY = date(2026, 10, 26)
FRIDAY = date(2026, 10, 23)
SATURDAY = date(2026, 10, 24)
SUNDAY = date(2026, 10, 25)
# Business-clock "now": noon on TODAY
NOW = datetime(2026, 10, 19, 12, 0)


class RecordingNotifier:
    """Collects messages instead of sending them."""

    def __init__(self, fail: bool = False) -> None:
        self.sent: list[NotificationMessage] = []
        self.fail = fail

    async def send(self, message: NotificationMessage) -> None:
        if self.fail:
            raise ConnectionError("SMTP unreachable")
        self.sent.append(message)


def valid_customer(**overrides) -> CustomerDetails:
    fields = {
        "name": "Jane Homeowner",
        "email": "jane@example.com",
        "phone": "214-555-0199",
        "property_address": "123 Elm St, Dallas, TX",
    }
    fields.update(overrides)
    return CustomerDetails(**fields)


_counter = {"n": 0}


def appointment_fields(d: date, time: str, **overrides) -> AppointmentCreate:
    _counter["n"] += 1
    data = {
        "customer_name": "Existing Customer",
        "customer_email": "existing@example.com",
        "customer_phone": "214-555-0100",
        "property_address": "1 Main St, Dallas, TX",
        "appointment_date": d,
        "appointment_time": time,
        "duration_minutes": 60,
        "confirmation_number": f"AROOF-TEST-{_counter['n']:05d}",
        "terms_accepted": True,
    }
    data.update(overrides)
    return AppointmentCreate(**data)


async def book_existing(store: AppointmentStore, d: date, time: str, status: str | None = None):
    appointment = await store.create_appointment(appointment_fields(d, time))
    if status:
        appointment = await store.update_appointment(appointment.id, {"status": status})
    return appointment


def all_labels(d: date) -> list[str]:
    from app.services.availability_service import slots_for

    return [s.time for s in slots_for(d, set())]


@pytest_asyncio.fixture
async def engine(tmp_path):
    # A file database so concurrent sessions see each other's commits
    test_engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with test_engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture
def session_maker(engine):
    return build_session_maker(engine)


@pytest.fixture
def store(session_maker):
    return AppointmentStore(session_maker)


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def booking_service(store, notifier):
    return BookingService(store, notifier, today=lambda: TODAY, now=lambda: NOW)


@pytest_asyncio.fixture
async def client(store, notifier, session_maker):
    async def _session():
        async with session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_booking_service] = lambda: BookingService(
        store, notifier, today=lambda: TODAY, now=lambda: NOW
    )
    app.dependency_overrides[get_session] = _session
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


def days_after(d: date, n: int) -> date:
    return d + timedelta(days=n)
