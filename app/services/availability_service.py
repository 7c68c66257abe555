"""Bookable days and slots, derived from business hours and active appointments.

Only ``pending`` and ``confirmed`` appointments hold a slot or count toward
the daily capacity; cancelling or completing an appointment frees its slot
on the very next lookup.
"""

from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from zoneinfo import ZoneInfo

from app.core.config import settings
from app.models.appointment import Appointment
from app.services.appointment_store import AppointmentStore
from app.services.calendar_policy import BusinessPolicy, hours_on
from app.services.slot_service import generate_slots


@dataclass(frozen=True)
class DayAvailability:
    date: date
    booked_count: int
    capacity_remaining: int
    is_open: bool
    is_bookable: bool
    is_limited: bool  # display hint only, never affects is_bookable


@dataclass(frozen=True)
class SlotAvailability:
    time: str
    is_booked: bool
    is_past: bool = False  # start time already elapsed today

    @property
    def is_available(self) -> bool:
        return not (self.is_booked or self.is_past)


def business_now() -> datetime:
    return datetime.now(ZoneInfo(settings.business_timezone))


def business_today() -> date:
    return business_now().date()


def is_date_bookable(
    d: date,
    existing_count: int,
    today: date | None = None,
    policy: BusinessPolicy | None = None,
) -> bool:
    if d < (today or business_today()):
        return False
    if not hours_on(d, policy).open:
        return False
    return existing_count < settings.max_appointments_per_day


def day_availability(
    d: date,
    booked_count: int,
    today: date | None = None,
    policy: BusinessPolicy | None = None,
) -> DayAvailability:
    return DayAvailability(
        date=d,
        booked_count=booked_count,
        capacity_remaining=max(settings.max_appointments_per_day - booked_count, 0),
        is_open=hours_on(d, policy).open,
        is_bookable=is_date_bookable(d, booked_count, today=today, policy=policy),
        is_limited=booked_count >= settings.limited_availability_threshold,
    )


def slots_for(
    d: date,
    booked_times: Iterable[str],
    policy: BusinessPolicy | None = None,
    now: datetime | None = None,
) -> list[SlotAvailability]:
    """Every slot of the day; with ``now``, slots already started are marked past."""
    hours = hours_on(d, policy)
    if not hours.open:
        return []
    booked = set(booked_times)
    return [
        SlotAvailability(
            time=slot.label,
            is_booked=slot.label in booked,
            is_past=_has_started(d, slot.to_time(), now),
        )
        for slot in generate_slots(hours.start, hours.end)
    ]


def _has_started(d: date, start: time, now: datetime | None) -> bool:
    if now is None:
        return False
    return d < now.date() or (d == now.date() and start <= now.time())


def booked_times_of(appointments: Iterable[Appointment]) -> set[str]:
    return {a.appointment_time for a in appointments}


async def get_day_availability(
    store: AppointmentStore,
    d: date,
    today: date | None = None,
    policy: BusinessPolicy | None = None,
) -> DayAvailability:
    active = await store.list_appointments(d)
    return day_availability(d, len(active), today=today, policy=policy)


async def get_slot_availability(
    store: AppointmentStore,
    d: date,
    policy: BusinessPolicy | None = None,
    now: datetime | None = None,
) -> list[SlotAvailability]:
    active = await store.list_appointments(d)
    return slots_for(d, booked_times_of(active), policy=policy, now=now)


async def get_range_availability(
    store: AppointmentStore,
    start_inclusive: date,
    end_exclusive: date,
    today: date | None = None,
    policy: BusinessPolicy | None = None,
) -> dict[date, DayAvailability]:
    """Day availability for every date in the range from a single query."""
    active = await store.list_appointments_between(start_inclusive, end_exclusive)
    counts = Counter(a.appointment_date for a in active)
    out: dict[date, DayAvailability] = {}
    current = start_inclusive
    while current < end_exclusive:
        out[current] = day_availability(current, counts[current], today=today, policy=policy)
        current += timedelta(days=1)
    return out


async def next_bookable_dates(
    store: AppointmentStore,
    limit: int = 10,
    horizon_days: int | None = None,
    today: date | None = None,
    policy: BusinessPolicy | None = None,
) -> list[DayAvailability]:
    """The next bookable dates, starting tomorrow, within the booking horizon."""
    today = today or business_today()
    horizon = horizon_days or settings.booking_horizon_days
    start = today + timedelta(days=1)
    days = await get_range_availability(
        store, start, start + timedelta(days=horizon), today=today, policy=policy
    )
    return [day for day in days.values() if day.is_bookable][:limit]
