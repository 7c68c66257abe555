from datetime import date

from pydantic import BaseModel


class DayAvailabilityOut(BaseModel):
    date: date
    booked_count: int
    capacity_remaining: int
    is_open: bool
    is_bookable: bool
    is_limited: bool


class SlotOut(BaseModel):
    time: str  # e.g. "9:00 AM"
    is_booked: bool
    is_past: bool = False


class SlotAvailabilityResponse(BaseModel):
    day: DayAvailabilityOut
    slots: list[SlotOut]


class CalendarCellOut(BaseModel):
    date: date
    in_month: bool
    is_today: bool
    is_selected: bool
    is_open: bool
    is_bookable: bool
    is_limited: bool
    capacity_remaining: int


class MonthRef(BaseModel):
    year: int
    month: int


class MonthGridResponse(BaseModel):
    year: int
    month: int
    weeks: list[list[CalendarCellOut]]
    previous: MonthRef
    next: MonthRef


class BookableDatesResponse(BaseModel):
    dates: list[DayAvailabilityOut]
