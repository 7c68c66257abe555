from dataclasses import asdict
from datetime import date

from fastapi import APIRouter, Depends, Query

from app.api.deps import get_booking_service
from app.api.schemas.availability import (
    BookableDatesResponse,
    CalendarCellOut,
    DayAvailabilityOut,
    MonthGridResponse,
    MonthRef,
    SlotAvailabilityResponse,
    SlotOut,
)
from app.services.availability_service import DayAvailability
from app.services.booking_service import BookingService
from app.services.calendar_view import MonthView, build_month_grid, grid_bounds

router = APIRouter(prefix="/availability", tags=["availability"])


def _day_out(day: DayAvailability) -> DayAvailabilityOut:
    return DayAvailabilityOut(**asdict(day))


@router.get("/day", response_model=DayAvailabilityOut)
async def day_availability(
    date_param: date = Query(..., alias="date"),
    service: BookingService = Depends(get_booking_service),
) -> DayAvailabilityOut:
    return _day_out(await service.get_day_availability(date_param))


@router.get("/slots", response_model=SlotAvailabilityResponse)
async def slot_availability(
    date_param: date = Query(..., alias="date"),
    service: BookingService = Depends(get_booking_service),
) -> SlotAvailabilityResponse:
    """Every slot of the day with its booked flag; closed days return no slots."""
    day = await service.get_day_availability(date_param)
    slots = await service.get_slot_availability(date_param)
    return SlotAvailabilityResponse(
        day=_day_out(day),
        slots=[SlotOut(time=s.time, is_booked=s.is_booked, is_past=s.is_past) for s in slots],
    )


@router.get("/month", response_model=MonthGridResponse)
async def month_grid(
    year: int = Query(..., ge=2000, le=2100),
    month: int = Query(..., ge=1, le=12),
    selected: date | None = Query(None),
    service: BookingService = Depends(get_booking_service),
) -> MonthGridResponse:
    view = MonthView(year=year, month=month, today=service.today(), selected=selected)
    start, end = grid_bounds(view)
    days = await service.get_range_availability(start, end)
    weeks = build_month_grid(view, days)
    prev_view, next_view = view.previous(), view.next()
    return MonthGridResponse(
        year=year,
        month=month,
        weeks=[[CalendarCellOut(**asdict(cell)) for cell in week] for week in weeks],
        previous=MonthRef(year=prev_view.year, month=prev_view.month),
        next=MonthRef(year=next_view.year, month=next_view.month),
    )


@router.get("/dates", response_model=BookableDatesResponse)
async def bookable_dates(
    limit: int = Query(10, ge=1, le=60),
    service: BookingService = Depends(get_booking_service),
) -> BookableDatesResponse:
    """Next bookable dates within the booking horizon, for the quick date picker."""
    days = await service.next_bookable_dates(limit=limit)
    return BookableDatesResponse(dates=[_day_out(d) for d in days])
