"""Month grid for the booking calendar.

Pure mapping from resolver output to display cells. The caller passes the
view state in as a MonthView, so nothing here remembers which month or
date a customer is looking at.
"""

import calendar
from dataclasses import dataclass
from datetime import date, timedelta

from app.services.availability_service import DayAvailability


@dataclass(frozen=True)
class MonthView:
    year: int
    month: int
    today: date
    selected: date | None = None

    def __post_init__(self) -> None:
        if not 1 <= self.month <= 12:
            raise ValueError(f"month must be 1-12, got {self.month}")

    @property
    def first_day(self) -> date:
        return date(self.year, self.month, 1)

    def previous(self) -> "MonthView":
        prev_last = self.first_day - timedelta(days=1)
        return MonthView(prev_last.year, prev_last.month, self.today, self.selected)

    def next(self) -> "MonthView":
        days_in_month = calendar.monthrange(self.year, self.month)[1]
        nxt = self.first_day + timedelta(days=days_in_month)
        return MonthView(nxt.year, nxt.month, self.today, self.selected)


@dataclass(frozen=True)
class CalendarCell:
    date: date
    in_month: bool
    is_today: bool
    is_selected: bool
    is_open: bool
    is_bookable: bool
    is_limited: bool
    capacity_remaining: int


def grid_bounds(view: MonthView) -> tuple[date, date]:
    """First and one-past-last date shown: whole Sunday-first weeks."""
    cal = calendar.Calendar(firstweekday=calendar.SUNDAY)
    weeks = cal.monthdatescalendar(view.year, view.month)
    return weeks[0][0], weeks[-1][-1] + timedelta(days=1)


def build_month_grid(
    view: MonthView, days: dict[date, DayAvailability]
) -> list[list[CalendarCell]]:
    cal = calendar.Calendar(firstweekday=calendar.SUNDAY)
    grid: list[list[CalendarCell]] = []
    for week in cal.monthdatescalendar(view.year, view.month):
        row = []
        for d in week:
            day = days.get(d)
            in_month = d.month == view.month
            row.append(
                CalendarCell(
                    date=d,
                    in_month=in_month,
                    is_today=d == view.today,
                    is_selected=d == view.selected,
                    is_open=bool(day and day.is_open),
                    # Adjacent-month cells are shown but never clickable
                    is_bookable=bool(in_month and day and day.is_bookable),
                    is_limited=bool(day and day.is_limited),
                    capacity_remaining=day.capacity_remaining if day else 0,
                )
            )
        grid.append(row)
    return grid
