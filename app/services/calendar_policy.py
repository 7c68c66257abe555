"""Per-weekday business hours.

Weekdays are numbered 0=Sunday..6=Saturday. The mapping is configuration
(``BUSINESS_HOURS``), so changing the schedule never touches the slot or
availability code.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date, time

from app.core.config import settings
from app.services.slot_service import SLOT_MINUTES

CLOSED_MARKER = "closed"


@dataclass(frozen=True)
class BusinessHours:
    open: bool
    start: time | None = None
    end: time | None = None

    def __post_init__(self) -> None:
        if not self.open:
            if self.start is not None or self.end is not None:
                raise ValueError("closed days must not define start/end")
            return
        if self.start is None or self.end is None:
            raise ValueError("open days need both start and end")
        if self.start >= self.end:
            raise ValueError(f"start {self.start} must be before end {self.end}")
        for bound in (self.start, self.end):
            if bound.minute not in SLOT_MINUTES or bound.second or bound.microsecond:
                raise ValueError(f"Business hours must fall on the hour or half hour, got {bound}")


CLOSED = BusinessHours(open=False)

BusinessPolicy = Mapping[int, BusinessHours]


def _parse_time(raw: str) -> time:
    hour, _, minute = raw.strip().partition(":")
    return time(int(hour), int(minute or 0))


def parse_hours(raw: str) -> BusinessHours:
    """Parse ``"08:00-19:00"`` or ``"closed"``."""
    value = raw.strip().lower()
    if value == CLOSED_MARKER:
        return CLOSED
    start, sep, end = value.partition("-")
    if not sep:
        raise ValueError(f"Invalid business hours {raw!r}: expected 'HH:MM-HH:MM' or 'closed'")
    return BusinessHours(open=True, start=_parse_time(start), end=_parse_time(end))


def load_policy(raw: Mapping[str | int, str]) -> dict[int, BusinessHours]:
    """Build the weekday table; weekdays missing from ``raw`` are closed."""
    policy = {weekday: CLOSED for weekday in range(7)}
    for key, value in raw.items():
        weekday = int(key)
        if not 0 <= weekday <= 6:
            raise ValueError(f"Weekday must be 0 (Sunday) to 6 (Saturday), got {key!r}")
        policy[weekday] = parse_hours(value)
    return policy


DEFAULT_POLICY: dict[int, BusinessHours] = load_policy(settings.business_hours)


def weekday_of(d: date) -> int:
    """Sunday-first weekday index (Python's ``date.weekday()`` is Monday-first)."""
    return d.isoweekday() % 7


def hours_for(weekday: int, policy: BusinessPolicy | None = None) -> BusinessHours:
    if not 0 <= weekday <= 6:
        raise ValueError(f"Weekday must be 0 (Sunday) to 6 (Saturday), got {weekday}")
    table = DEFAULT_POLICY if policy is None else policy
    return table.get(weekday, CLOSED)


def hours_on(d: date, policy: BusinessPolicy | None = None) -> BusinessHours:
    return hours_for(weekday_of(d), policy)
