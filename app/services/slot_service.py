from dataclasses import dataclass
from datetime import date, datetime, time, timedelta

from app.core.config import settings

SLOT_MINUTES = (0, 30)


@dataclass(frozen=True, order=True)
class TimeSlot:
    hour: int
    minute: int

    def __post_init__(self) -> None:
        if not 0 <= self.hour <= 23:
            raise ValueError(f"hour must be 0-23, got {self.hour}")
        if self.minute not in SLOT_MINUTES:
            raise ValueError(f"Slots start on the hour or half hour, got minute {self.minute}")

    @property
    def label(self) -> str:
        """12-hour label used on the booking form and stored on appointments, e.g. '6:30 PM'."""
        meridiem = "AM" if self.hour < 12 else "PM"
        display_hour = self.hour % 12 or 12
        return f"{display_hour}:{self.minute:02d} {meridiem}"

    def to_time(self) -> time:
        return time(self.hour, self.minute)

    def __str__(self) -> str:
        return self.label


def parse_slot_label(label: str) -> TimeSlot:
    """Inverse of TimeSlot.label; raises ValueError for anything else."""
    parsed = datetime.strptime(label.strip().upper(), "%I:%M %p")
    return TimeSlot(parsed.hour, parsed.minute)


def generate_slots(start: time, end: time, step_minutes: int | None = None) -> list[TimeSlot]:
    """Slot start times in the half-open interval [start, end).

    A business closing at 19:00 never offers a 19:00 start. Returns [] when
    start >= end.
    """
    step_minutes = settings.slot_step_minutes if step_minutes is None else step_minutes
    if step_minutes <= 0 or step_minutes % 30:
        raise ValueError(f"Slot step must be a positive multiple of 30 minutes, got {step_minutes}")
    step = timedelta(minutes=step_minutes)
    # Anchor on an arbitrary date so timedelta arithmetic works on times
    anchor = date(2000, 1, 1)
    current = datetime.combine(anchor, start)
    stop = datetime.combine(anchor, end)
    slots: list[TimeSlot] = []
    while current < stop:
        slots.append(TimeSlot(current.hour, current.minute))
        current += step
    return slots
