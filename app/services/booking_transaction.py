"""
State machine for a single booking attempt.

    idle -> selecting -> slot_chosen -> review_pending -> committing -> committed
                                                                  \\-> failed

Transitions are pure functions over an immutable BookingTransaction: each
returns a new value or raises a BookingError and leaves the input untouched.
Nothing is persisted and no slot is held before commit; the async side
(fetching availability, re-validating and writing) lives in booking_service.
"""

import math
from dataclasses import dataclass, field, replace
from datetime import date
from enum import Enum
from uuid import uuid4

from app.core.config import settings
from app.core.errors import (
    BookingError,
    BookingValidationError,
    CommitInProgress,
    DateUnavailable,
    InvalidTransition,
    PersistenceFailure,
    SlotUnavailable,
    TermsNotAccepted,
)
from app.services.availability_service import DayAvailability, SlotAvailability


class BookingState(str, Enum):
    IDLE = "idle"
    SELECTING = "selecting"
    SLOT_CHOSEN = "slot_chosen"
    REVIEW_PENDING = "review_pending"
    COMMITTING = "committing"
    COMMITTED = "committed"
    FAILED = "failed"


@dataclass(frozen=True)
class CustomerDetails:
    name: str = ""
    email: str = ""
    phone: str = ""
    property_address: str = ""

    def missing_fields(self) -> list[str]:
        return [
            field_name
            for field_name, value in [
                ("name", self.name),
                ("email", self.email),
                ("phone", self.phone),
                ("property_address", self.property_address),
            ]
            if not value or not value.strip()
        ]


@dataclass(frozen=True)
class CostEstimate:
    low: int
    high: int

    @property
    def display(self) -> str:
        return f"${self.low:,} - ${self.high:,}"


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def estimate_cost(area_sqft: float | None, unit_rate: float | None = None) -> CostEstimate | None:
    """Advisory price range shown on review; not a priced contract."""
    if not area_sqft:
        return None
    rate = settings.estimate_unit_rate if unit_rate is None else unit_rate
    return CostEstimate(
        low=_round_half_up(area_sqft * rate * 0.9),
        high=_round_half_up(area_sqft * rate * 1.1),
    )


@dataclass(frozen=True)
class BookingSummary:
    appointment_date: date
    time: str
    customer: CustomerDetails
    duration_minutes: int
    special_requests: str = ""
    send_reminders: bool = True
    measurement_id: str | None = None
    roof_area_sqft: float | None = None
    estimate: CostEstimate | None = None

    @property
    def property_address(self) -> str:
        return self.customer.property_address


@dataclass(frozen=True)
class BookingTransaction:
    attempt_id: str = field(default_factory=lambda: uuid4().hex)
    state: BookingState = BookingState.IDLE
    appointment_date: date | None = None
    time: str | None = None
    slots: tuple[SlotAvailability, ...] = ()
    summary: BookingSummary | None = None
    appointment_id: str | None = None
    confirmation_number: str | None = None
    error: BookingError | None = None


def _require(txn: BookingTransaction, *allowed: BookingState) -> None:
    if txn.state == BookingState.COMMITTING:
        raise CommitInProgress()
    if txn.state not in allowed:
        raise InvalidTransition(f"Cannot do that while the booking is {txn.state.value}")


def new_transaction() -> BookingTransaction:
    return BookingTransaction()


def select_date(txn: BookingTransaction, day: DayAvailability) -> BookingTransaction:
    _require(
        txn,
        BookingState.IDLE,
        BookingState.SELECTING,
        BookingState.SLOT_CHOSEN,
        BookingState.REVIEW_PENDING,
        BookingState.FAILED,
    )
    if not day.is_bookable:
        raise DateUnavailable(f"{day.date.isoformat()} is not available for booking")
    return replace(
        txn,
        state=BookingState.SELECTING,
        appointment_date=day.date,
        time=None,
        slots=(),
        error=None,
    )


def receive_slots(
    txn: BookingTransaction, d: date, slots: list[SlotAvailability]
) -> BookingTransaction:
    """Record the availability snapshot fetched for the selected date."""
    _require(txn, BookingState.SELECTING, BookingState.SLOT_CHOSEN)
    if d != txn.appointment_date:
        # Late response for a date the customer already moved away from
        return txn
    return replace(txn, slots=tuple(slots))


def select_slot(txn: BookingTransaction, time: str) -> BookingTransaction:
    _require(txn, BookingState.SELECTING, BookingState.SLOT_CHOSEN, BookingState.REVIEW_PENDING)
    match = next((s for s in txn.slots if s.time == time), None)
    if match is None or not match.is_available:
        raise SlotUnavailable(f"{time} is not available on {txn.appointment_date}")
    return replace(txn, state=BookingState.SLOT_CHOSEN, time=time, error=None)


def review(
    txn: BookingTransaction,
    customer: CustomerDetails,
    terms_accepted: bool,
    special_requests: str = "",
    send_reminders: bool = True,
    measurement_id: str | None = None,
    roof_area_sqft: float | None = None,
) -> BookingTransaction:
    _require(txn, BookingState.SLOT_CHOSEN, BookingState.REVIEW_PENDING)
    if not terms_accepted:
        raise TermsNotAccepted()
    missing = customer.missing_fields()
    if missing:
        raise BookingValidationError(
            f"Missing required fields: {', '.join(missing)}", fields=missing
        )
    special_requests = (special_requests or "").strip()
    if len(special_requests) > settings.special_requests_max_length:
        raise BookingValidationError(
            f"Special requests must be at most {settings.special_requests_max_length} characters",
            fields=["special_requests"],
        )
    summary = BookingSummary(
        appointment_date=txn.appointment_date,
        time=txn.time,
        customer=customer,
        duration_minutes=settings.appointment_duration_minutes,
        special_requests=special_requests,
        send_reminders=send_reminders,
        measurement_id=measurement_id,
        roof_area_sqft=roof_area_sqft,
        estimate=estimate_cost(roof_area_sqft),
    )
    return replace(txn, state=BookingState.REVIEW_PENDING, summary=summary)


def begin_commit(txn: BookingTransaction) -> BookingTransaction:
    _require(txn, BookingState.REVIEW_PENDING, BookingState.FAILED)
    if txn.summary is None:
        raise InvalidTransition("Review the booking before confirming it")
    return replace(txn, state=BookingState.COMMITTING, error=None)


def commit_succeeded(
    txn: BookingTransaction, appointment_id: str, confirmation_number: str
) -> BookingTransaction:
    if txn.state != BookingState.COMMITTING:
        raise InvalidTransition(f"Cannot complete a booking that is {txn.state.value}")
    return replace(
        txn,
        state=BookingState.COMMITTED,
        appointment_id=appointment_id,
        confirmation_number=confirmation_number,
    )


def commit_failed(txn: BookingTransaction, error: BookingError) -> BookingTransaction:
    """Route a failed commit back to the step the customer must redo.

    A lost slot race sends the customer back to slot selection, a date that
    filled up sends them back to date selection, and storage errors park the
    attempt in ``failed`` so commit can simply be retried.
    """
    if txn.state != BookingState.COMMITTING:
        raise InvalidTransition(f"Cannot fail a booking that is {txn.state.value}")
    if isinstance(error, SlotUnavailable):
        return replace(txn, state=BookingState.SELECTING, time=None, slots=(), error=error)
    if isinstance(error, DateUnavailable):
        return replace(
            txn, state=BookingState.IDLE, appointment_date=None, time=None, slots=(), error=error
        )
    if not isinstance(error, PersistenceFailure):
        error = PersistenceFailure(str(error))
    return replace(txn, state=BookingState.FAILED, error=error)
