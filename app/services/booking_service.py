import logging
import secrets
import time as _time
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date, datetime

from sqlalchemy.exc import SQLAlchemyError

from app.core.errors import (
    CommitInProgress,
    DateUnavailable,
    DayFullError,
    DuplicateAppointmentError,
    NotificationFailure,
    PersistenceFailure,
    SlotUnavailable,
    TermsNotAccepted,
)
from app.models.appointment import Appointment, AppointmentCreate
from app.models.measurement import Measurement
from app.services import availability_service
from app.services import booking_transaction as bt
from app.services.appointment_store import AppointmentStore
from app.services.availability_service import (
    DayAvailability,
    SlotAvailability,
    booked_times_of,
    business_now,
    business_today,
    day_availability,
    slots_for,
)
from app.services.booking_transaction import (
    BookingState,
    BookingSummary,
    BookingTransaction,
    CustomerDetails,
)
from app.services.calendar_policy import BusinessPolicy
from app.services.notification_service import Notifier, customer_confirmation, internal_alert

logger = logging.getLogger(__name__)

CONFIRMATION_PREFIX = "AROOF"


def generate_confirmation_number() -> str:
    """Millisecond timestamp plus a random suffix, e.g. AROOF-1760900000000-9F2C.

    Not unique by construction; the unique index on confirmation_number
    turns the rare collision into a duplicate-key error.
    """
    return f"{CONFIRMATION_PREFIX}-{int(_time.time() * 1000)}-{secrets.token_hex(2).upper()}"


@dataclass(frozen=True)
class BookingConfirmation:
    appointment_id: str
    confirmation_number: str
    summary: BookingSummary


class BookingService:
    """Runs booking attempts against the store and notifier.

    The pure transitions live in booking_transaction; this class does the
    I/O around them: availability fetches, the re-validation immediately
    before the write, and the post-commit side effects.
    """

    def __init__(
        self,
        store: AppointmentStore,
        notifier: Notifier,
        policy: BusinessPolicy | None = None,
        today: Callable[[], date] = business_today,
        now: Callable[[], datetime] = business_now,
    ) -> None:
        self._store = store
        self._notifier = notifier
        self._policy = policy
        self._today = today
        self._now = now
        self._in_flight: set[str] = set()

    async def get_day_availability(self, d: date) -> DayAvailability:
        return await availability_service.get_day_availability(
            self._store, d, today=self._today(), policy=self._policy
        )

    async def get_slot_availability(self, d: date) -> list[SlotAvailability]:
        return await availability_service.get_slot_availability(
            self._store, d, policy=self._policy, now=self._now()
        )

    def today(self) -> date:
        return self._today()

    async def get_range_availability(
        self, start_inclusive: date, end_exclusive: date
    ) -> dict[date, DayAvailability]:
        return await availability_service.get_range_availability(
            self._store, start_inclusive, end_exclusive, today=self._today(), policy=self._policy
        )

    async def next_bookable_dates(self, limit: int = 10) -> list[DayAvailability]:
        return await availability_service.next_bookable_dates(
            self._store, limit=limit, today=self._today(), policy=self._policy
        )

    async def get_lead(self, measurement_id: str) -> Measurement | None:
        return await self._store.get_measurement(measurement_id)

    async def select_date(self, txn: BookingTransaction, d: date) -> BookingTransaction:
        day = await self.get_day_availability(d)
        txn = bt.select_date(txn, day)
        slots = await self.get_slot_availability(d)
        return bt.receive_slots(txn, d, slots)

    async def commit(self, txn: BookingTransaction) -> BookingTransaction:
        """Re-validate and persist a reviewed booking.

        Returns the transaction in ``committed`` on success; otherwise in the
        state commit_failed routes it to, with ``error`` set.
        """
        if txn.attempt_id in self._in_flight:
            raise CommitInProgress()
        txn = bt.begin_commit(txn)
        self._in_flight.add(txn.attempt_id)
        try:
            return await self._commit(txn)
        finally:
            self._in_flight.discard(txn.attempt_id)

    async def _commit(self, txn: BookingTransaction) -> BookingTransaction:
        summary = txn.summary
        d = summary.appointment_date

        # Second check: the snapshot the customer saw may be stale by now
        try:
            active = await self._store.list_appointments(d)
        except SQLAlchemyError as e:
            logger.exception("Re-validation read failed for %s: %s", d, e)
            return bt.commit_failed(txn, PersistenceFailure())
        if not day_availability(d, len(active), today=self._today(), policy=self._policy).is_bookable:
            logger.info("Date %s became unavailable before commit (attempt %s)", d, txn.attempt_id)
            return bt.commit_failed(txn, DateUnavailable(f"{d.isoformat()} is no longer available"))
        open_slots = {
            s.time
            for s in slots_for(d, booked_times_of(active), policy=self._policy, now=self._now())
            if s.is_available
        }
        if summary.time not in open_slots:
            logger.info("Slot %s %s was taken before commit (attempt %s)", d, summary.time, txn.attempt_id)
            return bt.commit_failed(txn, SlotUnavailable(f"{summary.time} on {d.isoformat()} was just booked"))

        data = AppointmentCreate(
            measurement_id=summary.measurement_id,
            customer_name=summary.customer.name.strip(),
            customer_email=summary.customer.email.strip(),
            customer_phone=summary.customer.phone.strip(),
            property_address=summary.property_address.strip(),
            appointment_date=d,
            appointment_time=summary.time,
            duration_minutes=summary.duration_minutes,
            confirmation_number=generate_confirmation_number(),
            special_requests=summary.special_requests or None,
            send_reminders=summary.send_reminders,
            terms_accepted=True,
            roof_area_sqft=summary.roof_area_sqft,
            estimated_cost_low=summary.estimate.low if summary.estimate else None,
            estimated_cost_high=summary.estimate.high if summary.estimate else None,
        )
        try:
            appointment = await self._store.create_appointment(data)
        except DuplicateAppointmentError as e:
            logger.warning("Duplicate key on insert for %s %s: %s", d, summary.time, e)
            return bt.commit_failed(txn, SlotUnavailable(f"{summary.time} on {d.isoformat()} was just booked"))
        except DayFullError as e:
            logger.info("Daily capacity reached on insert for %s: %s", d, e)
            return bt.commit_failed(txn, DateUnavailable(f"{d.isoformat()} is no longer available"))
        except SQLAlchemyError as e:
            logger.exception("Failed to save appointment for %s %s: %s", d, summary.time, e)
            return bt.commit_failed(txn, PersistenceFailure())

        logger.info(
            "Appointment %s booked for %s at %s (confirmation %s)",
            appointment.id,
            d,
            summary.time,
            appointment.confirmation_number,
        )
        committed = bt.commit_succeeded(txn, appointment.id, appointment.confirmation_number)
        await self._after_commit(appointment, summary)
        return committed

    async def _after_commit(self, appointment: Appointment, summary: BookingSummary) -> None:
        """Side effects that never undo a committed booking."""
        for message in (customer_confirmation(appointment, summary), internal_alert(appointment, summary)):
            try:
                await self._notifier.send(message)
            except Exception as e:
                logger.exception(
                    "%s: %s to %s for appointment %s: %s",
                    NotificationFailure.code,
                    message.kind,
                    message.to_email,
                    appointment.id,
                    e,
                )
        if summary.measurement_id:
            try:
                await self._store.mark_measurement_booked(summary.measurement_id)
            except SQLAlchemyError as e:
                logger.exception("Could not mark measurement %s booked: %s", summary.measurement_id, e)

    async def prepare(
        self,
        appointment_date: date,
        time: str,
        customer: CustomerDetails,
        special_requests: str = "",
        send_reminders: bool = True,
        terms_accepted: bool = False,
        measurement_id: str | None = None,
    ) -> BookingTransaction:
        """Walk a fresh attempt through date, slot and review; writes nothing."""
        roof_area_sqft = None
        if measurement_id:
            lead = await self.get_lead(measurement_id)
            if lead:
                customer = merge_lead_details(customer, lead)
                roof_area_sqft = lead.total_sqft
            else:
                logger.warning("Booking references unknown measurement %s", measurement_id)
        txn = await self.select_date(bt.new_transaction(), appointment_date)
        txn = bt.select_slot(txn, time)
        return bt.review(
            txn,
            customer,
            terms_accepted=terms_accepted,
            special_requests=special_requests,
            send_reminders=send_reminders,
            measurement_id=measurement_id,
            roof_area_sqft=roof_area_sqft,
        )

    async def attempt_booking(
        self,
        appointment_date: date,
        time: str,
        customer: CustomerDetails,
        special_requests: str = "",
        send_reminders: bool = True,
        terms_accepted: bool = False,
        measurement_id: str | None = None,
    ) -> BookingConfirmation:
        """Run a whole attempt and commit it.

        Raises the BookingError that stopped the attempt. Terms are checked
        before anything is read from or written to the store.
        """
        if not terms_accepted:
            raise TermsNotAccepted()
        txn = await self.prepare(
            appointment_date,
            time,
            customer,
            special_requests=special_requests,
            send_reminders=send_reminders,
            terms_accepted=terms_accepted,
            measurement_id=measurement_id,
        )
        txn = await self.commit(txn)
        if txn.state != BookingState.COMMITTED:
            raise txn.error
        return BookingConfirmation(
            appointment_id=txn.appointment_id,
            confirmation_number=txn.confirmation_number,
            summary=txn.summary,
        )


def merge_lead_details(customer: CustomerDetails, lead: Measurement) -> CustomerDetails:
    """Fill blank contact fields from the measurement the customer came from."""
    return CustomerDetails(
        name=customer.name or lead.customer_name or "",
        email=customer.email or lead.customer_email or "",
        phone=customer.phone or lead.customer_phone or "",
        property_address=customer.property_address or lead.property_address or "",
    )
