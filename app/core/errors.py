"""Booking error kinds.

Each error carries a stable ``code`` that the API returns to clients, and a
``retryable`` flag telling the client whether re-submitting the same
commit can succeed without collecting new input.
"""


class BookingError(Exception):
    code = "booking_error"
    retryable = False

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.__class__.__doc__ or self.code)

    @property
    def message(self) -> str:
        return str(self)


class DateUnavailable(BookingError):
    """The selected date is in the past, closed, or fully booked."""

    code = "date_unavailable"


class SlotUnavailable(BookingError):
    """The selected time slot is no longer available."""

    code = "slot_unavailable"


class TermsNotAccepted(BookingError):
    """The terms and conditions must be accepted to book."""

    code = "terms_not_accepted"


class BookingValidationError(BookingError):
    """Required booking details are missing or invalid."""

    code = "validation_error"

    def __init__(self, message: str | None = None, fields: list[str] | None = None) -> None:
        super().__init__(message)
        self.fields = fields or []


class PersistenceFailure(BookingError):
    """The appointment could not be saved. Please try again."""

    code = "persistence_failure"
    retryable = True


class NotificationFailure(BookingError):
    """A confirmation or alert message could not be delivered."""

    code = "notification_failure"


class CommitInProgress(BookingError):
    """This booking is already being submitted."""

    code = "commit_in_progress"


class InvalidTransition(BookingError):
    """The booking cannot move to that step from its current state."""

    code = "invalid_transition"


class InvalidStatusTransition(Exception):
    """Raised when staff try to move an appointment out of a terminal status."""


class DuplicateAppointmentError(Exception):
    """Raised by the store when a uniqueness constraint rejects an insert."""


class DayFullError(Exception):
    """Raised by the store when an insert would exceed the daily capacity."""
