"""
Booking error taxonomy

Every failure the booking core reports to its callers is one of these
types. They are raised to the immediate caller (service, view, task) and
never swallowed inside the core.
"""


class BookingError(Exception):
    """Base class for booking domain errors."""

    code = 'booking_error'

    def __init__(self, message: str = ''):
        super().__init__(message or self.__class__.__doc__)
        self.message = message or self.__class__.__doc__


class InvalidRange(BookingError):
    """Requested time range is malformed."""

    code = 'invalid_range'


class SlotUnavailable(InvalidRange):
    """Requested time range is not within open slots of the court."""

    code = 'slot_unavailable'


class SlotConflict(BookingError):
    """Requested time range overlaps another active reservation."""

    code = 'slot_conflict'


class HoldExpired(BookingError):
    """Hold deadline has passed; request a fresh hold."""

    code = 'hold_expired'


class InvalidTransition(BookingError):
    """Reservation cannot move to the requested status."""

    code = 'invalid_transition'


class UnknownReservation(BookingError):
    """Reservation not found."""

    code = 'unknown_reservation'


class UnknownCourt(BookingError):
    """Court not found."""

    code = 'unknown_court'


class InvalidPaymentEvent(BookingError):
    """Payment event payload is malformed."""

    code = 'invalid_payment_event'


class UnknownOverride(BookingError):
    """Availability override not found."""

    code = 'unknown_override'
