"""
exceptions.py
-------------
Errors raised by BookingManager. Views map them to HTTP responses.

All of them subclass ValueError so callers that only care about
"the booking rules said no" can keep catching ValueError.
"""


class BookingError(ValueError):
    status_code = 400
    code = "booking_error"

    def __init__(self, message, code=None):
        super().__init__(message)
        if code is not None:
            self.code = code

    @property
    def message(self) -> str:
        return str(self)


class BookingValidationError(BookingError):
    """Client-fixable input problem (bad range, unknown service, price mismatch)."""
    code = "invalid"


class SlotUnavailable(BookingError):
    """The availability engine rejected the slot; code is the scanner's reason code."""
    status_code = 409
    code = "unavailable"


class NoStaffAvailable(SlotUnavailable):
    code = "no_staff_available"


class NotAllowed(BookingError):
    """The caller may not act on this appointment."""
    status_code = 403
    code = "not_allowed"


class AlreadyFinalized(BookingError):
    """The appointment is no longer Scheduled."""
    code = "already_finalized"

    def __init__(self, status):
        super().__init__(f'Appointment is already "{status}" and cannot be changed.')
        self.current_status = status
