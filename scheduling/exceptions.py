"""
Exceptions raised by the scheduling engine.

Raised in the service layer and translated into HTTP responses by
handlers.scheduling_exception_handler.
"""


class SchedulingError(Exception):
    """Base exception for all scheduling errors."""

    code = 'scheduling_error'
    status_code = 400

    def __init__(self, message=None, code=None):
        super().__init__(message or self.__class__.__doc__)
        if code is not None:
            self.code = code

    @property
    def message(self):
        return str(self)


class ValidationError(SchedulingError):
    """Malformed date, time or identifier in the request."""

    code = 'invalid'
    status_code = 400


class NotFoundError(SchedulingError):
    """Unknown provider, service, block or appointment."""

    code = 'not_found'
    status_code = 404


class NonWorkingDayError(SchedulingError):
    """The provider does not work on the requested day."""

    code = 'non_working_day'
    status_code = 200


class PlanRestrictedError(SchedulingError):
    """Online bookings are disabled by the provider's plan."""

    code = 'bookings_disabled'
    status_code = 403


class SlotConflictError(SchedulingError):
    """The requested interval is no longer bookable."""

    code = 'slot_taken'
    status_code = 409

    def __init__(self, message=None, reason=None):
        super().__init__(message)
        self.reason = reason


class ConcurrencyConflictError(SchedulingError):
    """A simultaneous booking for the same provider won the race."""

    code = 'concurrency_conflict'
    status_code = 409


class InvalidStatusTransitionError(SchedulingError):
    """The appointment cannot move to the requested status."""

    code = 'invalid_status_transition'
    status_code = 409
