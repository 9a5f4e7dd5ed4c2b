"""
Time tracker error classes.

Each error carries the HTTP status it maps to; main.py registers a handler that
turns them into {"detail": message, ...extra} responses.
"""


class TimeTrackerError(Exception):
    """Base exception for time tracker errors"""
    status_code = 400

    def __init__(self, message: str, **extra):
        super().__init__(message)
        self.message = message
        self.extra = extra


class ValidationFailed(TimeTrackerError):
    """A required selection or field is missing"""
    status_code = 400


class Forbidden(TimeTrackerError):
    status_code = 403


class NotFound(TimeTrackerError):
    status_code = 404


class Conflict(TimeTrackerError):
    """The requested transition is not allowed from the current state"""
    status_code = 409


class WorkOrderStatusRequired(Conflict):
    """Team leaders and admins must update the work order status before clocking out"""
    pass
