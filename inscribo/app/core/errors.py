"""Domain errors raised by the funnel services.

Every error carries a message that is safe to show to the end user. The API
layer renders them through a single exception handler (see ``main.py``).
"""


class FunnelError(Exception):
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFound(FunnelError):
    """Referenced lead, stage, visit or user does not exist in the caller's institution."""

    status_code = 404


class InvalidArgument(FunnelError):
    """Malformed input: non-positive duration, blank required field, unknown enum value."""

    status_code = 400


class InvariantViolation(FunnelError):
    """The operation would break a structural invariant of the funnel."""

    status_code = 409


class StaleWrite(InvariantViolation):
    """The record changed since the caller read it."""


class TransientStoreFailure(FunnelError):
    """The store failed for operational reasons; the operation may be retried."""

    status_code = 503
