"""Application errors and their mapping onto HTTP responses.

Core operations raise these typed errors; the API layer renders every one of
them through a single exception handler registered in ``templebook.main``.
"""

from typing import Any, Dict


class AppError(Exception):
    """Base class for application errors."""

    status_code = 400
    code = "error"

    def __init__(self, message: str, **details: Any):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> Dict[str, Any]:
        return {"detail": self.message, "code": self.code, **self.details}


class InvalidRequestError(AppError):
    """Raised when a request is well-formed but not acceptable."""

    status_code = 422
    code = "validation_error"

    def __init__(self, message: str = "Invalid input", field: str = None):
        super().__init__(message, field=field)


class NotFoundError(AppError):
    """Raised when a requested resource is missing or inactive."""

    status_code = 404
    code = "not_found"

    def __init__(self, message: str = "Resource not found"):
        super().__init__(message)


class TempleNotFoundError(NotFoundError):
    code = "temple_not_found"

    def __init__(self, message: str = "Temple not found or inactive"):
        super().__init__(message)


class TimeSlotNotFoundError(NotFoundError):
    code = "time_slot_not_found"

    def __init__(self, message: str = "Time slot not found or inactive"):
        super().__init__(message)


class BookingNotFoundError(NotFoundError):
    code = "booking_not_found"

    def __init__(self, message: str = "Booking not found"):
        super().__init__(message)


class UserNotFoundError(NotFoundError):
    code = "user_not_found"

    def __init__(self, message: str = "User not found"):
        super().__init__(message)


class CapacityExceededError(AppError):
    """Raised when admitting a request would overshoot a capacity limit.

    ``available`` is the remaining headroom so the caller can retry with a
    smaller ticket count.
    """

    status_code = 409
    code = "capacity_exceeded"

    def __init__(self, scope: str, available: int, limit: int):
        if scope == "temple":
            message = f"Daily ticket limit reached, only {available} left"
        else:
            message = f"Time slot capacity reached, only {available} left"
        super().__init__(message, scope=scope, available=available, limit=limit)
        self.scope = scope
        self.available = available
        self.limit = limit


class InvalidTicketError(AppError):
    """Raised for any ticket token that fails authenticated decryption.

    The message never says why decoding failed.
    """

    status_code = 400
    code = "invalid_ticket"

    def __init__(self):
        super().__init__("Invalid or tampered ticket")


class PermissionDeniedError(AppError):
    status_code = 403
    code = "permission_denied"

    def __init__(self, message: str = "Permission denied"):
        super().__init__(message)


class BookingStateError(AppError):
    """Raised when a booking's current status does not allow the transition."""

    status_code = 409
    code = "invalid_booking_state"

    def __init__(self, status: str, action: str = "verified"):
        super().__init__(f"Booking is {status.lower()} and cannot be {action}", status=status)
        self.status = status


class ConcurrencyConflictError(AppError):
    """Raised when a transaction kept losing to concurrent writers."""

    status_code = 409
    code = "concurrency_conflict"

    def __init__(self, message: str = "The request conflicted with concurrent activity, please retry"):
        super().__init__(message)


class StoreUnavailableError(AppError):
    status_code = 503
    code = "service_unavailable"

    def __init__(self, message: str = "Service temporarily unavailable"):
        super().__init__(message)


class TicketEncodingError(AppError):
    status_code = 500
    code = "ticket_encoding_failed"

    def __init__(self, message: str = "Failed to generate ticket"):
        super().__init__(message)
