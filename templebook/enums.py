from enum import Enum


class Role(str, Enum):
    USER = "USER"
    TEMPLE_BOARD = "TEMPLE_BOARD"
    SUPERUSER = "SUPERUSER"


class BookingStatus(str, Enum):
    """Booking status enumeration"""
    # Not produced by the booking flow; kept for settlement-gated confirmation
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    VERIFIED = "VERIFIED"
    CANCELLED = "CANCELLED"
    EXPIRED = "EXPIRED"
