from functools import lru_cache

from templebook.bookings.ticket_codec import TicketCodec
from templebook.config import settings


@lru_cache
def get_ticket_codec() -> TicketCodec:
    """Codec bound to the configured ticket secret; key derivation runs once per process"""
    return TicketCodec(secret=settings.QR_SECRET_KEY, salt=settings.QR_KEY_SALT)
