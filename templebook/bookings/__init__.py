"""
Booking & Ticketing Module

This module holds the booking core of the Temple Visit Booking System:

- admission.py: capacity admission control against the temple daily limit
  and the per-slot capacity, run as one locked transaction
- ticket_codec.py: AES-256-GCM ticket tokens and their QR code images
- lifecycle.py: booking status state machine with compare-and-set transitions
- verification_service.py: single-use ticket verification at the temple gate
- booking_service.py: role-scoped booking queries, cancellation and expiry
- router.py: FastAPI endpoints for bookings and ticket verification
- schemas.py: Pydantic models for requests, responses and ticket payloads
"""

from .router import router
from .admission import AdmissionControl
from .booking_service import BookingService
from .verification_service import VerificationService, VerificationResult
from .ticket_codec import TicketCodec

__all__ = [
    "router",
    "AdmissionControl",
    "BookingService",
    "VerificationService",
    "VerificationResult",
    "TicketCodec",
]
