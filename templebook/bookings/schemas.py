from pydantic import BaseModel, Field, field_validator
from typing import List, Optional
from datetime import datetime, date, time, timezone
from decimal import Decimal

from templebook.enums import BookingStatus

MAX_TICKETS_PER_BOOKING = 10

# Ticket payload
class TicketFacts(BaseModel):
    """Booking facts carried inside the encrypted ticket token"""
    booking_number: str
    visitor_name: str
    visitor_phone: str
    temple_name: str
    visit_date: date
    time_slot: str
    ticket_count: int = Field(..., ge=1, le=MAX_TICKETS_PER_BOOKING)
    total_amount: Decimal

class IssuedTicket(BaseModel):
    """Encrypted token plus the QR image that carries it"""
    token: str
    image: str

# Booking Request Models
class BookingCreateRequest(BaseModel):
    """Request to admit a visit booking"""
    temple_id: int = Field(..., gt=0)
    time_slot_id: int = Field(..., gt=0)
    visit_date: date
    ticket_count: int = Field(..., ge=1, le=MAX_TICKETS_PER_BOOKING)

    @field_validator("visit_date", mode="before")
    @classmethod
    def normalize_visit_date(cls, v):
        # Timestamps collapse onto their calendar day
        if isinstance(v, datetime):
            return v.date()
        if isinstance(v, str) and "T" in v:
            try:
                return datetime.fromisoformat(v.replace("Z", "+00:00")).date()
            except ValueError:
                raise ValueError("visit_date must be an ISO-8601 date or datetime")
        return v

    @field_validator("visit_date")
    @classmethod
    def reject_past_dates(cls, v: date) -> date:
        # Compared against the UTC day so the rule does not depend on the server timezone
        if v < datetime.now(timezone.utc).date():
            raise ValueError("Cannot book past dates")
        return v

class VerifyTicketRequest(BaseModel):
    token: str = Field(..., min_length=1, max_length=4096)

class ExpireBookingsRequest(BaseModel):
    """Expire unverified bookings whose visit date is before ``before``; omitted means today (UTC)"""
    before: Optional[date] = None

# Response Models
class VerifierInfo(BaseModel):
    id: int
    name: str

class BookingResponse(BaseModel):
    id: int
    booking_number: str
    user_id: int
    temple_id: int
    temple_name: Optional[str] = None
    time_slot_id: int
    time_slot: Optional[str] = None
    visit_date: date
    ticket_count: int
    total_amount: Decimal
    status: BookingStatus
    ticket_token: Optional[str] = None
    ticket_image: Optional[str] = None
    verified_at: Optional[datetime] = None
    verified_by: Optional[VerifierInfo] = None
    cancelled_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_booking(cls, booking, include_ticket: bool = True) -> "BookingResponse":
        verifier = booking.verified_by
        return cls(
            id=booking.id,
            booking_number=booking.booking_number,
            user_id=booking.user_id,
            temple_id=booking.temple_id,
            temple_name=booking.temple.name if booking.temple else None,
            time_slot_id=booking.time_slot_id,
            time_slot=booking.time_slot.description if booking.time_slot else None,
            visit_date=booking.visit_date,
            ticket_count=booking.ticket_count,
            total_amount=booking.total_amount,
            status=booking.status,
            ticket_token=booking.ticket_token if include_ticket else None,
            ticket_image=booking.ticket_image if include_ticket else None,
            verified_at=booking.verified_at,
            verified_by=VerifierInfo(id=verifier.id, name=verifier.name) if verifier else None,
            cancelled_at=booking.cancelled_at,
            created_at=booking.created_at,
        )

class VerificationResponse(BaseModel):
    message: str
    already_verified: bool
    verified_at: Optional[datetime] = None
    verified_by: Optional[VerifierInfo] = None
    booking: BookingResponse

class SlotAvailability(BaseModel):
    id: int
    start_time: time
    end_time: time
    capacity: int
    booked_count: int
    available: int

class AvailabilityResponse(BaseModel):
    temple_id: int
    visit_date: date
    daily_limit: int
    daily_booked: int
    daily_available: int
    slots: List[SlotAvailability]

class ExpireBookingsResponse(BaseModel):
    expired: int
    before: date
