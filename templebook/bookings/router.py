from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional

from templebook.database import get_db
from templebook.auth.dependencies import get_current_principal
from templebook.auth.principal import Principal
from templebook.bookings.schemas import (
    BookingCreateRequest, BookingResponse, VerifyTicketRequest, VerificationResponse,
    VerifierInfo
)
from templebook.bookings.admission import AdmissionControl
from templebook.bookings.booking_service import BookingService
from templebook.bookings.verification_service import VerificationService
from templebook.bookings.ticket_codec import TicketCodec
from templebook.bookings.dependencies import get_ticket_codec
from templebook.enums import BookingStatus

router = APIRouter()

@router.post("/", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
def create_booking(
    request: BookingCreateRequest,
    principal: Principal = Depends(get_current_principal),
    codec: TicketCodec = Depends(get_ticket_codec),
    db: Session = Depends(get_db)
):
    """Admit a visit booking and issue its ticket"""
    booking = AdmissionControl(db, codec).create_booking(principal, request)
    return BookingResponse.from_booking(booking)

@router.get("/", response_model=List[BookingResponse])
def list_bookings(
    temple_id: Optional[int] = Query(None, description="Filter by temple"),
    booking_status: Optional[BookingStatus] = Query(None, alias="status", description="Filter by booking status"),
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db)
):
    """Own bookings for visitors, own-temple bookings for temple boards, all for superusers"""
    bookings = BookingService(db).list_bookings(principal, temple_id=temple_id, status=booking_status)
    # Only the visitor needs the ticket itself
    return [
        BookingResponse.from_booking(b, include_ticket=b.user_id == principal.user_id)
        for b in bookings
    ]

@router.post("/verify", response_model=VerificationResponse)
def verify_ticket(
    request: VerifyTicketRequest,
    principal: Principal = Depends(get_current_principal),
    codec: TicketCodec = Depends(get_ticket_codec),
    db: Session = Depends(get_db)
):
    """Verify a scanned ticket at the temple gate"""
    result = VerificationService(db, codec).verify_ticket(principal, request.token)
    booking = result.booking
    verifier = booking.verified_by

    return VerificationResponse(
        message="Booking already verified" if result.already_verified else "Booking verified successfully",
        already_verified=result.already_verified,
        verified_at=booking.verified_at,
        verified_by=VerifierInfo(id=verifier.id, name=verifier.name) if verifier else None,
        booking=BookingResponse.from_booking(booking, include_ticket=False)
    )

@router.get("/{booking_number}", response_model=BookingResponse)
def get_booking(
    booking_number: str,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db)
):
    """Get booking details by booking number"""
    booking = BookingService(db).get_booking(principal, booking_number)
    return BookingResponse.from_booking(booking, include_ticket=booking.user_id == principal.user_id)

@router.post("/{booking_number}/cancel", response_model=BookingResponse)
def cancel_booking(
    booking_number: str,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db)
):
    """Cancel a booking that has not been used yet"""
    booking = BookingService(db).cancel_booking(principal, booking_number)
    return BookingResponse.from_booking(booking, include_ticket=False)
