from typing import Any, Dict, List, Optional
from datetime import date, datetime, timezone
from sqlalchemy.orm import Session, joinedload

from templebook.auth.principal import Capability, Principal
from templebook.bookings import lifecycle
from templebook.database import run_in_transaction
from templebook.enums import BookingStatus, Role
from templebook.errors import (
    BookingNotFoundError, BookingStateError, InvalidRequestError, PermissionDeniedError
)
from templebook.logging_config import get_logger
from templebook.models import Booking, Temple

logger = get_logger("booking")

class BookingService:
    """Role-scoped booking queries plus the cancellation and expiry transitions"""

    def __init__(self, db: Session):
        self.db = db

    def list_bookings(
        self,
        principal: Principal,
        temple_id: Optional[int] = None,
        status: Optional[BookingStatus] = None
    ) -> List[Booking]:
        """Bookings visible to the caller, newest first"""

        query = self.db.query(Booking).options(
            joinedload(Booking.temple),
            joinedload(Booking.time_slot),
            joinedload(Booking.verified_by)
        )

        if principal.role == Role.USER:
            query = query.filter(Booking.user_id == principal.user_id)
            if temple_id:
                query = query.filter(Booking.temple_id == temple_id)

        elif principal.role == Role.TEMPLE_BOARD:
            if temple_id:
                temple = self.db.get(Temple, temple_id)
                if temple is None or temple.owner_id != principal.user_id:
                    raise PermissionDeniedError("Temple not found or unauthorized")
                query = query.filter(Booking.temple_id == temple_id)
            else:
                query = query.join(Temple, Booking.temple_id == Temple.id).filter(
                    Temple.owner_id == principal.user_id
                )

        elif temple_id:
            query = query.filter(Booking.temple_id == temple_id)

        if status:
            query = query.filter(Booking.status == BookingStatus(status).value)

        return query.order_by(Booking.created_at.desc(), Booking.id.desc()).all()

    def get_booking(self, principal: Principal, booking_number: str) -> Booking:
        """Booking by number, if the caller may see it"""
        booking = self._find(booking_number)
        if booking is None or not self._can_view(principal, booking):
            raise BookingNotFoundError()
        return booking

    def cancel_booking(self, principal: Principal, booking_number: str) -> Booking:
        """Withdraw a PENDING or CONFIRMED booking, releasing its tickets"""

        def cancel() -> Booking:
            booking = self._find(booking_number)
            if booking is None or not self._can_view(principal, booking):
                raise BookingNotFoundError()
            if principal.role == Role.TEMPLE_BOARD:
                raise PermissionDeniedError("Only the visitor or a superuser can cancel a booking")

            lifecycle.ensure_transition(booking.status, BookingStatus.CANCELLED)
            applied = lifecycle.transition(
                self.db,
                booking,
                BookingStatus.CANCELLED,
                cancelled_at=datetime.now(timezone.utc)
            )
            self.db.refresh(booking)
            if not applied:
                raise BookingStateError(booking.status, "cancelled")
            return booking

        booking = run_in_transaction(self.db, cancel, operation="cancellation")
        logger.info(f"Booking cancelled | number={booking.booking_number} | by={principal.user_id}")
        return booking

    def expire_bookings(self, principal: Principal, before: Optional[date] = None) -> Dict[str, Any]:
        """Expire unverified bookings whose visit date has passed.

        ``before`` defaults to today (UTC). A later cut-off would expire
        bookings whose visit day has not come yet, so it is refused.
        """
        principal.require(Capability.ADMINISTER)
        today = datetime.now(timezone.utc).date()
        cutoff = before or today
        if cutoff > today:
            raise InvalidRequestError("Cannot expire bookings whose visit date is in the future", field="before")

        expired = run_in_transaction(
            self.db,
            lambda: lifecycle.expire_stale_bookings(self.db, cutoff),
            operation="expiry"
        )
        logger.info(f"Bookings expired | before={cutoff} | count={expired} | by={principal.user_id}")
        return {"expired": expired, "before": cutoff}

    def _find(self, booking_number: str) -> Optional[Booking]:
        return self.db.query(Booking).options(
            joinedload(Booking.temple),
            joinedload(Booking.time_slot)
        ).filter(Booking.booking_number == booking_number).first()

    def _can_view(self, principal: Principal, booking: Booking) -> bool:
        if principal.role == Role.SUPERUSER:
            return True
        if principal.role == Role.TEMPLE_BOARD:
            return booking.temple.owner_id == principal.user_id
        return booking.user_id == principal.user_id
