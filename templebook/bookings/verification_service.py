from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy.orm import Session, joinedload

from templebook.auth.principal import Capability, Principal
from templebook.bookings import lifecycle
from templebook.bookings.ticket_codec import TicketCodec
from templebook.database import run_in_transaction
from templebook.enums import BookingStatus
from templebook.errors import (
    BookingNotFoundError, ConcurrencyConflictError, InvalidTicketError, PermissionDeniedError
)
from templebook.logging_config import get_logger
from templebook.models import Booking

logger = get_logger("verification")


@dataclass
class VerificationResult:
    booking: Booking
    already_verified: bool


class VerificationService:
    """Applies the one-time CONFIRMED -> VERIFIED transition for scanned tickets"""

    def __init__(self, db: Session, codec: TicketCodec):
        self.db = db
        self.codec = codec

    def verify_ticket(self, principal: Principal, token: str) -> VerificationResult:
        principal.require(Capability.VERIFY_TICKETS)

        try:
            facts = self.codec.decode(token)
        except InvalidTicketError:
            logger.warning(f"Ticket rejected | reason=invalid_token | operator={principal.user_id}")
            raise

        result = run_in_transaction(
            self.db,
            lambda: self._verify(principal, facts.booking_number),
            operation="verification",
        )

        booking = result.booking
        if result.already_verified:
            logger.info(
                f"Ticket re-scanned | number={booking.booking_number} | operator={principal.user_id} | "
                f"verified_at={booking.verified_at} | verified_by={booking.verified_by_id}"
            )
        else:
            logger.info(f"Ticket verified | number={booking.booking_number} | operator={principal.user_id}")
        return result

    def _verify(self, principal: Principal, booking_number: str) -> VerificationResult:
        booking = (
            self.db.query(Booking)
            .options(joinedload(Booking.temple))
            .filter(Booking.booking_number == booking_number)
            .first()
        )
        if booking is None:
            raise BookingNotFoundError()

        if booking.temple.owner_id != principal.user_id:
            logger.warning(f"Ticket rejected | reason=not_owner | operator={principal.user_id}")
            raise PermissionDeniedError("You can only verify bookings for your own temples")

        if not lifecycle.requires_verification(booking.status):
            return VerificationResult(booking=booking, already_verified=True)

        applied = lifecycle.transition(
            self.db,
            booking,
            BookingStatus.VERIFIED,
            expected=[BookingStatus.CONFIRMED],
            verified_at=datetime.now(timezone.utc),
            verified_by_id=principal.user_id,
        )
        self.db.refresh(booking)

        if not applied:
            # A concurrent scan won; report its outcome, or the status it left behind
            if lifecycle.requires_verification(booking.status):
                raise ConcurrencyConflictError()
            return VerificationResult(booking=booking, already_verified=True)

        return VerificationResult(booking=booking, already_verified=False)
