import secrets
import time
from datetime import date
from decimal import Decimal
from typing import Dict

from sqlalchemy import func
from sqlalchemy.orm import Session

from templebook.auth.principal import Capability, Principal
from templebook.bookings import lifecycle
from templebook.bookings.schemas import (
    AvailabilityResponse, BookingCreateRequest, SlotAvailability, TicketFacts
)
from templebook.bookings.ticket_codec import TicketCodec
from templebook.database import run_in_transaction
from templebook.enums import BookingStatus
from templebook.errors import (
    CapacityExceededError, TempleNotFoundError, TimeSlotNotFoundError, UserNotFoundError
)
from templebook.logging_config import get_logger
from templebook.models import Booking, Temple, TimeSlot, User

logger = get_logger("booking")

ACTIVE_STATUS_VALUES = [status.value for status in lifecycle.ACTIVE_STATUSES]

_BASE36 = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ"


def _base36(number: int) -> str:
    digits = []
    while number:
        number, remainder = divmod(number, 36)
        digits.append(_BASE36[remainder])
    return "".join(reversed(digits)) or "0"


def generate_booking_number() -> str:
    """Human-readable booking number, e.g. ``TBK-MB3K2F9Q-4F1A2C``"""
    timestamp = _base36(int(time.time() * 1000))
    return f"TBK-{timestamp}-{secrets.token_hex(3).upper()}"


class AdmissionControl:
    """Admits booking requests against the temple daily limit and the slot capacity.

    Each admission runs in one transaction that first locks the temple row and
    then the slot row (SELECT ... FOR UPDATE, always in that order). Every
    booking of a slot belongs to the slot's temple, so holding the temple lock
    serialises all admissions that could move either capacity sum for that
    temple, and the sums are read only after the lock is granted.
    """

    def __init__(self, db: Session, codec: TicketCodec):
        self.db = db
        self.codec = codec

    def create_booking(self, principal: Principal, request: BookingCreateRequest) -> Booking:
        """Admit ``request`` and persist a CONFIRMED booking, or raise the rejection reason"""
        principal.require(Capability.BOOK_TICKETS)

        booking = run_in_transaction(
            self.db,
            lambda: self._admit(principal, request),
            operation="admission",
        )

        logger.info(
            f"Booking admitted | number={booking.booking_number} | user={principal.user_id} | "
            f"temple={booking.temple_id} | slot={booking.time_slot_id} | "
            f"date={booking.visit_date} | tickets={booking.ticket_count}"
        )
        return booking

    def _admit(self, principal: Principal, request: BookingCreateRequest) -> Booking:
        temple = self._lock_temple(request.temple_id)
        time_slot = self._lock_time_slot(temple, request.time_slot_id)

        # Temple-wide limit is checked first
        daily_total = self.booked_tickets(Booking.temple_id == temple.id, request.visit_date)
        if daily_total + request.ticket_count > temple.daily_ticket_limit:
            self._reject("temple", temple.daily_ticket_limit, daily_total, request)

        slot_total = self.booked_tickets(Booking.time_slot_id == time_slot.id, request.visit_date)
        if slot_total + request.ticket_count > time_slot.capacity:
            self._reject("slot", time_slot.capacity, slot_total, request)

        visitor = self.db.get(User, principal.user_id)
        if visitor is None:
            raise UserNotFoundError()

        booking_number = generate_booking_number()
        total_amount = Decimal(temple.ticket_price) * request.ticket_count

        ticket = self.codec.encode(TicketFacts(
            booking_number=booking_number,
            visitor_name=visitor.name,
            visitor_phone=visitor.phone or "N/A",
            temple_name=temple.name,
            visit_date=request.visit_date,
            time_slot=time_slot.description,
            ticket_count=request.ticket_count,
            total_amount=total_amount,
        ))

        booking = Booking(
            booking_number=booking_number,
            user_id=visitor.id,
            temple_id=temple.id,
            time_slot_id=time_slot.id,
            visit_date=request.visit_date,
            ticket_count=request.ticket_count,
            total_amount=total_amount,
            status=BookingStatus.CONFIRMED.value,
            ticket_token=ticket.token,
            ticket_image=ticket.image,
        )
        self.db.add(booking)
        self.db.flush()
        return booking

    def _lock_temple(self, temple_id: int) -> Temple:
        temple = (
            self.db.query(Temple)
            .filter(Temple.id == temple_id)
            .with_for_update()
            .first()
        )
        if temple is None or not temple.is_active:
            raise TempleNotFoundError()
        return temple

    def _lock_time_slot(self, temple: Temple, time_slot_id: int) -> TimeSlot:
        time_slot = (
            self.db.query(TimeSlot)
            .filter(TimeSlot.id == time_slot_id)
            .with_for_update()
            .first()
        )
        if time_slot is None or time_slot.temple_id != temple.id or not time_slot.is_active:
            raise TimeSlotNotFoundError()
        return time_slot

    def _reject(self, scope: str, limit: int, booked: int, request: BookingCreateRequest):
        available = max(limit - booked, 0)
        logger.info(
            f"Booking rejected | scope={scope} | temple={request.temple_id} | "
            f"slot={request.time_slot_id} | date={request.visit_date} | "
            f"requested={request.ticket_count} | available={available}"
        )
        raise CapacityExceededError(scope=scope, available=available, limit=limit)

    def booked_tickets(self, criterion, visit_date: date) -> int:
        """Live sum of tickets held by active bookings matching ``criterion`` on ``visit_date``"""
        total = (
            self.db.query(func.coalesce(func.sum(Booking.ticket_count), 0))
            .filter(
                criterion,
                Booking.visit_date == visit_date,
                Booking.status.in_(ACTIVE_STATUS_VALUES),
            )
            .scalar()
        )
        return int(total)

    def get_availability(self, temple_id: int, visit_date: date) -> AvailabilityResponse:
        """Remaining capacity per active slot and for the whole temple on ``visit_date``"""
        temple = self.db.query(Temple).filter(Temple.id == temple_id).first()
        if temple is None or not temple.is_active:
            raise TempleNotFoundError()

        booked_by_slot: Dict[int, int] = dict(
            self.db.query(Booking.time_slot_id, func.sum(Booking.ticket_count))
            .filter(
                Booking.temple_id == temple.id,
                Booking.visit_date == visit_date,
                Booking.status.in_(ACTIVE_STATUS_VALUES),
            )
            .group_by(Booking.time_slot_id)
            .all()
        )
        daily_booked = int(sum(booked_by_slot.values()))
        daily_available = max(temple.daily_ticket_limit - daily_booked, 0)

        slots = []
        for time_slot in temple.time_slots:
            if not time_slot.is_active:
                continue
            booked = int(booked_by_slot.get(time_slot.id, 0))
            slots.append(SlotAvailability(
                id=time_slot.id,
                start_time=time_slot.start_time,
                end_time=time_slot.end_time,
                capacity=time_slot.capacity,
                booked_count=booked,
                # A slot can never offer more than the temple has left for the day
                available=min(max(time_slot.capacity - booked, 0), daily_available),
            ))

        return AvailabilityResponse(
            temple_id=temple.id,
            visit_date=visit_date,
            daily_limit=temple.daily_ticket_limit,
            daily_booked=daily_booked,
            daily_available=daily_available,
            slots=slots,
        )
