"""
Booking status state machine.

PENDING ──► CONFIRMED ──► VERIFIED
   │            │
   └──► CANCELLED / EXPIRED ◄──┘

VERIFIED, CANCELLED and EXPIRED are terminal. Every change is applied as a
compare-and-set UPDATE guarded by the expected current status, so two
concurrent writers can never both move the same booking.
"""

from datetime import date, datetime, timezone
from typing import Iterable

from sqlalchemy import update
from sqlalchemy.orm import Session

from templebook.enums import BookingStatus
from templebook.errors import BookingStateError
from templebook.models import Booking

TRANSITIONS = {
    BookingStatus.PENDING: frozenset({BookingStatus.CONFIRMED, BookingStatus.CANCELLED, BookingStatus.EXPIRED}),
    BookingStatus.CONFIRMED: frozenset({BookingStatus.VERIFIED, BookingStatus.CANCELLED, BookingStatus.EXPIRED}),
    BookingStatus.VERIFIED: frozenset(),
    BookingStatus.CANCELLED: frozenset(),
    BookingStatus.EXPIRED: frozenset(),
}

# Statuses whose tickets count against temple and slot capacity
ACTIVE_STATUSES = frozenset({BookingStatus.PENDING, BookingStatus.CONFIRMED, BookingStatus.VERIFIED})

ACTION_NAMES = {
    BookingStatus.CONFIRMED: "confirmed",
    BookingStatus.VERIFIED: "verified",
    BookingStatus.CANCELLED: "cancelled",
    BookingStatus.EXPIRED: "expired",
}


def can_transition(current, target) -> bool:
    return BookingStatus(target) in TRANSITIONS[BookingStatus(current)]


def ensure_transition(current, target) -> None:
    current, target = BookingStatus(current), BookingStatus(target)
    if target not in TRANSITIONS[current]:
        raise BookingStateError(current.value, ACTION_NAMES.get(target, target.value.lower()))


def sources_of(target) -> frozenset:
    """Statuses from which ``target`` can be reached"""
    target = BookingStatus(target)
    return frozenset(status for status, targets in TRANSITIONS.items() if target in targets)


def requires_verification(status) -> bool:
    """Decide what a ticket scan does for a booking in ``status``.

    True: the scan must apply CONFIRMED -> VERIFIED.
    False: already verified, the scan is an idempotent repeat.
    Any other status raises BookingStateError naming it.
    """
    status = BookingStatus(status)
    if status == BookingStatus.VERIFIED:
        return False
    ensure_transition(status, BookingStatus.VERIFIED)
    return True


def transition(db: Session, booking: Booking, target, expected: Iterable = None, **values) -> bool:
    """Move ``booking`` to ``target`` if it is still in one of the ``expected`` statuses.

    Returns False when a concurrent writer changed the status first; the
    caller decides what that means. Does not commit.
    """
    target = BookingStatus(target)
    expected = frozenset(BookingStatus(s) for s in expected) if expected else sources_of(target)
    for status in expected:
        ensure_transition(status, target)

    result = db.execute(
        update(Booking)
        .where(Booking.id == booking.id, Booking.status.in_([s.value for s in expected]))
        .values(status=target.value, updated_at=datetime.now(timezone.utc), **values)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


def expire_stale_bookings(db: Session, before: date) -> int:
    """Expire unverified bookings whose visit date is earlier than ``before``. Does not commit."""
    expected = sources_of(BookingStatus.EXPIRED)
    result = db.execute(
        update(Booking)
        .where(Booking.status.in_([s.value for s in expected]), Booking.visit_date < before)
        .values(status=BookingStatus.EXPIRED.value, updated_at=datetime.now(timezone.utc))
        .execution_options(synchronize_session=False)
    )
    return result.rowcount
