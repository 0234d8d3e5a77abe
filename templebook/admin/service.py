from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload
from typing import List, Optional
from decimal import Decimal

from templebook.auth.principal import Capability, Principal
from templebook.enums import BookingStatus, Role
from templebook.errors import InvalidRequestError, UserNotFoundError
from templebook.logging_config import get_logger
from templebook.models import Booking, Temple, User

logger = get_logger("admin")

REVENUE_STATUSES = (BookingStatus.CONFIRMED.value, BookingStatus.VERIFIED.value)
RECENT_LIMIT = 10

class AdminService:
    def __init__(self, db: Session):
        self.db = db

    def list_users(self, principal: Principal, role: Optional[Role] = None, pending: Optional[bool] = None) -> List[dict]:
        """All users, newest first, with their temple and booking counts"""
        principal.require(Capability.ADMINISTER)

        temple_counts = self.db.query(
            Temple.owner_id.label("user_id"), func.count(Temple.id).label("count")
        ).group_by(Temple.owner_id).subquery()
        booking_counts = self.db.query(
            Booking.user_id.label("user_id"), func.count(Booking.id).label("count")
        ).group_by(Booking.user_id).subquery()

        query = self.db.query(
            User,
            func.coalesce(temple_counts.c.count, 0),
            func.coalesce(booking_counts.c.count, 0)
        ).outerjoin(
            temple_counts, temple_counts.c.user_id == User.id
        ).outerjoin(
            booking_counts, booking_counts.c.user_id == User.id
        )

        if role:
            query = query.filter(User.role == role.value)
        if pending is not None:
            query = query.filter(User.is_approved == (not pending))

        rows = query.order_by(User.created_at.desc(), User.id.desc()).all()
        return [
            {
                "id": user.id,
                "name": user.name,
                "email": user.email,
                "phone": user.phone,
                "role": user.role,
                "is_approved": user.is_approved,
                "created_at": user.created_at,
                "temple_count": temple_count,
                "booking_count": booking_count,
            }
            for user, temple_count, booking_count in rows
        ]

    def set_approval(self, principal: Principal, user_id: int, is_approved: bool) -> User:
        """Approve or reject a temple board account"""
        principal.require(Capability.ADMINISTER)

        user = self.db.query(User).filter(User.id == user_id).first()
        if user is None:
            raise UserNotFoundError()
        if user.role != Role.TEMPLE_BOARD.value:
            raise InvalidRequestError("Only temple board members require approval", field="user_id")

        user.is_approved = is_approved
        self.db.commit()
        self.db.refresh(user)

        logger.info(
            f"Temple board {'approved' if is_approved else 'rejected'} | "
            f"user={user.id} | by={principal.user_id}"
        )
        return user

    def get_stats(self, principal: Principal) -> dict:
        """System-wide counts, revenue and recent activity"""
        principal.require(Capability.ADMINISTER)

        total_revenue = self.db.query(func.sum(Booking.total_amount)).filter(
            Booking.status.in_(REVENUE_STATUSES)
        ).scalar() or Decimal("0")

        counts = {
            "total_users": self.db.query(User).count(),
            "total_temples": self.db.query(Temple).count(),
            "total_bookings": self.db.query(Booking).count(),
            "pending_approvals": self.db.query(User).filter(
                User.role == Role.TEMPLE_BOARD.value,
                User.is_approved == False
            ).count(),
            "active_temples": self.db.query(Temple).filter(Temple.is_active == True).count(),
            "verified_bookings": self.db.query(Booking).filter(
                Booking.status == BookingStatus.VERIFIED.value
            ).count(),
            "total_revenue": total_revenue,
        }

        bookings_by_status = self.db.query(Booking.status, func.count(Booking.id)).group_by(Booking.status).all()
        users_by_role = self.db.query(User.role, func.count(User.id)).group_by(User.role).all()

        recent_bookings = self.db.query(Booking).options(
            joinedload(Booking.user),
            joinedload(Booking.temple)
        ).order_by(Booking.created_at.desc(), Booking.id.desc()).limit(RECENT_LIMIT).all()
        recent_users = self.db.query(User).order_by(
            User.created_at.desc(), User.id.desc()
        ).limit(RECENT_LIMIT).all()

        return {
            "stats": counts,
            "bookings_by_status": [{"status": s, "count": c} for s, c in bookings_by_status],
            "users_by_role": [{"role": r, "count": c} for r, c in users_by_role],
            "recent_bookings": [
                {
                    "booking_number": b.booking_number,
                    "visitor_name": b.user.name,
                    "temple_name": b.temple.name,
                    "visit_date": b.visit_date,
                    "ticket_count": b.ticket_count,
                    "status": b.status,
                }
                for b in recent_bookings
            ],
            "recent_users": recent_users,
        }
