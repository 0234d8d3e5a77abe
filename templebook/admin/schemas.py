from pydantic import BaseModel, Field
from typing import List
from datetime import date
from decimal import Decimal

from templebook.auth.schemas import User
from templebook.enums import BookingStatus, Role

class AdminUser(User):
    temple_count: int = 0
    booking_count: int = 0

class ApprovalRequest(BaseModel):
    user_id: int = Field(..., gt=0)
    is_approved: bool

class ApprovalResponse(BaseModel):
    message: str
    user: User

class StatusCount(BaseModel):
    status: BookingStatus
    count: int

class RoleCount(BaseModel):
    role: Role
    count: int

class SystemCounts(BaseModel):
    total_users: int
    total_temples: int
    total_bookings: int
    pending_approvals: int
    active_temples: int
    verified_bookings: int
    total_revenue: Decimal

class RecentBooking(BaseModel):
    booking_number: str
    visitor_name: str
    temple_name: str
    visit_date: date
    ticket_count: int
    status: BookingStatus

class SystemStats(BaseModel):
    stats: SystemCounts
    bookings_by_status: List[StatusCount]
    users_by_role: List[RoleCount]
    recent_bookings: List[RecentBooking]
    recent_users: List[User]
