from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List, Optional

from templebook.database import get_db
from templebook.auth.dependencies import get_current_principal
from templebook.auth.principal import Principal
from templebook.admin.schemas import AdminUser, ApprovalRequest, ApprovalResponse, SystemStats
from templebook.admin.service import AdminService
from templebook.bookings.booking_service import BookingService
from templebook.bookings.schemas import ExpireBookingsRequest, ExpireBookingsResponse
from templebook.enums import Role

router = APIRouter()

@router.get("/users", response_model=List[AdminUser])
def list_users(
    role: Optional[Role] = Query(None, description="Filter by role"),
    pending: Optional[bool] = Query(None, description="Only accounts awaiting approval (true) or approved (false)"),
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db)
):
    """List users with their temple and booking counts"""
    return AdminService(db).list_users(principal, role=role, pending=pending)

@router.post("/approve", response_model=ApprovalResponse)
def approve_user(
    request: ApprovalRequest,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db)
):
    """Approve or reject a temple board application"""
    user = AdminService(db).set_approval(principal, request.user_id, request.is_approved)
    return {
        "message": f"User {'approved' if request.is_approved else 'rejected'} successfully",
        "user": user
    }

@router.get("/stats", response_model=SystemStats)
def get_stats(
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db)
):
    """System statistics"""
    return AdminService(db).get_stats(principal)

@router.post("/bookings/expire", response_model=ExpireBookingsResponse)
def expire_bookings(
    request: ExpireBookingsRequest,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db)
):
    """Expire confirmed bookings whose visit date has passed"""
    return BookingService(db).expire_bookings(principal, request.before)
