from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import date

from templebook.database import get_db
from templebook.auth.dependencies import get_current_principal
from templebook.auth.principal import Principal
from templebook.bookings.admission import AdmissionControl
from templebook.bookings.dependencies import get_ticket_codec
from templebook.bookings.schemas import AvailabilityResponse
from templebook.bookings.ticket_codec import TicketCodec
from templebook.temples.schemas import Temple, TempleCreate, TempleUpdate, TimeSlot, TimeSlotCreate
from templebook.temples.service import TempleService

router = APIRouter()

@router.get("/", response_model=List[Temple])
def get_temples(
    city: Optional[str] = Query(None, description="Filter by city"),
    owner_id: Optional[int] = Query(None, description="Filter by owning temple board member"),
    db: Session = Depends(get_db)
):
    """List active temples"""
    return TempleService.get_temples(db, city=city, owner_id=owner_id)

@router.post("/", response_model=Temple, status_code=status.HTTP_201_CREATED)
def create_temple(
    data: TempleCreate,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db)
):
    """Create a temple (approved temple board members only)"""
    return TempleService.create_temple(db, principal, data)

@router.get("/{temple_id}", response_model=Temple)
def get_temple(temple_id: int, db: Session = Depends(get_db)):
    """Get temple details with its time slots"""
    return TempleService.get_temple(db, temple_id)

@router.put("/{temple_id}", response_model=Temple)
def update_temple(
    temple_id: int,
    data: TempleUpdate,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db)
):
    """Update a temple you own"""
    return TempleService.update_temple(db, principal, temple_id, data)

@router.delete("/{temple_id}", response_model=Temple)
def deactivate_temple(
    temple_id: int,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db)
):
    """Deactivate a temple you own"""
    return TempleService.deactivate_temple(db, principal, temple_id)

@router.post("/{temple_id}/slots", response_model=TimeSlot, status_code=status.HTTP_201_CREATED)
def add_time_slot(
    temple_id: int,
    data: TimeSlotCreate,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db)
):
    """Add a daily time slot to a temple you own"""
    return TempleService.add_time_slot(db, principal, temple_id, data)

@router.get("/{temple_id}/availability", response_model=AvailabilityResponse)
def get_availability(
    temple_id: int,
    visit_date: date = Query(..., description="Visit date (YYYY-MM-DD)"),
    codec: TicketCodec = Depends(get_ticket_codec),
    db: Session = Depends(get_db)
):
    """Remaining tickets per slot and for the whole day"""
    return AdmissionControl(db, codec).get_availability(temple_id, visit_date)
