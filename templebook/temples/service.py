from sqlalchemy.orm import Session, selectinload
from typing import List, Optional

from templebook.auth.principal import Capability, Principal
from templebook.errors import PermissionDeniedError, TempleNotFoundError
from templebook.logging_config import get_logger
from templebook.models import Temple, TimeSlot
from templebook.temples.schemas import TempleCreate, TempleUpdate, TimeSlotCreate

logger = get_logger()

class TempleService:
    @staticmethod
    def get_temples(db: Session, city: Optional[str] = None, owner_id: Optional[int] = None) -> List[Temple]:
        """Active temples, optionally filtered by city or owner"""
        query = db.query(Temple).options(selectinload(Temple.time_slots)).filter(Temple.is_active == True)
        if city:
            query = query.filter(Temple.city == city)
        if owner_id:
            query = query.filter(Temple.owner_id == owner_id)
        return query.order_by(Temple.name).all()

    @staticmethod
    def get_temple(db: Session, temple_id: int) -> Temple:
        """Active temple by ID"""
        temple = db.query(Temple).options(selectinload(Temple.time_slots)).filter(Temple.id == temple_id).first()
        if temple is None or not temple.is_active:
            raise TempleNotFoundError()
        return temple

    @staticmethod
    def create_temple(db: Session, principal: Principal, data: TempleCreate) -> Temple:
        """Create a temple owned by the calling temple board member"""
        principal.require(Capability.MANAGE_TEMPLES)

        temple = Temple(
            owner_id=principal.user_id,
            **data.model_dump(exclude={"time_slots"})
        )
        temple.time_slots = [TimeSlot(**slot.model_dump()) for slot in data.time_slots]

        db.add(temple)
        db.commit()
        db.refresh(temple)

        logger.bind(log_type="admin").info(f"Temple created | id={temple.id} | owner={principal.user_id}")
        return temple

    @staticmethod
    def update_temple(db: Session, principal: Principal, temple_id: int, data: TempleUpdate) -> Temple:
        """Update a temple; existing bookings keep the price they were admitted at"""
        temple = TempleService._owned_temple(db, principal, temple_id)

        for field, value in data.model_dump(exclude_unset=True).items():
            setattr(temple, field, value)

        db.commit()
        db.refresh(temple)
        return temple

    @staticmethod
    def deactivate_temple(db: Session, principal: Principal, temple_id: int) -> Temple:
        """Soft delete; bookings and history are retained"""
        temple = TempleService._owned_temple(db, principal, temple_id)
        temple.is_active = False
        db.commit()
        db.refresh(temple)
        return temple

    @staticmethod
    def add_time_slot(db: Session, principal: Principal, temple_id: int, data: TimeSlotCreate) -> TimeSlot:
        temple = TempleService._owned_temple(db, principal, temple_id)

        time_slot = TimeSlot(temple_id=temple.id, **data.model_dump())
        db.add(time_slot)
        db.commit()
        db.refresh(time_slot)
        return time_slot

    @staticmethod
    def _owned_temple(db: Session, principal: Principal, temple_id: int) -> Temple:
        principal.require(Capability.MANAGE_TEMPLES)

        temple = db.query(Temple).filter(Temple.id == temple_id).first()
        if temple is None:
            raise TempleNotFoundError()
        if temple.owner_id != principal.user_id:
            raise PermissionDeniedError("You can only manage your own temples")
        return temple
