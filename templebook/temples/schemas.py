from pydantic import BaseModel, Field, field_validator, model_validator
from typing import List, Optional
from datetime import datetime, time
from decimal import Decimal

class TimeSlotCreate(BaseModel):
    start_time: time
    end_time: time
    capacity: int = Field(..., gt=0)

    @model_validator(mode="after")
    def validate_window(self):
        if self.start_time >= self.end_time:
            raise ValueError("start_time must be before end_time")
        return self

class TimeSlot(BaseModel):
    id: int
    temple_id: int
    start_time: time
    end_time: time
    capacity: int
    is_active: bool

    class Config:
        from_attributes = True

class TempleBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    location: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    timings: Optional[str] = None
    daily_ticket_limit: int = Field(..., gt=0)
    ticket_price: Decimal = Field(Decimal("0"), ge=0, decimal_places=2)

class TempleCreate(TempleBase):
    time_slots: List[TimeSlotCreate] = []

class TempleUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    location: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    timings: Optional[str] = None
    daily_ticket_limit: Optional[int] = Field(None, gt=0)
    ticket_price: Optional[Decimal] = Field(None, ge=0, decimal_places=2)
    is_active: Optional[bool] = None

    @field_validator("name", "daily_ticket_limit", "ticket_price", "is_active")
    @classmethod
    def reject_null(cls, v, info):
        # Omit a field to leave it unchanged; these columns are NOT NULL
        if v is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return v

class Temple(TempleBase):
    id: int
    owner_id: int
    is_active: bool
    created_at: Optional[datetime] = None
    time_slots: List[TimeSlot] = []

    class Config:
        from_attributes = True
