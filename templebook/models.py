from sqlalchemy import Column, BigInteger, Integer, String, Boolean, DateTime, Date, Time, Text, ForeignKey, Numeric, CheckConstraint, Index
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from templebook.database import Base
from templebook.enums import Role, BookingStatus

# ================================
# Users & Roles
# ================================
class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    phone = Column(String(50))
    password = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default=Role.USER.value, index=True)
    is_approved = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    temples = relationship("Temple", back_populates="owner")
    bookings = relationship("Booking", back_populates="user", foreign_keys="Booking.user_id")

# ================================
# Temples & Time Slots
# ================================
class Temple(Base):
    __tablename__ = "temples"
    __table_args__ = (
        CheckConstraint("daily_ticket_limit > 0", name="ck_temples_daily_limit_positive"),
        CheckConstraint("ticket_price >= 0", name="ck_temples_price_non_negative"),
    )

    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False, index=True)
    description = Column(Text)
    location = Column(String(255))
    city = Column(String(100), index=True)
    state = Column(String(100))
    timings = Column(String(255))
    daily_ticket_limit = Column(Integer, nullable=False)
    ticket_price = Column(Numeric(10, 2), nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    owner = relationship("User", back_populates="temples")
    time_slots = relationship("TimeSlot", back_populates="temple", order_by="TimeSlot.start_time")
    bookings = relationship("Booking", back_populates="temple")

class TimeSlot(Base):
    __tablename__ = "time_slots"
    __table_args__ = (
        CheckConstraint("capacity > 0", name="ck_time_slots_capacity_positive"),
        CheckConstraint("start_time < end_time", name="ck_time_slots_ordered"),
    )

    id = Column(Integer, primary_key=True, index=True)
    temple_id = Column(Integer, ForeignKey("temples.id"), nullable=False, index=True)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    capacity = Column(Integer, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    temple = relationship("Temple", back_populates="time_slots")
    bookings = relationship("Booking", back_populates="time_slot")

    @property
    def description(self) -> str:
        return f"{self.start_time.strftime('%H:%M')} - {self.end_time.strftime('%H:%M')}"

# ================================
# Bookings
# ================================
class Booking(Base):
    __tablename__ = "bookings"
    __table_args__ = (
        CheckConstraint("ticket_count >= 1 AND ticket_count <= 10", name="ck_bookings_ticket_count"),
        Index("ix_bookings_temple_visit_date", "temple_id", "visit_date"),
        Index("ix_bookings_slot_visit_date", "time_slot_id", "visit_date"),
    )

    id = Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, index=True)
    booking_number = Column(String(40), unique=True, nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    temple_id = Column(Integer, ForeignKey("temples.id"), nullable=False)
    time_slot_id = Column(Integer, ForeignKey("time_slots.id"), nullable=False)
    visit_date = Column(Date, nullable=False)
    ticket_count = Column(Integer, nullable=False)
    total_amount = Column(Numeric(10, 2), nullable=False)
    status = Column(String(20), nullable=False, default=BookingStatus.CONFIRMED.value, index=True)
    ticket_token = Column(Text, nullable=False)
    ticket_image = Column(Text)
    verified_at = Column(DateTime(timezone=True))
    verified_by_id = Column(Integer, ForeignKey("users.id"))
    cancelled_at = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    user = relationship("User", back_populates="bookings", foreign_keys=[user_id])
    temple = relationship("Temple", back_populates="bookings")
    time_slot = relationship("TimeSlot", back_populates="bookings")
    verified_by = relationship("User", foreign_keys=[verified_by_id])
