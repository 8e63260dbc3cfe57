from sqlalchemy import Column, Integer, String, Text, Numeric, DateTime, ForeignKey, Index
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.orm import relationship
from enum import Enum as PyEnum
import datetime

from .database import Base


def utcnow() -> datetime.datetime:
    """Current UTC time as a naive datetime, the form every timestamp column stores."""
    return datetime.datetime.now(datetime.timezone.utc).replace(tzinfo=None)


class BookingStatus(PyEnum):
    PENDING = "Pending"
    CONFIRMED = "Confirmed"
    CANCELLED = "Cancelled"


class DiscountStatus(PyEnum):
    ACTIVE = "Active"
    INACTIVE = "Inactive"


class Hotel(Base):
    __tablename__ = "hotels"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    location = Column(String(255), index=True, nullable=False)
    description = Column(Text, nullable=True)

    created_at = Column(DateTime, default=utcnow)

    rooms = relationship("Room", back_populates="hotel", cascade="all, delete-orphan")


class Room(Base):
    __tablename__ = "rooms"

    id = Column(Integer, primary_key=True, index=True)
    hotel_id = Column(Integer, ForeignKey("hotels.id"), index=True, nullable=False)

    room_type = Column(String(100), nullable=False)
    room_number = Column(String(20), nullable=False)

    # Nightly rate
    price = Column(Numeric(10, 2), nullable=False)

    created_at = Column(DateTime, default=utcnow)

    hotel = relationship("Hotel", back_populates="rooms")


class Discount(Base):
    __tablename__ = "discounts"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String(64), unique=True, index=True, nullable=False)

    # Percentage off, 20 means 20%
    percentage = Column(Numeric(5, 2), nullable=False)

    start_date = Column(DateTime, nullable=False)
    end_date = Column(DateTime, nullable=False)

    status = Column(SQLEnum(DiscountStatus), default=DiscountStatus.ACTIVE, nullable=False)

    # used_count is only ever written by app.discount_lifecycle
    max_use = Column(Integer, nullable=False)
    used_count = Column(Integer, default=0, nullable=False)

    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow)

    # The expiry sweep filters on status
    __table_args__ = (
        Index("ix_discounts_status", "status"),
    )


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, index=True)

    # Users live in the auth service, this is the JWT subject
    user_id = Column(Integer, index=True, nullable=False)

    hotel_id = Column(Integer, ForeignKey("hotels.id"), index=True, nullable=False)
    room_id = Column(Integer, ForeignKey("rooms.id"), index=True, nullable=False)
    discount_id = Column(Integer, ForeignKey("discounts.id"), nullable=True)

    check_in = Column(DateTime, nullable=False)
    check_out = Column(DateTime, nullable=False)

    total_price = Column(Numeric(12, 2), nullable=False)
    status = Column(SQLEnum(BookingStatus), default=BookingStatus.PENDING, nullable=False)

    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow)

    room = relationship("Room")
    discount = relationship("Discount")
