"""SQLAlchemy models shared across all services."""
from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import List, Optional

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    JSON,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .database import Base


class BookingStatus(str, Enum):
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    EXPIRED = "expired"


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String(100))
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    hashed_password: Mapped[str] = mapped_column(String(255))
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    bookings: Mapped[List["Booking"]] = relationship(back_populates="user")


class Hotel(Base):
    __tablename__ = "hotels"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    slug: Mapped[str] = mapped_column(String(100), unique=True, index=True)
    name: Mapped[str] = mapped_column(String(200), index=True)
    location: Mapped[Optional[str]] = mapped_column(String(255), default=None)
    city: Mapped[Optional[str]] = mapped_column(String(100), index=True, default=None)
    country: Mapped[Optional[str]] = mapped_column(String(100), index=True, default=None)
    tagline: Mapped[Optional[str]] = mapped_column(String(255), default=None)
    description: Mapped[Optional[str]] = mapped_column(Text, default=None)
    starting_price: Mapped[float] = mapped_column(Float, default=0.0, index=True)
    currency: Mapped[str] = mapped_column(String(10), default="INR")
    amenities: Mapped[list[str]] = mapped_column(JSON, default=list)
    nearby_locations: Mapped[list[str]] = mapped_column(JSON, default=list)
    images: Mapped[list[str]] = mapped_column(JSON, default=list)

    rooms: Mapped[List["Room"]] = relationship(back_populates="hotel", order_by="Room.price")


class Room(Base):
    __tablename__ = "rooms"
    __table_args__ = (
        UniqueConstraint("hotel_slug", "type", name="uq_rooms_hotel_type"),
        CheckConstraint("booked_rooms >= 0 AND booked_rooms <= total_rooms", name="ck_rooms_booked_range"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    hotel_slug: Mapped[str] = mapped_column(ForeignKey("hotels.slug", ondelete="CASCADE"), index=True)
    hotel_name: Mapped[str] = mapped_column(String(200))
    type: Mapped[str] = mapped_column(String(100))
    price: Mapped[float] = mapped_column(Float)
    total_rooms: Mapped[int] = mapped_column(Integer)
    booked_rooms: Mapped[int] = mapped_column(Integer, default=0)
    amenities: Mapped[list[str]] = mapped_column(JSON, default=list)

    hotel: Mapped[Hotel] = relationship(back_populates="rooms")


class Booking(Base):
    __tablename__ = "bookings"
    __table_args__ = (
        Index("ix_bookings_room_status", "hotel_slug", "room_type", "status"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    hotel_slug: Mapped[str] = mapped_column(String(100))
    hotel_name: Mapped[str] = mapped_column(String(200))
    room_type: Mapped[str] = mapped_column(String(100))
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    user_name: Mapped[str] = mapped_column(String(100))
    email: Mapped[str] = mapped_column(String(255))
    check_in: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    check_out: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    guests: Mapped[int] = mapped_column(Integer)
    rooms_booked: Mapped[int] = mapped_column(Integer)
    total_price: Mapped[float] = mapped_column(Float)
    status: Mapped[str] = mapped_column(String(20), default=BookingStatus.CONFIRMED.value, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    user: Mapped[User] = relationship(back_populates="bookings")
