"""Pydantic schemas shared across the services.

Public payloads use camelCase keys; requests also accept the field names.
"""
from __future__ import annotations

from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel

from .models import BookingStatus


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


class MessageResponse(BaseModel):
    message: str


class UserCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=6)


class UserRead(CamelModel):
    id: int
    name: str
    email: EmailStr
    created_at: datetime


class RegisterResponse(BaseModel):
    message: str
    token: str
    user: UserRead


class RoomCreate(CamelModel):
    type: str = Field(..., min_length=1, max_length=100)
    price: float = Field(..., ge=0)
    total_rooms: int = Field(..., ge=0)
    amenities: List[str] = Field(default_factory=list)


class RoomRead(CamelModel):
    hotel_slug: str
    type: str
    price: float
    total_rooms: int
    booked_rooms: int = Field(
        ...,
        description=(
            "Running counter of rooms held across all dates, kept within [0, totalRooms]. "
            "It is not per-date availability; use the availability endpoint for a stay."
        ),
    )
    amenities: List[str] = Field(default_factory=list)


class HotelCreate(CamelModel):
    slug: str = Field(..., min_length=1, max_length=100)
    name: str = Field(..., min_length=1, max_length=200)
    location: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    tagline: Optional[str] = None
    description: Optional[str] = None
    starting_price: float = Field(0.0, ge=0)
    currency: str = "INR"
    amenities: List[str] = Field(default_factory=list)
    nearby_locations: List[str] = Field(default_factory=list)
    images: List[str] = Field(default_factory=list)
    rooms: List[RoomCreate] = Field(default_factory=list)


class HotelRead(CamelModel):
    slug: str
    name: str
    location: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    tagline: Optional[str] = None
    description: Optional[str] = None
    starting_price: float
    currency: str
    amenities: List[str] = Field(default_factory=list)
    nearby_locations: List[str] = Field(default_factory=list)
    images: List[str] = Field(default_factory=list)


class HotelDetail(HotelRead):
    rooms: List[RoomRead] = Field(default_factory=list)


class Pagination(CamelModel):
    total: int
    page: int
    limit: int
    total_pages: int


class HotelPage(CamelModel):
    hotels: List[HotelRead]
    pagination: Pagination


class RoomAvailability(CamelModel):
    type: str
    price: float
    total_rooms: int
    booked_rooms: int
    available_rooms: int


class HotelAvailability(CamelModel):
    hotel_slug: str
    check_in: date
    check_out: date
    rooms: List[RoomAvailability]


class BookingCreate(CamelModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    hotel_slug: str = Field(..., min_length=1)
    room_type: str = Field(..., min_length=1)
    user_name: str = Field(..., min_length=1)
    email: str = Field(..., min_length=1)
    check_in: date
    check_out: date
    guests: int = Field(..., gt=0)
    rooms_booked: int = Field(..., gt=0)


class BookingCancel(CamelModel):
    """Optional details a client echoes back to confirm what it is cancelling."""

    hotel_slug: Optional[str] = None
    room_type: Optional[str] = None
    rooms_booked: Optional[int] = None

    def mismatches(self, booking) -> bool:
        expected = {
            "hotel_slug": booking.hotel_slug,
            "room_type": booking.room_type,
            "rooms_booked": booking.rooms_booked,
        }
        return any(
            value is not None and value != expected[field]
            for field, value in self.model_dump(exclude_unset=True).items()
        )


class BookingRead(CamelModel):
    id: int
    hotel_slug: str
    hotel_name: str
    room_type: str
    user_id: int
    user_name: str
    email: str
    check_in: date
    check_out: date
    guests: int
    rooms_booked: int
    total_price: float
    status: BookingStatus
    created_at: datetime


class BookingConfirmation(BaseModel):
    message: str
    booking: BookingRead


class BookingPage(CamelModel):
    total_bookings: int
    current_page: int
    total_pages: int
    bookings: List[BookingRead]
