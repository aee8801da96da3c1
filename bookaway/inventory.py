"""Hotel catalog and room capacity counters."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, List, Optional, Tuple

from sqlalchemy import case, func, select, update
from sqlalchemy.orm import Session

from .models import Hotel, Room
from .schemas import HotelCreate, RoomCreate

logger = logging.getLogger(__name__)

SORT_OPTIONS = {
    "price_asc": Hotel.starting_price.asc(),
    "price_desc": Hotel.starting_price.desc(),
    "name_asc": Hotel.name.asc(),
    "name_desc": Hotel.name.desc(),
}


@dataclass(frozen=True)
class HotelFilters:
    city: Optional[str] = None
    country: Optional[str] = None
    max_price: Optional[float] = None
    name: Optional[str] = None
    sort: Optional[str] = None


class InventoryStore:
    def __init__(self, db: Session) -> None:
        self.db = db

    def find_hotel_by_slug(self, slug: str) -> Optional[Hotel]:
        return self.db.scalars(select(Hotel).where(Hotel.slug == slug)).first()

    def find_room(self, hotel_slug: str, room_type: str, for_update: bool = False) -> Optional[Room]:
        stmt = select(Room).where(Room.hotel_slug == hotel_slug, Room.type == room_type)
        if for_update:
            stmt = stmt.with_for_update()
        return self.db.scalars(stmt).first()

    def list_rooms(self, hotel_slug: str) -> List[Room]:
        return list(self.db.scalars(select(Room).where(Room.hotel_slug == hotel_slug).order_by(Room.price)))

    def search_hotels(self, filters: HotelFilters, page: int = 1, limit: int = 10) -> Tuple[List[Hotel], int]:
        stmt = select(Hotel)
        if filters.city:
            stmt = stmt.where(func.lower(Hotel.city) == filters.city.strip().lower())
        if filters.country:
            stmt = stmt.where(func.lower(Hotel.country) == filters.country.strip().lower())
        if filters.max_price is not None:
            stmt = stmt.where(Hotel.starting_price <= filters.max_price)
        if filters.name:
            stmt = stmt.where(Hotel.name.ilike(f"%{filters.name.strip()}%"))

        total = self.db.scalar(select(func.count()).select_from(stmt.subquery())) or 0
        ordering = SORT_OPTIONS.get(filters.sort or "")
        stmt = stmt.order_by(*(o for o in (ordering, Hotel.id.asc()) if o is not None))
        hotels = list(self.db.scalars(stmt.offset((page - 1) * limit).limit(limit)))
        return hotels, total

    def reserve_rooms(self, room_id: int, count: int) -> None:
        """Add ``count`` to the counter in one statement, never past ``total_rooms``."""

        incremented = Room.booked_rooms + count
        self.db.execute(
            update(Room)
            .where(Room.id == room_id)
            .values(booked_rooms=case((incremented > Room.total_rooms, Room.total_rooms), else_=incremented))
            .execution_options(synchronize_session=False)
        )

    def release_rooms(self, hotel_slug: str, room_type: str, count: int) -> bool:
        """Subtract ``count`` from the counter in one statement, floored at zero."""

        decremented = Room.booked_rooms - count
        result = self.db.execute(
            update(Room)
            .where(Room.hotel_slug == hotel_slug, Room.type == room_type)
            .values(booked_rooms=case((decremented < 0, 0), else_=decremented))
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def upsert_hotel(self, data: HotelCreate) -> Hotel:
        fields = data.model_dump(exclude={"rooms"})
        hotel = self.find_hotel_by_slug(data.slug)
        if hotel is None:
            hotel = Hotel(**fields)
            self.db.add(hotel)
        else:
            for key, value in fields.items():
                setattr(hotel, key, value)
        self.db.flush()
        return hotel

    def upsert_room(self, hotel: Hotel, data: RoomCreate) -> Room:
        room = self.find_room(hotel.slug, data.type)
        if room is None:
            room = Room(hotel_slug=hotel.slug, hotel_name=hotel.name, booked_rooms=0, **data.model_dump())
            self.db.add(room)
        else:
            room.hotel_name = hotel.name
            room.price = data.price
            room.total_rooms = data.total_rooms
            room.amenities = data.amenities
            room.booked_rooms = min(room.booked_rooms, data.total_rooms)
        self.db.flush()
        return room

    def load_catalog(self, payload: Iterable[Any]) -> List[Hotel]:
        """Create or update hotels and their room types, then commit once."""

        hotels = []
        for item in payload:
            data = item if isinstance(item, HotelCreate) else HotelCreate.model_validate(item)
            hotel = self.upsert_hotel(data)
            for room in data.rooms:
                self.upsert_room(hotel, room)
            hotels.append(hotel)
        self.db.commit()
        logger.info("Loaded %d hotels into the catalog", len(hotels))
        return hotels
