"""Booking creation and cancellation with capacity accounting.

Capacity for a stay is derived from the ledger: the rooms already held by
confirmed bookings whose [check_in, check_out) overlaps the request. The
overlap read, the capacity check and the counter increment form one
critical section per (hotel, room type). Inside a process it is guarded by
a lock; across processes the room row is locked for the transaction.
"""
from __future__ import annotations

import logging
import math
import threading
from datetime import date, timedelta
from typing import Callable, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .events import BOOKING_CANCELLED, BOOKING_CREATED, BookingEventPublisher
from .exceptions import AuthorizationError, CapacityError, InternalError, NotFoundError, ValidationError
from .inventory import InventoryStore
from .ledger import BookingLedger
from .models import Booking, BookingStatus, User
from .schemas import BookingCancel, BookingCreate, BookingPage, BookingRead

logger = logging.getLogger(__name__)

MAX_GUESTS_PER_ROOM = 3
LOCK_STRIPES = 64

# Fixed pool indexed by key hash; unrelated room types may share a stripe.
_room_type_locks: Tuple[threading.Lock, ...] = tuple(threading.Lock() for _ in range(LOCK_STRIPES))


def room_type_lock(hotel_slug: str, room_type: str) -> threading.Lock:
    return _room_type_locks[hash((hotel_slug, room_type)) % LOCK_STRIPES]


def one_year_after(day: date) -> date:
    try:
        return day.replace(year=day.year + 1)
    except ValueError:
        # 29 February rolls over to 1 March
        return date(day.year + 1, 3, 1)


def validate_stay(request: BookingCreate, today: date) -> None:
    tomorrow = today + timedelta(days=1)
    if request.check_in < tomorrow:
        raise ValidationError("Check-in date can only be after current day.")
    if request.check_out <= request.check_in:
        raise ValidationError("Check-out date must be after check-in date.")
    if request.check_in > one_year_after(today):
        raise ValidationError("You can only book up to 1 year in advance.")
    max_guests = request.rooms_booked * MAX_GUESTS_PER_ROOM
    if request.guests > max_guests:
        raise ValidationError(
            f"Guest limit exceeded. Max {max_guests} guests allowed for {request.rooms_booked} room(s)."
        )


def _same_identity(request: BookingCreate, requester: User) -> bool:
    return (
        request.user_name.strip() == requester.name.strip()
        and request.email.strip().lower() == requester.email.strip().lower()
    )


class BookingService:
    def __init__(
        self,
        db: Session,
        clock: Callable[[], date] = date.today,
        publisher: Optional[BookingEventPublisher] = None,
    ) -> None:
        self.db = db
        self.inventory = InventoryStore(db)
        self.ledger = BookingLedger(db)
        self._clock = clock
        self._publisher = publisher

    def create_booking(self, request: BookingCreate, requester: User) -> Booking:
        if not _same_identity(request, requester):
            raise AuthorizationError("Booking name and email must match the signed-in account")
        validate_stay(request, self._clock())

        hotel = self.inventory.find_hotel_by_slug(request.hotel_slug)
        if hotel is None:
            raise NotFoundError("Hotel not found")

        if self.inventory.find_room(request.hotel_slug, request.room_type) is None:
            raise NotFoundError("Room type not found")

        with room_type_lock(request.hotel_slug, request.room_type):
            try:
                room = self.inventory.find_room(request.hotel_slug, request.room_type, for_update=True)
                if room is None:
                    raise NotFoundError("Room type not found")

                currently_booked = self.ledger.aggregate_overlap(
                    request.hotel_slug,
                    request.room_type,
                    BookingStatus.CONFIRMED,
                    request.check_in,
                    request.check_out,
                )
                logger.debug(
                    "%s at %s: %d of %d rooms held for %s..%s",
                    room.type,
                    room.hotel_slug,
                    currently_booked,
                    room.total_rooms,
                    request.check_in,
                    request.check_out,
                )
                if currently_booked + request.rooms_booked > room.total_rooms:
                    raise CapacityError("Not enough rooms available for these dates")

                self.inventory.reserve_rooms(room.id, request.rooms_booked)
                booking = self.ledger.insert(
                    Booking(
                        hotel_slug=request.hotel_slug,
                        hotel_name=hotel.name,
                        room_type=request.room_type,
                        user_id=requester.id,
                        user_name=request.user_name.strip(),
                        email=request.email.strip(),
                        check_in=request.check_in,
                        check_out=request.check_out,
                        guests=request.guests,
                        rooms_booked=request.rooms_booked,
                        total_price=room.price * request.rooms_booked,
                        status=BookingStatus.CONFIRMED.value,
                    )
                )
                self.db.commit()
            except SQLAlchemyError as exc:
                self.db.rollback()
                logger.exception("Could not book %s at %s", request.room_type, request.hotel_slug)
                raise InternalError("Could not save the booking") from exc
            except Exception:
                self.db.rollback()
                raise

        self.db.refresh(booking)
        logger.info(
            "Booking %s confirmed: %d x %s at %s for user %s",
            booking.id,
            booking.rooms_booked,
            booking.room_type,
            booking.hotel_slug,
            requester.id,
        )
        if self._publisher is not None:
            self._publisher.publish(BOOKING_CREATED, booking)
        return booking

    def get_booking(self, booking_id: int, requester: User) -> Booking:
        booking = self.ledger.find_for_user(booking_id, requester.id)
        if booking is None:
            raise NotFoundError("Booking not found")
        return booking

    def cancel_booking(
        self,
        booking_id: int,
        requester: User,
        confirmation: Optional[BookingCancel] = None,
    ) -> Booking:
        booking = self.get_booking(booking_id, requester)
        if confirmation is not None and confirmation.mismatches(booking):
            raise ValidationError("Booking details don't match. Cannot cancel.")
        if booking.status != BookingStatus.CONFIRMED.value:
            raise ValidationError(f"Booking is already {booking.status}")

        try:
            if not self.ledger.update_status(booking.id, BookingStatus.CANCELLED, expected=BookingStatus.CONFIRMED):
                raise ValidationError("Booking is no longer active")
            if not self.inventory.release_rooms(booking.hotel_slug, booking.room_type, booking.rooms_booked):
                logger.warning("Room type %s at %s no longer exists", booking.room_type, booking.hotel_slug)
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception("Could not cancel booking %s", booking_id)
            raise InternalError("Could not cancel the booking") from exc
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(booking)
        logger.info("Booking %s cancelled by user %s", booking.id, requester.id)
        if self._publisher is not None:
            self._publisher.publish(BOOKING_CANCELLED, booking)
        return booking

    def list_my_bookings(self, requester: User, page: int = 1, limit: int = 10) -> BookingPage:
        total = self.ledger.count_by_user(requester.id)
        if total == 0:
            raise NotFoundError("No bookings found for this user")
        bookings = self.ledger.find_by_user(requester.id, skip=(page - 1) * limit, limit=limit)
        return BookingPage(
            total_bookings=total,
            current_page=page,
            total_pages=math.ceil(total / limit),
            bookings=[BookingRead.model_validate(booking) for booking in bookings],
        )
