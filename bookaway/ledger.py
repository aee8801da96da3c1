"""Booking records and the queries that capacity accounting relies on."""
from __future__ import annotations

from datetime import date
from typing import List, Optional

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from .models import Booking, BookingStatus


class BookingLedger:
    def __init__(self, db: Session) -> None:
        self.db = db

    def insert(self, booking: Booking) -> Booking:
        self.db.add(booking)
        self.db.flush()
        return booking

    def find_by_id(self, booking_id: int) -> Optional[Booking]:
        return self.db.get(Booking, booking_id)

    def find_for_user(self, booking_id: int, user_id: int) -> Optional[Booking]:
        return self.db.scalars(
            select(Booking).where(Booking.id == booking_id, Booking.user_id == user_id)
        ).first()

    def find_by_user(self, user_id: int, skip: int = 0, limit: int = 10) -> List[Booking]:
        """Newest stay first: check-in descending, ties broken by id."""

        stmt = (
            select(Booking)
            .where(Booking.user_id == user_id)
            .order_by(Booking.check_in.desc(), Booking.id.desc())
            .offset(skip)
            .limit(limit)
        )
        return list(self.db.scalars(stmt))

    def count_by_user(self, user_id: int) -> int:
        return self.db.scalar(select(func.count(Booking.id)).where(Booking.user_id == user_id)) or 0

    def aggregate_overlap(
        self,
        hotel_slug: str,
        room_type: str,
        status: BookingStatus,
        check_in: date,
        check_out: date,
    ) -> int:
        """Rooms held by bookings whose [check_in, check_out) intersects the given stay."""

        stmt = select(func.coalesce(func.sum(Booking.rooms_booked), 0)).where(
            Booking.hotel_slug == hotel_slug,
            Booking.room_type == room_type,
            Booking.status == status.value,
            Booking.check_in < check_out,
            Booking.check_out > check_in,
        )
        return int(self.db.scalar(stmt) or 0)

    def update_status(
        self,
        booking_id: int,
        status: BookingStatus,
        expected: Optional[BookingStatus] = None,
    ) -> bool:
        """Set the status, optionally only if it still equals ``expected``.

        Returns whether a row changed, so concurrent transitions out of the
        same state have exactly one winner.
        """
        stmt = update(Booking).where(Booking.id == booking_id)
        if expected is not None:
            stmt = stmt.where(Booking.status == expected.value)
        result = self.db.execute(
            stmt.values(status=status.value).execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def find_expired_confirmed(self, as_of: date) -> List[Booking]:
        stmt = (
            select(Booking)
            .where(Booking.check_out <= as_of, Booking.status == BookingStatus.CONFIRMED.value)
            .order_by(Booking.check_out, Booking.id)
        )
        return list(self.db.scalars(stmt))
