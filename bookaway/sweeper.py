"""Daily sweep that expires checked-out bookings and frees their rooms."""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Callable, List, Optional

from sqlalchemy.orm import Session

from .events import BOOKING_EXPIRED, BookingEventPublisher
from .inventory import InventoryStore
from .ledger import BookingLedger
from .models import BookingStatus

logger = logging.getLogger(__name__)


@dataclass
class SweepReport:
    run_date: date
    expired: List[int] = field(default_factory=list)
    failed: List[int] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.expired)


class ExpirySweeper:
    def __init__(
        self,
        session_factory: Callable[[], Session],
        clock: Callable[[], date] = date.today,
        publisher: Optional[BookingEventPublisher] = None,
    ) -> None:
        self._session_factory = session_factory
        self._clock = clock
        self._publisher = publisher

    def run(self, today: Optional[date] = None) -> SweepReport:
        today = today or self._clock()
        report = SweepReport(run_date=today)

        with self._session_factory() as db:
            ledger = BookingLedger(db)
            inventory = InventoryStore(db)
            due = [
                (booking.id, booking.hotel_slug, booking.room_type, booking.rooms_booked)
                for booking in ledger.find_expired_confirmed(today)
            ]
            if not due:
                logger.info("No expired bookings as of %s", today)
                return report

            logger.info("Found %d bookings to expire as of %s", len(due), today)
            for booking_id, hotel_slug, room_type, rooms_booked in due:
                try:
                    if not ledger.update_status(booking_id, BookingStatus.EXPIRED, expected=BookingStatus.CONFIRMED):
                        # cancelled or expired since the scan
                        db.rollback()
                        continue
                    if inventory.release_rooms(hotel_slug, room_type, rooms_booked):
                        logger.info("Released %d x %s at %s", rooms_booked, room_type, hotel_slug)
                    else:
                        logger.warning("Room type %s at %s not found for booking %s", room_type, hotel_slug, booking_id)
                    db.commit()
                except Exception:
                    db.rollback()
                    logger.exception("Failed to expire booking %s", booking_id)
                    report.failed.append(booking_id)
                    continue
                report.expired.append(booking_id)
                self._announce(ledger, booking_id)

        logger.info(
            "Expiry sweep for %s completed: %d expired, %d failed",
            today,
            len(report.expired),
            len(report.failed),
        )
        return report

    def _announce(self, ledger: BookingLedger, booking_id: int) -> None:
        if self._publisher is None or not self._publisher.enabled:
            return
        booking = ledger.find_by_id(booking_id)
        if booking is not None:
            self._publisher.publish(BOOKING_EXPIRED, booking)


def seconds_until_next_run(now: datetime, hour: int, minute: int) -> float:
    target = now.replace(hour=hour, minute=minute, second=0, microsecond=0)
    if target <= now:
        target += timedelta(days=1)
    return (target - now).total_seconds()


async def run_daily(sweeper: ExpirySweeper, hour: int, minute: int) -> None:
    """Run the sweep every day at ``hour:minute`` local time until cancelled."""

    logger.info("Expiry sweep scheduled daily at %02d:%02d", hour, minute)
    while True:
        await asyncio.sleep(seconds_until_next_run(datetime.now(), hour, minute))
        logger.info("Running daily checkout sweep")
        try:
            await asyncio.to_thread(sweeper.run)
        except Exception:
            logger.exception("Expiry sweep run failed")
