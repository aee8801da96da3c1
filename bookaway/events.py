"""Booking lifecycle events published to RabbitMQ."""
from __future__ import annotations

import json
import logging
from typing import Any, Dict

import pika
from pika.exceptions import AMQPError

from .config import get_settings
from .models import Booking

logger = logging.getLogger(__name__)

BOOKING_CREATED = "booking_created"
BOOKING_CANCELLED = "booking_cancelled"
BOOKING_EXPIRED = "booking_expired"


def booking_message(event: str, booking: Booking) -> Dict[str, Any]:
    return {
        "event": event,
        "booking_id": booking.id,
        "user_id": booking.user_id,
        "hotel_slug": booking.hotel_slug,
        "room_type": booking.room_type,
        "rooms_booked": booking.rooms_booked,
        "check_in": booking.check_in.isoformat(),
        "check_out": booking.check_out.isoformat(),
        "status": booking.status,
    }


class BookingEventPublisher:
    """Fire-and-forget publisher; broker outages never fail a booking."""

    def __init__(self, host: str, queue: str, enabled: bool = True) -> None:
        self.host = host
        self.queue = queue
        self.enabled = enabled

    @classmethod
    def from_settings(cls) -> "BookingEventPublisher":
        settings = get_settings()
        return cls(settings.rabbitmq_host, settings.bookings_queue, enabled=settings.events_enabled)

    def publish(self, event: str, booking: Booking) -> bool:
        if not self.enabled:
            return False
        message = booking_message(event, booking)
        try:
            connection = pika.BlockingConnection(pika.ConnectionParameters(host=self.host))
            try:
                channel = connection.channel()
                channel.queue_declare(queue=self.queue, durable=True)
                channel.basic_publish(
                    exchange="",
                    routing_key=self.queue,
                    body=json.dumps(message),
                    properties=pika.BasicProperties(delivery_mode=2),
                )
            finally:
                connection.close()
        except AMQPError:
            logger.exception("Could not publish %s for booking %s", event, booking.id)
            return False
        logger.debug("Published %s for booking %s", event, booking.id)
        return True
