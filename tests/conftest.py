import os
from datetime import date, timedelta
from typing import Callable, Generator

import pytest
from fastapi.testclient import TestClient

os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")
os.environ.setdefault("RATE_LIMITING_ENABLED", "false")
os.environ.setdefault("SWEEPER_ENABLED", "false")
os.environ.setdefault("EVENTS_ENABLED", "false")

from bookaway.config import reset_settings_cache  # noqa: E402

reset_settings_cache()

from bookaway.auth import get_password_hash  # noqa: E402
from bookaway.database import Base, SessionLocal, engine  # noqa: E402
from bookaway.inventory import InventoryStore  # noqa: E402
from bookaway.models import Booking, BookingStatus, User  # noqa: E402
from services.bookings.app import app as bookings_app  # noqa: E402
from services.hotels.app import app as hotels_app, hotel_cache  # noqa: E402
from services.users.app import app as users_app  # noqa: E402

CATALOG = [
    {
        "slug": "taj",
        "name": "Taj Palace",
        "location": "Diplomatic Enclave",
        "city": "New Delhi",
        "country": "India",
        "startingPrice": 100,
        "amenities": ["Pool", "Spa"],
        "rooms": [
            {"type": "Deluxe Room", "price": 100, "totalRooms": 5},
            {"type": "Suite", "price": 250, "totalRooms": 2},
        ],
    },
    {
        "slug": "oberoi-goa",
        "name": "Oberoi Beach Resort",
        "location": "Calangute",
        "city": "Goa",
        "country": "India",
        "startingPrice": 180,
        "rooms": [{"type": "Sea View Room", "price": 180, "totalRooms": 8}],
    },
    {
        "slug": "ritz-paris",
        "name": "Ritz Paris",
        "location": "Place Vendome",
        "city": "Paris",
        "country": "France",
        "startingPrice": 900,
        "currency": "EUR",
        "rooms": [{"type": "Superior Room", "price": 900, "totalRooms": 3}],
    },
]


@pytest.fixture(autouse=True, scope="function")
def _create_test_database() -> Generator[None, None, None]:
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    hotel_cache.clear()
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def db_session() -> Generator:
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def catalog(db_session):
    return InventoryStore(db_session).load_catalog(CATALOG)


@pytest.fixture()
def make_user(db_session) -> Callable[..., User]:
    def _make_user(name: str = "Asha Rao", email: str = "asha@example.com") -> User:
        user = User(name=name, email=email, hashed_password=get_password_hash("Passw0rd!"))
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make_user


@pytest.fixture()
def add_booking(db_session) -> Callable[..., Booking]:
    """Insert a booking straight into the ledger, bypassing date validation."""

    def _add_booking(
        user: User,
        check_in: date,
        check_out: date,
        rooms_booked: int = 1,
        hotel_slug: str = "taj",
        room_type: str = "Deluxe Room",
        status: BookingStatus = BookingStatus.CONFIRMED,
    ) -> Booking:
        booking = Booking(
            hotel_slug=hotel_slug,
            hotel_name="Taj Palace",
            room_type=room_type,
            user_id=user.id,
            user_name=user.name,
            email=user.email,
            check_in=check_in,
            check_out=check_out,
            guests=rooms_booked,
            rooms_booked=rooms_booked,
            total_price=100.0 * rooms_booked,
            status=status.value,
        )
        db_session.add(booking)
        db_session.commit()
        db_session.refresh(booking)
        return booking

    return _add_booking


@pytest.fixture()
def stay() -> Callable[[int, int], dict]:
    """Check-in/check-out strings relative to the real current date."""

    def _stay(offset_days: int = 10, nights: int = 3) -> dict:
        check_in = date.today() + timedelta(days=offset_days)
        return {"checkIn": check_in.isoformat(), "checkOut": (check_in + timedelta(days=nights)).isoformat()}

    return _stay


@pytest.fixture()
def users_client() -> Generator[TestClient, None, None]:
    with TestClient(users_app) as client:
        yield client


@pytest.fixture()
def hotels_client() -> Generator[TestClient, None, None]:
    with TestClient(hotels_app) as client:
        yield client


@pytest.fixture()
def bookings_client() -> Generator[TestClient, None, None]:
    with TestClient(bookings_app) as client:
        yield client
