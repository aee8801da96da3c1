import math
from contextlib import asynccontextmanager
from datetime import date
from typing import Optional

from circuitbreaker import circuit
from fastapi import APIRouter, Depends, FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from bookaway.cache import CatalogCache, make_cache_key
from bookaway.config import get_settings
from bookaway.database import Base, engine, get_db
from bookaway.exceptions import NotFoundError, ValidationError, register_exception_handlers
from bookaway.inventory import SORT_OPTIONS, HotelFilters, InventoryStore
from bookaway.ledger import BookingLedger
from bookaway.logging_middleware import add_audit_middleware, configure_logging
from bookaway.models import BookingStatus
from bookaway.rate_limit import apply_rate_limiter, limiter
from bookaway.schemas import HotelAvailability, HotelDetail, HotelPage, HotelRead, Pagination, RoomAvailability

settings = get_settings()
hotel_cache: CatalogCache[dict] = CatalogCache(ttl=settings.hotel_cache_ttl)
SORT_PATTERN = "^(" + "|".join(SORT_OPTIONS) + ")$"


@asynccontextmanager
async def lifespan(_: FastAPI):
    configure_logging()
    if settings.run_db_migrations:
        Base.metadata.create_all(bind=engine)
    yield


def create_app() -> FastAPI:
    fastapi_app = FastAPI(title="Hotels Service", version="0.1.0", lifespan=lifespan)
    fastapi_app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    apply_rate_limiter(fastapi_app)
    add_audit_middleware(fastapi_app, "hotels")
    register_exception_handlers(fastapi_app)
    return fastapi_app


app = create_app()
router = APIRouter(prefix=f"{settings.api_prefix}/hotels", tags=["hotels"])


@app.get("/health", tags=["health"])
def health() -> dict[str, str]:
    return {"status": "ok", "service": "hotels"}


@router.get("", response_model=HotelPage)
@circuit(failure_threshold=5, recovery_timeout=60, expected_exception=SQLAlchemyError)
def list_hotels(
    request: Request,
    city: Optional[str] = None,
    country: Optional[str] = None,
    starting_price: Optional[float] = Query(None, alias="startingPrice", ge=0),
    name: Optional[str] = None,
    sort: Optional[str] = Query(None, pattern=SORT_PATTERN),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
) -> dict:
    filters = HotelFilters(city=city, country=country, max_price=starting_price, name=name, sort=sort)
    cache_key = make_cache_key("hotels", {**vars(filters), "page": page, "limit": limit})

    def load() -> dict:
        hotels, total = InventoryStore(db).search_hotels(filters, page=page, limit=limit)
        return HotelPage(
            hotels=[HotelRead.model_validate(hotel) for hotel in hotels],
            pagination=Pagination(total=total, page=page, limit=limit, total_pages=math.ceil(total / limit)),
        ).model_dump()

    return hotel_cache.get_or_load(cache_key, load)


@router.get("/{slug}", response_model=HotelDetail)
@limiter.limit("60/minute")
def get_hotel(request: Request, slug: str, db: Session = Depends(get_db)) -> HotelDetail:
    store = InventoryStore(db)
    hotel = store.find_hotel_by_slug(slug)
    if hotel is None:
        raise NotFoundError("Hotel not found")
    return HotelDetail.model_validate(hotel)


@router.get("/{slug}/availability", response_model=HotelAvailability)
@limiter.limit("40/minute")
def hotel_availability(
    request: Request,
    slug: str,
    check_in: date = Query(..., alias="checkIn"),
    check_out: date = Query(..., alias="checkOut"),
    db: Session = Depends(get_db),
) -> HotelAvailability:
    if check_out <= check_in:
        raise ValidationError("Check-out date must be after check-in date.")
    store = InventoryStore(db)
    if store.find_hotel_by_slug(slug) is None:
        raise NotFoundError("Hotel not found")

    ledger = BookingLedger(db)
    rooms = []
    for room in store.list_rooms(slug):
        held = ledger.aggregate_overlap(slug, room.type, BookingStatus.CONFIRMED, check_in, check_out)
        rooms.append(
            RoomAvailability(
                type=room.type,
                price=room.price,
                total_rooms=room.total_rooms,
                booked_rooms=held,
                available_rooms=max(0, room.total_rooms - held),
            )
        )
    return HotelAvailability(hotel_slug=slug, check_in=check_in, check_out=check_out, rooms=rooms)


app.include_router(router)
