import asyncio
from contextlib import asynccontextmanager, suppress
from typing import Optional

from fastapi import APIRouter, Body, Depends, FastAPI, Query, Request, status
from fastapi.middleware.cors import CORSMiddleware
from prometheus_fastapi_instrumentator import Instrumentator
from sqlalchemy.orm import Session

from bookaway.config import get_settings
from bookaway.database import Base, SessionLocal, engine, get_db
from bookaway.dependencies import get_current_user
from bookaway.events import BookingEventPublisher
from bookaway.exceptions import register_exception_handlers
from bookaway.logging_middleware import add_audit_middleware, configure_logging
from bookaway.models import User
from bookaway.rate_limit import apply_rate_limiter, limiter
from bookaway.reconciler import BookingService
from bookaway.schemas import (
    BookingCancel,
    BookingConfirmation,
    BookingCreate,
    BookingPage,
    BookingRead,
    MessageResponse,
)
from bookaway.sweeper import ExpirySweeper, run_daily

settings = get_settings()
publisher = BookingEventPublisher.from_settings()


@asynccontextmanager
async def lifespan(fastapi_app: FastAPI):
    configure_logging()
    if settings.run_db_migrations:
        Base.metadata.create_all(bind=engine)

    sweep_task: Optional[asyncio.Task] = None
    if settings.sweeper_enabled:
        sweeper = ExpirySweeper(SessionLocal, publisher=publisher)
        sweep_task = asyncio.create_task(run_daily(sweeper, settings.sweep_hour, settings.sweep_minute))
    fastapi_app.state.sweep_task = sweep_task
    yield
    if sweep_task is not None:
        sweep_task.cancel()
        with suppress(asyncio.CancelledError):
            await sweep_task


def create_app() -> FastAPI:
    fastapi_app = FastAPI(title="Bookings Service", version="0.1.0", lifespan=lifespan)
    fastapi_app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    apply_rate_limiter(fastapi_app)
    add_audit_middleware(fastapi_app, "bookings")
    register_exception_handlers(fastapi_app)
    Instrumentator().instrument(fastapi_app).expose(fastapi_app, include_in_schema=False)
    return fastapi_app


app = create_app()
router = APIRouter(prefix=f"{settings.api_prefix}/bookings", tags=["bookings"])


def get_booking_service(db: Session = Depends(get_db)) -> BookingService:
    return BookingService(db, publisher=publisher)


@app.get("/health", tags=["health"])
def health() -> dict[str, str]:
    return {"status": "ok", "service": "bookings"}


@router.post("", response_model=BookingConfirmation, status_code=status.HTTP_201_CREATED)
@limiter.limit("20/minute")
def create_booking(
    request: Request,
    booking_in: BookingCreate,
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
) -> BookingConfirmation:
    booking = service.create_booking(booking_in, current_user)
    return BookingConfirmation(message="Booking confirmed!", booking=BookingRead.model_validate(booking))


@router.get("/my-bookings", response_model=BookingPage)
@limiter.limit("30/minute")
def list_my_bookings(
    request: Request,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
) -> BookingPage:
    return service.list_my_bookings(current_user, page=page, limit=limit)


@router.get("/{booking_id}", response_model=BookingRead)
@limiter.limit("30/minute")
def get_booking(
    request: Request,
    booking_id: int,
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
) -> BookingRead:
    return BookingRead.model_validate(service.get_booking(booking_id, current_user))


@router.delete("/{booking_id}", response_model=MessageResponse)
@limiter.limit("20/minute")
def cancel_booking(
    request: Request,
    booking_id: int,
    confirmation: Optional[BookingCancel] = Body(None),
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
) -> MessageResponse:
    service.cancel_booking(booking_id, current_user, confirmation)
    return MessageResponse(message="Booking cancelled successfully")


app.include_router(router)
