from contextlib import asynccontextmanager

from fastapi import APIRouter, Depends, FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session

from bookaway import auth
from bookaway.config import get_settings
from bookaway.database import Base, engine, get_db
from bookaway.dependencies import get_current_user
from bookaway.exceptions import AuthenticationError, ValidationError, register_exception_handlers
from bookaway.logging_middleware import add_audit_middleware, configure_logging
from bookaway.models import User
from bookaway.rate_limit import apply_rate_limiter, limiter
from bookaway.schemas import RegisterResponse, Token, UserCreate, UserRead

settings = get_settings()


@asynccontextmanager
async def lifespan(_: FastAPI):
    configure_logging()
    if settings.run_db_migrations:
        Base.metadata.create_all(bind=engine)
    yield


def create_app() -> FastAPI:
    fastapi_app = FastAPI(title="Users Service", version="0.1.0", lifespan=lifespan)
    fastapi_app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    apply_rate_limiter(fastapi_app)
    add_audit_middleware(fastapi_app, "users")
    register_exception_handlers(fastapi_app)
    return fastapi_app


app = create_app()
router = APIRouter(prefix=settings.api_prefix)


@app.get("/health", tags=["health"])
def health() -> dict[str, str]:
    return {"status": "ok", "service": "users"}


@router.post("/auth/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED, tags=["auth"])
@limiter.limit("5/minute")
def register_user(request: Request, user_in: UserCreate, db: Session = Depends(get_db)) -> RegisterResponse:
    if auth.find_user_by_email(db, user_in.email):
        raise ValidationError("Email already registered")

    user = User(
        name=user_in.name.strip(),
        email=user_in.email.strip().lower(),
        hashed_password=auth.get_password_hash(user_in.password),
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return RegisterResponse(
        message="User registered successfully",
        token=auth.create_user_token(user),
        user=UserRead.model_validate(user),
    )


@router.post("/auth/login", response_model=Token, tags=["auth"])
@limiter.limit("10/minute")
def login(request: Request, form_data: OAuth2PasswordRequestForm = Depends(), db: Session = Depends(get_db)) -> Token:
    user = auth.authenticate_user(db, form_data.username, form_data.password)
    if not user:
        raise AuthenticationError("Incorrect email or password")
    return Token(access_token=auth.create_user_token(user))


@router.get("/users/me", response_model=UserRead, tags=["users"])
@limiter.limit("30/minute")
def read_profile(request: Request, current_user: User = Depends(get_current_user)) -> User:
    return current_user


app.include_router(router)
