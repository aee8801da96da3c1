"""Error taxonomy for the booking domain and the handlers that render it."""
import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)


class BookawayError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ValidationError(BookawayError):
    status_code = status.HTTP_400_BAD_REQUEST


class AuthenticationError(BookawayError):
    status_code = status.HTTP_401_UNAUTHORIZED


class AuthorizationError(BookawayError):
    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(BookawayError):
    status_code = status.HTTP_404_NOT_FOUND


class CapacityError(BookawayError):
    status_code = status.HTTP_400_BAD_REQUEST


class InternalError(BookawayError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


async def bookaway_error_handler(_request: Request, exc: BookawayError) -> JSONResponse:
    if isinstance(exc, InternalError):
        logger.error("Internal error: %s", exc.message)
        return JSONResponse(status_code=exc.status_code, content={"detail": "Server Error"})
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthenticationError) else None
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message}, headers=headers)


async def request_validation_error_handler(_request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {"field": ".".join(str(part) for part in error["loc"] if part != "body"), "message": error["msg"]}
        for error in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": "Missing or invalid fields in request", "errors": errors},
    )


async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error("Database error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Server Error"},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Attach the domain, validation and database error handlers to an app."""

    app.add_exception_handler(BookawayError, bookaway_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)
    app.add_exception_handler(SQLAlchemyError, database_error_handler)
