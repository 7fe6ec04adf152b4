"""Domain error taxonomy and the FastAPI handlers that render it.

Services raise these; routes never build error payloads by hand. Every
failure leaves the API as an ``ErrorResponse`` envelope with a stable
``error_code``.
"""

import logging
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from app.schemas.common import ErrorResponse

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base class for errors surfaced to API callers."""

    error_code = "server_error"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class NotFoundError(AppError):
    error_code = "not_found"
    status_code = status.HTTP_404_NOT_FOUND


class ForbiddenError(AppError):
    error_code = "forbidden"
    status_code = status.HTTP_403_FORBIDDEN


class InvalidStateError(AppError):
    error_code = "invalid_state"
    status_code = status.HTTP_400_BAD_REQUEST


class ValidationFailedError(AppError):
    error_code = "validation_failed"
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY


class ConflictError(AppError):
    error_code = "conflict"
    status_code = status.HTTP_409_CONFLICT


class UnauthorizedError(AppError):
    error_code = "unauthorized"
    status_code = status.HTTP_401_UNAUTHORIZED


def _render(status_code: int, body: ErrorResponse, headers: dict | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(body),
        headers=headers,
    )


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    headers = None
    if isinstance(exc, UnauthorizedError):
        headers = {"WWW-Authenticate": "Bearer"}
    return _render(
        exc.status_code,
        ErrorResponse(error_code=exc.error_code, message=exc.message, details=exc.details),
        headers,
    )


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    return _render(
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        ErrorResponse(
            error_code=ValidationFailedError.error_code,
            message="Validation failed",
            # ctx can carry the raised ValueError itself
            details={"errors": jsonable_encoder(exc.errors())},
        ),
    )


async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error("Database error on %s %s: %s", request.method, request.url.path, exc)
    return _render(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        ErrorResponse(error_code=AppError.error_code, message="Database error"),
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(SQLAlchemyError, database_error_handler)
