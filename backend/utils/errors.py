"""Error taxonomy and the handlers that render every failure as a `{data, error}` envelope."""

import logging
from contextlib import contextmanager

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from starlette import status
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base class for failures that map to a fixed HTTP status."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND


class UnprocessableError(AppError):
    status_code = 422


class PersistenceError(AppError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class UpstreamError(AppError):
    status_code = status.HTTP_502_BAD_GATEWAY


class ServiceUnavailableError(AppError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"data": None, "error": message})


@contextmanager
def persistence_errors(db: Session | None, message: str):
    """
    Run a handler body, collapsing unexpected failures into a PersistenceError.

    AppError subclasses raised inside the block propagate unchanged so that
    validation and not-found messages reach the client verbatim. Anything else
    is logged, the session is rolled back, and the client only ever sees the
    fixed `message`.
    """
    try:
        yield
    except AppError:
        raise
    except Exception:
        logger.exception(message)
        if db is not None:
            db.rollback()
        raise PersistenceError(message)


def app_error_handler(request: Request, exc: AppError):  # type: ignore
    return error_response(exc.status_code, exc.message)


def request_validation_handler(request: Request, exc: RequestValidationError):  # type: ignore
    errors = exc.errors()
    if not errors:
        return error_response(status.HTTP_400_BAD_REQUEST, "Invalid request body")
    first = errors[0]
    location = [str(part) for part in first.get("loc", ()) if part != "body"]
    field = ".".join(location)
    message = f"{field}: {first['msg']}" if field else first["msg"]
    return error_response(status.HTTP_400_BAD_REQUEST, message)


def http_exception_handler(request: Request, exc: StarletteHTTPException):  # type: ignore
    if exc.status_code == status.HTTP_404_NOT_FOUND and exc.detail == "Not Found":
        message = f"No route for {request.method} {request.url.path}"
    else:
        message = str(exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content={"data": None, "error": message},
        headers=getattr(exc, "headers", None),
    )


def server_error_handler(request: Request, exc: Exception):  # type: ignore
    logger.exception("unhandled exception on %s %s", request.method, request.url.path)
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")
