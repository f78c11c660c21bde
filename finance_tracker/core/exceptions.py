# finance_tracker/core/exceptions.py

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError

logger = logging.getLogger(__name__)


class FinanceTrackerError(Exception):
    """Base exception for business rule failures, carries its HTTP status."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class BadRequestError(FinanceTrackerError):
    """Raised when a request breaks a business rule."""
    status_code = status.HTTP_400_BAD_REQUEST


class UnauthorizedError(FinanceTrackerError):
    """Raised for bad credentials or a missing/invalid session token."""
    status_code = status.HTTP_401_UNAUTHORIZED


class NotFoundError(FinanceTrackerError):
    """Raised when a resource does not exist or is not owned by the caller."""
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(FinanceTrackerError):
    """Raised when a unique key is already taken."""
    status_code = status.HTTP_409_CONFLICT


class ServerError(FinanceTrackerError):
    """Raised when an invariant the service relies on does not hold."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


def _issue_path(loc) -> str:
    parts = list(loc)
    if parts and parts[0] in ("body", "query", "path", "header"):
        parts = parts[1:]
    return ".".join(str(part) for part in parts)


async def finance_tracker_error_handler(request: Request, exc: FinanceTrackerError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})


async def validation_error_handler(request: Request, exc: RequestValidationError):
    issues = [{"path": _issue_path(error.get("loc", ())), "message": error.get("msg", "")}
              for error in exc.errors()]
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST,
                        content={"message": "Invalid data.", "issues": issues})


async def integrity_error_handler(request: Request, exc: IntegrityError):
    logger.warning(f"{request.method} {request.url.path}: integrity error: {exc.orig}")
    return JSONResponse(status_code=status.HTTP_409_CONFLICT, content={"message": "Duplicate record."})


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error(f"Unexpected error on {request.method} {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                        content={"message": "Internal server error."})


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(FinanceTrackerError, finance_tracker_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(IntegrityError, integrity_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
