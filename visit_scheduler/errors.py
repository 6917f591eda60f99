"""
Booking failures.

Each failure kind the scheduler can report has its own exception class so the
HTTP layer can render a specific status and message instead of a generic error.
"""

from typing import Any, Dict, Optional

import structlog
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

logger = structlog.get_logger("visit_scheduler.errors")


class BookingError(Exception):
    """Base class for every failure a booking attempt can end with."""

    code = "internal"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    retryable = False

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def to_payload(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details,
            "retryable": self.retryable,
        }

    def to_response(self) -> JSONResponse:
        headers = {"Retry-After": "1"} if self.retryable else None
        return JSONResponse(status_code=self.status_code, content={"detail": self.to_payload()}, headers=headers)


class NotFound(BookingError):
    """Apartment or tenant id does not resolve."""

    code = "not_found"
    status_code = status.HTTP_404_NOT_FOUND


class NoRunnerAssigned(BookingError):
    """The apartment has no runner mapping."""

    code = "no_runner_assigned"
    status_code = status.HTTP_404_NOT_FOUND


class InvalidDate(BookingError):
    """Preferred date falls on a weekend."""

    code = "invalid_date"
    status_code = status.HTTP_400_BAD_REQUEST


class QuotaExceeded(BookingError):
    code = "quota_exceeded"
    status_code = status.HTTP_400_BAD_REQUEST


class ZoneConflict(BookingError):
    """Runner is already committed to another zone on that day."""

    code = "zone_conflict"
    status_code = status.HTTP_400_BAD_REQUEST


class NoSlotAvailable(BookingError):
    code = "no_slot_available"
    status_code = status.HTTP_400_BAD_REQUEST


class SlotTaken(BookingError):
    """A concurrent booking took the last seat of the chosen slot."""

    code = "slot_taken"
    status_code = status.HTTP_409_CONFLICT
    retryable = True


class Unavailable(BookingError):
    """Store timeout or transient failure; nothing was written."""

    code = "unavailable"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    retryable = True


class Internal(BookingError):
    code = "internal"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(BookingError)
    async def booking_error_handler(request: Request, exc: BookingError) -> JSONResponse:
        return exc.to_response()

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error("unhandled_error", error=str(exc), exc_info=exc)
        return Internal("Internal Server Error").to_response()
