"""
Custom exception hierarchy for the Timey API.

Rule: every HTTP error has a machine-readable `code` string so clients
can branch on it without parsing English messages.

The progression engine itself never raises; these are raised by the
routers and the persistence adapter.
"""
from __future__ import annotations

from typing import Any

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger
from starlette import status


# ---------------------------------------------------------------------------
# Exception classes
# ---------------------------------------------------------------------------

class TimeyException(Exception):
    """Base class for all application-level errors."""
    http_status: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "INTERNAL_ERROR"

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict:
        payload: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class ProfileNotFoundError(TimeyException):
    http_status = status.HTTP_404_NOT_FOUND
    code = "PROFILE_NOT_FOUND"

    def __init__(self, user_id: str):
        super().__init__(
            message=f"No profile found for user {user_id}.",
            details={"user_id": user_id},
        )


class ProfileAlreadyExistsError(TimeyException):
    http_status = status.HTTP_409_CONFLICT
    code = "PROFILE_ALREADY_EXISTS"

    def __init__(self, user_id: str):
        super().__init__(
            message=f"A profile for user {user_id} already exists.",
            details={"user_id": user_id},
        )


class ProfileUnreadableError(TimeyException):
    http_status = status.HTTP_422_UNPROCESSABLE_ENTITY
    code = "PROFILE_UNREADABLE"

    def __init__(self, user_id: str, errors: int = 0):
        super().__init__(
            message=f"The stored profile for user {user_id} could not be read.",
            details={"user_id": user_id, "errors": errors},
        )


class DayNotFoundError(TimeyException):
    http_status = status.HTTP_404_NOT_FOUND
    code = "DAY_NOT_FOUND"

    def __init__(self, day: str):
        super().__init__(
            message=f"Day {day} is not in the profile history.",
            details={"day": day},
        )


class DayAlreadyClosedError(TimeyException):
    http_status = status.HTTP_409_CONFLICT
    code = "DAY_ALREADY_CLOSED"

    def __init__(self, day: str):
        super().__init__(
            message=f"Day {day} is already closed.",
            details={"day": day},
        )


class ChoreNotScheduledError(TimeyException):
    http_status = status.HTTP_404_NOT_FOUND
    code = "CHORE_NOT_SCHEDULED"

    def __init__(self, chore_id: int, day: str):
        super().__init__(
            message=f"Chore {chore_id} is not on the list for {day}.",
            details={"chore_id": chore_id, "day": day},
        )


class NoRewardsAvailableError(TimeyException):
    http_status = status.HTTP_409_CONFLICT
    code = "NO_REWARDS_AVAILABLE"

    def __init__(self):
        super().__init__(message="No reward tokens are available to redeem.")


class ProfileStoreError(TimeyException):
    http_status = status.HTTP_503_SERVICE_UNAVAILABLE
    code = "PERSISTENCE_ERROR"

    def __init__(self, message: str, user_id: str | None = None):
        super().__init__(
            message=message,
            details={"user_id": user_id} if user_id else {},
        )


# ---------------------------------------------------------------------------
# FastAPI exception handlers
# ---------------------------------------------------------------------------

async def timey_exception_handler(request: Request, exc: TimeyException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.http_status,
        content=exc.to_dict(),
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Return structured 422 with machine-readable field errors."""
    field_errors = []
    for error in exc.errors():
        field_errors.append({
            "field": ".".join(str(loc) for loc in error["loc"] if loc != "body"),
            "message": error["msg"],
            "type": error["type"],
        })
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "code": "VALIDATION_ERROR",
            "message": "Request validation failed.",
            "details": {"errors": field_errors},
        },
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "code": "INTERNAL_ERROR",
            "message": "An unexpected error occurred.",
        },
    )
