"""Status codes for application errors, shared by the HTTP app and the serverless handler."""
from __future__ import annotations

from chat_relay.application.exceptions import (
    AppError,
    ConflictError,
    ForbiddenError,
    UnauthenticatedError,
    ValidationError,
)

INTERNAL_ERROR_DETAIL = "Internal error while processing message"

ERROR_STATUS_CODES: dict[type[AppError], int] = {
    ValidationError: 400,
    UnauthenticatedError: 401,
    ForbiddenError: 403,
    ConflictError: 409,
}


def status_for(exc: AppError) -> int:
    for error_type, status_code in ERROR_STATUS_CODES.items():
        if isinstance(exc, error_type):
            return status_code
    return 500
