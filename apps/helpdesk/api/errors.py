"""Translate engine errors into HTTP responses."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from apps.helpdesk.tickets.errors import (
    CapacityExceededError,
    DuplicateResourceError,
    ForbiddenError,
    InvalidArgumentError,
    InvalidTransitionError,
    ResourceInUseError,
    ResourceNotFoundError,
    TicketServiceError,
)

logger = logging.getLogger(__name__)

_STATUS_CODES: dict[type[TicketServiceError], int] = {
    InvalidArgumentError: status.HTTP_400_BAD_REQUEST,
    InvalidTransitionError: status.HTTP_400_BAD_REQUEST,
    CapacityExceededError: status.HTTP_400_BAD_REQUEST,
    ForbiddenError: status.HTTP_403_FORBIDDEN,
    ResourceNotFoundError: status.HTTP_404_NOT_FOUND,
    DuplicateResourceError: status.HTTP_409_CONFLICT,
    ResourceInUseError: status.HTTP_409_CONFLICT,
}


def status_code_for(exc: TicketServiceError) -> int:
    for error_type in type(exc).__mro__:
        if error_type in _STATUS_CODES:
            return _STATUS_CODES[error_type]
    return status.HTTP_500_INTERNAL_SERVER_ERROR


async def ticket_error_handler(request: Request, exc: TicketServiceError) -> JSONResponse:
    status_code = status_code_for(exc)
    logger.warning("%s - %s - path: %s", exc.code, exc.message, request.url.path)
    return JSONResponse(
        status_code=status_code,
        content={
            "success": False,
            "statusCode": status_code,
            **exc.to_dict(),
            "path": request.url.path,
        },
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(TicketServiceError, ticket_error_handler)
