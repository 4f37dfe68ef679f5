"""Translate domain errors into HTTP responses."""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from loyalty.core.exceptions import (
    AlreadyGrantedError,
    DuplicateKeyError,
    EditConflictError,
    ExchangeFailedError,
    InvalidCredentialsError,
    LoyaltyError,
    NotFoundError,
    StorageError,
    ValidationFailedError,
    VoucherNotAvailableError,
)

logger = logging.getLogger(__name__)

# First match wins; subclasses must precede their bases.
ERROR_STATUS_CODES: list[tuple[type[LoyaltyError], int]] = [
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (DuplicateKeyError, status.HTTP_409_CONFLICT),
    (EditConflictError, status.HTTP_409_CONFLICT),
    (AlreadyGrantedError, status.HTTP_409_CONFLICT),
    (ExchangeFailedError, status.HTTP_400_BAD_REQUEST),
    (VoucherNotAvailableError, status.HTTP_400_BAD_REQUEST),
    (ValidationFailedError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (InvalidCredentialsError, status.HTTP_401_UNAUTHORIZED),
    (StorageError, status.HTTP_500_INTERNAL_SERVER_ERROR),
]

INTERNAL_ERROR_BODY = {
    "error": {
        "code": StorageError.code,
        "message": StorageError.default_message,
    }
}


def status_code_for(exc: LoyaltyError) -> int:
    for error_type, status_code in ERROR_STATUS_CODES:
        if isinstance(exc, error_type):
            return status_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


async def loyalty_error_handler(request: Request, exc: LoyaltyError) -> JSONResponse:
    status_code = status_code_for(exc)

    if status_code >= 500:
        logger.error(
            f"{request.method} {request.url.path} failed: {exc!r}",
            exc_info=exc.__cause__ or exc,
        )
        return JSONResponse(status_code=status_code, content=INTERNAL_ERROR_BODY)

    headers = None
    if isinstance(exc, InvalidCredentialsError):
        headers = {"WWW-Authenticate": "Bearer"}

    return JSONResponse(
        status_code=status_code, content={"error": exc.as_dict()}, headers=headers
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=INTERNAL_ERROR_BODY
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Install the domain error handlers on ``app``."""
    app.add_exception_handler(LoyaltyError, loyalty_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
