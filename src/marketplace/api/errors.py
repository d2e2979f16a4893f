"""Map checkout errors to HTTP responses.

Registered after protean's own handlers so the more specific
``CheckoutError`` handler wins over the generic ``ValidationError`` one.
"""

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from marketplace.errors import (
    CheckoutError,
    InvalidStatusTransitionError,
    SessionExpiredError,
    SessionNotFoundError,
)

logger = structlog.get_logger(__name__)


def status_code_for(exc: CheckoutError) -> int:
    if isinstance(exc, SessionExpiredError):
        return 410
    if isinstance(exc, SessionNotFoundError):
        return 404
    if isinstance(exc, InvalidStatusTransitionError):
        return 409
    return 422


async def checkout_error_handler(request: Request, exc: CheckoutError) -> JSONResponse:
    status_code = status_code_for(exc)
    logger.info(
        "Checkout request rejected",
        path=request.url.path,
        error=type(exc).__name__,
        status_code=status_code,
    )
    return JSONResponse(status_code=status_code, content=exc.to_dict())


def register_checkout_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(CheckoutError, checkout_error_handler)
