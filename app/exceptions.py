"""Domain errors and their mapping onto HTTP responses.

Services raise these; the handlers registered on the app turn each one into
a JSON ``{"error": message}`` body with the matching status code.
"""
import logging

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class MarketplaceError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class Unauthorized(MarketplaceError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Authentication required"


class Forbidden(MarketplaceError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Forbidden"


class NotFound(MarketplaceError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class InvalidInput(MarketplaceError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid input"


class Conflict(MarketplaceError):
    # Reported as 400 to match the checkout contract
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Conflict"


class InvalidSignature(MarketplaceError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid signature"


class UpstreamFailure(MarketplaceError):
    """A storage or payment provider call failed. Details stay in the logs."""

    status_code = status.HTTP_502_BAD_GATEWAY
    default_message = "Upstream service unavailable"


async def marketplace_error_handler(request: Request, exc: MarketplaceError) -> JSONResponse:
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, Unauthorized) else None
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.message},
        headers=headers,
    )


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed request bodies are rejected before they reach domain logic."""
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "Validation failed", "details": jsonable_encoder(exc.errors())},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(MarketplaceError, marketplace_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
