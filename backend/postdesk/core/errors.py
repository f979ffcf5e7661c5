"""
Error taxonomy and the HTTP translation applied at the application boundary.

Services and dependencies raise these exceptions; ``register_exception_handlers``
turns them into ``{"error": message}`` JSON bodies with the matching status code.
"""

import logging
from typing import Any, Optional
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class PostDeskError(Exception):
    """Base class for errors that map onto an HTTP response."""

    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: Optional[str] = None, details: Any = None):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)


class Unauthorized(PostDeskError):
    status_code = 401
    default_message = "Unauthorized"


class Forbidden(PostDeskError):
    status_code = 403
    default_message = "Forbidden"


class NotFound(PostDeskError):
    status_code = 404
    default_message = "Not found"


class ValidationError(PostDeskError):
    status_code = 400
    default_message = "Invalid input"


class InvalidParameter(ValidationError):
    default_message = "Invalid parameter"


class ConflictError(PostDeskError):
    status_code = 409
    default_message = "Resource already exists"


class RateLimited(PostDeskError):
    status_code = 429
    default_message = "Too many requests"


class InternalError(PostDeskError):
    pass


def error_response(exc: PostDeskError) -> JSONResponse:
    body = {"error": exc.message}
    if exc.details is not None:
        body["details"] = exc.details
    headers = None
    if isinstance(exc, Unauthorized):
        headers = {"WWW-Authenticate": "Bearer"}
    return JSONResponse(status_code=exc.status_code, content=body, headers=headers)


async def postdesk_error_handler(request: Request, exc: PostDeskError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return error_response(exc)


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    # Malformed bodies and query strings are client errors, not 422s
    details = [
        {"field": ".".join(str(part) for part in err.get("loc", [])), "message": err.get("msg")}
        for err in exc.errors()
    ]
    return error_response(ValidationError("Invalid request", details=details))


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return error_response(InternalError(details=str(exc)))


def register_exception_handlers(app: FastAPI) -> None:
    """Install the error translation on an application."""
    app.add_exception_handler(PostDeskError, postdesk_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
