"""
Error taxonomy and FastAPI exception handlers.

Client-caused errors carry a specific message. Everything else is logged with
full detail server-side and reported with a generic message.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """Base class for errors rendered as ``{"success": false, "message": ...}``."""

    status_code: int = 500
    message: str = "An unexpected error occurred. Please try again later."

    def __init__(self, message: Optional[str] = None):
        if message is not None:
            self.message = message
        super().__init__(self.message)


class ValidationError(ApiError):
    status_code = 400

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class NotFoundError(ApiError):
    status_code = 404
    message = "Resource not found"


class StoreError(ApiError):
    status_code = 500
    message = "Error accessing settings"


class RateLimitExceeded(ApiError):
    status_code = 429
    message = "Too many contact form submissions. Please try again later."

    def __init__(self, retry_after: int, message: Optional[str] = None):
        super().__init__(message)
        self.retry_after = retry_after


class MailTransportError(Exception):
    """
    Raised by mail transports. ``code`` follows the nodemailer convention:
    ``EAUTH`` for rejected credentials, ``ECONNECTION`` when the server cannot
    be reached, anything else for other failures.
    """

    def __init__(self, code: str, detail: str = ""):
        super().__init__(f"{code}: {detail}" if detail else code)
        self.code = code
        self.detail = detail


AUTH_ERROR_CODE = "EAUTH"
CONNECTION_ERROR_CODE = "ECONNECTION"


class TransportError(ApiError):
    status_code = 500
    message = (
        "Failed to send message. Please try again later or contact us directly."
    )


class TransportAuthError(TransportError):
    message = "Email service authentication failed. Please contact support."


class TransportConnectionError(TransportError):
    message = "Unable to connect to email service. Please try again later."


class TransportGenericError(TransportError):
    pass


_TRANSPORT_ERRORS_BY_CODE = {
    AUTH_ERROR_CODE: TransportAuthError,
    CONNECTION_ERROR_CODE: TransportConnectionError,
}


def classify_transport_error(exc: BaseException) -> TransportError:
    """Map a transport failure to the user-facing error category."""
    code = getattr(exc, "code", None)
    error_cls = _TRANSPORT_ERRORS_BY_CODE.get(code, TransportGenericError)
    return error_cls()


# Messages for request bodies that fail schema parsing, keyed by body field.
REQUEST_FIELD_MESSAGES = {
    "gstPercentage": "Please provide a valid GST percentage",
}
INVALID_REQUEST_MESSAGE = "Invalid request data"


def request_validation_payload(exc: RequestValidationError) -> dict:
    """Render the first schema error in the standard error envelope."""
    for error in exc.errors():
        for part in error.get("loc", ()):
            if part in REQUEST_FIELD_MESSAGES:
                return {
                    "success": False,
                    "message": REQUEST_FIELD_MESSAGES[part],
                    "field": part,
                }
    return {"success": False, "message": INVALID_REQUEST_MESSAGE}


def error_payload(exc: ApiError) -> dict:
    payload = {"success": False, "message": exc.message}
    field = getattr(exc, "field", None)
    if field:
        payload["field"] = field
    return payload


def register_exception_handlers(app: FastAPI) -> None:
    """Register the handlers that render errors in the standard envelope."""

    @app.exception_handler(ApiError)
    async def api_error_handler(request: Request, exc: ApiError):
        if exc.status_code >= 500:
            logger.error(
                "%s on %s %s: %r",
                type(exc).__name__,
                request.method,
                request.url.path,
                exc.__cause__ or exc,
            )
        else:
            logger.info(
                "%s on %s %s: %s",
                type(exc).__name__,
                request.method,
                request.url.path,
                exc.message,
            )
        headers = None
        if isinstance(exc, RateLimitExceeded):
            headers = {"Retry-After": str(exc.retry_after)}
        return JSONResponse(
            status_code=exc.status_code, content=error_payload(exc), headers=headers
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ):
        logger.info(
            "Request validation failed on %s %s: %s",
            request.method,
            request.url.path,
            exc.errors(),
        )
        return JSONResponse(status_code=400, content=request_validation_payload(exc))

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception(
            "Unhandled exception on %s %s", request.method, request.url.path
        )
        return JSONResponse(
            status_code=500,
            content={"success": False, "message": ApiError.message},
        )
